# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rust hook environments using the system cargo toolchain."""

from __future__ import annotations

from pathlib import Path

from ..constants import VERSION_DEFAULT, VERSION_SYSTEM
from ..environ import ProcessEnvironment
from ..health import AlwaysHealthy, HealthChecker, SystemExecutablesCheck
from ..paths import EnvironmentIdentity
from ..versioning import ResolvedVersion, VersionPolicy
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest

CLI_PREFIX = "cli:"


def split_crate(spec: str) -> tuple[str, str | None]:
    """Return ``(crate, version)`` for ``cli:name:version`` style specs."""

    name = spec.removeprefix(CLI_PREFIX)
    crate, sep, version = name.partition(":")
    return crate, (version if sep and version else None)


class RustProvisioner(EnvironmentProvisioner):
    """Provide cargo install roots for Rust hooks."""

    spec = LanguageSpec(
        key="rust",
        display_name="Rust",
        executable="cargo",
        install_url="https://rustup.rs/",
        version_policy=VersionPolicy(prefers_system=True),
    )

    def _detect_default_version(self) -> str:
        if self.runner.which("rustc") is not None and self.runner.which("cargo") is not None:
            return VERSION_SYSTEM
        return VERSION_DEFAULT

    def health_checker(self, naming_version: str) -> HealthChecker:
        if naming_version == VERSION_SYSTEM:
            return HealthChecker([SystemExecutablesCheck("rustc", "cargo")])
        return HealthChecker([AlwaysHealthy()])

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        return super()._environment(env_path).set("CARGO_HOME", env_path)

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved, request
        (identity.path / "bin").mkdir(parents=True, exist_ok=True)

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        del repo_path
        cargo = self._require("cargo", env_path=env_path, step="install")
        env = self.hook_environment(env_path)
        for dependency in dependencies:
            crate, version = split_crate(dependency)
            args = [cargo, "install", "--root", str(env_path), crate]
            if version:
                args.extend(["--version", version])
            self._run(args, step="cargo-install", env_path=env_path, env=env)


__all__ = ["RustProvisioner", "split_crate"]
