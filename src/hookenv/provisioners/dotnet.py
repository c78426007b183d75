# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
""".NET hook environments holding a generated console project."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from ..environ import ProcessEnvironment
from ..health import AlwaysHealthy, HealthChecker, ManifestProbe, ProbeContext
from ..paths import EnvironmentIdentity
from ..versioning import ResolvedVersion
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest

PROJECT_NAME: Final[str] = "HookEnv"
PROJECT_MANIFEST: Final[str] = f"{PROJECT_NAME}/{PROJECT_NAME}.csproj"


def split_package(spec: str) -> tuple[str, str | None]:
    """Return ``(package, version)`` for ``Package:1.2.3`` style specs."""

    package, sep, version = spec.partition(":")
    return package, (version if sep and version else None)


def _build_probe(context: ProbeContext) -> list[str]:
    return ["dotnet", "build", "--no-restore", str(context.env_path / PROJECT_NAME)]


class DotnetProvisioner(EnvironmentProvisioner):
    """Provide .NET environments whose packages are restored into a console project."""

    spec = LanguageSpec(
        key="dotnet",
        display_name=".NET",
        executable="dotnet",
        install_url="https://dotnet.microsoft.com/download",
    )

    def health_checker(self, naming_version: str) -> HealthChecker:
        del naming_version
        return HealthChecker([AlwaysHealthy()], [ManifestProbe(PROJECT_MANIFEST, _build_probe)])

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        return (
            super()
            ._environment(env_path)
            .set("DOTNET_CLI_HOME", env_path)
            .set("NUGET_PACKAGES", env_path / "packages")
            .set("DOTNET_CLI_TELEMETRY_OPTOUT", "1")
        )

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved, request
        self._require("dotnet", env_path=identity.path, step="create")

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        del repo_path
        dotnet = self._require("dotnet", env_path=env_path, step="install")
        env = self.hook_environment(env_path)
        project_dir = env_path / PROJECT_NAME
        if not (env_path / PROJECT_MANIFEST).is_file():
            self._run(
                [dotnet, "new", "console", "-n", PROJECT_NAME],
                step="dotnet-new",
                env_path=env_path,
                cwd=env_path,
                env=env,
            )
        for dependency in dependencies:
            package, version = split_package(dependency)
            args = [dotnet, "add", "package", package]
            if version:
                args.extend(["--version", version])
            self._run(args, step="dotnet-add-package", env_path=env_path, cwd=project_dir, env=env)
        self._run([dotnet, "restore"], step="dotnet-restore", env_path=env_path, cwd=project_dir, env=env)


__all__ = ["DotnetProvisioner", "split_package"]
