# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Node.js hook environments backed by the system ``node`` and ``npm``."""

from __future__ import annotations

import logging
from pathlib import Path

from ..constants import VERSION_DEFAULT, VERSION_SYSTEM, WINDOWS_BIN_DIR, WINDOWS_OS_NAME
from ..environ import NODE_ENV_DEFAULTS, ProcessEnvironment
from ..errors import InstallError
from ..health import HealthChecker, LinkedExecutableCheck
from ..paths import EnvironmentIdentity, bin_dir_name, executable_name
from ..versioning import ResolvedVersion, VersionPolicy
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest, discard_path

LOGGER = logging.getLogger(__name__)

PACKAGE_MANIFEST = "package.json"
NODE_MODULES = "node_modules"
LOCAL_INSTALL_FLAGS: tuple[str, ...] = (
    "--include=dev",
    "--include=prod",
    "--ignore-prepublish",
    "--no-progress",
    "--no-save",
)


class NodeProvisioner(EnvironmentProvisioner):
    """Provide Node.js environments whose ``bin`` links to the system runtime."""

    spec = LanguageSpec(
        key="node",
        display_name="Node.js",
        executable="node",
        install_url="https://nodejs.org/en/download/",
        version_policy=VersionPolicy(prefers_system=True, explicit_uses_detected=True),
    )

    def _detect_default_version(self) -> str:
        if self.platform == WINDOWS_OS_NAME:
            return VERSION_DEFAULT
        if self.runner.which("node") is not None and self.runner.which("npm") is not None:
            return VERSION_SYSTEM
        return VERSION_DEFAULT

    def health_checker(self, naming_version: str) -> HealthChecker:
        del naming_version
        return HealthChecker([LinkedExecutableCheck("node")])

    def _lib_dir(self, env_path: Path) -> Path:
        return env_path / (WINDOWS_BIN_DIR if self.platform == WINDOWS_OS_NAME else "lib")

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        return (
            super()
            ._environment(env_path)
            .update(
                {
                    "NODE_VIRTUAL_ENV": env_path,
                    "NPM_CONFIG_PREFIX": env_path,
                    "npm_config_prefix": env_path,
                    "NODE_PATH": self._lib_dir(env_path) / NODE_MODULES,
                }
            )
            .unset("NPM_CONFIG_USERCONFIG", "npm_config_userconfig")
        )

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved, request
        env_path = identity.path
        node = self._require("node", env_path=env_path, step="create")
        bin_dir = env_path / bin_dir_name(self.platform)
        bin_dir.mkdir(parents=True, exist_ok=True)
        (self._lib_dir(env_path) / NODE_MODULES).mkdir(parents=True, exist_ok=True)
        self._link(bin_dir / executable_name("node", self.platform), node)
        npm = self.runner.which("npm")
        if npm is not None:
            self._link(bin_dir / executable_name("npm", self.platform), npm)

    @staticmethod
    def _link(target: Path, source: str) -> None:
        if target.is_symlink() or target.exists():
            target.unlink()
        target.symlink_to(source)

    def _populate(self, env_path: Path, request: SetupRequest) -> None:
        self._install(env_path, list(request.additional_dependencies), request.repo_path)

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        repo_dir = repo_path or env_path.parent
        if not (repo_dir / PACKAGE_MANIFEST).is_file():
            if dependencies:
                LOGGER.warning(
                    "Node.js language ignoring additional dependencies (no package.json found): %s",
                    ", ".join(dependencies),
                )
            return

        npm = self._require("npm", env_path=env_path, step="install")
        env = ProcessEnvironment(self.hook_environment(env_path)).update(NODE_ENV_DEFAULTS).build()
        tarball: Path | None = None
        try:
            self._run(
                [npm, "install", *LOCAL_INSTALL_FLAGS],
                step="npm-install",
                env_path=env_path,
                cwd=repo_dir,
                env=env,
            )
            packed = self._run([npm, "pack"], step="npm-pack", env_path=env_path, cwd=repo_dir, env=env)
            lines = packed.stdout.strip().splitlines()
            if not lines:
                raise InstallError(
                    [npm, "pack"],
                    packed.output,
                    language=self.language,
                    path=env_path,
                    step="npm-pack",
                )
            tarball = repo_dir / lines[-1].strip()
            self._run(
                [npm, "install", "-g", str(tarball), *dependencies],
                step="npm-install-global",
                env_path=env_path,
                cwd=repo_dir,
                env=env,
            )
        finally:
            # Staging artefacts never outlive the install, successful or not.
            if tarball is not None:
                discard_path(tarball)
            discard_path(repo_dir / NODE_MODULES)


__all__ = ["NodeProvisioner"]
