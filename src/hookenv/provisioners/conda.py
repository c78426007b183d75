# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Conda hook environments created from the repository's ``environment.yml``."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Final

from ..constants import WINDOWS_OS_NAME
from ..environ import ProcessEnvironment
from ..errors import ProvisioningError
from ..health import HealthChecker, MarkerPathCheck
from ..paths import EnvironmentIdentity
from ..process import ToolRunner
from ..versioning import ResolvedVersion
from .base import EnvironmentProvisioner, IdentityLocks, LanguageSpec, SetupRequest

ENVIRONMENT_FILE: Final[str] = "environment.yml"
CONDA_META: Final[str] = "conda-meta"
DEFAULT_CONDA: Final[str] = "conda"


class CondaProvisioner(EnvironmentProvisioner):
    """Provide conda prefixes managed by conda, mamba, or micromamba."""

    spec = LanguageSpec(
        key="conda",
        display_name="Conda",
        executable=DEFAULT_CONDA,
        install_url="https://docs.conda.io/en/latest/miniconda.html",
    )

    def __init__(
        self,
        runner: ToolRunner,
        *,
        executable: str = DEFAULT_CONDA,
        locks: IdentityLocks | None = None,
        base_environ: Mapping[str, str] | None = None,
        platform: str | None = None,
    ) -> None:
        super().__init__(runner, locks=locks, base_environ=base_environ, platform=platform)
        self.executable = executable

    def _runtime_location(self) -> str | None:
        return self.runner.which(self.executable)

    def health_checker(self, naming_version: str) -> HealthChecker:
        del naming_version
        return HealthChecker([MarkerPathCheck(CONDA_META)])

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        env = ProcessEnvironment(self._base_environ).set("CONDA_PREFIX", env_path)
        if self.platform == WINDOWS_OS_NAME:
            return env.prepend_path(env_path, env_path / "Library" / "bin", env_path / "Scripts")
        return env.prepend_path(env_path / "bin")

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved
        env_path = identity.path
        repo_path = request.repo_path
        if repo_path is None or not (repo_path / ENVIRONMENT_FILE).is_file():
            raise ProvisioningError(
                f"conda environments require an {ENVIRONMENT_FILE} in the hook repository",
                language=self.language,
                path=env_path,
                step="create",
            )
        conda = self._require(self.executable, env_path=env_path, step="create")
        self._run(
            [conda, "env", "create", "-p", str(env_path), "--file", ENVIRONMENT_FILE],
            step="conda-env-create",
            env_path=env_path,
            cwd=repo_path,
        )

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        del repo_path
        conda = self._require(self.executable, env_path=env_path, step="install")
        self._run(
            [conda, "install", "-p", str(env_path), "-c", "conda-forge", "--yes", *dependencies],
            step="conda-install",
            env_path=env_path,
        )


__all__ = ["CondaProvisioner"]
