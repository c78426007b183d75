# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Python hook environments built as virtualenvs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

from ..constants import PASSTHROUGH_VERSIONS
from ..environ import PIP_ENV_DEFAULTS, ProcessEnvironment
from ..health import EnvironmentExecutableCheck, HealthChecker
from ..paths import EnvironmentIdentity, bin_dir_name, executable_name
from ..process import SubprocessExecutionError
from ..versioning import ResolvedVersion, VersionPolicy
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest

LOGGER = logging.getLogger(__name__)

INTERPRETER_FALLBACKS: Final[tuple[str, ...]] = ("python3", "python")
PIP_INSTALL_FLAGS: Final[tuple[str, ...]] = ("--quiet", "--no-compile", "--no-warn-script-location")
PROJECT_MANIFESTS: Final[tuple[str, ...]] = ("setup.py", "pyproject.toml")


class PythonProvisioner(EnvironmentProvisioner):
    """Provide virtualenvs with the hook repository and extra requirements installed."""

    spec = LanguageSpec(
        key="python",
        display_name="Python",
        executable="python3",
        install_url="https://www.python.org/downloads/",
        version_policy=VersionPolicy(supports_explicit=True, strip_prefix="python"),
        dependency_drift_checked=True,
    )

    def _runtime_location(self) -> str | None:
        for name in INTERPRETER_FALLBACKS:
            location = self.runner.which(name)
            if location is not None:
                return location
        return None

    def health_checker(self, naming_version: str) -> HealthChecker:
        candidates = list(INTERPRETER_FALLBACKS[::-1])
        if naming_version not in PASSTHROUGH_VERSIONS:
            candidates.append(f"python{naming_version}")
        return HealthChecker([EnvironmentExecutableCheck(candidates)])

    def env_python(self, env_path: Path) -> Path:
        """Return the interpreter inside the virtualenv at ``env_path``."""

        return env_path / bin_dir_name(self.platform) / executable_name("python", self.platform)

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        return (
            super()
            ._environment(env_path)
            .set("VIRTUAL_ENV", env_path)
            .set("PIP_DISABLE_PIP_VERSION_CHECK", "1")
            .unset("PYTHONHOME")
        )

    def _interpreter(self, actual: str, env_path: Path) -> str:
        """Return the host interpreter used to create the virtualenv for ``actual``."""

        candidates: list[str] = []
        if actual not in PASSTHROUGH_VERSIONS:
            candidates.append(actual if actual.startswith("python") else f"python{actual}")
        candidates.extend(INTERPRETER_FALLBACKS)
        for name in candidates:
            location = self.runner.which(name)
            if location is not None:
                if name != candidates[0]:
                    LOGGER.debug("python interpreter %s unavailable; using %s", candidates[0], location)
                return location
        return self._require(INTERPRETER_FALLBACKS[0], env_path=env_path, step="create")

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del request
        env_path = identity.path
        python = self._interpreter(resolved.actual, env_path)
        env = ProcessEnvironment(self._base_environ).update(PIP_ENV_DEFAULTS).build()
        if self._has_virtualenv(python, env):
            args = [python, "-m", "virtualenv", "--quiet", "--no-download", str(env_path)]
            step = "virtualenv"
        else:
            args = [python, "-m", "venv", str(env_path)]
            step = "venv"
        self._run(args, step=step, env_path=env_path, env=env)

    def _has_virtualenv(self, python: str, env: dict[str, str]) -> bool:
        try:
            self.runner.run([python, "-m", "virtualenv", "--version"], env=env)
        except (SubprocessExecutionError, OSError):
            LOGGER.debug("virtualenv not importable by %s; falling back to venv", python)
            return False
        return True

    def _populate(self, env_path: Path, request: SetupRequest) -> None:
        targets: list[str] = []
        repo_path = request.repo_path
        if repo_path is not None and any((repo_path / name).is_file() for name in PROJECT_MANIFESTS):
            targets.append(".")
        targets.extend(request.additional_dependencies)
        if targets:
            self._pip_install(env_path, targets, cwd=repo_path)

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        self._pip_install(env_path, dependencies, cwd=repo_path)

    def _pip_install(self, env_path: Path, targets: list[str], *, cwd: Path | None) -> None:
        python = self.env_python(env_path)
        env = self._environment(env_path).update(PIP_ENV_DEFAULTS).build()
        uv = self.runner.which("uv")
        if uv is not None:
            args = [uv, "pip", "install", "--python", str(python), *targets]
        else:
            args = [str(python), "-m", "pip", "install", *PIP_INSTALL_FLAGS, *targets]
        self._run(args, step="pip-install", env_path=env_path, cwd=cwd, env=env)


__all__ = ["PythonProvisioner"]
