# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Coursier hook environments holding installed JVM applications."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from ..environ import ProcessEnvironment
from ..errors import RuntimeUnavailableError
from ..health import HealthChecker, ManifestProbe, ProbeContext, SystemExecutablesCheck
from ..paths import EnvironmentIdentity
from ..versioning import ResolvedVersion
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest

APPS_DIR: Final[str] = "apps"
COURSIER_EXECUTABLES: Final[tuple[str, ...]] = ("cs", "coursier")


class CoursierProvisioner(EnvironmentProvisioner):
    """Provide application directories populated by ``cs install``."""

    spec = LanguageSpec(
        key="coursier",
        display_name="Coursier",
        executable="cs",
        install_url="https://get-coursier.io/docs/cli-installation",
    )

    def coursier_executable(self) -> str | None:
        """Return the first of ``cs`` or ``coursier`` found on PATH."""

        for name in COURSIER_EXECUTABLES:
            location = self.runner.which(name)
            if location is not None:
                return location
        return None

    def _runtime_location(self) -> str | None:
        return self.coursier_executable()

    def _list_apps(self, context: ProbeContext) -> list[str]:
        executable = self.coursier_executable() or COURSIER_EXECUTABLES[0]
        return [executable, "list", "--install-dir", str(context.env_path / APPS_DIR)]

    def health_checker(self, naming_version: str) -> HealthChecker:
        del naming_version
        return HealthChecker(
            [SystemExecutablesCheck(*COURSIER_EXECUTABLES, any_of=True)],
            [ManifestProbe(APPS_DIR, self._list_apps)],
        )

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        return (
            ProcessEnvironment(self._base_environ)
            .prepend_path(env_path / APPS_DIR)
            .set("COURSIER_CACHE", env_path / ".cs-cache")
        )

    def _coursier(self, env_path: Path, step: str) -> str:
        executable = self.coursier_executable()
        if executable is None:
            raise RuntimeUnavailableError(
                " or ".join(COURSIER_EXECUTABLES),
                language=self.language,
                install_url=self.spec.install_url,
                path=env_path,
                step=step,
            )
        return executable

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved, request
        self._coursier(identity.path, "create")
        (identity.path / APPS_DIR).mkdir(parents=True, exist_ok=True)

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        del repo_path
        cs = self._coursier(env_path, "install")
        env = self.hook_environment(env_path)
        apps = env_path / APPS_DIR
        for dependency in dependencies:
            self._run([cs, "fetch", dependency], step="coursier-fetch", env_path=env_path, env=env)
            self._run(
                [cs, "install", "--install-dir", str(apps), dependency],
                step="coursier-install",
                env_path=env_path,
                env=env,
            )


__all__ = ["CoursierProvisioner"]
