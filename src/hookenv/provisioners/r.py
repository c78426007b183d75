# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""R hook environments with a private package library."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from ..environ import ProcessEnvironment
from ..health import CommandCheck, HealthChecker, ManifestProbe, ProbeContext, SystemExecutablesCheck
from ..paths import EnvironmentIdentity
from ..versioning import ResolvedVersion, VersionPolicy
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest

LIBRARY_DIR: Final[str] = "library"
CRAN_MIRROR: Final[str] = "https://cran.r-project.org/"
R_FLAGS: Final[tuple[str, ...]] = ("--slave", "--no-restore", "-e")


def install_script(package: str, library: Path) -> str:
    """Return the R snippet installing ``package`` (``pkg==version`` pins a version)."""

    name, sep, version = package.partition("==")
    lib = str(library).replace("\\", "/")
    if sep and version:
        return (
            f'.libPaths("{lib}")\n'
            'if (!require("remotes", quietly = TRUE)) {\n'
            f'  install.packages("remotes", lib = "{lib}", repos = "{CRAN_MIRROR}")\n'
            "}\n"
            f'remotes::install_version("{name}", version = "{version}", lib = "{lib}")\n'
        )
    return f'.libPaths("{lib}")\ninstall.packages("{name}", lib = "{lib}", repos = "{CRAN_MIRROR}")\n'


def _library_probe(context: ProbeContext) -> list[str]:
    lib = str(context.env_path / LIBRARY_DIR).replace("\\", "/")
    return ["Rscript", "-e", f'.libPaths("{lib}"); invisible(.libPaths())']


class RProvisioner(EnvironmentProvisioner):
    """Provide R package libraries installed from CRAN."""

    spec = LanguageSpec(
        key="r",
        display_name="R",
        executable="Rscript",
        install_url="https://www.r-project.org/",
        version_policy=VersionPolicy(prefers_system=True),
    )

    def health_checker(self, naming_version: str) -> HealthChecker:
        del naming_version
        return HealthChecker(
            [SystemExecutablesCheck("Rscript"), CommandCheck("Rscript", "--version")],
            [ManifestProbe(LIBRARY_DIR, _library_probe)],
        )

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        return super()._environment(env_path).set("R_LIBS", env_path / LIBRARY_DIR).unset("R_LIBS_USER")

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved, request
        self._require("Rscript", env_path=identity.path, step="create")
        (identity.path / LIBRARY_DIR).mkdir(parents=True, exist_ok=True)

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        del repo_path
        r_exe = self._require("R", env_path=env_path, step="install")
        env = self.hook_environment(env_path)
        library = env_path / LIBRARY_DIR
        library.mkdir(parents=True, exist_ok=True)
        for dependency in dependencies:
            self._run(
                [r_exe, *R_FLAGS, install_script(dependency, library)],
                step="r-install",
                env_path=env_path,
                env=env,
            )


__all__ = ["RProvisioner", "install_script"]
