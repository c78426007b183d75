# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Perl hook environments backed by a ``local::lib`` tree."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from ..environ import ProcessEnvironment
from ..health import HealthChecker, ManifestProbe, ProbeContext, SystemExecutablesCheck
from ..paths import EnvironmentIdentity
from ..versioning import ResolvedVersion, VersionPolicy
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest

PERL_LIB: Final[str] = "lib/perl5"


def _perl_lib_probe(context: ProbeContext) -> list[str]:
    return ["perl", "-I", str(context.env_path / PERL_LIB), "-e", "1"]


class PerlProvisioner(EnvironmentProvisioner):
    """Provide ``local::lib`` roots populated with cpanm or cpan."""

    spec = LanguageSpec(
        key="perl",
        display_name="Perl",
        executable="perl",
        install_url="https://www.perl.org/get.html",
        version_policy=VersionPolicy(prefers_system=True),
    )

    def health_checker(self, naming_version: str) -> HealthChecker:
        del naming_version
        return HealthChecker([SystemExecutablesCheck("perl")], [ManifestProbe(PERL_LIB, _perl_lib_probe)])

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        return (
            super()
            ._environment(env_path)
            .set("PERL5LIB", env_path / PERL_LIB)
            .set("PERL_LOCAL_LIB_ROOT", env_path)
            .unset("PERL_MM_OPT", "PERL_MB_OPT")
        )

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved, request
        env_path = identity.path
        self._require("perl", env_path=env_path, step="create")
        (env_path / PERL_LIB).mkdir(parents=True, exist_ok=True)
        (env_path / "bin").mkdir(parents=True, exist_ok=True)

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        del repo_path
        env = self.hook_environment(env_path)
        cpanm = self.runner.which("cpanm")
        if cpanm is not None:
            for dependency in dependencies:
                self._run(
                    [cpanm, "--local-lib", str(env_path), dependency],
                    step="cpanm-install",
                    env_path=env_path,
                    env=env,
                )
            return
        cpan = self._require("cpan", env_path=env_path, step="install")
        for dependency in dependencies:
            self._run([cpan, "-I", dependency], step="cpan-install", env_path=env_path, env=env)


__all__ = ["PerlProvisioner"]
