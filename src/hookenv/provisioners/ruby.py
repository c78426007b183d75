# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Ruby hook environments with an isolated gem home."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from ..environ import ProcessEnvironment
from ..health import HealthChecker, ManifestProbe, MarkerPathCheck, ProbeContext, SystemExecutablesCheck
from ..paths import EnvironmentIdentity
from ..versioning import ResolvedVersion
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest, discard_path

GEMS_DIR: Final[str] = "gems"
GEMFILE: Final[str] = "Gemfile"
GEM_INSTALL_FLAGS: Final[tuple[str, ...]] = ("--no-document", "--no-format-executable", "--no-user-install")


def _bundle_check(context: ProbeContext) -> list[str]:
    del context
    return ["bundle", "check"]


class RubyProvisioner(EnvironmentProvisioner):
    """Provide gem homes populated from the hook repository's gemspec or Gemfile."""

    spec = LanguageSpec(
        key="ruby",
        display_name="Ruby",
        executable="ruby",
        install_url="https://www.ruby-lang.org/en/documentation/installation/",
    )

    def health_checker(self, naming_version: str) -> HealthChecker:
        del naming_version
        return HealthChecker(
            [SystemExecutablesCheck("ruby"), MarkerPathCheck(GEMS_DIR)],
            [ManifestProbe(GEMFILE, _bundle_check)],
        )

    @staticmethod
    def gems_dir(env_path: Path) -> Path:
        return env_path / GEMS_DIR

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        gems = self.gems_dir(env_path)
        return (
            ProcessEnvironment(self._base_environ)
            .prepend_path(gems / "bin")
            .set("GEM_HOME", gems)
            .set("GEM_PATH", "")
            .set("BUNDLE_IGNORE_CONFIG", "1")
        )

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved, request
        self._require("ruby", env_path=identity.path, step="create")
        (self.gems_dir(identity.path) / "bin").mkdir(parents=True, exist_ok=True)

    def _populate(self, env_path: Path, request: SetupRequest) -> None:
        repo_path = request.repo_path
        if repo_path is not None:
            if (repo_path / GEMFILE).is_file():
                self._bundle_install(env_path, repo_path)
            if any(repo_path.glob("*.gemspec")):
                self._build_and_install(env_path, repo_path)
        self.install_dependencies(env_path, request.additional_dependencies, repo_path=repo_path)

    def _gem_install_args(self, env_path: Path, gem: str) -> list[str]:
        gems = self.gems_dir(env_path)
        return [
            gem,
            "install",
            *GEM_INSTALL_FLAGS,
            "--install-dir",
            str(gems),
            "--bindir",
            str(gems / "bin"),
        ]

    def _bundle_install(self, env_path: Path, repo_path: Path) -> None:
        bundle = self._require("bundle", env_path=env_path, step="bundle-install")
        env = (
            ProcessEnvironment(self.hook_environment(env_path))
            .set("BUNDLE_GEMFILE", repo_path / GEMFILE)
            .set("BUNDLE_PATH", self.gems_dir(env_path))
            .build()
        )
        self._run([bundle, "install"], step="bundle-install", env_path=env_path, cwd=repo_path, env=env)

    def _build_and_install(self, env_path: Path, repo_path: Path) -> None:
        gem = self._require("gem", env_path=env_path, step="gem-build")
        env = self.hook_environment(env_path)
        existing = set(repo_path.glob("*.gem"))
        gemspecs = sorted(str(path.name) for path in repo_path.glob("*.gemspec"))
        try:
            self._run([gem, "build", *gemspecs], step="gem-build", env_path=env_path, cwd=repo_path, env=env)
            built = sorted(set(repo_path.glob("*.gem")) - existing)
            if built:
                self._run(
                    [*self._gem_install_args(env_path, gem), *(str(path) for path in built)],
                    step="gem-install",
                    env_path=env_path,
                    cwd=repo_path,
                    env=env,
                )
        finally:
            for path in set(repo_path.glob("*.gem")) - existing:
                discard_path(path)

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        del repo_path
        gem = self._require("gem", env_path=env_path, step="gem-install")
        self._run(
            [*self._gem_install_args(env_path, gem), *dependencies],
            step="gem-install",
            env_path=env_path,
            env=self.hook_environment(env_path),
        )


__all__ = ["RubyProvisioner"]
