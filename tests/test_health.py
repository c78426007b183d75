# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from hookenv.errors import HealthCheckError
from hookenv.health import (
    AlwaysHealthy,
    CommandCheck,
    EnvironmentExecutableCheck,
    HealthChecker,
    HealthStatus,
    LinkedExecutableCheck,
    ManifestProbe,
    MarkerPathCheck,
    ProbeContext,
    SystemExecutablesCheck,
)

if TYPE_CHECKING:
    from conftest import RecordingToolRunner


@pytest.fixture
def env_dir(tmp_path: Path) -> Path:
    path = tmp_path / "env"
    path.mkdir()
    return path


def test_missing_directory_is_absent(tmp_path: Path, runner: RecordingToolRunner) -> None:
    checker = HealthChecker([AlwaysHealthy()])

    assert checker.status(ProbeContext(tmp_path / "missing", runner)) is HealthStatus.ABSENT


def test_system_executables_check_names_missing_tool(env_dir: Path, runner: RecordingToolRunner) -> None:
    runner.install("rustc")
    context = ProbeContext(env_dir, runner)

    with pytest.raises(HealthCheckError, match="cargo"):
        SystemExecutablesCheck("rustc", "cargo").verify(context)
    SystemExecutablesCheck("cs", "rustc", any_of=True).verify(context)


def test_linked_executable_is_relinked_from_path(env_dir: Path, runner: RecordingToolRunner) -> None:
    runner.install("node")
    context = ProbeContext(env_dir, runner)

    LinkedExecutableCheck("node").verify(context)

    link = env_dir / "bin" / "node"
    assert link.is_symlink()
    assert str(link.resolve()) == str(Path(runner.available["node"]).resolve())
    assert runner.commands() == [("node", "--version")]


def test_dangling_link_without_system_copy_is_broken(env_dir: Path, runner: RecordingToolRunner) -> None:
    (env_dir / "bin").mkdir()
    (env_dir / "bin" / "node").symlink_to(env_dir / "gone")

    checker = HealthChecker([LinkedExecutableCheck("node")])

    assert checker.status(ProbeContext(env_dir, runner)) is HealthStatus.BROKEN


def test_environment_executable_probe_failure_is_broken(env_dir: Path, runner: RecordingToolRunner) -> None:
    (env_dir / "bin").mkdir()
    (env_dir / "bin" / "python").write_text("", encoding="utf-8")
    runner.on("python", "--version", returncode=1)
    checker = HealthChecker([EnvironmentExecutableCheck(["python", "python3"])])

    assert checker.status(ProbeContext(env_dir, runner)) is HealthStatus.BROKEN


def test_environment_executable_requires_a_candidate(env_dir: Path, runner: RecordingToolRunner) -> None:
    with pytest.raises(HealthCheckError, match="no interpreter"):
        EnvironmentExecutableCheck(["python"]).verify(ProbeContext(env_dir, runner))


def test_marker_path_check(env_dir: Path, runner: RecordingToolRunner) -> None:
    checker = HealthChecker([MarkerPathCheck("conda-meta")])
    context = ProbeContext(env_dir, runner)

    assert checker.status(context) is HealthStatus.BROKEN
    (env_dir / "conda-meta").mkdir()
    assert checker.status(context) is HealthStatus.HEALTHY


def test_command_check_maps_missing_executable(env_dir: Path, runner: RecordingToolRunner) -> None:
    with pytest.raises(HealthCheckError, match="could not run"):
        CommandCheck("Rscript", "--version").verify(ProbeContext(env_dir, runner))


def test_manifest_probe_skipped_without_manifest(env_dir: Path, runner: RecordingToolRunner) -> None:
    probe = ManifestProbe("Gemfile", lambda context: ["bundle", "check"], location="repo")

    probe.verify(ProbeContext(env_dir, runner, repo_path=env_dir.parent))

    assert runner.calls == []


def test_manifest_probe_runs_in_manifest_location(
    tmp_path: Path,
    env_dir: Path,
    runner: RecordingToolRunner,
) -> None:
    runner.install("bundle")
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "Gemfile").write_text("source 'https://rubygems.org'\n", encoding="utf-8")
    environ = {"PATH": "/usr/bin"}
    checker = HealthChecker(
        [AlwaysHealthy()],
        [ManifestProbe("Gemfile", lambda context: ["bundle", "check"], location="repo")],
    )

    assert checker.status(ProbeContext(env_dir, runner, environ=environ, repo_path=repo)) is HealthStatus.HEALTHY
    assert runner.calls[0].cwd == repo
    assert runner.calls[0].env == environ

    runner.on("bundle", "check", returncode=1, stdout="missing gems")
    assert checker.status(ProbeContext(env_dir, runner, repo_path=repo)) is HealthStatus.BROKEN


def test_base_checks_short_circuit_before_manifest_probes(env_dir: Path, runner: RecordingToolRunner) -> None:
    (env_dir / "HookEnv").mkdir()
    (env_dir / "HookEnv" / "HookEnv.csproj").write_text("<Project />", encoding="utf-8")
    checker = HealthChecker(
        [SystemExecutablesCheck("dotnet")],
        [ManifestProbe("HookEnv/HookEnv.csproj", lambda context: ["dotnet", "build"])],
    )

    assert checker.status(ProbeContext(env_dir, runner)) is HealthStatus.BROKEN
    assert runner.calls == []


def test_probe_context_follows_platform_layout(env_dir: Path, runner: RecordingToolRunner) -> None:
    assert ProbeContext(env_dir, runner, platform="nt").bin_path("python") == env_dir / "Scripts" / "python.exe"
    assert ProbeContext(env_dir, runner, platform="posix").bin_path("python") == env_dir / "bin" / "python"
