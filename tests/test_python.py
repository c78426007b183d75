# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from hookenv.errors import InstallError
from hookenv.provisioners import PythonProvisioner, SetupRequest
from hookenv.recovery import BrokenEnvironmentRecovery

if TYPE_CHECKING:
    from conftest import Call, RecordingToolRunner


def _make_venv(call: Call) -> None:
    env_path = Path(call.args[-1])
    (env_path / "bin").mkdir(parents=True, exist_ok=True)
    (env_path / "bin" / "python").write_text("", encoding="utf-8")


@pytest.fixture
def python(runner: RecordingToolRunner, base_environ: dict[str, str]) -> PythonProvisioner:
    runner.install("python3")
    runner.on("python3", "-m", "virtualenv", "--quiet", effect=_make_venv)
    runner.on("python3", "-m", "venv", effect=_make_venv)
    return PythonProvisioner(runner, base_environ=base_environ, platform="posix")


def test_version_naming(python: PythonProvisioner, tmp_path: Path) -> None:
    assert python.resolve_version("").naming == "default"
    assert python.resolve_version("python3.11").naming == "3.11"
    assert python.resolve_version("python3.11").actual == "python3.11"
    assert python.environment_path("3.12", cache_dir=tmp_path) == tmp_path / "py_env-3.12"


def test_setup_creates_virtualenv_and_installs_dependencies(
    python: PythonProvisioner,
    runner: RecordingToolRunner,
    tmp_path: Path,
) -> None:
    env_path = python.setup_environment(SetupRequest(cache_dir=tmp_path, additional_dependencies=("ruff==0.6.9",)))

    assert runner.commands() == [
        ("python3", "-m", "virtualenv", "--version"),
        ("python3", "-m", "virtualenv", "--quiet", "--no-download", str(env_path)),
        ("python", "-m", "pip", "install", "--quiet", "--no-compile", "--no-warn-script-location", "ruff==0.6.9"),
    ]
    pip_call = runner.calls[-1]
    assert pip_call.args[0] == str(env_path / "bin" / "python")
    assert pip_call.env is not None
    assert pip_call.env["VIRTUAL_ENV"] == str(env_path)
    assert pip_call.env["PIP_DISABLE_PIP_VERSION_CHECK"] == "1"


def test_venv_fallback_when_virtualenv_missing(
    python: PythonProvisioner,
    runner: RecordingToolRunner,
    tmp_path: Path,
) -> None:
    runner.on("python3", "-m", "virtualenv", "--version", returncode=1)

    env_path = python.setup_environment(SetupRequest(cache_dir=tmp_path))

    assert ("python3", "-m", "venv", str(env_path)) in runner.commands()
    assert not any("pip" in command for command in runner.commands())


def test_repository_is_installed_when_it_has_a_manifest(
    python: PythonProvisioner,
    runner: RecordingToolRunner,
    repo: Path,
) -> None:
    (repo / "pyproject.toml").write_text("[project]\nname = 'hook'\n", encoding="utf-8")

    python.setup_environment(SetupRequest(repo_path=repo, additional_dependencies=("click",)))

    pip_call = runner.calls[-1]
    assert pip_call.command[-2:] == (".", "click")
    assert pip_call.cwd == repo


def test_uv_is_preferred_when_available(python: PythonProvisioner, runner: RecordingToolRunner, tmp_path: Path) -> None:
    runner.install("uv")

    env_path = python.setup_environment(SetupRequest(cache_dir=tmp_path, additional_dependencies=("ruff",)))

    assert runner.commands()[-1] == ("uv", "pip", "install", "--python", str(env_path / "bin" / "python"), "ruff")


def test_explicit_interpreter_is_used_when_present(runner: RecordingToolRunner, tmp_path: Path) -> None:
    runner.install("python3", "python3.11")
    runner.on("python3.11", "-m", "virtualenv", "--quiet", effect=_make_venv)
    provisioner = PythonProvisioner(runner, platform="posix")

    env_path = provisioner.setup_environment(SetupRequest(cache_dir=tmp_path, version="python3.11"))

    assert env_path == tmp_path / "py_env-3.11"
    assert runner.commands()[0][0] == "python3.11"


def test_missing_interpreter_falls_back_to_python3(python: PythonProvisioner, runner: RecordingToolRunner, tmp_path: Path) -> None:
    python.setup_environment(SetupRequest(cache_dir=tmp_path, version="3.99"))

    assert runner.commands()[0][0] == "python3"


def test_dependency_drift_recreates_environment(runner: RecordingToolRunner, tmp_path: Path) -> None:
    removed: list[Path] = []

    class Recovery(BrokenEnvironmentRecovery):
        def remove(self, identity):  # noqa: ANN001, ANN202
            removed.append(identity.path)
            return super().remove(identity)

    runner.install("python3")
    runner.on("python3", "-m", "virtualenv", "--quiet", effect=_make_venv)
    provisioner = PythonProvisioner(runner, recovery=Recovery("posix"), platform="posix")
    env_path = provisioner.setup_environment(SetupRequest(cache_dir=tmp_path, additional_dependencies=("a", "b")))

    provisioner.setup_environment(SetupRequest(cache_dir=tmp_path, additional_dependencies=("b", "a")))
    assert removed == []

    provisioner.setup_environment(SetupRequest(cache_dir=tmp_path, additional_dependencies=("a",)))
    assert removed == [env_path]
    assert runner.commands()[-1][-1] == "a"


def test_pip_failure_is_install_error(python: PythonProvisioner, runner: RecordingToolRunner, tmp_path: Path) -> None:
    runner.on("python", "-m", "pip", returncode=1, stderr="ERROR: No matching distribution found for nope\n")

    with pytest.raises(InstallError) as excinfo:
        python.setup_environment(SetupRequest(cache_dir=tmp_path, additional_dependencies=("nope",)))

    assert excinfo.value.step == "pip-install"
    assert "No matching distribution" in excinfo.value.output


def test_health_requires_interpreter_inside_env(python: PythonProvisioner, tmp_path: Path) -> None:
    env_path = python.setup_environment(SetupRequest(cache_dir=tmp_path))
    assert python.check_health(env_path)

    (env_path / "bin" / "python").unlink()

    assert not python.check_health(env_path)


def test_hook_environment_drops_pythonhome(runner: RecordingToolRunner, tmp_path: Path) -> None:
    provisioner = PythonProvisioner(runner, base_environ={"PATH": "/usr/bin", "PYTHONHOME": "/opt"}, platform="posix")

    env = provisioner.hook_environment(tmp_path / "py_env-default")

    assert "PYTHONHOME" not in env
    assert env["VIRTUAL_ENV"] == str(tmp_path / "py_env-default")
