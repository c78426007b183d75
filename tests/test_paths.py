# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

from pathlib import Path

import pytest

from hookenv.errors import ConfigError
from hookenv.paths import (
    EnvironmentIdentity,
    bin_dir_name,
    environment_dir_name,
    extend_long_path,
    resolve_base_dir,
)


@pytest.mark.parametrize(
    ("language", "version", "expected"),
    [
        ("node", "system", "nodeenv-system"),
        ("python", "3.11", "py_env-3.11"),
        ("python", "default", "py_env-default"),
        ("rust", "system", "rustenv-system"),
        ("ruby", "default", "rubyenv-default"),
        ("conda", "default", "conda-default"),
        ("perl", "system", "perlenv-system"),
        ("r", "system", "renv-system"),
        ("dart", "system", "dartenv-system"),
        ("dotnet", "default", "dotnetenv-default"),
        ("coursier", "default", "coursierenv-default"),
    ],
)
def test_environment_dir_name_layout(language: str, version: str, expected: str) -> None:
    assert environment_dir_name(language, version) == expected


def test_repo_path_takes_precedence_over_cache_dir(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    cache = tmp_path / "cache"

    assert resolve_base_dir(repo, cache) == repo
    assert resolve_base_dir(None, cache) == cache
    assert resolve_base_dir("", str(cache)) == cache


def test_resolve_base_dir_requires_a_location() -> None:
    with pytest.raises(ConfigError) as excinfo:
        resolve_base_dir(None, "  ")

    assert excinfo.value.step == "resolve-path"


def test_relative_base_dir_is_made_absolute(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert resolve_base_dir(None, "cache") == Path.cwd() / "cache"


def test_identity_path_is_deterministic(tmp_path: Path) -> None:
    first = EnvironmentIdentity("python", "3.11", tmp_path)
    second = EnvironmentIdentity("python", "3.11", tmp_path)

    assert first == second
    assert first.path == tmp_path / "py_env-3.11"
    assert first.dir_name == "py_env-3.11"


def test_extend_long_path_only_on_windows() -> None:
    path = Path("C:/cache/nodeenv-default")

    assert extend_long_path(path, "posix") == path
    extended = extend_long_path(path, "nt")
    assert str(extended).startswith("\\\\?\\")
    assert extend_long_path(extended, "nt") == extended


def test_bin_dir_name_per_platform() -> None:
    assert bin_dir_name("posix") == "bin"
    assert bin_dir_name("nt") == "Scripts"


def test_empty_path_objects_count_as_absent(tmp_path: Path) -> None:
    assert resolve_base_dir(Path(""), tmp_path) == tmp_path
    with pytest.raises(ConfigError):
        resolve_base_dir(Path(""), None)
