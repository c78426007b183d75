# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Deterministic naming and location of hook environments."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .constants import (
    BIN_DIR,
    ENV_DIR_SEPARATOR,
    ENVIRONMENT_DIR_LAYOUT,
    EXE_SUFFIX,
    WINDOWS_BIN_DIR,
    WINDOWS_LONG_PATH_PREFIX,
    WINDOWS_OS_NAME,
)
from .errors import ConfigError


def environment_dir_name(language: str, naming_version: str) -> str:
    """Return the directory name used for ``language`` at ``naming_version``.

    Args:
        language: Registered language key (``node``, ``python``...).
        naming_version: Naming token produced by version resolution.

    Returns:
        str: Directory name such as ``nodeenv-system`` or ``conda-default``.
    """

    prefix, separator = ENVIRONMENT_DIR_LAYOUT.get(language, (language, ENV_DIR_SEPARATOR))
    return f"{prefix}{separator}{naming_version}"


def is_blank_path(value: object) -> bool:
    """Return ``True`` for ``None``, whitespace-only strings and ``Path("")``."""

    if value is None:
        return True
    if isinstance(value, Path):
        # Path("") collapses to ".".
        return str(value) == "."
    return isinstance(value, str) and not value.strip()


def resolve_base_dir(repo_path: str | Path | None, cache_dir: str | Path | None) -> Path:
    """Return the directory environments are created under.

    The repository path wins when present; the cache directory is the fallback.
    Blank strings and ``Path("")`` count as absent so an empty input never
    resolves to the working directory.

    Raises:
        ConfigError: If neither location is provided.
    """

    for candidate in (repo_path, cache_dir):
        if not is_blank_path(candidate):
            return Path(candidate).expanduser().absolute()
    raise ConfigError("either a repository path or a cache directory is required", step="resolve-path")


def extend_long_path(path: Path, platform: str | None = None) -> Path:
    """Return ``path`` with the Windows long-path prefix applied when needed.

    Args:
        path: Absolute environment path.
        platform: ``os.name`` style platform identifier; defaults to the host.

    Returns:
        Path: Prefixed path on Windows, otherwise ``path`` unchanged.
    """

    if (platform or os.name) != WINDOWS_OS_NAME:
        return path
    text = str(path)
    if text.startswith(WINDOWS_LONG_PATH_PREFIX):
        return path
    return Path(f"{WINDOWS_LONG_PATH_PREFIX}{text}")


def bin_dir_name(platform: str | None = None) -> str:
    """Return the executables sub-directory used by virtual environments."""

    return WINDOWS_BIN_DIR if (platform or os.name) == WINDOWS_OS_NAME else BIN_DIR


def executable_name(name: str, platform: str | None = None) -> str:
    return f"{name}{EXE_SUFFIX}" if (platform or os.name) == WINDOWS_OS_NAME else name


@dataclass(frozen=True, slots=True)
class EnvironmentIdentity:
    """Identify one hook environment on disk.

    Attributes:
        language: Registered language key.
        naming_version: Version token embedded in the directory name.
        base_dir: Repository or cache directory hosting the environment.
    """

    language: str
    naming_version: str
    base_dir: Path

    @property
    def dir_name(self) -> str:
        return environment_dir_name(self.language, self.naming_version)

    @property
    def path(self) -> Path:
        """Return the absolute environment path for this identity."""

        return self.base_dir / self.dir_name


__all__ = [
    "EnvironmentIdentity",
    "bin_dir_name",
    "environment_dir_name",
    "executable_name",
    "extend_long_path",
    "is_blank_path",
    "resolve_base_dir",
]
