# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Constants shared by the environment provisioning modules."""

from __future__ import annotations

from typing import Final

VERSION_DEFAULT: Final[str] = "default"
VERSION_SYSTEM: Final[str] = "system"
PASSTHROUGH_VERSIONS: Final[frozenset[str]] = frozenset({VERSION_DEFAULT, VERSION_SYSTEM})

INSTALL_STATE_V1: Final[str] = ".install_state_v1"
INSTALL_STATE_V2: Final[str] = ".install_state_v2"
STAGING_SUFFIX: Final[str] = "staging"

ENV_DIR_SEPARATOR: Final[str] = "env-"
PLAIN_DIR_SEPARATOR: Final[str] = "-"

# language key -> (directory prefix, separator)
ENVIRONMENT_DIR_LAYOUT: Final[dict[str, tuple[str, str]]] = {
    "node": ("node", ENV_DIR_SEPARATOR),
    "python": ("py_", ENV_DIR_SEPARATOR),
    "rust": ("rust", ENV_DIR_SEPARATOR),
    "ruby": ("ruby", ENV_DIR_SEPARATOR),
    "conda": ("conda", PLAIN_DIR_SEPARATOR),
    "perl": ("perl", ENV_DIR_SEPARATOR),
    "r": ("r", ENV_DIR_SEPARATOR),
    "dart": ("dart", ENV_DIR_SEPARATOR),
    "dotnet": ("dotnet", ENV_DIR_SEPARATOR),
    "coursier": ("coursier", ENV_DIR_SEPARATOR),
}

BIN_DIR: Final[str] = "bin"
WINDOWS_BIN_DIR: Final[str] = "Scripts"
WINDOWS_OS_NAME: Final[str] = "nt"
WINDOWS_LONG_PATH_PREFIX: Final[str] = "\\\\?\\"
EXE_SUFFIX: Final[str] = ".exe"

DIRECTORY_MODE: Final[int] = 0o750

__all__ = [
    "BIN_DIR",
    "DIRECTORY_MODE",
    "ENVIRONMENT_DIR_LAYOUT",
    "ENV_DIR_SEPARATOR",
    "EXE_SUFFIX",
    "INSTALL_STATE_V1",
    "INSTALL_STATE_V2",
    "PASSTHROUGH_VERSIONS",
    "PLAIN_DIR_SEPARATOR",
    "STAGING_SUFFIX",
    "VERSION_DEFAULT",
    "VERSION_SYSTEM",
    "WINDOWS_BIN_DIR",
    "WINDOWS_LONG_PATH_PREFIX",
    "WINDOWS_OS_NAME",
]
