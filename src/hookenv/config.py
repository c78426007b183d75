# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Settings controlling where and how hook environments are provisioned."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

PYPROJECT_FILENAME: Final[str] = "pyproject.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "hookenv"

HOME_ENV: Final[str] = "HOOKENV_HOME"
TIMEOUT_ENV: Final[str] = "HOOKENV_TIMEOUT"
NO_EMOJI_ENV: Final[str] = "HOOKENV_NO_EMOJI"
XDG_CACHE_ENV: Final[str] = "XDG_CACHE_HOME"
MICROMAMBA_ENV: Final[str] = "PRE_COMMIT_USE_MICROMAMBA"
MAMBA_ENV: Final[str] = "PRE_COMMIT_USE_MAMBA"


def default_cache_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Return the cache directory used when none is configured."""

    env = os.environ if environ is None else environ
    if home := env.get(HOME_ENV):
        return Path(home).expanduser()
    if xdg := env.get(XDG_CACHE_ENV):
        return Path(xdg).expanduser() / "hookenv"
    return Path.home() / ".cache" / "hookenv"


def conda_executable_from_env(environ: Mapping[str, str] | None = None) -> str:
    """Return ``micromamba``, ``mamba`` or ``conda`` according to the opt-in variables."""

    env = os.environ if environ is None else environ
    if env.get(MICROMAMBA_ENV):
        return "micromamba"
    if env.get(MAMBA_ENV):
        return "mamba"
    return "conda"


class HookenvSettings(BaseModel):
    """Validated runtime settings."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    cache_dir: Path = Field(default_factory=default_cache_dir)
    conda_executable: str = "conda"
    command_timeout: float | None = Field(default=None, gt=0)
    use_emoji: bool = True


def _pyproject_section(root: Path) -> dict[str, Any]:
    path = root / PYPROJECT_FILENAME
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML in {path}: {exc}", path=path, step="settings") from exc
    section = document.get(PYPROJECT_TOOL_KEY, {}).get(PYPROJECT_SECTION_KEY, {})
    if not isinstance(section, Mapping):
        raise ConfigError(f"[tool.hookenv] in {path} must be a table", path=path, step="settings")
    data = dict(section)
    cache_dir = data.get("cache_dir")
    if isinstance(cache_dir, str) and not Path(cache_dir).expanduser().is_absolute():
        data["cache_dir"] = root / cache_dir
    return data


def load_settings(root: Path | None = None, environ: Mapping[str, str] | None = None) -> HookenvSettings:
    """Return settings from ``[tool.hookenv]`` overlaid with environment variables.

    Args:
        root: Directory containing ``pyproject.toml``; the working directory by default.
        environ: Environment variables to consult; ``os.environ`` by default.

    Returns:
        HookenvSettings: Validated settings.

    Raises:
        ConfigError: If the pyproject section or an environment override is invalid.
    """

    env = os.environ if environ is None else environ
    data = _pyproject_section(root or Path.cwd())
    if HOME_ENV in env or "cache_dir" not in data:
        data["cache_dir"] = default_cache_dir(env)
    if env.get(MICROMAMBA_ENV) or env.get(MAMBA_ENV):
        data["conda_executable"] = conda_executable_from_env(env)
    if timeout := env.get(TIMEOUT_ENV):
        data["command_timeout"] = timeout
    if env.get(NO_EMOJI_ENV):
        data["use_emoji"] = False
    try:
        return HookenvSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid hookenv settings: {exc}", step="settings") from exc


__all__ = [
    "HookenvSettings",
    "conda_executable_from_env",
    "default_cache_dir",
    "load_settings",
]
