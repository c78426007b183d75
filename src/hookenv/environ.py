# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for deriving the process environment handed to external tools."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final

NODE_ENV_DEFAULTS: Final[dict[str, str]] = {
    "npm_config_yes": "true",
    "npm_config_fund": "false",
    "npm_config_audit": "false",
    "npm_config_progress": "false",
}

PIP_ENV_DEFAULTS: Final[dict[str, str]] = {
    "PIP_DISABLE_PIP_VERSION_CHECK": "1",
    "PIP_NO_WARN_SCRIPT_LOCATION": "1",
}


class ProcessEnvironment:
    """Build an environment mapping by inheriting a base and applying edits.

    The most recent ``set`` or ``unset`` of a key wins. ``PATH`` prepends are
    applied last, on top of whatever ``PATH`` the edits leave behind.
    """

    def __init__(self, base: Mapping[str, str] | None = None) -> None:
        self._base: dict[str, str] = dict(os.environ if base is None else base)
        self._overrides: dict[str, str] = {}
        self._removed: set[str] = set()
        self._path_entries: list[str] = []

    def set(self, key: str, value: str | Path) -> ProcessEnvironment:
        self._removed.discard(key)
        self._overrides[key] = str(value)
        return self

    def update(self, values: Mapping[str, str | Path]) -> ProcessEnvironment:
        for key, value in values.items():
            self.set(key, value)
        return self

    def unset(self, *keys: str) -> ProcessEnvironment:
        for key in keys:
            self._overrides.pop(key, None)
            self._removed.add(key)
        return self

    def prepend_path(self, *entries: str | Path) -> ProcessEnvironment:
        """Place ``entries`` ahead of the inherited ``PATH`` (first argument first)."""

        self._path_entries = [str(entry) for entry in entries] + self._path_entries
        return self

    def build(self) -> dict[str, str]:
        """Return the derived environment as a new dictionary."""

        env = {key: value for key, value in self._base.items() if key not in self._removed}
        env.update(self._overrides)
        if self._path_entries:
            inherited = env.get("PATH", "")
            env["PATH"] = os.pathsep.join([*self._path_entries, *([inherited] if inherited else [])])
        return env


__all__ = [
    "NODE_ENV_DEFAULTS",
    "PIP_ENV_DEFAULTS",
    "ProcessEnvironment",
]
