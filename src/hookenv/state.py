# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Install-state markers persisted inside each hook environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .constants import INSTALL_STATE_V1, INSTALL_STATE_V2, STAGING_SUFFIX

LOGGER = logging.getLogger(__name__)


class InstallState(BaseModel):
    """Record of what was installed into an environment."""

    model_config = ConfigDict(extra="ignore")

    additional_dependencies: list[str] = Field(default_factory=list)

    def matches(self, dependencies: Iterable[str]) -> bool:
        """Return ``True`` when ``dependencies`` equals the recorded set, ignoring order."""

        return set(self.additional_dependencies) == set(dependencies)


class StateStore:
    """Read and write the install-state markers of one environment directory."""

    def __init__(self, env_path: Path) -> None:
        self.env_path = env_path

    @property
    def state_path(self) -> Path:
        return self.env_path / INSTALL_STATE_V1

    @property
    def staging_path(self) -> Path:
        return self.env_path / f"{INSTALL_STATE_V1}{STAGING_SUFFIX}"

    @property
    def sentinel_path(self) -> Path:
        return self.env_path / INSTALL_STATE_V2

    def write(self, dependencies: Iterable[str]) -> InstallState:
        """Persist ``dependencies`` and mark the environment as installed.

        The JSON payload is written to a staging file and renamed into place so
        a reader never observes a partially written marker. The empty v2
        sentinel is created last.

        Args:
            dependencies: Additional dependencies installed into the environment.

        Returns:
            InstallState: The state that was written.
        """

        state = InstallState(additional_dependencies=list(dependencies))
        self.staging_path.write_text(state.model_dump_json(), encoding="utf-8")
        os.replace(self.staging_path, self.state_path)
        self.sentinel_path.touch()
        return state

    def read(self) -> InstallState | None:
        """Return the recorded state, or ``None`` when missing or unreadable."""

        try:
            payload = self.state_path.read_text(encoding="utf-8")
        except OSError:
            return None
        try:
            return InstallState.model_validate_json(payload)
        except ValidationError as exc:
            LOGGER.debug("ignoring corrupt install state %s: %s", self.state_path, exc)
            return None

    def is_installed(self) -> bool:
        """Return ``True`` when an install marker is present.

        The v2 sentinel is authoritative; a lone v1 file written by an older
        release is accepted too.
        """

        return self.sentinel_path.exists() or self.state_path.exists()

    def matches(self, dependencies: Iterable[str]) -> bool:
        """Return ``True`` when the recorded dependencies equal ``dependencies``."""

        state = self.read()
        if state is None:
            return not set(dependencies)
        return state.matches(dependencies)

    def clear(self) -> None:
        """Remove every marker so the environment reads as not installed."""

        for marker in (self.sentinel_path, self.state_path, self.staging_path):
            marker.unlink(missing_ok=True)


__all__ = ["InstallState", "StateStore"]
