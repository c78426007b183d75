# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Dart hook environments that run on the system SDK."""

from __future__ import annotations

import logging
from pathlib import Path

from ..paths import EnvironmentIdentity
from ..versioning import ResolvedVersion, VersionPolicy
from .base import EnvironmentProvisioner, LanguageSpec, SetupRequest

LOGGER = logging.getLogger(__name__)


class DartProvisioner(EnvironmentProvisioner):
    """Provide marker environments for hooks executed by the system ``dart``."""

    spec = LanguageSpec(
        key="dart",
        display_name="Dart",
        executable="dart",
        install_url="https://dart.dev/get-dart",
        version_policy=VersionPolicy(prefers_system=True),
    )

    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        del resolved, request
        self._require("dart", env_path=identity.path, step="create")

    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        del env_path, repo_path
        LOGGER.warning(
            "Dart language ignoring additional dependencies (only uses pre-installed Dart runtime): %s",
            ", ".join(dependencies),
        )


__all__ = ["DartProvisioner"]
