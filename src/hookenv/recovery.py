# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Removal of broken hook environments before they are recreated."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .errors import DirectoryError
from .paths import EnvironmentIdentity, extend_long_path

LOGGER = logging.getLogger(__name__)


class BrokenEnvironmentRecovery:
    """Delete an environment directory so it can be provisioned from scratch."""

    def __init__(self, platform: str | None = None) -> None:
        self._platform = platform

    def remove(self, identity: EnvironmentIdentity) -> Path:
        """Recursively delete the environment of ``identity``.

        Returns:
            Path: The removed environment path.

        Raises:
            DirectoryError: If the directory cannot be removed. No retry is made.
        """

        path = identity.path
        LOGGER.warning("removing broken %s environment at %s", identity.language, path)
        try:
            shutil.rmtree(extend_long_path(path, self._platform))
        except FileNotFoundError:
            return path
        except OSError as exc:
            raise DirectoryError(
                f"failed to remove broken environment: {exc}",
                language=identity.language,
                path=path,
                step="recover",
            ) from exc
        return path


__all__ = ["BrokenEnvironmentRecovery"]
