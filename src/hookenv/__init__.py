# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Isolated per-language hook environments with health-checked reuse."""

from __future__ import annotations

from importlib import metadata

from .config import HookenvSettings, load_settings
from .errors import (
    ConfigError,
    DirectoryError,
    InstallError,
    ProvisioningError,
    RuntimeUnavailableError,
    UnknownLanguageError,
)
from .health import HealthStatus
from .provisioners import EnvironmentProvisioner, SetupRequest
from .registry import ProvisionerRegistry

__all__ = [
    "ConfigError",
    "DirectoryError",
    "EnvironmentProvisioner",
    "HealthStatus",
    "HookenvSettings",
    "InstallError",
    "ProvisionerRegistry",
    "ProvisioningError",
    "RuntimeUnavailableError",
    "SetupRequest",
    "UnknownLanguageError",
    "__version__",
    "load_settings",
]

try:
    __version__ = metadata.version("hookenv")
except metadata.PackageNotFoundError:  # pragma: no cover - local development fallback
    __version__ = "0.0.0"
