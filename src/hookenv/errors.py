# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Error taxonomy raised by environment provisioning."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class ProvisioningError(RuntimeError):
    """Base error carrying the language, path, and step that failed."""

    def __init__(
        self,
        message: str,
        *,
        language: str | None = None,
        path: Path | None = None,
        step: str | None = None,
    ) -> None:
        """Initialise the error and render the context into the message.

        Args:
            message: Human-readable description of the failure.
            language: Language key of the provisioner that failed.
            path: Environment path affected by the failure.
            step: Provisioning step that was running.
        """

        self.reason = message
        self.language = language
        self.path = path
        self.step = step
        super().__init__(self._render())

    def _render(self) -> str:
        """Return the message prefixed with whichever context is known."""

        context = [
            f"{label}={value}"
            for label, value in (("language", self.language), ("step", self.step), ("path", self.path))
            if value is not None
        ]
        if not context:
            return self.reason
        return f"[{' '.join(context)}] {self.reason}"


class ConfigError(ProvisioningError):
    """Raised when neither a repository path nor a cache directory is available."""


class RuntimeUnavailableError(ProvisioningError):
    """Raised when a required system executable cannot be located."""

    def __init__(
        self,
        executable: str,
        *,
        language: str | None = None,
        install_url: str | None = None,
        path: Path | None = None,
        step: str | None = None,
    ) -> None:
        """Initialise the error for the missing ``executable``.

        Args:
            executable: Name of the executable that was not found on PATH.
            language: Language key requiring the executable.
            install_url: Optional installation instructions URL.
            path: Environment path being provisioned.
            step: Provisioning step that required the executable.
        """

        self.executable = executable
        self.install_url = install_url
        message = f"required executable '{executable}' was not found on PATH"
        if install_url:
            message = f"{message} (installation instructions: {install_url})"
        super().__init__(message, language=language, path=path, step=step)


class DirectoryError(ProvisioningError):
    """Raised when the environment directory cannot be created or removed."""


class InstallError(ProvisioningError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(
        self,
        command: Sequence[str],
        output: str,
        *,
        returncode: int | None = None,
        language: str | None = None,
        path: Path | None = None,
        step: str | None = None,
    ) -> None:
        """Initialise the error with the failing command and its combined output.

        Args:
            command: Command sequence that failed.
            output: Combined stdout/stderr captured from the tool.
            returncode: Exit status reported by the tool, when known.
            language: Language key of the provisioner.
            path: Environment path being provisioned.
            step: Provisioning step that ran the command.
        """

        self.command = tuple(command)
        self.output = output
        self.returncode = returncode
        status = f" with status {returncode}" if returncode is not None else ""
        message = f"command '{' '.join(self.command)}' failed{status}"
        if output.strip():
            message = f"{message}\n{output.rstrip()}"
        super().__init__(message, language=language, path=path, step=step)


class HealthCheckError(Exception):
    """Raised by health probes; converted to an unhealthy status before leaving the checker."""


class UnknownLanguageError(KeyError):
    """Raised when no provisioner is registered for a language key."""

    def __init__(self, language: str) -> None:
        super().__init__(language)
        self.language = language

    def __str__(self) -> str:
        return f"unsupported language: {self.language}"


__all__ = [
    "ConfigError",
    "DirectoryError",
    "HealthCheckError",
    "InstallError",
    "ProvisioningError",
    "RuntimeUnavailableError",
    "UnknownLanguageError",
]
