# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Lookup of provisioners by language identifier."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Final

from .config import HookenvSettings
from .errors import UnknownLanguageError
from .process import SubprocessToolRunner, ToolRunner
from .provisioners import (
    CondaProvisioner,
    CoursierProvisioner,
    DartProvisioner,
    DotnetProvisioner,
    EnvironmentProvisioner,
    IdentityLocks,
    NodeProvisioner,
    PerlProvisioner,
    PythonProvisioner,
    RProvisioner,
    RubyProvisioner,
    RustProvisioner,
    SetupRequest,
)

LANGUAGE_ALIASES: Final[dict[str, str]] = {
    "python3": "python",
    "nodejs": "node",
    "conda-env": "conda",
}


class ProvisionerRegistry:
    """Own one provisioner per supported language.

    Provisioners share the tool runner and the per-identity lock table, so
    concurrent setups of the same environment through the registry serialise.
    """

    def __init__(
        self,
        settings: HookenvSettings | None = None,
        *,
        runner: ToolRunner | None = None,
        base_environ: Mapping[str, str] | None = None,
        platform: str | None = None,
    ) -> None:
        self.settings = settings or HookenvSettings()
        self.runner = runner or SubprocessToolRunner(timeout=self.settings.command_timeout)
        self.locks = IdentityLocks()
        shared = {"locks": self.locks, "base_environ": base_environ, "platform": platform}
        handlers: list[EnvironmentProvisioner] = [
            NodeProvisioner(self.runner, **shared),
            PythonProvisioner(self.runner, **shared),
            RustProvisioner(self.runner, **shared),
            RubyProvisioner(self.runner, **shared),
            CondaProvisioner(self.runner, executable=self.settings.conda_executable, **shared),
            PerlProvisioner(self.runner, **shared),
            RProvisioner(self.runner, **shared),
            DartProvisioner(self.runner, **shared),
            DotnetProvisioner(self.runner, **shared),
            CoursierProvisioner(self.runner, **shared),
        ]
        self._handlers: dict[str, EnvironmentProvisioner] = {handler.language: handler for handler in handlers}

    def languages(self) -> tuple[str, ...]:
        """Return the registered language keys in registration order."""

        return tuple(self._handlers)

    def canonical(self, language: str) -> str:
        key = language.strip().lower()
        return LANGUAGE_ALIASES.get(key, key)

    def get(self, language: str) -> EnvironmentProvisioner:
        """Return the provisioner for ``language`` or one of its aliases.

        Raises:
            UnknownLanguageError: If the language is not supported.
        """

        try:
            return self._handlers[self.canonical(language)]
        except KeyError:
            raise UnknownLanguageError(language) from None

    def __contains__(self, language: object) -> bool:
        return isinstance(language, str) and self.canonical(language) in self._handlers

    def setup_environment(self, language: str, request: SetupRequest) -> Path:
        """Provision ``language`` for ``request``, defaulting the cache dir from settings."""

        if request.cache_dir is None:
            request = request.model_copy(update={"cache_dir": self.settings.cache_dir})
        return self.get(language).setup_environment(request)


__all__ = ["LANGUAGE_ALIASES", "ProvisionerRegistry"]
