# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Two-tier health checks deciding whether an environment can be reused."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal, Protocol

from .errors import HealthCheckError
from .paths import bin_dir_name, executable_name
from .process import SubprocessExecutionError, ToolRunner

LOGGER = logging.getLogger(__name__)

VERSION_ARGS: tuple[str, ...] = ("--version",)


class HealthStatus(str, Enum):
    """Observed state of an environment directory."""

    ABSENT = "absent"
    HEALTHY = "healthy"
    BROKEN = "broken"


@dataclass(frozen=True, slots=True)
class ProbeContext:
    """Inputs shared by every check of one health evaluation.

    Attributes:
        env_path: Environment directory being checked.
        runner: Tool runner used for probe commands.
        environ: Environment handed to probe commands, normally the hook
            environment of the language.
        repo_path: Hook repository, when known.
        platform: ``os.name`` style identifier selecting the bin layout; the
            host when omitted.
    """

    env_path: Path
    runner: ToolRunner
    environ: Mapping[str, str] | None = None
    repo_path: Path | None = None
    platform: str | None = None

    def bin_path(self, executable: str) -> Path:
        """Return where ``executable`` lives inside the environment."""

        return self.env_path / bin_dir_name(self.platform) / executable_name(executable, self.platform)


class HealthCheck(Protocol):
    """Single check; raises :class:`HealthCheckError` when unhealthy."""

    def verify(self, context: ProbeContext) -> None: ...


def run_probe(context: ProbeContext, args: Sequence[str], *, cwd: Path | None = None) -> None:
    """Run a probe command, translating failures into :class:`HealthCheckError`."""

    try:
        context.runner.run(list(args), cwd=cwd, env=context.environ)
    except SubprocessExecutionError as exc:
        raise HealthCheckError(f"probe '{' '.join(args)}' exited with status {exc.returncode}") from exc
    except OSError as exc:
        raise HealthCheckError(f"probe '{' '.join(args)}' could not run: {exc}") from exc


class SystemExecutablesCheck:
    """Require executables on the host ``PATH``.

    With ``any_of`` set, a single present executable is enough.
    """

    def __init__(self, *executables: str, any_of: bool = False) -> None:
        self.executables = executables
        self.any_of = any_of

    def verify(self, context: ProbeContext) -> None:
        missing = [name for name in self.executables if context.runner.which(name) is None]
        if self.any_of:
            if len(missing) == len(self.executables):
                raise HealthCheckError(f"none of {', '.join(self.executables)} found on PATH")
            return
        if missing:
            raise HealthCheckError(f"required executable '{missing[0]}' not found on PATH")


class LinkedExecutableCheck:
    """Require ``bin/<executable>`` inside the environment, relinking it if lost.

    When the link is missing or dangling it is recreated from the system copy
    before the version probe runs.
    """

    def __init__(self, executable: str, *, version_args: Sequence[str] = VERSION_ARGS) -> None:
        self.executable = executable
        self.version_args = tuple(version_args)

    def verify(self, context: ProbeContext) -> None:
        target = context.bin_path(self.executable)
        if not target.exists():
            self._relink(context, target)
        run_probe(context, [str(target), *self.version_args])

    def _relink(self, context: ProbeContext, target: Path) -> None:
        system_copy = context.runner.which(self.executable)
        if system_copy is None:
            raise HealthCheckError(f"'{self.executable}' missing from environment and PATH")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if target.is_symlink():
                target.unlink()
            target.symlink_to(system_copy)
        except OSError as exc:
            raise HealthCheckError(f"could not relink {target}: {exc}") from exc
        LOGGER.debug("relinked %s -> %s", target, system_copy)


class EnvironmentExecutableCheck:
    """Require one of ``candidates`` inside the environment's bin directory."""

    def __init__(self, candidates: Iterable[str], *, version_args: Sequence[str] = VERSION_ARGS) -> None:
        self.candidates = tuple(candidates)
        self.version_args = tuple(version_args)

    def verify(self, context: ProbeContext) -> None:
        for name in self.candidates:
            candidate = context.bin_path(name)
            if candidate.exists():
                run_probe(context, [str(candidate), *self.version_args])
                return
        bin_dir = context.env_path / bin_dir_name(context.platform)
        raise HealthCheckError(f"no interpreter among {', '.join(self.candidates)} in {bin_dir}")


class MarkerPathCheck:
    """Require a marker path (``conda-meta``, ``gems``) inside the environment."""

    def __init__(self, relative: str) -> None:
        self.relative = relative

    def verify(self, context: ProbeContext) -> None:
        if not (context.env_path / self.relative).exists():
            raise HealthCheckError(f"marker '{self.relative}' missing from {context.env_path}")


class CommandCheck:
    """Require a host command to exit successfully."""

    def __init__(self, *args: str) -> None:
        self.args = args

    def verify(self, context: ProbeContext) -> None:
        run_probe(context, self.args)


class AlwaysHealthy:
    def verify(self, context: ProbeContext) -> None:
        del context


ProbeCommand = Callable[[ProbeContext], Sequence[str]]


class ManifestProbe:
    """Run a non-mutating resolution command when a manifest is present.

    Attributes:
        manifest: Manifest path relative to ``location``.
        command: Builds the probe command for a context.
        location: ``env`` for the environment directory, ``repo`` for the
            hook repository.
    """

    def __init__(
        self,
        manifest: str,
        command: ProbeCommand,
        *,
        location: Literal["env", "repo"] = "env",
    ) -> None:
        self.manifest = manifest
        self.command = command
        self.location = location

    def verify(self, context: ProbeContext) -> None:
        base = context.env_path if self.location == "env" else context.repo_path
        if base is None or not (base / self.manifest).exists():
            return
        run_probe(context, self.command(context), cwd=base)


class HealthChecker:
    """Evaluate base checks, then manifest probes, for an environment."""

    def __init__(
        self,
        base_checks: Sequence[HealthCheck],
        manifest_probes: Sequence[ManifestProbe] = (),
    ) -> None:
        self.base_checks = tuple(base_checks)
        self.manifest_probes = tuple(manifest_probes)

    def status(self, context: ProbeContext) -> HealthStatus:
        """Return the status of ``context.env_path``; never raises for probe failures."""

        if not context.env_path.is_dir():
            return HealthStatus.ABSENT
        for check in (*self.base_checks, *self.manifest_probes):
            try:
                check.verify(context)
            except HealthCheckError as exc:
                LOGGER.debug("environment %s unhealthy: %s", context.env_path, exc)
                return HealthStatus.BROKEN
        return HealthStatus.HEALTHY

    def is_healthy(self, context: ProbeContext) -> bool:
        return self.status(context) is HealthStatus.HEALTHY


__all__ = [
    "AlwaysHealthy",
    "CommandCheck",
    "EnvironmentExecutableCheck",
    "HealthCheck",
    "HealthChecker",
    "HealthStatus",
    "LinkedExecutableCheck",
    "ManifestProbe",
    "MarkerPathCheck",
    "ProbeContext",
    "SystemExecutablesCheck",
    "run_probe",
]
