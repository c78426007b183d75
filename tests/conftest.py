# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from hookenv.process import SubprocessExecutionError, ToolResult


@dataclass(frozen=True)
class Call:
    args: tuple[str, ...]
    cwd: Path | None
    env: Mapping[str, str] | None

    @property
    def command(self) -> tuple[str, ...]:
        """Return the call with the executable reduced to its basename."""
        return (Path(self.args[0]).name, *self.args[1:])


@dataclass
class _Rule:
    prefix: tuple[str, ...]
    stdout: str
    stderr: str
    returncode: int
    effect: Callable[[Call], None] | None


@dataclass
class RecordingToolRunner:
    """Tool runner double that records invocations instead of spawning processes.

    Executables registered with :meth:`install` are written as real stub files
    under ``system_bin`` so symlinks created by provisioners resolve.
    """

    system_bin: Path
    available: dict[str, str] = field(default_factory=dict)
    calls: list[Call] = field(default_factory=list)
    _rules: list[_Rule] = field(default_factory=list)

    def install(self, *names: str) -> RecordingToolRunner:
        self.system_bin.mkdir(parents=True, exist_ok=True)
        for name in names:
            stub = self.system_bin / name
            stub.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
            stub.chmod(0o755)
            self.available[name] = str(stub)
        return self

    def on(
        self,
        *prefix: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
        effect: Callable[[Call], None] | None = None,
    ) -> RecordingToolRunner:
        """Register a canned response for calls whose command starts with ``prefix``."""
        self._rules.append(_Rule(tuple(prefix), stdout, stderr, returncode, effect))
        return self

    def which(self, executable: str) -> str | None:
        return self.available.get(executable)

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ToolResult:
        call = Call(tuple(str(part) for part in args), cwd, dict(env) if env is not None else None)
        self.calls.append(call)
        head = call.args[0]
        if not Path(head).is_absolute() and head not in self.available:
            raise FileNotFoundError(f"Executable '{head}' was not found on PATH")
        for rule in reversed(self._rules):
            if call.command[: len(rule.prefix)] == rule.prefix:
                if rule.effect is not None:
                    rule.effect(call)
                if rule.returncode:
                    raise SubprocessExecutionError(call.args, rule.returncode, rule.stdout, rule.stderr)
                return ToolResult(call.args, 0, rule.stdout, rule.stderr)
        return ToolResult(call.args, 0, "", "")

    def commands(self) -> list[tuple[str, ...]]:
        return [call.command for call in self.calls]


@pytest.fixture
def runner(tmp_path: Path) -> RecordingToolRunner:
    return RecordingToolRunner(system_bin=tmp_path / "system-bin")


@pytest.fixture
def base_environ(tmp_path: Path) -> dict[str, str]:
    return {"PATH": "/usr/bin", "HOME": str(tmp_path / "home")}


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Return an empty hook repository directory."""
    path = tmp_path / "repo"
    path.mkdir()
    return path
