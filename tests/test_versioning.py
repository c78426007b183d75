# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

from hookenv.versioning import (
    DefaultVersionCell,
    ReadWriteLock,
    ResolvedVersion,
    VersionPolicy,
    VersionResolver,
    version_key,
)

if TYPE_CHECKING:
    from conftest import RecordingToolRunner


def _detected(value: str):
    calls: list[str] = []

    def probe() -> str:
        calls.append(value)
        return value

    return probe, calls


def test_version_key_canonicalises_versions_and_keeps_other_text() -> None:
    assert version_key("3.11.0") == "3.11.0"
    assert version_key("v18") == "18"
    assert version_key("lts/hydrogen") == "lts/hydrogen"


@pytest.mark.parametrize("requested", ["", None, "   "])
def test_empty_request_uses_default_without_system_preference(requested: str | None) -> None:
    resolver = VersionResolver(VersionPolicy())
    probe, calls = _detected("system")

    assert resolver.resolve(requested, probe) == ResolvedVersion("default", "default")
    assert calls == []


def test_empty_request_uses_detected_default_when_system_preferred() -> None:
    resolver = VersionResolver(VersionPolicy(prefers_system=True))
    probe, _ = _detected("system")

    assert resolver.resolve("", probe) == ResolvedVersion("system", "system")


@pytest.mark.parametrize("token", ["system", "default"])
def test_passthrough_tokens_are_kept(token: str) -> None:
    resolver = VersionResolver(VersionPolicy(prefers_system=True, supports_explicit=True))
    probe, calls = _detected("default")

    assert resolver.resolve(token, probe) == ResolvedVersion(token, token)
    assert calls == []


def test_explicit_version_is_canonicalised_for_naming() -> None:
    resolver = VersionResolver(VersionPolicy(supports_explicit=True, strip_prefix="python"))
    probe, _ = _detected("default")

    assert resolver.resolve("python3.11", probe) == ResolvedVersion("3.11", "python3.11")
    assert resolver.resolve("3.11.0", probe) == ResolvedVersion("3.11.0", "3.11.0")
    assert resolver.resolve("3.12/../x", probe).naming == "3.12-..-x"


def test_unsupported_explicit_version_degrades() -> None:
    probe, _ = _detected("system")

    plain = VersionResolver(VersionPolicy(prefers_system=True))
    assert plain.resolve("18.2.0", probe) == ResolvedVersion("default", "default")

    detected = VersionResolver(VersionPolicy(prefers_system=True, explicit_uses_detected=True))
    assert detected.resolve("18.2.0", probe) == ResolvedVersion("system", "system")


def test_normalize_extracts_semantic_version() -> None:
    resolver = VersionResolver(VersionPolicy())

    assert resolver.normalize("Python 3.12.4") == "3.12.4"
    assert resolver.normalize("v20.11.1") == "20.11.1"
    assert resolver.normalize("") is None
    assert resolver.normalize("not a version") is None


def test_capture_reads_first_output_line(runner: RecordingToolRunner) -> None:
    runner.install("node")
    runner.on("node", "--version", stdout="v20.11.1\nextra\n")
    resolver = VersionResolver(VersionPolicy())

    assert resolver.capture(runner, ["node", "--version"]) == "20.11.1"


def test_capture_returns_none_when_tool_fails(runner: RecordingToolRunner) -> None:
    runner.install("node")
    runner.on("node", returncode=1, stderr="boom")
    resolver = VersionResolver(VersionPolicy())

    assert resolver.capture(runner, ["node", "--version"]) is None
    assert resolver.capture(runner, ["missing", "--version"]) is None


def test_default_version_cell_probes_once_across_threads() -> None:
    calls: list[int] = []
    gate = threading.Event()

    def probe() -> str:
        gate.wait(timeout=5)
        calls.append(1)
        return "system"

    cell = DefaultVersionCell(probe)
    results: list[str] = []
    threads = [threading.Thread(target=lambda: results.append(cell.get())) for _ in range(8)]
    for thread in threads:
        thread.start()
    gate.set()
    for thread in threads:
        thread.join(timeout=5)

    assert results == ["system"] * 8
    assert calls == [1]


def test_default_version_cell_invalidate_forces_new_probe() -> None:
    values = iter(["system", "default"])
    cell = DefaultVersionCell(lambda: next(values))

    assert cell.get() == "system"
    assert cell.get() == "system"
    cell.invalidate()
    assert cell.get() == "default"


def test_read_write_lock_allows_concurrent_readers() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=5)
    met: list[bool] = []

    def reader() -> None:
        with lock.read():
            inside.wait()
            met.append(True)

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert met == [True, True]
    with lock.write():
        pass
