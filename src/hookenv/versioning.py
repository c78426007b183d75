# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve requested language versions into naming and install versions."""

from __future__ import annotations

import re
import threading
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

from packaging.version import InvalidVersion, Version

from .constants import PASSTHROUGH_VERSIONS, VERSION_DEFAULT
from .process import SubprocessExecutionError, ToolRunner

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def version_key(raw: str) -> str:
    """Return the canonical spelling of ``raw`` when it parses as a version.

    ``3.11.0`` stays ``3.11.0`` and ``v18`` becomes ``18``; strings that are
    not valid versions are returned unchanged.
    """

    try:
        return str(Version(raw))
    except InvalidVersion:
        return raw


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    """Pair of version tokens derived from a user request.

    Attributes:
        naming: Token embedded in the environment directory name.
        actual: Token used to select or install a concrete toolchain.
    """

    naming: str
    actual: str


@dataclass(frozen=True, slots=True)
class VersionPolicy:
    """Describe how a language treats empty and explicit version requests.

    Attributes:
        prefers_system: Empty requests use the detected default (``system``
            when a runtime is installed) instead of ``default``.
        supports_explicit: Explicit versions are distinct install targets.
        explicit_uses_detected: Unsupported explicit versions degrade to the
            detected default rather than to ``default``.
        strip_prefix: Prefix removed from explicit requests before naming
            (``python3.11`` becomes ``3.11``).
    """

    prefers_system: bool = False
    supports_explicit: bool = False
    explicit_uses_detected: bool = False
    strip_prefix: str | None = None


class VersionResolver:
    """Map requested versions to directory and toolchain versions.

    Resolution never raises: anything the policy cannot honour degrades to
    ``default`` or to the detected default.
    """

    VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)+)")

    def __init__(self, policy: VersionPolicy) -> None:
        self.policy = policy

    def resolve(self, requested: str | None, detected_default: Callable[[], str]) -> ResolvedVersion:
        """Return the naming and actual versions for ``requested``.

        Args:
            requested: Version requested by the hook configuration.
            detected_default: Callable returning the language's detected
                default (``system`` or ``default``).

        Returns:
            ResolvedVersion: Tokens for the directory name and the toolchain.
        """

        raw = (requested or "").strip()
        if not raw:
            token = detected_default() if self.policy.prefers_system else VERSION_DEFAULT
            return ResolvedVersion(naming=token, actual=token)
        if raw in PASSTHROUGH_VERSIONS:
            return ResolvedVersion(naming=raw, actual=raw)
        if self.policy.supports_explicit:
            return ResolvedVersion(naming=self.canonical(raw), actual=raw)
        token = detected_default() if self.policy.explicit_uses_detected else VERSION_DEFAULT
        return ResolvedVersion(naming=token, actual=token)

    def canonical(self, raw: str) -> str:
        """Return a filesystem-safe, stable token for an explicit version."""

        value = raw
        prefix = self.policy.strip_prefix
        if prefix and value.startswith(prefix) and len(value) > len(prefix):
            value = value[len(prefix) :]
        return _UNSAFE_CHARS.sub("-", version_key(value))

    def normalize(self, raw: str | None) -> str | None:
        """Return the semantic version extracted from ``raw``.

        Args:
            raw: Raw version text captured from tooling output.

        Returns:
            str | None: Semantic version string, or ``None`` if parsing fails.
        """
        if not raw:
            return None
        match = self.VERSION_PATTERN.search(raw)
        candidate = match.group(1) if match else raw.strip()
        try:
            Version(candidate)
        except InvalidVersion:
            return None
        return candidate

    def capture(
        self,
        runner: ToolRunner,
        command: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
    ) -> str | None:
        """Return the normalised version printed by ``command`` when available."""

        try:
            result = runner.run(list(command), env=env)
        except (OSError, SubprocessExecutionError):
            return None
        output = result.stdout.strip() or result.stderr.strip()
        if not output:
            return None
        return self.normalize(output.splitlines()[0].strip())


class ReadWriteLock:
    """Reader/writer lock allowing concurrent readers and a single writer."""

    def __init__(self) -> None:
        self._condition = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._condition:
            while self._writing:
                self._condition.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._condition:
                self._readers -= 1
                if self._readers == 0:
                    self._condition.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._condition:
            while self._writing or self._readers:
                self._condition.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._condition:
                self._writing = False
                self._condition.notify_all()


class DefaultVersionCell:
    """Memoise a provisioner's detected default version.

    Readers check the cached value under the read lock. Only a writer that
    still finds the cell empty after taking the write lock runs ``probe``.
    """

    def __init__(self, probe: Callable[[], str]) -> None:
        self._probe = probe
        self._lock = ReadWriteLock()
        self._value: str | None = None

    def get(self) -> str:
        with self._lock.read():
            if self._value is not None:
                return self._value
        with self._lock.write():
            if self._value is None:
                self._value = self._probe()
            return self._value

    def invalidate(self) -> None:
        """Forget the cached value so the next :meth:`get` probes again."""

        with self._lock.write():
            self._value = None


__all__ = [
    "DefaultVersionCell",
    "ReadWriteLock",
    "ResolvedVersion",
    "VersionPolicy",
    "VersionResolver",
    "version_key",
]
