# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared provisioning protocol implemented by every language."""

from __future__ import annotations

import logging
import os
import shutil
import threading
import weakref
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

from ..constants import DIRECTORY_MODE, VERSION_DEFAULT, VERSION_SYSTEM
from ..environ import ProcessEnvironment
from ..errors import ConfigError, DirectoryError, InstallError, ProvisioningError, RuntimeUnavailableError
from ..health import HealthChecker, HealthStatus, ProbeContext, SystemExecutablesCheck
from ..paths import EnvironmentIdentity, bin_dir_name, extend_long_path, is_blank_path, resolve_base_dir
from ..process import SubprocessExecutionError, ToolResult, ToolRunner
from ..recovery import BrokenEnvironmentRecovery
from ..state import StateStore
from ..versioning import DefaultVersionCell, ResolvedVersion, VersionPolicy, VersionResolver

LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass(frozen=True, slots=True)
class LanguageSpec:
    """Static description of a language provisioner.

    Attributes:
        key: Registry key and directory-name language.
        display_name: Human readable language name.
        executable: Primary runtime executable looked up on PATH.
        install_url: Installation instructions shown when the runtime is missing.
        version_policy: Rules for resolving requested versions.
        dependency_drift_checked: Whether a change of additional dependencies
            invalidates an otherwise healthy environment.
    """

    key: str
    display_name: str
    executable: str
    install_url: str | None = None
    version_policy: VersionPolicy = field(default_factory=VersionPolicy)
    dependency_drift_checked: bool = False


class SetupRequest(BaseModel):
    """Inputs of :meth:`EnvironmentProvisioner.setup_environment`."""

    model_config = ConfigDict(frozen=True)

    cache_dir: Path | None = None
    version: str = ""
    repo_path: Path | None = None
    repo_url: str = ""
    additional_dependencies: tuple[str, ...] = ()

    @field_validator("version", "repo_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("cache_dir", "repo_path", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        return None if is_blank_path(value) else value

    @field_validator("additional_dependencies", mode="before")
    @classmethod
    def _normalise_dependencies(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return value


class IdentityLocks:
    """Per-environment in-process locks serialising concurrent setups.

    Only threads of one process are coordinated; separate processes sharing a
    cache are assumed not to provision the same environment simultaneously.
    Entries are weak and disappear once no caller holds the lock.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[Path, threading.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, path: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = threading.Lock()
                self._locks[path] = lock
            return lock

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, path: Path) -> Iterator[None]:
        with self.lock_for(path):
            yield


class EnvironmentProvisioner(ABC):
    """Provision, validate, and reuse hook environments for one language."""

    spec: ClassVar[LanguageSpec]

    def __init__(
        self,
        runner: ToolRunner,
        *,
        locks: IdentityLocks | None = None,
        recovery: BrokenEnvironmentRecovery | None = None,
        base_environ: Mapping[str, str] | None = None,
        platform: str | None = None,
    ) -> None:
        """Initialise the provisioner.

        Args:
            runner: Boundary used for every external tool invocation.
            locks: Shared per-identity lock table; a private one is created when omitted.
            recovery: Remover of broken environments.
            base_environ: Environment inherited by tools; ``os.environ`` when omitted.
            platform: ``os.name`` style platform identifier; the host when omitted.
        """

        self.runner = runner
        self.platform = platform or os.name
        self._locks = locks or IdentityLocks()
        self._recovery = recovery or BrokenEnvironmentRecovery(self.platform)
        self._base_environ = base_environ
        self._resolver = VersionResolver(self.spec.version_policy)
        self._default_version = DefaultVersionCell(self._detect_default_version)

    @property
    def language(self) -> str:
        return self.spec.key

    # Version and identity -------------------------------------------------

    def default_version(self) -> str:
        """Return the detected default version, probing the host at most once."""

        return self._default_version.get()

    def _detect_default_version(self) -> str:
        if self.spec.version_policy.prefers_system and self.is_runtime_available():
            return VERSION_SYSTEM
        return VERSION_DEFAULT

    def _runtime_location(self) -> str | None:
        return self.runner.which(self.spec.executable)

    def is_runtime_available(self) -> bool:
        return self._runtime_location() is not None

    def runtime_version(self) -> str | None:
        """Return the version reported by the system runtime, or ``None`` when unknown."""

        location = self._runtime_location()
        if location is None:
            return None
        return self._resolver.capture(self.runner, [location, "--version"])

    def resolve_version(self, requested: str | None) -> ResolvedVersion:
        return self._resolver.resolve(requested, self.default_version)

    def identity(
        self,
        version: str | None,
        repo_path: Path | None = None,
        cache_dir: Path | None = None,
    ) -> EnvironmentIdentity:
        """Return the identity for ``version`` under the repository or cache dir.

        Raises:
            ConfigError: If both ``repo_path`` and ``cache_dir`` are empty.
        """

        resolved = self.resolve_version(version)
        try:
            base_dir = resolve_base_dir(repo_path, cache_dir)
        except ConfigError as exc:
            raise ConfigError(exc.reason, language=self.language, step=exc.step) from exc
        return EnvironmentIdentity(self.language, resolved.naming, base_dir)

    def environment_path(
        self,
        version: str | None,
        repo_path: Path | None = None,
        cache_dir: Path | None = None,
    ) -> Path:
        return self.identity(version, repo_path, cache_dir).path

    # Health -----------------------------------------------------------------

    def health_checker(self, naming_version: str) -> HealthChecker:
        """Return the checks applied to environments of ``naming_version``."""

        del naming_version
        return HealthChecker([SystemExecutablesCheck(self.spec.executable)])

    def status(
        self,
        env_path: Path,
        *,
        version: str | None = None,
        repo_path: Path | None = None,
    ) -> HealthStatus:
        naming = self.resolve_version(version).naming
        return self.health_checker(naming).status(self._probe_context(env_path, repo_path))

    def check_health(
        self,
        env_path: Path,
        *,
        version: str | None = None,
        repo_path: Path | None = None,
    ) -> bool:
        """Return ``True`` when ``env_path`` exists and passes every check."""

        return self.status(env_path, version=version, repo_path=repo_path) is HealthStatus.HEALTHY

    def _probe_context(self, env_path: Path, repo_path: Path | None) -> ProbeContext:
        return ProbeContext(
            env_path=env_path,
            runner=self.runner,
            environ=self.hook_environment(env_path),
            repo_path=repo_path,
            platform=self.platform,
        )

    # Environment variables ----------------------------------------------------

    def hook_environment(self, env_path: Path) -> dict[str, str]:
        """Return the process environment hooks of this language run with."""

        return self._environment(env_path).build()

    def _environment(self, env_path: Path) -> ProcessEnvironment:
        return ProcessEnvironment(self._base_environ).prepend_path(env_path / bin_dir_name(self.platform))

    # Setup protocol -----------------------------------------------------------

    def setup_environment(self, request: SetupRequest) -> Path:
        """Return a ready environment for ``request``, provisioning it when needed.

        A healthy environment whose recorded state is acceptable is returned
        without invoking any tool. A broken or stale one is removed once and
        recreated.

        Raises:
            ConfigError: If neither a repository path nor a cache dir is given.
            RuntimeUnavailableError: If a required executable is missing.
            DirectoryError: If the environment directory cannot be managed.
            InstallError: If an installer exits with a non-zero status.
        """

        resolved = self.resolve_version(request.version)
        identity = self.identity(request.version, request.repo_path, request.cache_dir)
        env_path = identity.path
        with self._locks.hold(env_path):
            store = StateStore(env_path)
            status = self.health_checker(resolved.naming).status(self._probe_context(env_path, request.repo_path))
            if status is HealthStatus.HEALTHY:
                if self._state_acceptable(store, request.additional_dependencies):
                    LOGGER.debug("reusing %s environment at %s", self.language, env_path)
                    return env_path
                LOGGER.info("install state of %s is stale; recreating", env_path)
                status = HealthStatus.BROKEN
            if status is HealthStatus.BROKEN:
                self._recovery.remove(identity)

            if request.repo_url:
                LOGGER.info("Installing environment for %s.", request.repo_url)
            self._create_directory(identity)
            self._guarded("create", env_path, self.create_environment, identity, resolved, request)
            self._guarded("install", env_path, self._populate, env_path, request)
            self._guarded("write-state", env_path, store.write, request.additional_dependencies)
        return env_path

    def _state_acceptable(self, store: StateStore, dependencies: Sequence[str]) -> bool:
        if not store.is_installed():
            return False
        return not self.spec.dependency_drift_checked or store.matches(dependencies)

    def _create_directory(self, identity: EnvironmentIdentity) -> None:
        try:
            extend_long_path(identity.path, self.platform).mkdir(parents=True, exist_ok=True, mode=DIRECTORY_MODE)
        except OSError as exc:
            raise DirectoryError(
                f"failed to create environment directory: {exc}",
                language=self.language,
                path=identity.path,
                step="mkdir",
            ) from exc

    def _guarded(self, step: str, env_path: Path, func: Callable[..., _T], *args: object) -> _T:
        try:
            return func(*args)
        except ProvisioningError:
            raise
        except OSError as exc:
            raise ProvisioningError(f"{step} failed: {exc}", language=self.language, path=env_path, step=step) from exc

    @abstractmethod
    def create_environment(
        self,
        identity: EnvironmentIdentity,
        resolved: ResolvedVersion,
        request: SetupRequest,
    ) -> None:
        """Populate the freshly created directory of ``identity`` with a runtime."""

    def _populate(self, env_path: Path, request: SetupRequest) -> None:
        """Install what the hook repository needs; additional dependencies by default."""

        self.install_dependencies(env_path, request.additional_dependencies, repo_path=request.repo_path)

    def install_dependencies(
        self,
        env_path: Path,
        dependencies: Sequence[str],
        repo_path: Path | None = None,
    ) -> None:
        """Install ``dependencies`` into ``env_path``; an empty list is a no-op.

        Raises:
            InstallError: If the installer exits with a non-zero status.
            RuntimeUnavailableError: If the installer is not on PATH.
        """

        if not dependencies:
            return
        self._install(env_path, list(dependencies), repo_path)

    @abstractmethod
    def _install(self, env_path: Path, dependencies: list[str], repo_path: Path | None) -> None:
        """Install non-empty ``dependencies`` into ``env_path``."""

    # Tool helpers ---------------------------------------------------------------

    def _require(self, executable: str, *, env_path: Path | None = None, step: str | None = None) -> str:
        """Return the PATH location of ``executable`` or raise :class:`RuntimeUnavailableError`."""

        location = self.runner.which(executable)
        if location is None:
            raise RuntimeUnavailableError(
                executable,
                language=self.language,
                install_url=self.spec.install_url,
                path=env_path,
                step=step,
            )
        return location

    def _run(
        self,
        args: Sequence[str],
        *,
        step: str,
        env_path: Path,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ToolResult:
        """Run an installer command, mapping failures onto the error taxonomy."""

        command = [str(part) for part in args]
        try:
            return self.runner.run(command, cwd=cwd, env=env)
        except SubprocessExecutionError as exc:
            raise InstallError(
                command,
                exc.output,
                returncode=exc.returncode,
                language=self.language,
                path=env_path,
                step=step,
            ) from exc
        except FileNotFoundError as exc:
            raise RuntimeUnavailableError(
                command[0],
                language=self.language,
                install_url=self.spec.install_url,
                path=env_path,
                step=step,
            ) from exc


def discard_path(path: Path) -> None:
    """Best-effort removal of a staging artefact left in a repository."""

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.warning("failed to clean up %s: %s", path, exc)


__all__ = [
    "EnvironmentProvisioner",
    "IdentityLocks",
    "LanguageSpec",
    "SetupRequest",
    "discard_path",
]
