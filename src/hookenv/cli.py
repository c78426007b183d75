# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line interface for provisioning and inspecting hook environments."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from .config import HookenvSettings, load_settings
from .errors import ProvisioningError, UnknownLanguageError
from .health import HealthStatus
from .logging import configure_logging, detect_tty, fail, get_console_manager, info, ok, warn
from .provisioners import EnvironmentProvisioner, SetupRequest
from .registry import LANGUAGE_ALIASES, ProvisionerRegistry

app = typer.Typer(
    name="hookenv",
    help="Provision isolated per-language hook environments.",
    no_args_is_help=True,
    add_completion=False,
)

VERSION_OPTION = typer.Option("", "--version", "-V", help="Language version to provision (default, system, or explicit).")
REPO_OPTION = typer.Option(None, "--repo", "-r", help="Hook repository hosting the environment.")
CACHE_OPTION = typer.Option(None, "--cache-dir", help="Cache directory used when no repository is given.")
EMOJI_OPTION = typer.Option(None, "--emoji/--no-emoji", help="Toggle emoji in CLI output.")


def build_registry(settings: HookenvSettings) -> ProvisionerRegistry:
    return ProvisionerRegistry(settings)


def _settings() -> HookenvSettings:
    try:
        return load_settings(Path.cwd())
    except ProvisioningError as exc:
        fail(str(exc), use_emoji=False)
        raise typer.Exit(code=1) from exc


def _provisioner(registry: ProvisionerRegistry, language: str, use_emoji: bool) -> EnvironmentProvisioner:
    try:
        return registry.get(language)
    except UnknownLanguageError as exc:
        fail(str(exc), use_emoji=use_emoji)
        raise typer.Exit(code=2) from exc


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug diagnostics on stderr."),
) -> None:
    configure_logging(verbose=verbose)


@app.command("setup")
def setup_command(
    language: str = typer.Argument(..., help="Language key, e.g. node or python."),
    version: str = VERSION_OPTION,
    repo: Path | None = REPO_OPTION,
    cache_dir: Path | None = CACHE_OPTION,
    dependencies: list[str] = typer.Option([], "--dep", "-d", help="Additional dependency to install."),
    emoji: bool | None = EMOJI_OPTION,
) -> None:
    """Provision (or reuse) an environment and print its path."""

    settings = _settings()
    use_emoji = settings.use_emoji if emoji is None else emoji
    registry = build_registry(settings)
    provisioner = _provisioner(registry, language, use_emoji)
    request = SetupRequest(
        cache_dir=cache_dir or settings.cache_dir,
        version=version,
        repo_path=repo,
        additional_dependencies=tuple(dependencies),
    )
    try:
        env_path = provisioner.setup_environment(request)
    except ProvisioningError as exc:
        fail(str(exc), use_emoji=use_emoji)
        raise typer.Exit(code=1) from exc
    typer.echo(str(env_path))


@app.command("check")
def check_command(
    language: str = typer.Argument(..., help="Language key, e.g. node or python."),
    version: str = VERSION_OPTION,
    repo: Path | None = REPO_OPTION,
    cache_dir: Path | None = CACHE_OPTION,
    emoji: bool | None = EMOJI_OPTION,
) -> None:
    """Report whether an environment is absent, healthy, or broken."""

    settings = _settings()
    use_emoji = settings.use_emoji if emoji is None else emoji
    provisioner = _provisioner(build_registry(settings), language, use_emoji)
    try:
        env_path = provisioner.environment_path(version, repo, cache_dir or settings.cache_dir)
    except ProvisioningError as exc:
        fail(str(exc), use_emoji=use_emoji)
        raise typer.Exit(code=1) from exc
    status = provisioner.status(env_path, version=version, repo_path=repo)
    message = f"{status.value}: {env_path}"
    if status is HealthStatus.HEALTHY:
        ok(message, use_emoji=use_emoji)
        return
    if status is HealthStatus.ABSENT:
        info(message, use_emoji=use_emoji)
    else:
        warn(message, use_emoji=use_emoji)
    raise typer.Exit(code=1)


@app.command("path")
def path_command(
    language: str = typer.Argument(..., help="Language key, e.g. node or python."),
    version: str = VERSION_OPTION,
    repo: Path | None = REPO_OPTION,
    cache_dir: Path | None = CACHE_OPTION,
) -> None:
    """Print the environment path without touching the filesystem."""

    settings = _settings()
    provisioner = _provisioner(build_registry(settings), language, settings.use_emoji)
    try:
        env_path = provisioner.environment_path(version, repo, cache_dir or settings.cache_dir)
    except ProvisioningError as exc:
        fail(str(exc), use_emoji=settings.use_emoji)
        raise typer.Exit(code=1) from exc
    typer.echo(str(env_path))


@app.command("languages")
def languages_command() -> None:
    """List supported languages and their runtime requirements."""

    settings = _settings()
    registry = build_registry(settings)
    aliases: dict[str, list[str]] = {}
    for alias, target in LANGUAGE_ALIASES.items():
        aliases.setdefault(target, []).append(alias)

    table = Table(title="Hook environment languages", show_lines=False)
    table.add_column("Language", style="cyan")
    table.add_column("Executable")
    table.add_column("Available")
    table.add_column("Runtime version")
    table.add_column("Default version")
    table.add_column("Drift checked")
    table.add_column("Aliases")
    for key in registry.languages():
        provisioner = registry.get(key)
        spec = provisioner.spec
        table.add_row(
            key,
            spec.executable,
            "yes" if provisioner.is_runtime_available() else "no",
            provisioner.runtime_version() or "-",
            provisioner.default_version(),
            "yes" if spec.dependency_drift_checked else "no",
            ", ".join(sorted(aliases.get(key, []))),
        )
    get_console_manager().get(color=detect_tty(), emoji=settings.use_emoji).print(table)


__all__ = ["app", "build_registry"]
