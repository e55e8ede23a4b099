"""Config commands for bundlectl."""

from __future__ import annotations

from pathlib import Path
from typing import Any, NoReturn

import click

from bundlectl.core import config as config_module
from bundlectl.core.config import DEFAULT_CURRENCY, Config
from bundlectl.core.exceptions import BundleCtlError
from bundlectl.core.limits import DEFAULT_HTTP_TIMEOUT_SECONDS
from bundlectl.core.output import OutputFormat, print_error, print_key_value, print_output, print_success


def _config_path() -> Path:
    # Looked up per call so tests can point the module at a temporary file.
    return config_module.CONFIG_FILE


def _fail(message: str) -> NoReturn:
    print_error(message)
    raise SystemExit(1)


def _load() -> Config:
    try:
        return Config.load(_config_path())
    except BundleCtlError as e:
        _fail(str(e))


def _require_profiles(cfg: Config) -> None:
    if not cfg.profiles:
        _fail("No configuration found. Run 'bundlectl config init' first.")


def _store_profile(cfg: Config, name: str, url: str, *, replace: bool, **options: Any) -> None:
    """Validate and save profile ``name``; the first profile becomes the default."""
    if cfg.has_profile(name) and not replace:
        _fail(f"Profile '{name}' already exists. Use --force to overwrite.")
    try:
        cfg.add_profile(name, url, **options)
    except BundleCtlError as e:
        _fail(str(e))
    if len(cfg.profiles) == 1:
        cfg.default_profile = name
    cfg.save(_config_path())


@click.group()
def config() -> None:
    """Manage bundler profiles."""
    pass


@config.command("init")
@click.option("--url", prompt="Bundler node URL", help="Bundler node URL")
@click.option("--currency", prompt="Currency", default=DEFAULT_CURRENCY, help="Currency used to pay")
@click.option("--profile", default=config_module.DEFAULT_PROFILE, help="Profile name")
@click.option("--chunk-size", type=int, default=config_module.DEFAULT_CHUNK_SIZE)
@click.option("--batch-size", type=int, default=config_module.DEFAULT_BATCH_SIZE)
@click.option("--force", is_flag=True, help="Overwrite an existing profile")
def config_init(
    url: str,
    currency: str,
    profile: str,
    chunk_size: int,
    batch_size: int,
    force: bool,
) -> None:
    """Create the config file with a first bundler profile.

    Example:
        bundlectl config init --url https://node1.bundlr.network --currency arweave
    """
    cfg = _load()
    _store_profile(
        cfg,
        profile,
        url,
        replace=force,
        currency=currency,
        chunk_size=chunk_size,
        batch_size=batch_size,
    )

    stored = cfg.get_profile(profile)
    print_success(f"Configuration saved to {_config_path()}")
    print_key_value({"profile": profile, "url": stored.url, "currency": stored.currency})


@config.command("show")
@click.option("--output", "-o", type=click.Choice(["json", "table"]), default="table")
def config_show(output: str) -> None:
    """Show every profile and which one is active."""
    cfg = _load()
    _require_profiles(cfg)

    if output == "json":
        print_output(
            {
                "config_file": str(_config_path()),
                "default_profile": cfg.default_profile,
                "profiles": {name: p.to_dict() for name, p in cfg.profiles.items()},
            },
            format=OutputFormat.JSON,
        )
        return

    print_key_value(
        {"config_file": str(_config_path()), "default_profile": cfg.default_profile},
        title="Configuration",
    )
    for name, profile in cfg.profiles.items():
        active = " (default)" if name == cfg.default_profile else ""
        click.echo()
        print_key_value(profile.to_dict(), title=f"Profile: {name}{active}")


@config.command("use-context")
@click.argument("profile")
def config_use_context(profile: str) -> None:
    """Make PROFILE the active profile.

    Example:
        bundlectl config use-context devnet
    """
    cfg = _load()
    if not cfg.has_profile(profile):
        _fail(f"Profile '{profile}' not found. Available: {', '.join(cfg.profiles) or 'none'}")

    cfg.set_default_profile(profile)
    cfg.save(_config_path())
    print_success(f"Switched to profile '{profile}'")


@config.command("current-context")
def config_current_context() -> None:
    """Print the name of the active profile."""
    cfg = _load()
    _require_profiles(cfg)
    click.echo(cfg.default_profile)


@config.command("add-profile")
@click.argument("name")
@click.option("--url", required=True, help="Bundler node URL")
@click.option("--currency", default=DEFAULT_CURRENCY, help="Currency used to pay")
@click.option("--timeout", type=int, default=DEFAULT_HTTP_TIMEOUT_SECONDS, help="Request timeout in seconds")
@click.option("--no-verify-ssl", is_flag=True, help="Disable TLS certificate checks")
@click.option("--chunk-size", type=int, default=config_module.DEFAULT_CHUNK_SIZE)
@click.option("--batch-size", type=int, default=config_module.DEFAULT_BATCH_SIZE)
@click.option("--concurrency", type=int, default=config_module.DEFAULT_CONCURRENCY)
@click.option("--force-chunking", is_flag=True, help="Always use chunked uploads")
def config_add_profile(
    name: str,
    url: str,
    no_verify_ssl: bool,
    **options: Any,
) -> None:
    """Add profile NAME for another bundler node.

    Example:
        bundlectl config add-profile devnet --url https://devnet.bundlr.network --currency matic
    """
    cfg = _load()
    _store_profile(cfg, name, url, replace=False, verify_ssl=not no_verify_ssl, **options)
    print_success(f"Profile '{name}' added")


@config.command("remove-profile")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def config_remove_profile(name: str, yes: bool) -> None:
    """Remove profile NAME. The active profile cannot be removed.

    Example:
        bundlectl config remove-profile devnet
    """
    cfg = _load()
    if not cfg.has_profile(name):
        _fail(f"Profile '{name}' not found.")
    if name == cfg.default_profile:
        _fail("Cannot remove the active profile. Switch to another profile first.")

    if not yes:
        click.confirm(f"Remove profile '{name}'?", abort=True)

    cfg.remove_profile(name)
    cfg.save(_config_path())
    print_success(f"Profile '{name}' removed")
