"""Profiles and settings for bundlectl.

Settings live in a YAML file of named profiles, one per bundler node. A few
``BUNDLR_*`` environment variables override the file, so the CLI also works
in CI without any config file at all.

Priority (highest to lowest): environment, config file, defaults.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from bundlectl.core.exceptions import BundleCtlError, ConfigurationError, ProfileNotFoundError
from bundlectl.core.limits import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONCURRENCY,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
)
from bundlectl.core.validation import (
    validate_batch_size,
    validate_chunk_size,
    validate_currency,
    validate_server_url,
    validate_timeout,
    validate_workers,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "bundlectl"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_PROFILE = "default"
DEFAULT_CURRENCY = "arweave"

ENV_URL = "BUNDLR_URL"
ENV_CURRENCY = "BUNDLR_CURRENCY"
ENV_PROFILE = "BUNDLR_PROFILE"
ENV_VERIFY_SSL = "BUNDLR_VERIFY_SSL"
ENV_TIMEOUT = "BUNDLR_TIMEOUT"


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Environment variable -> (profile field, parser)
ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    ENV_CURRENCY: ("currency", str),
    ENV_VERIFY_SSL: ("verify_ssl", _parse_bool),
    ENV_TIMEOUT: ("timeout", validate_timeout),
}


# =============================================================================
# Profile
# =============================================================================


@dataclass
class Profile:
    """Connection and upload settings for one bundler node.

    Values are validated and normalized on construction, so a ``Profile``
    that exists is always usable.
    """

    url: str
    currency: str = DEFAULT_CURRENCY
    verify_ssl: bool = True
    timeout: int = DEFAULT_HTTP_TIMEOUT_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    batch_size: int = DEFAULT_BATCH_SIZE
    concurrency: int = DEFAULT_CONCURRENCY
    force_chunking: bool = False

    def __post_init__(self) -> None:
        self.url = validate_server_url(self.url)
        self.currency = validate_currency(self.currency)
        self.timeout = validate_timeout(self.timeout)
        self.chunk_size = validate_chunk_size(self.chunk_size)
        self.batch_size = validate_batch_size(self.batch_size)
        self.concurrency = validate_workers(self.concurrency)

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping in field order, as written to the config file."""
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Profile:
        """Build a profile from a config file mapping.

        Unknown keys are ignored with a warning so that newer config files
        still load.

        Raises:
            ConfigurationError: If ``url`` is missing.
            ValidationError: If a value is out of range.
        """
        if not data.get("url"):
            raise ConfigurationError("Profile is missing 'url'", field="url")

        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown profile keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})


# =============================================================================
# Config
# =============================================================================


@dataclass
class Config:
    """Named profiles plus the name of the active one."""

    default_profile: str = DEFAULT_PROFILE
    output_format: str = "table"
    profiles: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> Config:
        """Read the config file, then apply environment overrides.

        A missing file yields an empty config; ``BUNDLR_URL`` alone is enough
        to create a usable ``default`` profile.

        Args:
            config_path: Config file, ``~/.config/bundlectl/config.yaml`` by default.

        Raises:
            ConfigurationError: If the file cannot be parsed, a profile is
                invalid, or an override has a bad value.
        """
        path = config_path or CONFIG_FILE
        config = cls._read(path) if path.exists() else cls()
        config._apply_env()
        return config

    @classmethod
    def _read(cls, path: Path) -> Config:
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Failed to load config: {path} is not a mapping")

        profiles: dict[str, Profile] = {}
        for name, pdata in (data.get("profiles") or {}).items():
            try:
                profiles[name] = Profile.from_dict(pdata or {})
            except BundleCtlError as e:
                raise ConfigurationError(
                    f"Invalid profile '{name}': {e.message}", field=f"profiles.{name}"
                ) from e

        return cls(
            default_profile=data.get("default_profile", DEFAULT_PROFILE),
            output_format=data.get("output_format", "table"),
            profiles=profiles,
        )

    def _apply_env(self) -> None:
        overrides = {
            name: parse(raw)
            for env, (name, parse) in ENV_OVERRIDES.items()
            if (raw := os.getenv(env)) is not None
        }

        base = self.profiles.get(DEFAULT_PROFILE)
        if url := os.getenv(ENV_URL):
            overrides["url"] = url
            self.profiles[DEFAULT_PROFILE] = (
                dataclasses.replace(base, **overrides) if base else Profile(**overrides)
            )
        elif base and overrides:
            self.profiles[DEFAULT_PROFILE] = dataclasses.replace(base, **overrides)

        if profile := os.getenv(ENV_PROFILE):
            self.default_profile = profile

    def save(self, config_path: Optional[Path] = None) -> None:
        """Write the config file, creating its directory if needed."""
        path = config_path or CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        document = {
            "default_profile": self.default_profile,
            "output_format": self.output_format,
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
        }
        path.write_text(yaml.safe_dump(document, default_flow_style=False, sort_keys=False))

    def get_profile(self, name: Optional[str] = None) -> Profile:
        """Return profile ``name``, or the active profile.

        Raises:
            ProfileNotFoundError: If no such profile exists.
        """
        name = name or self.default_profile
        try:
            return self.profiles[name]
        except KeyError:
            raise ProfileNotFoundError(name) from None

    def has_profile(self, name: str) -> bool:
        return name in self.profiles

    def add_profile(self, name: str, url: str, **options: Any) -> Profile:
        """Create or replace profile ``name``; ``options`` are ``Profile`` fields."""
        self.profiles[name] = Profile(url=url, **options)
        return self.profiles[name]

    def remove_profile(self, name: str) -> bool:
        """Delete profile ``name``; False if it did not exist."""
        return self.profiles.pop(name, None) is not None

    def set_default_profile(self, name: str) -> None:
        """Make ``name`` the active profile.

        Raises:
            ProfileNotFoundError: If no such profile exists.
        """
        if name not in self.profiles:
            raise ProfileNotFoundError(name)
        self.default_profile = name
