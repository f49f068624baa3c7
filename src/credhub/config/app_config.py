"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is missing.

Usage:
    from credhub.config.app_config import load_app_config

    config = load_app_config()
    ttl = config.storage.signed_url_ttl_seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

DEV_SECRET_KEY = "credhub-dev-secret-change-me"


@dataclass
class StorageConfig:
    """Configuration for the certificate file store."""

    root_dir: str = "data/storage"
    bucket: str = "certificates"
    signed_url_ttl_seconds: int = 3600
    cache_control: str = "3600"

    @property
    def bucket_path(self) -> Path:
        return Path(self.root_dir) / self.bucket


@dataclass
class AuthConfig:
    """Configuration for accounts and access tokens."""

    secret_key_env: str = "CREDHUB_SECRET_KEY"
    algorithm: str = "HS256"
    access_token_minutes: int = 60
    bcrypt_rounds: int = 12
    min_password_length: int = 6

    def get_secret_key(self) -> str:
        """Get signing key from environment variable."""
        secret = os.environ.get(self.secret_key_env)
        if secret:
            return secret
        logger.warning("auth.using_dev_secret", env=self.secret_key_env)
        return DEV_SECRET_KEY


@dataclass
class ReviewConfig:
    """Configuration for the faculty review queue."""

    items_per_page: int = 10


@dataclass
class AppConfig:
    """Application-wide configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    paths: dict[str, str] = field(default_factory=dict)

    @property
    def db_path(self) -> Path:
        return Path(self.paths.get("db_path", "db/credhub.db"))


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "storage": {
            "root_dir": "data/storage",
            "bucket": "certificates",
            "signed_url_ttl_seconds": 3600,
            "cache_control": "3600",
        },
        "auth": {
            "secret_key_env": "CREDHUB_SECRET_KEY",
            "algorithm": "HS256",
            "access_token_minutes": 60,
            "bcrypt_rounds": 12,
            "min_password_length": 6,
        },
        "review": {
            "items_per_page": 10,
        },
        "paths": {
            "db_path": "db/credhub.db",
            "config_dir": "data/config",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    storage_data = {**defaults["storage"], **(data.get("storage") or {})}
    storage = StorageConfig(
        root_dir=str(storage_data["root_dir"]),
        bucket=str(storage_data["bucket"]),
        signed_url_ttl_seconds=int(storage_data["signed_url_ttl_seconds"]),
        cache_control=str(storage_data["cache_control"]),
    )

    auth_data = {**defaults["auth"], **(data.get("auth") or {})}
    auth = AuthConfig(
        secret_key_env=auth_data["secret_key_env"],
        algorithm=auth_data["algorithm"],
        access_token_minutes=int(auth_data["access_token_minutes"]),
        bcrypt_rounds=int(auth_data["bcrypt_rounds"]),
        min_password_length=int(auth_data["min_password_length"]),
    )

    review_data = {**defaults["review"], **(data.get("review") or {})}
    review = ReviewConfig(items_per_page=int(review_data["items_per_page"]))

    paths = {**defaults["paths"], **(data.get("paths") or {})}

    return AppConfig(storage=storage, auth=auth, review=review, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
