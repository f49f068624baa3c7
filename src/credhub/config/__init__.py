"""Configuration package for credhub."""

from credhub.config.app_config import (
    AppConfig,
    AuthConfig,
    ReviewConfig,
    StorageConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "ReviewConfig",
    "StorageConfig",
    "clear_config_cache",
    "load_app_config",
]
