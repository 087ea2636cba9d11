"""Configuration package."""

from guarded_wallet.config.settings import (
    DEFAULT_ZERO_IDENTITY,
    AppSettings,
    QuorumSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_ZERO_IDENTITY",
    "AppSettings",
    "QuorumSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
