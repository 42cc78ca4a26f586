"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from taskvault.config import load_config, StoreProfile, StoreConfig
"""

from taskvault.config.loader import load_config
from taskvault.config.models import BackupSettings, StoreConfig, StoreProfile

__all__ = ["load_config", "BackupSettings", "StoreConfig", "StoreProfile"]
