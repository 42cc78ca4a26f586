"""TOML configuration loader."""

import os
import tomllib
from pathlib import Path

from taskvault.config.models import BackupSettings, StoreConfig, StoreProfile

CONFIG_FILENAME = "taskvault.toml"
CONFIG_ENV_VAR = "TASKVAULT_CONFIG"


def default_config_path() -> Path:
    """``$TASKVAULT_CONFIG`` if set, else ``./taskvault.toml``."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / CONFIG_FILENAME


def load_config(config_path: Path | str | None = None) -> StoreConfig:
    """Load store profiles and backup settings from a TOML file.

    Expected layout::

        default_profile = "local"

        [profiles.local]
        provider = "postgres"
        url = "postgresql://localhost:5432/tasks"

        [profiles.prod]
        provider = "firestore"
        project = "task-manager-prod"

        [backup]
        page_size = 100
        chunk_size = 100
        progress_interval = 10

    Args:
        config_path: Path to the TOML file (default: ``default_config_path()``).

    Returns:
        StoreConfig with all profiles.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the config format is invalid.
    """
    config_path = Path(config_path) if config_path is not None else default_config_path()

    if not config_path.exists():
        raise FileNotFoundError(
            f"Store config not found: {config_path}\n"
            f"Create {CONFIG_FILENAME} with at least one [profiles.<name>] table."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse profiles
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = StoreProfile(**profile_data)

    default_profile = data.get("default_profile")
    if default_profile is not None and default_profile not in profiles:
        raise ValueError(
            f"default_profile '{default_profile}' is not defined. "
            f"Available profiles: {', '.join(profiles) or '(none)'}"
        )

    return StoreConfig(
        profiles=profiles,
        default_profile=default_profile,
        backup=BackupSettings(**data.get("backup", {})),
    )
