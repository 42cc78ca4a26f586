"""Document store factory.

Resolves the active profile from taskvault.toml and builds the matching
``DocumentStore`` adapter.

Profile resolution order:
1. Explicit ``profile_name`` argument
2. ``TASKVAULT_PROFILE`` environment variable
3. ``default_profile`` from the config file
"""

import logging
import os
from urllib.parse import quote

from taskvault.adapters.base import DocumentStore
from taskvault.adapters.memory import InMemoryDocumentStore
from taskvault.adapters.postgres import AsyncPostgresStore
from taskvault.config.loader import load_config
from taskvault.config.models import StoreConfig, StoreProfile

logger = logging.getLogger(__name__)

PROFILE_ENV_VAR = "TASKVAULT_PROFILE"


class ProfileNotFoundError(Exception):
    """Raised when no store profile is configured or the name is unknown."""

    pass


def get_active_profile_name(config: StoreConfig, profile_name: str | None = None) -> str:
    """Pick the profile name to use.

    Raises:
        ProfileNotFoundError: If nothing selects a profile.
    """
    name = profile_name or os.environ.get(PROFILE_ENV_VAR) or config.default_profile
    if name:
        return name

    available = ", ".join(config.profiles) or "(none)"
    raise ProfileNotFoundError(
        "No store profile configured.\n"
        f"Pass --profile, set {PROFILE_ENV_VAR}, or set default_profile.\n"
        f"Available profiles: {available}"
    )


def get_active_profile(
    config: StoreConfig,
    profile_name: str | None = None,
) -> tuple[str, StoreProfile]:
    """Get active profile name and configuration.

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not defined.
    """
    name = get_active_profile_name(config, profile_name)
    if name not in config.profiles:
        raise ProfileNotFoundError(
            f"Profile '{name}' not found.\n"
            f"Available profiles: {', '.join(config.profiles) or '(none)'}"
        )
    return name, config.profiles[name]


def resolve_url(profile: StoreProfile) -> str:
    """Profile URL with the ``[YOUR-PASSWORD]`` placeholder substituted."""
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def create_store(profile: StoreProfile) -> DocumentStore:
    """Build the adapter for a profile.

    Optional backends are imported lazily so a missing extra only fails
    when its provider is actually selected.

    Raises:
        ImportError: If the provider's optional dependency is not installed.
    """
    if profile.provider == "postgres":
        return AsyncPostgresStore(resolve_url(profile), table_prefix=profile.table_prefix)

    if profile.provider == "supabase":
        from taskvault.adapters.supabase import AsyncSupabaseStore

        return AsyncSupabaseStore(
            url=profile.url, key=profile.key or "", table_prefix=profile.table_prefix
        )

    if profile.provider == "firestore":
        from taskvault.adapters.firestore import AsyncFirestoreStore

        return AsyncFirestoreStore(
            project=profile.project,
            database=profile.database,
            credentials_file=profile.credentials_file,
        )

    return InMemoryDocumentStore()


def get_store(
    profile_name: str | None = None,
    config: StoreConfig | None = None,
) -> DocumentStore:
    """Resolve the active profile and build its store.

    Args:
        profile_name: Profile to use; falls back to the env var and the
            config file's ``default_profile``.
        config: Pre-loaded configuration (default: ``load_config()``).

    Returns:
        Ready-to-use ``DocumentStore``.  The caller closes it.

    Example:
        >>> store = get_store("local")
        >>> backup = await backup_data(store, ["tasks"])
        >>> await store.close()
    """
    if config is None:
        config = load_config()

    name, profile = get_active_profile(config, profile_name)
    logger.info("Using store profile '%s' (%s)", name, profile.provider)
    return create_store(profile)
