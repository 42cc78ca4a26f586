"""Pydantic models for store profiles and backup tuning."""

from typing import Literal

from pydantic import BaseModel, Field, PositiveInt, model_validator

StoreProvider = Literal["postgres", "supabase", "firestore", "memory"]


# ============================================================================
# Configuration Models
# ============================================================================


class StoreProfile(BaseModel):
    """Document store connection profile from taskvault.toml."""

    provider: StoreProvider = "postgres"
    url: str = ""                           # postgres DSN or Supabase project URL
    key: str | None = None                  # Supabase API key
    project: str | None = None              # Firestore project ID
    database: str | None = None             # Firestore database ID
    credentials_file: str | None = None     # Firestore service-account key
    table_prefix: str = ""                  # postgres/supabase table name prefix
    db_password: str | None = None          # For [YOUR-PASSWORD] placeholder substitution
    description: str = ""

    @model_validator(mode="after")
    def _check_provider_fields(self) -> "StoreProfile":
        if self.provider in ("postgres", "supabase") and not self.url:
            raise ValueError(f"'url' is required for provider '{self.provider}'")
        if self.provider == "supabase" and not self.key:
            raise ValueError("'key' is required for provider 'supabase'")
        return self


class BackupSettings(BaseModel):
    """Page/chunk sizes for backup and restore loops."""

    page_size: PositiveInt = 100
    chunk_size: PositiveInt = 100
    progress_interval: PositiveInt = 10


class StoreConfig(BaseModel):
    """Complete configuration from taskvault.toml."""

    profiles: dict[str, StoreProfile] = Field(default_factory=dict)
    default_profile: str | None = None
    backup: BackupSettings = Field(default_factory=BackupSettings)
