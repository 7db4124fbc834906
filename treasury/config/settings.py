"""
Configuration Management for Treasury

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Supabase (hosted Postgres + auth) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Supabase project URL"
    )
    key: str = Field(
        ...,
        description="Supabase anon or service-role key"
    )

    # Table names within the project
    transactions_table: str = Field(
        default="financial_transactions",
        description="Table holding manual income/expense transactions"
    )
    bank_balance_table: str = Field(
        default="bank_balance_updates",
        description="Append-only table of bank balance snapshots"
    )
    contributions_table: str = Field(
        default="contributions",
        description="Member contributions table (read-only here)"
    )
    profiles_table: str = Field(
        default="profiles",
        description="Member profiles table (read-only here)"
    )
    audit_table: str = Field(
        default="audit_logs",
        description="Table for audit log rows"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Supabase URLs are always http(s)."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Supabase URL must start with http:// or https://, got {v!r}")
        return v.rstrip("/")


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    use_in_memory_storage: bool = Field(
        default=False,
        description="Run against the in-memory store instead of Supabase"
    )

    currency_code: str = Field(
        default="XAF",
        description="Currency all amounts are expressed in"
    )

    # Transaction form limits
    min_transaction_amount: int = Field(
        default=1,
        ge=1,
        description="Smallest amount accepted by the transaction form"
    )
    max_transaction_amount: int = Field(
        default=100_000_000,
        ge=1,
        description="Largest amount accepted by the transaction form"
    )

    # Reconciliation
    reconciliation_tolerance: int = Field(
        default=100,
        ge=0,
        description="Cash and bank balances match when they differ by less than this"
    )

    # Dashboard year filter
    first_fiscal_year: int = Field(
        default=2020,
        ge=1900,
        description="Oldest year offered by the dashboard year filter"
    )
    future_years_shown: int = Field(
        default=5,
        ge=0,
        le=50,
        description="How many years past the current one the year filter offers"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily so the app can run without Supabase

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.supabase
        results["supabase"] = True
    except Exception as e:
        results["supabase"] = False
        results["supabase_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
