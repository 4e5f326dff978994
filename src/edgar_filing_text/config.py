"""
Configuration management using Pydantic Settings.

Loads runtime configuration from environment variables (prefix ``EDGAR_``)
and an optional .env file. Provides type-safe access to:
- SEC identification (User-Agent components, required by SEC fair-access rules)
- Retry / throttling policy for the Fetcher
- Cache location and entry lifetime
- Primary document form types (packaged forms.yaml)
"""

import tempfile
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from edgar_filing_text.models.retry import RetryPolicy


class EdgarSettings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    Environment Variables (from .env):
        EDGAR_APP_NAME: Application name for the User-Agent header
        EDGAR_APP_VERSION: Application version for the User-Agent header
        EDGAR_CONTACT_EMAIL: Contact e-mail for the User-Agent header
        EDGAR_MAX_ATTEMPTS: Total attempts per request (default: 10)
        EDGAR_THROTTLE_DELAY: Delay after throttling or errors, seconds (default: 2.0)
        EDGAR_POLITENESS_DELAY: Per-request politeness delay, seconds (default: 0.25)
        EDGAR_CACHE_DIR: Directory for the file cache

    Properties:
        user_agent: Composed identifying header "{app}/{version} ({email})"

    Example:
        >>> settings = EdgarSettings(app_name="Research", app_version="1.0",
        ...                          contact_email="ops@example.com")
        >>> settings.user_agent
        'Research/1.0 (ops@example.com)'
    """

    # === SEC identification ===
    app_name: str = Field(
        ...,
        description="Application name used in the User-Agent header",
        examples=["FilingResearch"]
    )

    app_version: str = Field(
        ...,
        description="Application version used in the User-Agent header",
        examples=["1.0.0"]
    )

    contact_email: str = Field(
        ...,
        description="Contact e-mail used in the User-Agent header",
        examples=["ops@example.com"]
    )

    # === Retry policy ===
    max_attempts: int = Field(
        default=10,
        ge=0,
        description="Total number of attempts per request (0 or 1 disables retries)"
    )

    attempt_override: Optional[int] = Field(
        default=None,
        ge=0,
        description="Overrides max_attempts when set"
    )

    retry_delay: Optional[float] = Field(
        default=None,
        description="Fixed delay between retries in seconds (takes precedence over other fallbacks)"
    )

    throttle_delay: float = Field(
        default=2.0,
        description="Delay after throttling or errors in seconds"
    )

    politeness_delay: float = Field(
        default=0.25,
        description="Per-request politeness delay in seconds (SEC guidance: 10 req/s)"
    )

    exponential_backoff: bool = Field(
        default=False,
        description="Multiply the fallback delay by backoff_multiplier^(attempt-1)"
    )

    backoff_multiplier: float = Field(
        default=2.0,
        gt=0,
        description="Exponential backoff multiplier"
    )

    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request socket timeout in seconds"
    )

    # === Cache ===
    cache_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()) / ".edgar_cache",
        description="Directory holding one JSON file per cache entry"
    )

    cache_ttl_hours: float = Field(
        default=24.0,
        gt=0,
        description="Lifetime of cached documents and section lists"
    )

    # === Endpoints ===
    archives_base_url: str = Field(
        default="https://www.sec.gov",
        description="Base URL of the EDGAR archives"
    )

    model_config = SettingsConfigDict(
        env_prefix='EDGAR_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    @field_validator('app_name', 'app_version', 'contact_email')
    @classmethod
    def validate_not_blank(cls, v: str, info) -> str:
        """SEC rejects anonymous traffic, so every identity component is required."""
        if not v or not v.strip():
            raise ValueError(
                f"{info.field_name} is required for SEC user agent identification"
            )
        return v.strip()

    @field_validator('contact_email')
    @classmethod
    def validate_contact_email(cls, v: str) -> str:
        if '@' not in v:
            raise ValueError(f"contact_email must be an e-mail address, got: '{v}'")
        return v

    @property
    def user_agent(self) -> str:
        """Identifying header in the form ``{app}/{version} ({email})``."""
        return f"{self.app_name}/{self.app_version} ({self.contact_email})"

    def retry_policy(self) -> RetryPolicy:
        """Build the Fetcher's RetryPolicy from these settings."""
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.politeness_delay,
            throttle_delay=self.throttle_delay,
            exponential_backoff=self.exponential_backoff,
            backoff_multiplier=self.backoff_multiplier,
            attempt_override=self.attempt_override,
            fixed_retry_delay=self.retry_delay,
        )


# Singleton pattern - loaded once, cached forever
_settings: Optional[EdgarSettings] = None


def get_settings() -> EdgarSettings:
    """
    Get global settings instance (lazy-loaded singleton).

    Configuration is loaded from environment variables and .env file.
    Cached after first access.

    Returns:
        Singleton EdgarSettings instance

    Raises:
        pydantic.ValidationError: If the SEC identification fields are missing
    """
    global _settings
    if _settings is None:
        _settings = EdgarSettings()
    return _settings


_primary_form_types: Optional[List[str]] = None


def get_primary_form_types() -> List[str]:
    """
    Get the form types recognised as a filing's primary document.

    Loads the packaged forms.yaml once and caches the result.

    Returns:
        List of upper-case form types, e.g. ['10-K', '10-Q', '8-K', ...]

    Raises:
        FileNotFoundError: If forms.yaml is missing from the package
    """
    global _primary_form_types

    if _primary_form_types is not None:
        return _primary_form_types

    forms_path = Path(__file__).parent / 'forms.yaml'
    if not forms_path.exists():
        raise FileNotFoundError(
            f"Form type config not found at {forms_path}. "
            f"Reinstall the package to restore forms.yaml."
        )

    with open(forms_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    _primary_form_types = [
        str(form).strip().upper() for form in data.get('primary_form_types', [])
    ]
    return _primary_form_types
