"""
Provider configuration loader with YAML support and Pydantic validation

providers.yaml describes every external HTTP provider (CoinGecko, Jupiter,
Helius, Telegram): base URL plus the request spacing, daily quota and retry
policy enforced by RateLimitedClient.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)


class ProviderRateLimits(BaseModel):
    """Request pacing and retry policy for one provider"""

    min_interval_seconds: float = 1.0
    daily_quota: int | None = None  # None = unlimited
    max_retries: int = 2
    rate_limit_backoff_seconds: float = 60.0
    transient_backoff_seconds: float = 5.0
    timeout_seconds: float = 10.0

    @field_validator("min_interval_seconds", "rate_limit_backoff_seconds", "transient_backoff_seconds")
    @classmethod
    def non_negative(cls, v):
        if v < 0:
            raise ValueError("Delays cannot be negative")
        return v

    @field_validator("daily_quota")
    @classmethod
    def quota_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Daily quota must be positive (omit it for unlimited)")
        return v

    @field_validator("max_retries")
    @classmethod
    def retries_bounded(cls, v):
        if not 0 <= v <= 10:
            raise ValueError("max_retries must be between 0 and 10")
        return v


class ProviderConfig(BaseModel):
    """Single provider configuration"""

    name: str
    base_url: str
    rate_limits: ProviderRateLimits = ProviderRateLimits()
    cache_ttl_seconds: int = 24 * 60 * 60

    @field_validator("base_url")
    @classmethod
    def base_url_valid(cls, v):
        if not v.startswith(("https://", "http://", "wss://", "ws://")):
            raise ValueError("Base URL must start with http(s):// or ws(s)://")
        return v.rstrip("/")


class ProvidersConfig(BaseModel):
    """All providers configuration"""

    providers: dict[str, ProviderConfig]


# Used when providers.yaml is absent (tests, one-off scripts)
DEFAULT_PROVIDERS: dict[str, dict] = {
    "coingecko": {
        "name": "CoinGecko",
        "base_url": "https://api.coingecko.com/api/v3",
        "rate_limits": {"min_interval_seconds": 6.0, "daily_quota": 333},
    },
    "jupiter": {
        "name": "Jupiter",
        "base_url": "https://quote-api.jup.ag/v6",
        "rate_limits": {"min_interval_seconds": 1.0, "transient_backoff_seconds": 2.0},
    },
    "helius": {
        "name": "Helius",
        "base_url": "https://api.helius.xyz/v0",
        "rate_limits": {"min_interval_seconds": 0.2, "daily_quota": 30000, "max_retries": 1},
    },
    "telegram": {
        "name": "Telegram",
        "base_url": "https://api.telegram.org",
        "rate_limits": {"min_interval_seconds": 1.0, "max_retries": 0},
    },
}


def load_providers_config(
    config_path: str = "config/providers/providers.yaml",
) -> dict[str, ProviderConfig]:
    """
    Load and validate provider configuration from YAML

    Providers missing from the file fall back to DEFAULT_PROVIDERS.

    Args:
        config_path: Path to providers.yaml file

    Returns:
        Dict[str, ProviderConfig]: Validated provider configurations

    Raises:
        ValidationError: If config is invalid

    Example:
        >>> configs = load_providers_config()
        >>> configs["coingecko"].rate_limits.daily_quota
        333
    """
    config_file = Path(config_path)

    data: dict = {}
    if config_file.exists():
        with open(config_file) as f:
            data = yaml.safe_load(f) or {}
    else:
        logger.warning(f"⚠️ Provider config not found: {config_path}, using defaults")

    merged = {**DEFAULT_PROVIDERS, **data.get("providers", {})}

    try:
        providers_config = ProvidersConfig(providers=merged)
        logger.info(f"✓ Loaded {len(providers_config.providers)} provider configurations")
        return providers_config.providers

    except Exception as e:
        logger.error(f"Failed to load provider config: {e}")
        raise


def get_provider_config(
    provider_name: str, config_path: str = "config/providers/providers.yaml"
) -> ProviderConfig:
    """
    Get configuration for a specific provider

    Raises:
        KeyError: If provider not found

    Example:
        >>> jupiter = get_provider_config("jupiter")
        >>> print(jupiter.base_url)
        https://quote-api.jup.ag/v6
    """
    all_providers = load_providers_config(config_path)

    if provider_name not in all_providers:
        raise KeyError(
            f"Provider '{provider_name}' not found. Available: {list(all_providers.keys())}"
        )

    return all_providers[provider_name]


__all__ = [
    "ProviderConfig",
    "ProviderRateLimits",
    "ProvidersConfig",
    "load_providers_config",
    "get_provider_config",
]
