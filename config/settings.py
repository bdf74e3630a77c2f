"""
Application Settings - Load from YAML configs + .env secrets

Design Philosophy:
- Pipeline tuning (intervals, thresholds, retention) → YAML files (versioned in git)
- Secrets (API keys, bot token, DB password) → .env file (gitignored)

Uses Pydantic for validation and type safety
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.utils.config import get_nested, load_yaml_safe
from core.utils.time_buckets import parse_interval


class Settings(BaseSettings):
    """
    Application settings

    Architecture:
    - Pipeline config → config/providers/pipeline.yaml
    - Database config → config/providers/databases.yaml
    - Provider pacing → config/providers/providers.yaml (see config/loader.py)
    - Secrets → .env

    Usage:
        from config.settings import get_settings

        settings = get_settings()
        print(settings.CANDLE_INTERVAL_SECONDS)  # From pipeline.yaml
        print(settings.TELEGRAM_BOT_TOKEN)  # From .env
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Load YAML configs from files (cached at class level)
        if not hasattr(Settings, "_yaml_loaded"):
            Settings._pipeline_config = load_yaml_safe("config/providers/pipeline.yaml")
            Settings._database_config = load_yaml_safe("config/providers/databases.yaml")
            Settings._yaml_loaded = True

    # ============================================
    # ENVIRONMENT (.env only)
    # ============================================
    ENVIRONMENT: str = Field(default="local", description="Environment: local, dev, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    STORE_BACKEND: str = Field(
        default="postgres",
        description="Signal store backend: postgres, memory (dry run)",
    )

    # ============================================
    # SECRETS (.env only)
    # ============================================
    HELIUS_API_KEY: str | None = Field(default=None)
    COINGECKO_API_KEY: str | None = Field(default=None)
    COINGECKO_API_TIER: str = Field(default="demo", description="demo or pro")
    TELEGRAM_BOT_TOKEN: str | None = Field(default=None)
    TELEGRAM_CHAT_ID: str | None = Field(default=None)

    # ============================================
    # CANDLES + SCHEDULE (from YAML)
    # ============================================
    @property
    def CANDLE_INTERVAL_SECONDS(self) -> int:
        """Candle bucket width from pipeline.yaml"""
        return parse_interval(get_nested(self._pipeline_config, "candles", "interval", default="1m"))

    @property
    def GAP_FILL_INTERVAL_SECONDS(self) -> int:
        """Gap filler period (independent of the candle interval)"""
        return get_nested(self._pipeline_config, "schedule", "gap_fill_seconds", default=60)

    @property
    def DETECTION_INTERVAL_SECONDS(self) -> int:
        """Stage A sweep period"""
        return get_nested(self._pipeline_config, "schedule", "detection_seconds", default=60)

    @property
    def DISPATCH_INTERVAL_SECONDS(self) -> int:
        """Stage B sweep period"""
        return get_nested(self._pipeline_config, "schedule", "dispatch_seconds", default=20)

    @property
    def CATALOG_REFRESH_INTERVAL_SECONDS(self) -> int:
        return get_nested(
            self._pipeline_config, "schedule", "catalog_refresh_seconds", default=48 * 3600
        )

    @property
    def MAINTENANCE_INTERVAL_SECONDS(self) -> int:
        return get_nested(self._pipeline_config, "schedule", "maintenance_seconds", default=3600)

    @property
    def ACTIVITY_REPORT_INTERVAL_SECONDS(self) -> int:
        return get_nested(self._pipeline_config, "schedule", "activity_report_seconds", default=600)

    @property
    def SCHEDULER_INITIAL_DELAY_SECONDS(self) -> int:
        return get_nested(self._pipeline_config, "schedule", "initial_delay_seconds", default=5)

    # ============================================
    # INDICATORS (from YAML)
    # ============================================
    @property
    def MIN_HISTORY_CANDLES(self) -> int:
        """Minimum candle window for an indicator snapshot"""
        return get_nested(self._pipeline_config, "indicators", "min_history_candles", default=40)

    @property
    def EMA_FAST_PERIOD(self) -> int:
        return get_nested(self._pipeline_config, "indicators", "ema_fast", default=9)

    @property
    def EMA_SLOW_PERIOD(self) -> int:
        return get_nested(self._pipeline_config, "indicators", "ema_slow", default=21)

    @property
    def RSI_PERIOD(self) -> int:
        return get_nested(self._pipeline_config, "indicators", "rsi_period", default=14)

    @property
    def SPIKE_RECENT_WINDOW(self) -> int:
        return get_nested(self._pipeline_config, "indicators", "spike_recent_window", default=5)

    @property
    def SPIKE_BASELINE_WINDOW(self) -> int:
        return get_nested(self._pipeline_config, "indicators", "spike_baseline_window", default=30)

    # ============================================
    # SIGNAL THRESHOLDS (from YAML)
    # ============================================
    @property
    def MIN_TOKEN_AGE_DAYS(self) -> float:
        return get_nested(self._pipeline_config, "signals", "min_token_age_days", default=14)

    @property
    def MIN_VOLUME_SPIKE(self) -> float:
        return float(get_nested(self._pipeline_config, "signals", "min_volume_spike", default=3.0))

    @property
    def MAX_RSI_OVERSOLD(self) -> float:
        return float(get_nested(self._pipeline_config, "signals", "max_rsi_oversold", default=35))

    @property
    def MIN_LIQUIDITY_USD(self) -> float:
        return float(get_nested(self._pipeline_config, "signals", "min_liquidity_usd", default=10_000))

    @property
    def MAX_FDV_USD(self) -> float:
        return float(get_nested(self._pipeline_config, "signals", "max_fdv_usd", default=5_000_000))

    @property
    def MAX_PRICE_IMPACT_PERCENT(self) -> float:
        return float(
            get_nested(self._pipeline_config, "signals", "max_price_impact_percent", default=3.0)
        )

    @property
    def PRICE_IMPACT_TEST_AMOUNT_USD(self) -> float:
        return float(
            get_nested(self._pipeline_config, "signals", "price_impact_test_amount_usd", default=10)
        )

    # ============================================
    # TOKEN CATALOG (from YAML)
    # ============================================
    @property
    def CATALOG_NETWORK(self) -> str:
        return get_nested(self._pipeline_config, "catalog", "network", default="solana")

    @property
    def CATALOG_TOP_TOKENS(self) -> int:
        return get_nested(self._pipeline_config, "catalog", "top_tokens", default=500)

    # ============================================
    # RETENTION (from YAML)
    # ============================================
    @property
    def CANDLE_RETENTION_HOURS(self) -> int:
        return get_nested(self._pipeline_config, "retention", "candles_hours", default=24)

    @property
    def SIGNAL_RETENTION_HOURS(self) -> int:
        return get_nested(self._pipeline_config, "retention", "signals_hours", default=24)

    @property
    def TRACKED_TOKEN_RETENTION_HOURS(self) -> int:
        return get_nested(self._pipeline_config, "retention", "tracked_tokens_hours", default=72)

    @property
    def HOURLY_ROLLUP_RETENTION_DAYS(self) -> int:
        return get_nested(self._pipeline_config, "retention", "hourly_rollup_days", default=30)

    # ============================================
    # EVENT SOURCE (YAML + .env)
    # ============================================
    @property
    def HELIUS_WEBSOCKET_URL(self) -> str:
        """Helius RPC websocket with the API key appended"""
        base = get_nested(
            self._pipeline_config,
            "event_source",
            "websocket_url",
            default="wss://mainnet.helius-rpc.com",
        )
        return f"{base.rstrip('/')}/?api-key={self.HELIUS_API_KEY or ''}"

    @property
    def EVENT_SOURCE_COMMITMENT(self) -> str:
        return get_nested(self._pipeline_config, "event_source", "commitment", default="confirmed")

    @property
    def EVENT_SOURCE_RECONNECT_SECONDS(self) -> float:
        return get_nested(
            self._pipeline_config, "event_source", "reconnect_delay_seconds", default=5
        )

    @property
    def EVENT_QUEUE_SIZE(self) -> int:
        return get_nested(self._pipeline_config, "event_source", "queue_size", default=10_000)

    @property
    def AMM_PROGRAMS(self) -> dict[str, str]:
        """Watched AMM program ids, keyed by a short label"""
        return get_nested(
            self._pipeline_config,
            "event_source",
            "programs",
            default={
                "raydium": "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
                "orca_whirlpool": "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
                "orca_legacy": "DjVE6JNiYqPL2QXyCUUh8rNjHrbz9hXHNYt99MQ59qw1",
                "meteora": "EhpADiBBAoHZnPb7PZZZy3QJmuggJ3dH6bqBFnM6dqNm",
            },
        )

    # ============================================
    # POSTGRESQL (from YAML + .env)
    # ============================================
    @property
    def POSTGRES_HOST(self) -> str:
        """PostgreSQL host from databases.yaml"""
        return get_nested(self._database_config, "postgres", "host", default="postgres")

    @property
    def POSTGRES_PORT(self) -> int:
        return get_nested(self._database_config, "postgres", "port", default=5432)

    @property
    def POSTGRES_DB(self) -> str:
        return get_nested(self._database_config, "postgres", "database", default="dex_signals")

    @property
    def POSTGRES_USER(self) -> str:
        return get_nested(self._database_config, "postgres", "user", default="signals_user")

    @property
    def POSTGRES_POOL_MIN_SIZE(self) -> int:
        return get_nested(self._database_config, "postgres", "pool_min_size", default=1)

    @property
    def POSTGRES_POOL_MAX_SIZE(self) -> int:
        return get_nested(self._database_config, "postgres", "pool_max_size", default=5)

    @property
    def POSTGRES_INIT_ATTEMPTS(self) -> int:
        """Startup attempts before initialization is fatal"""
        return get_nested(self._database_config, "postgres", "init_attempts", default=3)

    @property
    def POSTGRES_INIT_RETRY_DELAY_SECONDS(self) -> float:
        return get_nested(self._database_config, "postgres", "init_retry_delay_seconds", default=2)

    # PostgreSQL password from .env (secret)
    POSTGRES_PASSWORD: str = Field(default="signals_pass")

    # Optional override
    POSTGRES_URL: str | None = Field(default=None)

    @property
    def postgres_dsn(self) -> str:
        """PostgreSQL connection string"""
        if self.POSTGRES_URL:
            return self.POSTGRES_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


# Singleton pattern
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings (singleton)

    Example:
        >>> settings = get_settings()
        >>> print(settings.DISPATCH_INTERVAL_SECONDS)
        20
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
