"""
Unit tests for settings and provider configuration

Tests YAML config loading, .env overrides and provider validation.
"""

import pytest
from pydantic import ValidationError

from config.loader import DEFAULT_PROVIDERS, get_provider_config, load_providers_config
from config.settings import Settings, get_settings


@pytest.mark.unit
class TestPipelineSettings:
    """Test pipeline.yaml backed settings"""

    def test_candle_interval_seconds(self):
        settings = get_settings()

        assert settings.CANDLE_INTERVAL_SECONDS == 60

    def test_schedule_intervals_positive(self):
        settings = get_settings()

        for name in (
            "GAP_FILL_INTERVAL_SECONDS",
            "DETECTION_INTERVAL_SECONDS",
            "DISPATCH_INTERVAL_SECONDS",
            "MAINTENANCE_INTERVAL_SECONDS",
        ):
            value = getattr(settings, name)
            assert isinstance(value, int) and value > 0, f"{name}={value}"

    def test_indicator_window_covers_periods(self):
        settings = get_settings()

        assert settings.MIN_HISTORY_CANDLES >= settings.EMA_SLOW_PERIOD + 2
        assert settings.MIN_HISTORY_CANDLES >= settings.RSI_PERIOD + 1
        assert settings.MIN_HISTORY_CANDLES >= settings.SPIKE_RECENT_WINDOW + settings.SPIKE_BASELINE_WINDOW

    def test_signal_thresholds(self):
        settings = get_settings()

        assert settings.MIN_VOLUME_SPIKE == 3.0
        assert settings.MAX_RSI_OVERSOLD == 35.0
        assert settings.MIN_LIQUIDITY_USD == 10_000.0
        assert settings.MAX_FDV_USD == 5_000_000.0
        assert settings.MAX_PRICE_IMPACT_PERCENT == 3.0
        assert settings.PRICE_IMPACT_TEST_AMOUNT_USD == 10.0

    def test_amm_programs(self):
        programs = get_settings().AMM_PROGRAMS

        assert programs["raydium"] == "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
        assert len(programs) == 4


@pytest.mark.unit
class TestSecretsSettings:
    """Test .env backed values"""

    def test_helius_websocket_url_carries_key(self):
        settings = Settings(HELIUS_API_KEY="test-key")

        assert settings.HELIUS_WEBSOCKET_URL == "wss://mainnet.helius-rpc.com/?api-key=test-key"

    def test_postgres_dsn_built_from_parts(self):
        settings = Settings(POSTGRES_PASSWORD="secret", POSTGRES_URL=None)

        dsn = settings.postgres_dsn

        assert dsn.startswith("postgresql://")
        assert ":secret@" in dsn
        assert dsn.endswith(f"/{settings.POSTGRES_DB}")

    def test_postgres_url_override(self):
        settings = Settings(POSTGRES_URL="postgresql://u:p@db:5433/x")

        assert settings.postgres_dsn == "postgresql://u:p@db:5433/x"


@pytest.mark.unit
class TestProviderConfig:
    """Test providers.yaml loading and validation"""

    def test_missing_file_falls_back_to_defaults(self, tmp_path):
        providers = load_providers_config(str(tmp_path / "absent.yaml"))

        assert set(providers) == set(DEFAULT_PROVIDERS)
        assert providers["coingecko"].rate_limits.daily_quota == 333
        assert providers["jupiter"].rate_limits.daily_quota is None

    def test_yaml_overrides_one_provider(self, tmp_path):
        path = tmp_path / "providers.yaml"
        path.write_text(
            "providers:\n"
            "  jupiter:\n"
            "    name: Jupiter\n"
            "    base_url: https://example.test/v6/\n"
            "    rate_limits:\n"
            "      min_interval_seconds: 0.5\n"
        )

        jupiter = get_provider_config("jupiter", str(path))

        assert jupiter.base_url == "https://example.test/v6"
        assert jupiter.rate_limits.min_interval_seconds == 0.5
        assert get_provider_config("telegram", str(path)).base_url == "https://api.telegram.org"

    def test_unknown_provider(self, tmp_path):
        with pytest.raises(KeyError, match="not found"):
            get_provider_config("birdeye", str(tmp_path / "absent.yaml"))

    @pytest.mark.parametrize(
        "rate_limits",
        [
            {"min_interval_seconds": -1},
            {"daily_quota": 0},
            {"max_retries": 11},
        ],
    )
    def test_invalid_rate_limits(self, tmp_path, rate_limits):
        path = tmp_path / "providers.yaml"
        lines = ["providers:", "  jupiter:", "    name: Jupiter", "    base_url: https://x.test", "    rate_limits:"]
        lines += [f"      {key}: {value}" for key, value in rate_limits.items()]
        path.write_text("\n".join(lines) + "\n")

        with pytest.raises(ValidationError):
            load_providers_config(str(path))

    def test_invalid_base_url(self, tmp_path):
        path = tmp_path / "providers.yaml"
        path.write_text("providers:\n  jupiter:\n    name: Jupiter\n    base_url: ftp://x\n")

        with pytest.raises(ValidationError, match="Base URL"):
            load_providers_config(str(path))
