"""
Tests for configuration loading and the market clock.
"""

from datetime import datetime

import pytest
import pytz

from src.utils.config import Settings, load_db_credentials, load_settings
from src.utils.logging_utils import resolve_log_level
from src.utils.market_clock import EASTERN, et_time_label, is_market_hours, trading_day


class TestSettings:
    """Tests for Settings validation and load_settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.put_gamma_policy == 'native'
        assert settings.wall_band == 0.40
        assert settings.atm_strike_count == 5
        assert settings.iv_history_cap == 96
        assert settings.iv_history_ttl == 172800
        assert not settings.has_schwab_credentials

    @pytest.mark.parametrize("kwargs", [
        {'put_gamma_policy': 'mixed'},
        {'kv_backend': 'redis'},
        {'wall_band': 0},
        {'wall_band': 1.5},
        {'atm_strike_count': 0},
        {'iv_history_cap': 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            Settings(**kwargs)

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv('SCHWAB_APP_KEY', 'key')
        monkeypatch.setenv('SCHWAB_SECRET', 'secret')
        monkeypatch.setenv('SCHWAB_REFRESH_TOKEN', 'refresh')
        monkeypatch.setenv('KV_BACKEND', 'memory')
        monkeypatch.setenv('GEX_PUT_GAMMA_POLICY', 'NEGATE')
        monkeypatch.setenv('GEX_WALL_BAND', 'none')
        monkeypatch.setenv('IV_HISTORY_CAP', '100')

        settings = load_settings()
        assert settings.has_schwab_credentials
        assert settings.put_gamma_policy == 'negate'
        assert settings.wall_band is None
        assert settings.iv_history_cap == 100

    def test_db_credentials_file(self, tmp_path, monkeypatch):
        for key in ('DB_HOST', 'DB_PORT', 'DB_NAME', 'DB_USER', 'DB_PASSWORD'):
            monkeypatch.delenv(key, raising=False)
        creds = tmp_path / 'creds'
        creds.write_text("# comment\nDB_HOST=db.internal\nDB_PORT=6543\nDB_PASSWORD=s3cret\n")

        config = load_db_credentials(creds)
        assert config == {
            'host': 'db.internal',
            'port': 6543,
            'database': 'gex_db',
            'user': 'gex_user',
            'password': 's3cret',
        }

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        creds = tmp_path / 'creds'
        creds.write_text("DB_HOST=db.internal\n")
        monkeypatch.setenv('DB_HOST', 'override')
        assert load_db_credentials(creds)['host'] == 'override'


class TestLogLevel:

    def test_valid(self):
        import logging
        assert resolve_log_level('debug') == logging.DEBUG

    def test_invalid_defaults_to_info(self):
        import logging
        assert resolve_log_level('LOUD') == logging.INFO


class TestMarketClock:
    """Tests for market clock helpers."""

    def test_regular_session(self):
        assert is_market_hours(EASTERN.localize(datetime(2026, 2, 20, 9, 30)))
        assert is_market_hours(EASTERN.localize(datetime(2026, 2, 20, 16, 0)))
        assert not is_market_hours(EASTERN.localize(datetime(2026, 2, 20, 9, 29)))
        assert not is_market_hours(EASTERN.localize(datetime(2026, 2, 20, 16, 1)))

    def test_weekend(self):
        assert not is_market_hours(EASTERN.localize(datetime(2026, 2, 21, 12, 0)))

    def test_utc_input_converted(self):
        # 15:00 UTC in February is 10:00 ET
        assert is_market_hours(pytz.utc.localize(datetime(2026, 2, 20, 15, 0)))

    def test_trading_day_uses_eastern_date(self):
        assert str(trading_day(pytz.utc.localize(datetime(2026, 2, 21, 2, 0)))) == '2026-02-20'

    def test_time_label(self):
        assert et_time_label(EASTERN.localize(datetime(2026, 2, 20, 14, 5, 9))) == '2026-02-20 14:05:09 ET'
