from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from folioengine.config import EngineConfig, OversellPolicy, load_config
from folioengine.errors import EngineError, InvalidConfiguration

_KEYS = (
    "FOLIO_RISK_FREE_RATE",
    "FOLIO_TRADING_DAYS",
    "FOLIO_DIVIDENDS_PER_YEAR",
    "FOLIO_DIVIDEND_WINDOW_SECONDS",
    "FOLIO_OVERSELL_POLICY",
)


class TestEngineConfig:
    def test_defaults(self) -> None:
        cfg = EngineConfig()
        assert cfg.risk_free_rate == 0.02
        assert cfg.trading_days_per_year == 252
        assert cfg.dividends_per_year == 4
        assert cfg.dividend_window_seconds == 86_400
        assert cfg.oversell_policy == OversellPolicy.CLAMP

    def test_frozen(self) -> None:
        cfg = EngineConfig()
        try:
            cfg.risk_free_rate = 0.05  # type: ignore[misc]
            assert False, "Should be frozen"
        except AttributeError:
            pass


class TestLoadConfig:
    def test_loads_from_env(self) -> None:
        env = {
            "FOLIO_RISK_FREE_RATE": "0.045",
            "FOLIO_TRADING_DAYS": "365",
            "FOLIO_DIVIDENDS_PER_YEAR": "12",
            "FOLIO_DIVIDEND_WINDOW_SECONDS": "3600",
            "FOLIO_OVERSELL_POLICY": "RAISE",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = load_config()

        assert cfg.risk_free_rate == 0.045
        assert cfg.trading_days_per_year == 365
        assert cfg.dividends_per_year == 12
        assert cfg.dividend_window_seconds == 3600
        assert cfg.oversell_policy == OversellPolicy.RAISE

    def test_defaults(self, tmp_path, monkeypatch) -> None:
        # Run from an empty directory so no .env is picked up
        monkeypatch.chdir(tmp_path)
        clean_env = {k: v for k, v in os.environ.items() if k not in _KEYS}
        with patch.dict(os.environ, clean_env, clear=True):
            cfg = load_config()
        assert cfg == EngineConfig()

    def test_dotenv_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("FOLIO_DIVIDENDS_PER_YEAR=2\n")
        clean_env = {k: v for k, v in os.environ.items() if k not in _KEYS}
        with patch.dict(os.environ, clean_env, clear=True):
            cfg = load_config()
        assert cfg.dividends_per_year == 2

    def test_bad_policy(self) -> None:
        with patch.dict(os.environ, {"FOLIO_OVERSELL_POLICY": "ignore"}, clear=False):
            with pytest.raises(InvalidConfiguration, match="FOLIO_OVERSELL_POLICY"):
                load_config()

    def test_bad_number(self) -> None:
        with patch.dict(os.environ, {"FOLIO_TRADING_DAYS": "many"}, clear=False):
            with pytest.raises(InvalidConfiguration, match="FOLIO_TRADING_DAYS"):
                load_config()

    def test_bad_value_is_engine_error(self) -> None:
        with patch.dict(os.environ, {"FOLIO_RISK_FREE_RATE": "two percent"}, clear=False):
            with pytest.raises(EngineError):
                load_config()
