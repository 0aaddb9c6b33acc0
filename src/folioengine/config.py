from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from dotenv import load_dotenv

from folioengine.errors import InvalidConfiguration


class OversellPolicy(StrEnum):
    CLAMP = "clamp"  # zero the position, keep the realized gain
    RAISE = "raise"  # refuse with OverdrawnPosition


@dataclass(frozen=True)
class EngineConfig:
    risk_free_rate: float = 0.02
    trading_days_per_year: int = 252
    dividends_per_year: int = 4
    dividend_window_seconds: int = 86_400
    oversell_policy: OversellPolicy = OversellPolicy.CLAMP


def _env(name: str, default: str, kind):
    raw = os.environ.get(name, default)
    try:
        return kind(raw.strip())
    except ValueError:
        raise InvalidConfiguration(f"{name} has an invalid value: {raw!r}") from None


def load_config() -> EngineConfig:
    """Load engine config from environment variables.

    Loads .env file if present in the current directory. A malformed value
    raises InvalidConfiguration naming the offending variable.
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    return EngineConfig(
        risk_free_rate=_env("FOLIO_RISK_FREE_RATE", "0.02", float),
        trading_days_per_year=_env("FOLIO_TRADING_DAYS", "252", int),
        dividends_per_year=_env("FOLIO_DIVIDENDS_PER_YEAR", "4", int),
        dividend_window_seconds=_env("FOLIO_DIVIDEND_WINDOW_SECONDS", "86400", int),
        oversell_policy=_env(
            "FOLIO_OVERSELL_POLICY", "clamp", lambda v: OversellPolicy(v.lower())
        ),
    )
