# config/settings.py
"""
Environment-driven settings for the portfolio backend.

Values are read once (after load_dotenv) and cached; call
get_settings.cache_clear() in tests that tweak the environment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv

load_dotenv()

DEFAULT_REFERENCE_DATA_PATH = Path(__file__).with_name("reference_data.json")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class Settings:
    app_name: str = "Portfolio Manager API"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])

    # Settlement account
    seed_balance: float = 25000.0
    seed_demo_holdings: bool = True
    allow_overdraft: bool = False

    # Analytics
    history_provider: str = "random"
    history_start_value: float = 100000.0
    reference_data_path: Path = DEFAULT_REFERENCE_DATA_PATH

    # slowapi
    rate_limit_default: str = "100/15minutes"
    rate_limit_enabled: bool = True


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    provider = (os.getenv("HISTORY_PROVIDER") or "random").strip().lower()
    if provider not in ("random", "constant"):
        raise RuntimeError(f"HISTORY_PROVIDER must be 'random' or 'constant', got {provider!r}")

    seed_balance = _env_float("SEED_BALANCE", 25000.0)
    if seed_balance < 0:
        raise RuntimeError("SEED_BALANCE must not be negative")

    ref_path = os.getenv("REFERENCE_DATA_PATH")

    return Settings(
        app_name=os.getenv("APP_NAME", "Portfolio Manager API"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        cors_origins=_env_list("CORS_ORIGINS", "http://localhost:3000"),
        seed_balance=seed_balance,
        seed_demo_holdings=_env_bool("SEED_DEMO_HOLDINGS", True),
        allow_overdraft=_env_bool("ALLOW_OVERDRAFT", False),
        history_provider=provider,
        history_start_value=_env_float("HISTORY_START_VALUE", 100000.0),
        reference_data_path=Path(ref_path) if ref_path else DEFAULT_REFERENCE_DATA_PATH,
        rate_limit_default=os.getenv("RATE_LIMIT_DEFAULT", "100/15minutes"),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
