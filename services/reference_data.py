# services/reference_data.py
"""
Static lookup tables used by the analytics: symbol -> sector,
symbol -> annual dividend per unit, and the mock risk constants.

They live in a JSON file (config/reference_data.json by default,
REFERENCE_DATA_PATH to override) so new symbols need no code change.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

logger = logging.getLogger(__name__)

DEFAULT_SECTOR = "Other"


@dataclass(frozen=True)
class RiskConstants:
    beta: float = 1.2
    correlation_spy: float = 0.85


@dataclass(frozen=True)
class ReferenceData:
    sectors: Mapping[str, str] = field(default_factory=dict)
    dividends: Mapping[str, float] = field(default_factory=dict)
    risk: RiskConstants = field(default_factory=RiskConstants)
    default_sector: str = DEFAULT_SECTOR

    def sector_for(self, symbol: str) -> str:
        return self.sectors.get(symbol.upper(), self.default_sector)

    def dividend_for(self, symbol: str) -> float | None:
        return self.dividends.get(symbol.upper())

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ReferenceData":
        sectors = {str(k).upper(): str(v) for k, v in (raw.get("sectors") or {}).items()}
        dividends: Dict[str, float] = {}
        for k, v in (raw.get("dividends") or {}).items():
            amount = float(v)
            if amount < 0:
                raise ValueError(f"dividend for {k} must not be negative")
            dividends[str(k).upper()] = amount
        risk_raw = raw.get("risk") or {}
        risk = RiskConstants(
            beta=float(risk_raw.get("beta", RiskConstants.beta)),
            correlation_spy=float(risk_raw.get("correlation_spy", RiskConstants.correlation_spy)),
        )
        return cls(
            sectors=sectors,
            dividends=dividends,
            risk=risk,
            default_sector=str(raw.get("default_sector") or DEFAULT_SECTOR),
        )


def load_reference_data(path: Path) -> ReferenceData:
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, dict):
        raise ValueError(f"reference data in {path} must be a JSON object")
    data = ReferenceData.from_dict(raw)
    logger.info(
        "reference_data_loaded path=%s sectors=%d dividends=%d",
        path, len(data.sectors), len(data.dividends),
    )
    return data
