# services/analytics.py
"""
Read-only analytics over a holdings snapshot.

Everything here is a pure function of its arguments: no store access,
no mutation. The risk numbers are cross-sectional approximations over
the current holdings (one simple return per position), not time-series
statistics; there is no return history to compute those from.
"""
from __future__ import annotations

from math import fsum
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from models.holding import Holding
from services.holding_store import summarize
from services.reference_data import ReferenceData, RiskConstants
from services.timeseries import TimeSeriesProvider
from utils.common_helpers import money, round_half_up, safe_div, utc_now

VAR_Z_95 = 1.96


def _total_value(holdings: Sequence[Holding]) -> float:
    return fsum(h.market_value for h in holdings)


def _pct(value: float, total: float) -> float:
    return round_half_up(safe_div(value, total) * 100.0, 2)


# ============================================================================
# ALLOCATION
# ============================================================================

def sector_allocation(
    holdings: Sequence[Holding],
    reference: ReferenceData,
    total_value: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """
    Market value and count per sector, in first-seen order.

    `total_value` defaults to the snapshot's own value; pass the summary
    total to normalize against it. A zero total gives 0% everywhere.
    """
    buckets: Dict[str, Dict[str, Any]] = {}
    for h in holdings:
        sector = reference.sector_for(h.symbol)
        bucket = buckets.setdefault(sector, {"name": sector, "value": 0.0, "count": 0})
        bucket["value"] += h.market_value
        bucket["count"] += 1

    total = _total_value(holdings) if total_value is None else total_value
    return [{**b, "percentage": _pct(b["value"], total)} for b in buckets.values()]


def type_allocation(holdings: Sequence[Holding]) -> List[Dict[str, Any]]:
    """Value, cost and gain/loss per asset type, in first-seen order."""
    buckets: Dict[str, Dict[str, Any]] = {}
    for h in holdings:
        bucket = buckets.setdefault(
            h.type,
            {"type": h.type, "current_value": 0.0, "cost": 0.0, "gain_loss": 0.0, "count": 0},
        )
        bucket["current_value"] += h.market_value
        bucket["cost"] += h.cost_basis
        bucket["gain_loss"] += h.market_value - h.cost_basis
        bucket["count"] += 1

    total = _total_value(holdings)
    return [{**b, "percentage": _pct(b["current_value"], total)} for b in buckets.values()]


# ============================================================================
# RISK
# ============================================================================

def risk_metrics(holdings: Sequence[Holding], constants: Optional[RiskConstants] = None) -> Dict[str, Any]:
    constants = constants or RiskConstants()
    returns = pd.Series(
        [(h.current_price - h.purchase_price) / h.purchase_price for h in holdings],
        dtype=float,
    )

    if returns.empty:
        avg_return = volatility = sharpe = max_drawdown = 0.0
    else:
        avg_return = float(returns.mean())
        volatility = float(returns.std(ddof=0)) * 100.0
        sharpe = safe_div(avg_return, volatility / 100.0)
        max_drawdown = float(returns.min()) * 100.0

    var_95 = avg_return * 100.0 - VAR_Z_95 * volatility

    return {
        "volatility": round_half_up(volatility, 2),
        "sharpe_ratio": round_half_up(sharpe, 2),
        "max_drawdown": round_half_up(max_drawdown, 2),
        "beta": constants.beta,
        "var_95": round_half_up(var_95, 0),
        "correlation_spy": constants.correlation_spy,
        "holdings_count": int(returns.size),
    }


# ============================================================================
# INCOME
# ============================================================================

def income_estimate(holdings: Sequence[Holding], reference: ReferenceData) -> Dict[str, Any]:
    items: List[Dict[str, Any]] = []
    for h in holdings:
        annual_dividend = reference.dividend_for(h.symbol)
        if annual_dividend is None:
            continue
        annual_income = annual_dividend * h.quantity
        items.append({
            "symbol": h.symbol,
            "name": h.name,
            "quarterly_income": money(annual_income / 4),
            "annual_income": money(annual_income),
            "yield": round_half_up(annual_dividend / h.current_price * 100.0, 2),
        })

    total_annual = fsum(it["annual_income"] for it in items)
    return {
        "income_items": items,
        "total_annual_income": money(total_annual),
        "total_quarterly_income": money(total_annual / 4),
    }


# ============================================================================
# DASHBOARD
# ============================================================================

def historical_series(provider: TimeSeriesProvider, start_value: float) -> List[Dict[str, Any]]:
    return provider.series(start_value)


def build_dashboard(
    holdings: Sequence[Holding],
    reference: ReferenceData,
    provider: TimeSeriesProvider,
    start_value: float,
) -> Dict[str, Any]:
    summary = summarize(holdings)
    return {
        "summary": summary,
        "historical_performance": historical_series(provider, start_value),
        "sector_allocation": sector_allocation(holdings, reference, summary["total_value"]),
        "type_allocation": type_allocation(holdings),
        "risk_metrics": risk_metrics(holdings, reference.risk),
        "income_data": income_estimate(holdings, reference),
        "last_updated": utc_now().isoformat(),
    }
