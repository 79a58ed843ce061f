# services/seed.py
"""Demo portfolio loaded at startup when SEED_DEMO_HOLDINGS is on."""
from __future__ import annotations

from typing import Any, Dict, List

from services.holding_store import HoldingStore

DEMO_HOLDINGS: List[Dict[str, Any]] = [
    {"symbol": "AAPL", "name": "Apple Inc.", "type": "stock",
     "quantity": 50, "purchase_price": 150.00, "current_price": 175.50, "purchase_date": "2023-01-15"},
    {"symbol": "GOOGL", "name": "Alphabet Inc.", "type": "stock",
     "quantity": 25, "purchase_price": 2800.00, "current_price": 2950.75, "purchase_date": "2023-02-20"},
    {"symbol": "MSFT", "name": "Microsoft Corporation", "type": "stock",
     "quantity": 30, "purchase_price": 320.00, "current_price": 378.85, "purchase_date": "2023-01-25"},
    {"symbol": "TSLA", "name": "Tesla Inc.", "type": "stock",
     "quantity": 15, "purchase_price": 800.00, "current_price": 245.60, "purchase_date": "2023-03-01"},
    {"symbol": "BTC", "name": "Bitcoin", "type": "crypto",
     "quantity": 2.5, "purchase_price": 45000.00, "current_price": 52000.00, "purchase_date": "2023-03-10"},
    {"symbol": "ETH", "name": "Ethereum", "type": "crypto",
     "quantity": 10, "purchase_price": 2800.00, "current_price": 3200.00, "purchase_date": "2023-03-15"},
    {"symbol": "US10Y", "name": "US Treasury 10 Year Bond", "type": "bond",
     "quantity": 100, "purchase_price": 98.50, "current_price": 97.25, "purchase_date": "2023-04-05"},
    {"symbol": "VTIAX", "name": "Vanguard Total International Stock Index Fund", "type": "mutual_fund",
     "quantity": 200, "purchase_price": 28.50, "current_price": 31.75, "purchase_date": "2023-02-10"},
]


def seed_holdings(store: HoldingStore) -> int:
    """Add the demo holdings without touching cash. Returns how many were added."""
    for row in DEMO_HOLDINGS:
        store.create(row)
    return len(DEMO_HOLDINGS)
