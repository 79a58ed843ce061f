from __future__ import annotations

from datetime import date, datetime
from typing import Literal, get_args

from pydantic import BaseModel

AssetType = Literal["stock", "bond", "crypto", "mutual_fund", "etf"]
ASSET_TYPES: tuple[str, ...] = get_args(AssetType)


class Holding(BaseModel):
    """One position in the portfolio. Owned by HoldingStore; callers get copies."""

    id: str
    symbol: str
    name: str
    type: AssetType
    quantity: float
    purchase_price: float
    current_price: float
    purchase_date: date
    created_at: datetime
    updated_at: datetime

    @property
    def market_value(self) -> float:
        return self.quantity * self.current_price

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.purchase_price

    @property
    def gain_loss(self) -> float:
        return (self.current_price - self.purchase_price) * self.quantity

    @property
    def gain_loss_percent(self) -> float:
        return (self.current_price - self.purchase_price) / self.purchase_price * 100.0
