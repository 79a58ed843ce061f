from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict

TransactionType = Literal["deposit", "withdrawal"]
TRANSACTION_TYPES: tuple[str, ...] = get_args(TransactionType)


class Transaction(BaseModel):
    """Immutable ledger entry; `balance` is the account balance right after posting."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: TransactionType
    amount: float
    description: str
    date: date_type
    balance: float
    created_at: datetime


class SettlementState(BaseModel):
    balance: float
    created_at: datetime
    last_updated: datetime
    transaction_count: int
