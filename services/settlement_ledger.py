# services/settlement_ledger.py
from __future__ import annotations

import logging
import math
import threading
import uuid
from math import fsum
from typing import Any, Dict, List, Optional

from models.transaction import TRANSACTION_TYPES, SettlementState, Transaction
from services.errors import NotFoundError, ValidationError
from utils.common_helpers import Clock, utc_now

logger = logging.getLogger(__name__)

INITIAL_DEPOSIT_DESCRIPTION = "Initial deposit"


class SettlementLedger:
    """
    Cash account plus its append-only transaction log.

    `post` is plain arithmetic: it never refuses a withdrawal that would
    take the balance negative. Balance policy lives in PortfolioService.
    """

    def __init__(self, opening_balance: float = 0.0, clock: Clock = utc_now):
        now = clock()
        self._clock = clock
        self._lock = threading.RLock()
        self._opening_balance = float(opening_balance)
        self._balance = self._opening_balance
        self._signed_amounts: List[float] = []
        self._created_at = now
        self._last_updated = now
        self._transactions: List[Transaction] = []

    @classmethod
    def open(cls, seed_balance: float, clock: Clock = utc_now) -> "SettlementLedger":
        """New account funded by one "Initial deposit" of `seed_balance` (skipped when 0)."""
        ledger = cls(clock=clock)
        if seed_balance > 0:
            ledger.post("deposit", seed_balance, INITIAL_DEPOSIT_DESCRIPTION)
        return ledger

    def get_balance(self) -> float:
        with self._lock:
            return self._balance

    def get_state(self) -> SettlementState:
        with self._lock:
            return SettlementState(
                balance=self._balance,
                created_at=self._created_at,
                last_updated=self._last_updated,
                transaction_count=len(self._transactions),
            )

    def list_transactions(self, type: Optional[str] = None, limit: Optional[int] = None) -> List[Transaction]:
        """Most recent first. Posting order is authoritative, not created_at."""
        if type is not None and type not in TRANSACTION_TYPES:
            raise ValidationError.single("type", f"type must be one of {', '.join(TRANSACTION_TYPES)}")
        if limit is not None and limit < 1:
            raise ValidationError.single("limit", "limit must be at least 1")
        with self._lock:
            items = list(reversed(self._transactions))
        if type is not None:
            items = [t for t in items if t.type == type]
        if limit is not None:
            items = items[:limit]
        return items

    def get_transaction(self, transaction_id: str) -> Transaction:
        with self._lock:
            for t in self._transactions:
                if t.id == transaction_id:
                    return t
        raise NotFoundError("Transaction", transaction_id)

    def post(self, type: str, amount: float, description: str) -> Transaction:
        if type not in TRANSACTION_TYPES:
            raise ValidationError.single("type", "Transaction type must be deposit or withdrawal")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount) or amount <= 0:
            raise ValidationError.single("amount", "Amount must be greater than 0")

        with self._lock:
            signed = float(amount) if type == "deposit" else -float(amount)
            # correctly rounded sum of all postings; +A then -A lands back on the prior balance
            new_balance = fsum([self._opening_balance, *self._signed_amounts, signed])
            now = self._clock()
            transaction = Transaction(
                id=str(uuid.uuid4()),
                type=type,
                amount=float(amount),
                description=description,
                date=now.date(),
                balance=new_balance,
                created_at=now,
            )
            self._transactions.append(transaction)
            self._signed_amounts.append(signed)
            self._balance = new_balance
            self._last_updated = now

        logger.info(
            "transaction_posted id=%s type=%s amount=%.2f balance=%.2f",
            transaction.id, type, amount, new_balance,
        )
        return transaction

    def totals(self) -> Dict[str, Any]:
        with self._lock:
            deposits = fsum(t.amount for t in self._transactions if t.type == "deposit")
            withdrawals = fsum(t.amount for t in self._transactions if t.type == "withdrawal")
            return {
                "total_deposits": deposits,
                "total_withdrawals": withdrawals,
                "net_flow": deposits - withdrawals,
                "current_balance": self._balance,
                "transaction_count": len(self._transactions),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._transactions)
