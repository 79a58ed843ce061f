# services/holding_store.py
from __future__ import annotations

import logging
import threading
import uuid
from math import fsum
from typing import Any, Dict, List, Mapping, Sequence

from models.holding import Holding
from schemas.general import parse_model
from schemas.holding import HoldingCreate, HoldingUpdate
from services.errors import NotFoundError
from utils.common_helpers import Clock, utc_now

logger = logging.getLogger(__name__)

TOP_N = 3


def _with_performance(h: Holding) -> Dict[str, Any]:
    row = h.model_dump(mode="json")
    row["gain_loss"] = h.gain_loss
    row["gain_loss_percent"] = h.gain_loss_percent
    return row


def summarize(holdings: Sequence[Holding]) -> Dict[str, Any]:
    """
    Portfolio totals over a snapshot.

    Values are left unrounded; the API edge decides presentation.
    Rankings use Python's stable sort so equal percentages keep list order.
    """
    total_value = fsum(h.market_value for h in holdings)
    total_cost = fsum(h.cost_basis for h in holdings)
    total_gain_loss = total_value - total_cost
    total_gain_loss_percent = (total_gain_loss / total_cost * 100.0) if total_cost > 0 else 0.0

    asset_allocation: Dict[str, float] = {}
    for h in holdings:
        asset_allocation[h.type] = asset_allocation.get(h.type, 0.0) + h.market_value

    top = sorted(holdings, key=lambda h: -h.gain_loss_percent)[:TOP_N]
    worst = sorted(holdings, key=lambda h: h.gain_loss_percent)[:TOP_N]

    return {
        "total_value": total_value,
        "total_cost": total_cost,
        "total_gain_loss": total_gain_loss,
        "total_gain_loss_percent": total_gain_loss_percent,
        "total_items": len(holdings),
        "asset_allocation": asset_allocation,
        "top_performers": [_with_performance(h) for h in top],
        "worst_performers": [_with_performance(h) for h in worst],
    }


def matches(h: Holding, query: str) -> bool:
    q = query.lower()
    return q in h.symbol.lower() or q in h.name.lower() or q in h.type.lower()


class HoldingStore:
    """
    In-memory, insertion-ordered collection of holdings.

    The store owns the Holding objects and hands out copies. It never
    touches the settlement ledger; cash movement is the caller's job.
    """

    def __init__(self, clock: Clock = utc_now):
        self._items: List[Holding] = []
        self._lock = threading.RLock()
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _index(self, holding_id: str) -> int:
        for i, h in enumerate(self._items):
            if h.id == holding_id:
                return i
        return -1

    def list(self) -> List[Holding]:
        with self._lock:
            return [h.model_copy() for h in self._items]

    def get(self, holding_id: str) -> Holding:
        with self._lock:
            i = self._index(holding_id)
            if i < 0:
                raise NotFoundError("Portfolio item", holding_id)
            return self._items[i].model_copy()

    def exists(self, holding_id: str) -> bool:
        with self._lock:
            return self._index(holding_id) >= 0

    def create(self, fields: Mapping[str, Any] | HoldingCreate) -> Holding:
        data = parse_model(HoldingCreate, fields)
        now = self._clock()
        holding = Holding(
            id=str(uuid.uuid4()),
            **data.model_dump(),
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._items.append(holding)
        logger.info("holding_created id=%s symbol=%s quantity=%s", holding.id, holding.symbol, holding.quantity)
        return holding.model_copy()

    def update(
        self,
        holding_id: str,
        fields: Mapping[str, Any] | HoldingUpdate | HoldingCreate,
        *,
        partial: bool = True,
    ) -> Holding:
        """
        Merge `fields` into the holding. Full updates (partial=False) must
        carry every field; both modes only touch the fields they carry.
        """
        if partial:
            changes = parse_model(HoldingUpdate, fields).changes()
        else:
            changes = parse_model(HoldingCreate, fields).model_dump()
        return self._apply(holding_id, changes)

    def set_quantity(self, holding_id: str, quantity: float) -> Holding:
        """Internal quantity change (partial sale); skips the input minimums."""
        if not quantity > 0:
            raise ValueError("quantity must stay positive while the holding exists")
        return self._apply(holding_id, {"quantity": quantity})

    def _apply(self, holding_id: str, changes: Dict[str, Any]) -> Holding:
        with self._lock:
            i = self._index(holding_id)
            if i < 0:
                raise NotFoundError("Portfolio item", holding_id)
            updated = self._items[i].model_copy(update={**changes, "updated_at": self._clock()})
            self._items[i] = updated
        logger.info("holding_updated id=%s fields=%s", holding_id, ",".join(sorted(changes)))
        return updated.model_copy()

    def restore(self, holding: Holding, position: int | None = None) -> None:
        """Put back a previously removed or modified holding (used for rollbacks)."""
        with self._lock:
            i = self._index(holding.id)
            if i >= 0:
                self._items[i] = holding.model_copy()
            elif position is None or position >= len(self._items):
                self._items.append(holding.model_copy())
            else:
                self._items.insert(max(position, 0), holding.model_copy())
        logger.warning("holding_restored id=%s symbol=%s", holding.id, holding.symbol)

    def position_of(self, holding_id: str) -> int:
        with self._lock:
            return self._index(holding_id)

    def delete(self, holding_id: str) -> bool:
        with self._lock:
            i = self._index(holding_id)
            if i < 0:
                return False
            removed = self._items.pop(i)
        logger.info("holding_deleted id=%s symbol=%s", removed.id, removed.symbol)
        return True

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def summary(self) -> Dict[str, Any]:
        return summarize(self.list())

    def search(self, query: str) -> List[Holding]:
        return [h for h in self.list() if matches(h, query)]
