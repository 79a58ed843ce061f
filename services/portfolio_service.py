# services/portfolio_service.py
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

from config.settings import Settings
from models.holding import Holding
from models.transaction import SettlementState, Transaction
from schemas.general import parse_model
from schemas.holding import HoldingCreate, HoldingUpdate, SellRequest
from schemas.settlement import TransactionCreate
from services import analytics
from services.errors import (
    InsufficientBalanceError,
    InternalFailure,
    PortfolioError,
    ValidationError,
)
from services.holding_store import HoldingStore
from services.reference_data import ReferenceData, load_reference_data
from services.seed import seed_holdings
from services.settlement_ledger import SettlementLedger
from services.timeseries import TimeSeriesProvider, build_provider

logger = logging.getLogger(__name__)

# quantities closer than this are treated as equal when deciding a full sale
QTY_EPSILON = 1e-9

DEFAULT_DESCRIPTIONS = {"deposit": "Cash deposit", "withdrawal": "Cash withdrawal"}


def _fmt_qty(q: float) -> str:
    # 1234567 -> "1,234,567", 0.5 -> "0.5"; never exponent notation
    return f"{q:,.6f}".rstrip("0").rstrip(".")


class PortfolioService:
    """
    Coordinator over the holding store and the settlement ledger.

    This is the only object the routers talk to. Buy and sell touch both
    stores; they run under one lock and undo the holding change when the
    ledger side fails, so a holding without its matching cash movement is
    never left behind. The withdrawal balance check lives here and only here.
    """

    def __init__(
        self,
        holdings: HoldingStore,
        ledger: SettlementLedger,
        reference: ReferenceData,
        history: TimeSeriesProvider,
        *,
        allow_overdraft: bool = False,
        history_start_value: float = 100000.0,
    ):
        self._holdings = holdings
        self._ledger = ledger
        self._reference = reference
        self._history = history
        self._lock = threading.RLock()
        self.allow_overdraft = allow_overdraft
        self.history_start_value = history_start_value

    # -----------------------
    # Holdings
    # -----------------------

    def list_holdings(self) -> List[Holding]:
        return self._holdings.list()

    def get_holding(self, holding_id: str) -> Holding:
        return self._holdings.get(holding_id)

    def search_holdings(self, query: str) -> List[Holding]:
        return self._holdings.search(query)

    def summary(self) -> Dict[str, Any]:
        return self._holdings.summary()

    def add_holding(self, fields: Mapping[str, Any] | HoldingCreate) -> Holding:
        """Record a holding without moving cash (imports, manual corrections)."""
        with self._lock:
            return self._holdings.create(fields)

    def update_holding(
        self,
        holding_id: str,
        fields: Mapping[str, Any] | HoldingCreate | HoldingUpdate,
        *,
        partial: bool = True,
    ) -> Holding:
        with self._lock:
            return self._holdings.update(holding_id, fields, partial=partial)

    def delete_holding(self, holding_id: str) -> bool:
        with self._lock:
            return self._holdings.delete(holding_id)

    # -----------------------
    # Settlement
    # -----------------------

    def settlement_state(self) -> SettlementState:
        return self._ledger.get_state()

    def balance(self) -> Dict[str, Any]:
        state = self._ledger.get_state()
        return {"balance": state.balance, "last_updated": state.last_updated}

    def transactions(self, type: Optional[str] = None, limit: Optional[int] = None) -> List[Transaction]:
        return self._ledger.list_transactions(type=type, limit=limit)

    def transaction(self, transaction_id: str) -> Transaction:
        return self._ledger.get_transaction(transaction_id)

    def ledger_totals(self) -> Dict[str, Any]:
        return self._ledger.totals()

    def _check_funds(self, amount: float) -> None:
        balance = self._ledger.get_balance()
        if not self.allow_overdraft and amount > balance:
            logger.warning("withdrawal_rejected amount=%.2f balance=%.2f", amount, balance)
            raise InsufficientBalanceError(amount, balance)

    def post_transaction(self, fields: Mapping[str, Any] | TransactionCreate) -> Transaction:
        data = parse_model(TransactionCreate, fields)
        description = data.description or DEFAULT_DESCRIPTIONS[data.type]
        with self._lock:
            if data.type == "withdrawal":
                self._check_funds(data.amount)
            return self._ledger.post(data.type, data.amount, description)

    # -----------------------
    # Compound operations
    # -----------------------

    def _compensate(self, op: str, undo: Callable[[], None], cause: BaseException) -> None:
        try:
            undo()
        except Exception as undo_exc:
            logger.exception("compensation_failed op=%s cause=%r", op, cause)
            raise InternalFailure(
                f"{op} failed and could not be rolled back; holdings and settlement may disagree",
                cause=undo_exc,
            ) from undo_exc
        logger.warning("compensation_applied op=%s cause=%r", op, cause)

    @staticmethod
    def _reraise(op: str, exc: Exception) -> None:
        if isinstance(exc, PortfolioError):
            raise exc
        logger.exception("operation_failed op=%s", op)
        raise InternalFailure(f"{op} failed unexpectedly", cause=exc) from exc

    def buy(self, fields: Mapping[str, Any] | HoldingCreate) -> Dict[str, Any]:
        """Add a holding and withdraw its cost (quantity x purchase_price) from settlement."""
        data = parse_model(HoldingCreate, fields)
        cost = data.quantity * data.purchase_price
        description = (
            f"Purchase of {_fmt_qty(data.quantity)} units of {data.symbol} "
            f"at ${data.purchase_price:,.2f} each"
        )

        with self._lock:
            # checked first so the common rejection needs no rollback
            self._check_funds(cost)
            holding = self._holdings.create(data)
            try:
                transaction = self._ledger.post("withdrawal", cost, description)
            except Exception as exc:
                def undo() -> None:
                    if not self._holdings.delete(holding.id):
                        raise RuntimeError(f"holding {holding.id} vanished before rollback")

                self._compensate("buy", undo, exc)
                self._reraise("buy", exc)

        logger.info("holding_bought id=%s symbol=%s cost=%.2f", holding.id, holding.symbol, cost)
        return {"holding": holding, "transaction": transaction, "cost": cost}

    def sell(self, holding_id: str, quantity: Any) -> Dict[str, Any]:
        """
        Sell `quantity` units at the current mark and deposit the proceeds.

        Selling the whole position deletes the holding; anything less
        reduces its quantity.
        """
        req = parse_model(SellRequest, {"quantity": quantity})

        with self._lock:
            before = self._holdings.get(holding_id)
            sell_qty = req.quantity
            if abs(sell_qty - before.quantity) <= QTY_EPSILON:
                sell_qty = before.quantity
            elif sell_qty > before.quantity:
                raise ValidationError.single(
                    "quantity",
                    f"Cannot sell more than you own (available: {_fmt_qty(before.quantity)})",
                )

            proceeds = sell_qty * before.current_price
            closed = sell_qty == before.quantity
            position = self._holdings.position_of(holding_id)

            if closed:
                self._holdings.delete(holding_id)
                after: Optional[Holding] = None
            else:
                after = self._holdings.set_quantity(holding_id, before.quantity - sell_qty)

            description = (
                f"Sale of {_fmt_qty(sell_qty)} units of {before.symbol} "
                f"at ${before.current_price:,.2f} each"
            )
            try:
                transaction = self._ledger.post("deposit", proceeds, description)
            except Exception as exc:
                self._compensate("sell", lambda: self._holdings.restore(before, position), exc)
                self._reraise("sell", exc)

        logger.info(
            "holding_sold id=%s symbol=%s quantity=%s proceeds=%.2f closed=%s",
            holding_id, before.symbol, sell_qty, proceeds, closed,
        )
        return {
            "holding": after,
            "transaction": transaction,
            "proceeds": proceeds,
            "closed": closed,
        }

    # -----------------------
    # Analytics
    # -----------------------

    def dashboard(self) -> Dict[str, Any]:
        return analytics.build_dashboard(
            self._holdings.list(), self._reference, self._history, self.history_start_value
        )

    def historical(self) -> List[Dict[str, Any]]:
        return analytics.historical_series(self._history, self.history_start_value)

    def sector_allocation(self) -> List[Dict[str, Any]]:
        return analytics.sector_allocation(self._holdings.list(), self._reference)

    def type_allocation(self) -> List[Dict[str, Any]]:
        return analytics.type_allocation(self._holdings.list())

    def risk_metrics(self) -> Dict[str, Any]:
        return analytics.risk_metrics(self._holdings.list(), self._reference.risk)

    def income(self) -> Dict[str, Any]:
        return analytics.income_estimate(self._holdings.list(), self._reference)

    # -----------------------
    # Lifecycle
    # -----------------------

    def close(self) -> None:
        with self._lock:
            self._holdings.clear()
        logger.info("portfolio_service_closed")


def build_portfolio_service(settings: Settings, *, seed: Optional[bool] = None) -> PortfolioService:
    """Wire a fresh service from settings. `seed` overrides SEED_DEMO_HOLDINGS."""
    reference = load_reference_data(settings.reference_data_path)
    holdings = HoldingStore()
    ledger = SettlementLedger.open(settings.seed_balance)

    if settings.seed_demo_holdings if seed is None else seed:
        added = seed_holdings(holdings)
        logger.info("demo_holdings_seeded count=%d", added)

    return PortfolioService(
        holdings,
        ledger,
        reference,
        build_provider(settings.history_provider),
        allow_overdraft=settings.allow_overdraft,
        history_start_value=settings.history_start_value,
    )
