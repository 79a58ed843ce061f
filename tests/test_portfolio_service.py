import unittest
from dataclasses import replace
from unittest.mock import patch

from config.settings import Settings
from services.errors import (
    InsufficientBalanceError,
    InternalFailure,
    NotFoundError,
    ValidationError,
)
from services.holding_store import HoldingStore
from services.portfolio_service import PortfolioService, build_portfolio_service
from services.reference_data import ReferenceData
from services.seed import DEMO_HOLDINGS
from services.settlement_ledger import SettlementLedger
from services.timeseries import ConstantGrowthProvider


def _aapl(**overrides):
    row = {
        "symbol": "AAPL",
        "name": "Apple Inc.",
        "type": "stock",
        "quantity": 50,
        "purchase_price": 150.0,
        "current_price": 175.5,
        "purchase_date": "2023-01-15",
    }
    row.update(overrides)
    return row


def _service(balance=25000.0, **kwargs):
    holdings = HoldingStore()
    ledger = SettlementLedger.open(balance)
    service = PortfolioService(holdings, ledger, ReferenceData(), ConstantGrowthProvider(), **kwargs)
    return service, holdings, ledger


class BuyTests(unittest.TestCase):
    def setUp(self):
        self.service, self.holdings, self.ledger = _service()

    def test_buy_deducts_cost(self):
        result = self.service.buy(_aapl(quantity=10))
        self.assertEqual(result["cost"], 1500.0)
        self.assertEqual(self.ledger.get_balance(), 23500.0)
        self.assertEqual(len(self.holdings), 1)
        txn = result["transaction"]
        self.assertEqual(txn.type, "withdrawal")
        self.assertEqual(txn.description, "Purchase of 10 units of AAPL at $150.00 each")
        self.assertEqual(result["holding"].id, self.holdings.list()[0].id)

    def test_large_quantity_description_is_not_abbreviated(self):
        result = self.service.buy(_aapl(quantity=1234567, purchase_price=0.01))
        self.assertEqual(result["transaction"].description, "Purchase of 1,234,567 units of AAPL at $0.01 each")

    def test_fractional_quantity_description(self):
        result = self.service.buy(_aapl(symbol="BTC", quantity=2.5, purchase_price=100.0))
        self.assertEqual(result["transaction"].description, "Purchase of 2.5 units of BTC at $100.00 each")

    def test_buy_with_insufficient_balance_changes_nothing(self):
        with self.assertRaises(InsufficientBalanceError):
            self.service.buy(_aapl(quantity=1000))
        self.assertEqual(len(self.holdings), 0)
        self.assertEqual(self.ledger.get_balance(), 25000.0)
        self.assertEqual(len(self.ledger), 1)

    def test_buy_validation_error_changes_nothing(self):
        with self.assertRaises(ValidationError):
            self.service.buy(_aapl(quantity=0))
        self.assertEqual(len(self.holdings), 0)
        self.assertEqual(len(self.ledger), 1)

    def test_buy_exact_balance_is_allowed(self):
        service, _, ledger = _service(balance=1500.0)
        service.buy(_aapl(quantity=10))
        self.assertEqual(ledger.get_balance(), 0.0)

    def test_buy_rolls_back_holding_when_posting_fails(self):
        with patch.object(self.ledger, "post", side_effect=RuntimeError("ledger down")):
            with self.assertRaises(InternalFailure) as ctx:
                self.service.buy(_aapl(quantity=10))
        self.assertIsInstance(ctx.exception.cause, RuntimeError)
        self.assertEqual(len(self.holdings), 0)
        self.assertEqual(self.ledger.get_balance(), 25000.0)

    def test_buy_keeps_portfolio_errors_from_ledger(self):
        err = ValidationError.single("amount", "Amount must be greater than 0")
        with patch.object(self.ledger, "post", side_effect=err):
            with self.assertRaises(ValidationError):
                self.service.buy(_aapl(quantity=10))
        self.assertEqual(len(self.holdings), 0)

    def test_failed_rollback_is_reported(self):
        with patch.object(self.ledger, "post", side_effect=RuntimeError("ledger down")), \
                patch.object(self.holdings, "delete", return_value=False):
            with self.assertRaises(InternalFailure) as ctx:
                self.service.buy(_aapl(quantity=10))
        self.assertIn("could not be rolled back", ctx.exception.message)

    def test_overdraft_mode_allows_negative_balance(self):
        service, _, ledger = _service(balance=100.0, allow_overdraft=True)
        service.buy(_aapl(quantity=10))
        self.assertEqual(ledger.get_balance(), -1400.0)


class SellTests(unittest.TestCase):
    def setUp(self):
        self.service, self.holdings, self.ledger = _service()
        self.holding = self.service.add_holding(_aapl())

    def test_add_holding_moves_no_cash(self):
        self.assertEqual(self.ledger.get_balance(), 25000.0)
        self.assertEqual(len(self.ledger), 1)

    def test_full_sale_removes_holding_and_deposits_proceeds(self):
        result = self.service.sell(self.holding.id, 50)
        self.assertTrue(result["closed"])
        self.assertIsNone(result["holding"])
        self.assertAlmostEqual(result["proceeds"], 8775.0)
        self.assertAlmostEqual(self.ledger.get_balance(), 33775.0)
        self.assertFalse(self.holdings.exists(self.holding.id))
        self.assertEqual(result["transaction"].description, "Sale of 50 units of AAPL at $175.50 each")

    def test_sale_within_tolerance_closes_position(self):
        result = self.service.sell(self.holding.id, 50 + 1e-12)
        self.assertTrue(result["closed"])
        self.assertAlmostEqual(result["proceeds"], 8775.0)

    def test_partial_sale_reduces_quantity(self):
        result = self.service.sell(self.holding.id, 20)
        self.assertFalse(result["closed"])
        self.assertEqual(result["holding"].quantity, 30)
        self.assertEqual(self.holdings.get(self.holding.id).quantity, 30)
        self.assertAlmostEqual(self.ledger.get_balance(), 25000.0 + 20 * 175.5)

    def test_oversell_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.sell(self.holding.id, 60)
        self.assertIn("available: 50", ctx.exception.message)
        self.assertEqual(self.holdings.get(self.holding.id).quantity, 50)
        self.assertEqual(len(self.ledger), 1)

    def test_oversell_message_shows_full_quantity(self):
        big = self.service.add_holding(_aapl(symbol="PENNY", quantity=1234567, current_price=0.02))
        with self.assertRaises(ValidationError) as ctx:
            self.service.sell(big.id, 2000000)
        self.assertIn("available: 1,234,567", ctx.exception.message)

    def test_non_positive_quantity_is_rejected(self):
        for bad in (0, -1, "abc"):
            with self.assertRaises(ValidationError):
                self.service.sell(self.holding.id, bad)

    def test_sell_unknown_holding(self):
        with self.assertRaises(NotFoundError):
            self.service.sell("missing", 1)

    def test_full_sale_restored_when_posting_fails(self):
        other = self.service.add_holding(_aapl(symbol="MSFT"))
        with patch.object(self.ledger, "post", side_effect=RuntimeError("ledger down")):
            with self.assertRaises(InternalFailure):
                self.service.sell(self.holding.id, 50)
        self.assertEqual([h.id for h in self.holdings.list()], [self.holding.id, other.id])
        self.assertEqual(self.holdings.get(self.holding.id).quantity, 50)
        self.assertEqual(self.ledger.get_balance(), 25000.0)

    def test_partial_sale_restored_when_posting_fails(self):
        with patch.object(self.ledger, "post", side_effect=RuntimeError("ledger down")):
            with self.assertRaises(InternalFailure):
                self.service.sell(self.holding.id, 10)
        self.assertEqual(self.holdings.get(self.holding.id).quantity, 50)


class CashTransactionTests(unittest.TestCase):
    def test_withdrawal_over_balance_is_rejected(self):
        service, _, ledger = _service(balance=50.0)
        with self.assertRaises(InsufficientBalanceError) as ctx:
            service.post_transaction({"type": "withdrawal", "amount": 100.0})
        self.assertEqual(ctx.exception.message, "Cannot withdraw $100.00. Current balance: $50.00")
        self.assertEqual(ledger.get_balance(), 50.0)
        self.assertEqual(len(ledger), 1)

    def test_overdraft_mode_allows_withdrawal(self):
        service, _, ledger = _service(balance=50.0, allow_overdraft=True)
        service.post_transaction({"type": "withdrawal", "amount": 100.0})
        self.assertEqual(ledger.get_balance(), -50.0)

    def test_default_descriptions(self):
        service, _, _ = _service()
        self.assertEqual(service.post_transaction({"type": "deposit", "amount": 10}).description, "Cash deposit")
        txn = service.post_transaction({"type": "withdrawal", "amount": 10, "description": "   "})
        self.assertEqual(txn.description, "Cash withdrawal")

    def test_custom_description_is_trimmed(self):
        service, _, _ = _service()
        txn = service.post_transaction({"type": "deposit", "amount": 10, "description": "  paycheck "})
        self.assertEqual(txn.description, "paycheck")

    def test_invalid_transaction_lists_fields(self):
        service, _, _ = _service()
        with self.assertRaises(ValidationError) as ctx:
            service.post_transaction({"type": "transfer", "amount": 0})
        self.assertEqual({d["field"] for d in ctx.exception.details}, {"type", "amount"})

    def test_balance_view(self):
        service, _, _ = _service()
        view = service.balance()
        self.assertEqual(view["balance"], 25000.0)
        self.assertIn("last_updated", view)


class BuildServiceTests(unittest.TestCase):
    def test_build_with_demo_holdings(self):
        settings = replace(Settings(), seed_balance=1000.0, history_provider="constant")
        service = build_portfolio_service(settings, seed=True)
        self.assertEqual(len(service.list_holdings()), len(DEMO_HOLDINGS))
        self.assertEqual(service.balance()["balance"], 1000.0)
        self.assertEqual(service.sector_allocation()[0]["name"], "Technology")

    def test_build_without_demo_holdings(self):
        service = build_portfolio_service(replace(Settings(), seed_balance=0.0), seed=False)
        self.assertEqual(service.list_holdings(), [])
        self.assertEqual(service.transactions(), [])

    def test_close_clears_holdings(self):
        service = build_portfolio_service(Settings(), seed=True)
        service.close()
        self.assertEqual(service.list_holdings(), [])


if __name__ == "__main__":
    unittest.main()
