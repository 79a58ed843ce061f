import json
import math
import unittest
from datetime import datetime, timedelta, timezone

from schemas.holding import MAX_PRICE, MAX_QUANTITY, MIN_PRICE
from services.errors import NotFoundError, ValidationError
from services.holding_store import HoldingStore


def _ticking_clock(start=datetime(2024, 1, 1, tzinfo=timezone.utc)):
    state = {"now": start}

    def clock():
        state["now"] = state["now"] + timedelta(seconds=1)
        return state["now"]

    return clock


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


class HoldingStoreCrudTests(unittest.TestCase):
    def setUp(self):
        self.store = HoldingStore(clock=_ticking_clock())

    def test_create_assigns_id_and_timestamps(self):
        h = self.store.create(_aapl())
        self.assertTrue(h.id)
        self.assertEqual(h.created_at, h.updated_at)
        self.assertEqual(h.purchase_date.isoformat(), "2023-01-15")
        self.assertEqual(len(self.store), 1)

    def test_create_normalizes_symbol(self):
        h = self.store.create(_aapl(symbol="  aapl "))
        self.assertEqual(h.symbol, "AAPL")

    def test_list_keeps_insertion_order(self):
        symbols = ["MSFT", "AAPL", "BTC"]
        for s in symbols:
            self.store.create(_aapl(symbol=s))
        self.assertEqual([h.symbol for h in self.store.list()], symbols)

    def test_create_rejects_zero_quantity_without_mutation(self):
        with self.assertRaises(ValidationError):
            self.store.create(_aapl(quantity=0))
        self.assertEqual(len(self.store), 0)

    def test_create_rejects_zero_purchase_price_without_mutation(self):
        with self.assertRaises(ValidationError):
            self.store.create(_aapl(purchase_price=0))
        self.assertEqual(self.store.list(), [])

    def test_validation_lists_every_failing_field(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.create(_aapl(symbol="WAYTOOLONGSYMBOL", type="option", current_price=-1, purchase_date="nope"))
        fields = {d["field"] for d in ctx.exception.details}
        self.assertEqual(fields, {"symbol", "type", "current_price", "purchase_date"})

    def test_missing_fields_are_reported(self):
        with self.assertRaises(ValidationError) as ctx:
            self.store.create({"symbol": "AAPL"})
        fields = {d["field"] for d in ctx.exception.details}
        self.assertIn("name", fields)
        self.assertIn("quantity", fields)

    def test_get_unknown_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.store.get("missing")

    def test_returned_holdings_are_copies(self):
        h = self.store.create(_aapl())
        h.quantity = 1
        self.assertEqual(self.store.get(h.id).quantity, 50)

    def test_partial_update_only_touches_given_fields(self):
        h = self.store.create(_aapl())
        updated = self.store.update(h.id, {"quantity": 20})

        before = h.model_dump(exclude={"quantity", "updated_at"})
        after = updated.model_dump(exclude={"quantity", "updated_at"})
        self.assertEqual(before, after)
        self.assertEqual(updated.quantity, 20)
        self.assertGreater(updated.updated_at, h.updated_at)

    def test_partial_update_rejects_null(self):
        h = self.store.create(_aapl())
        with self.assertRaises(ValidationError):
            self.store.update(h.id, {"current_price": None})
        self.assertEqual(self.store.get(h.id).current_price, 175.5)

    def test_full_update_requires_every_field(self):
        h = self.store.create(_aapl())
        with self.assertRaises(ValidationError):
            self.store.update(h.id, {"quantity": 5}, partial=False)

    def test_full_update_replaces_fields(self):
        h = self.store.create(_aapl())
        updated = self.store.update(h.id, _aapl(name="Apple", current_price=200.0), partial=False)
        self.assertEqual(updated.name, "Apple")
        self.assertEqual(updated.current_price, 200.0)
        self.assertEqual(updated.id, h.id)
        self.assertEqual(updated.created_at, h.created_at)

    def test_update_unknown_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.store.update("missing", {"quantity": 1})

    def test_delete(self):
        h = self.store.create(_aapl())
        self.assertTrue(self.store.delete(h.id))
        self.assertFalse(self.store.delete(h.id))
        self.assertEqual(len(self.store), 0)

    def test_set_quantity_must_stay_positive(self):
        h = self.store.create(_aapl())
        with self.assertRaises(ValueError):
            self.store.set_quantity(h.id, 0)

    def test_restore_puts_holding_back_in_place(self):
        a = self.store.create(_aapl(symbol="A"))
        b = self.store.create(_aapl(symbol="B"))
        self.store.create(_aapl(symbol="C"))
        pos = self.store.position_of(b.id)
        self.store.delete(b.id)
        self.store.restore(b, pos)
        self.assertEqual([h.symbol for h in self.store.list()], ["A", "B", "C"])
        self.assertEqual(self.store.get(a.id).symbol, "A")

    def test_create_rejects_values_beyond_upper_bounds(self):
        for overrides in ({"quantity": 1e308, "current_price": 10}, {"current_price": 1e308}, {"purchase_price": 2e9}):
            with self.assertRaises(ValidationError):
                self.store.create(_aapl(**overrides))
        self.assertEqual(len(self.store), 0)

    def test_partial_update_cannot_exceed_upper_bounds(self):
        h = self.store.create(_aapl())
        with self.assertRaises(ValidationError) as ctx:
            self.store.update(h.id, {"quantity": 1e308})
        self.assertEqual(ctx.exception.details[0]["field"], "quantity")
        self.assertEqual(self.store.get(h.id).quantity, 50)

    def test_search_is_case_insensitive(self):
        self.store.create(_aapl())
        self.store.create(_aapl(symbol="BTC", name="Bitcoin", type="crypto"))
        self.assertEqual([h.symbol for h in self.store.search("apple")], ["AAPL"])
        self.assertEqual([h.symbol for h in self.store.search("CRYP")], ["BTC"])
        self.assertEqual(self.store.search("zzz"), [])


class HoldingStoreSummaryTests(unittest.TestCase):
    def setUp(self):
        self.store = HoldingStore()

    def test_empty_summary(self):
        s = self.store.summary()
        self.assertEqual(s["total_value"], 0)
        self.assertEqual(s["total_gain_loss_percent"], 0)
        self.assertEqual(s["top_performers"], [])

    def test_single_holding_gain_loss(self):
        self.store.create(_aapl())
        s = self.store.summary()
        item = s["top_performers"][0]
        self.assertAlmostEqual(item["gain_loss"], 1275.0, places=6)
        self.assertAlmostEqual(item["gain_loss_percent"], 17.0, places=6)
        self.assertAlmostEqual(s["total_value"], 8775.0, places=6)
        self.assertAlmostEqual(s["total_cost"], 7500.0, places=6)
        self.assertEqual(s["asset_allocation"], {"stock": 8775.0})

    def test_total_value_matches_sum(self):
        rows = [
            _aapl(symbol="A", quantity=2.5, current_price=52000.0),
            _aapl(symbol="B", quantity=0.001, current_price=0.37),
            _aapl(symbol="C", quantity=1234.5678, current_price=98.76),
        ]
        for r in rows:
            self.store.create(r)
        expected = sum(r["quantity"] * r["current_price"] for r in rows)
        self.assertAlmostEqual(self.store.summary()["total_value"], expected, delta=1e-6)

    def test_rankings_are_stable_on_ties(self):
        for s in ["A", "B", "C", "D"]:
            self.store.create(_aapl(symbol=s))
        self.store.create(_aapl(symbol="E", current_price=300.0))
        summary = self.store.summary()
        self.assertEqual([h["symbol"] for h in summary["top_performers"]], ["E", "A", "B"])
        self.assertEqual([h["symbol"] for h in summary["worst_performers"]], ["A", "B", "C"])

    def test_summary_at_upper_bounds_is_json_safe(self):
        self.store.create(_aapl(quantity=MAX_QUANTITY, purchase_price=MIN_PRICE, current_price=MAX_PRICE))
        self.store.create(_aapl(symbol="B", quantity=MAX_QUANTITY, current_price=MAX_PRICE))
        summary = self.store.summary()
        self.assertTrue(math.isfinite(summary["total_value"]))
        json.dumps(summary, allow_nan=False)

    def test_summary_does_not_reorder_store(self):
        self.store.create(_aapl(symbol="LOW", current_price=100.0))
        self.store.create(_aapl(symbol="HIGH", current_price=300.0))
        self.store.summary()
        self.assertEqual([h.symbol for h in self.store.list()], ["LOW", "HIGH"])


if __name__ == "__main__":
    unittest.main()
