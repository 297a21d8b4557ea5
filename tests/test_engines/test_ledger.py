"""Tests for the lot ledger replay."""

from datetime import date
from decimal import Decimal

import pytest

from taxlots.engines.ledger import LotLedger
from taxlots.engines.sale_resolver import average_cost_basis
from taxlots.exceptions import (
    InsufficientLotsError,
    InvalidDateOrderingError,
    MalformedTransactionError,
)
from taxlots.models.enums import AccountingMethod, TransactionKind
from taxlots.models.lots import LotSelection
from taxlots.models.transaction import Transaction


def _buy(txn_id: str, day: date, shares: str, price: str, ticker: str = "ACME") -> Transaction:
    return Transaction(
        id=txn_id,
        ticker=ticker,
        kind=TransactionKind.BUY,
        date=day,
        shares=Decimal(shares),
        price_per_share=Decimal(price),
        amount=-Decimal(shares) * Decimal(price),
    )


def _sell(txn_id: str, day: date, shares: str, price: str, ticker: str = "ACME") -> Transaction:
    return Transaction(
        id=txn_id,
        ticker=ticker,
        kind=TransactionKind.SELL,
        date=day,
        shares=Decimal(shares),
        price_per_share=Decimal(price),
        amount=Decimal(shares) * Decimal(price),
    )


@pytest.fixture
def log() -> list[Transaction]:
    return [
        _buy("b1", date(2023, 1, 5), "100", "10"),
        _buy("b2", date(2023, 3, 5), "50", "20"),
        _sell("s1", date(2023, 6, 1), "120", "25"),
        _buy("b3", date(2023, 7, 1), "40", "30"),
        _sell("s2", date(2023, 9, 1), "50", "35"),
    ]


class TestReplay:
    def setup_method(self):
        self.ledger = LotLedger()

    def test_fifo_replay(self, log):
        result = self.ledger.replay(log, "ACME")
        assert [lot.lot_id for lot in result.open_lots] == ["b3"]
        assert result.open_lots[0].remaining_shares == Decimal("20")
        assert [a.sale_transaction_id for a in result.allocations] == ["s1", "s2"]
        # s1: 100 @ 10 + 20 @ 20 = 1400 basis, 3000 proceeds
        assert result.allocations[0].realized_gain == Decimal("1600.00")
        # s2: 30 @ 20 + 20 @ 30 = 1200 basis, 1750 proceeds
        assert result.allocations[1].realized_gain == Decimal("550.00")

    def test_lot_ids_follow_transaction_ids(self, log):
        lot = LotLedger.build_lot(log[0])
        assert lot.lot_id == "b1"
        assert lot.original_shares == lot.remaining_shares == Decimal("100")
        assert lot.cost_basis_per_share == Decimal("10")

    def test_share_conservation_at_every_step(self, log):
        for end in range(1, len(log) + 1):
            prefix = log[:end]
            result = self.ledger.replay(prefix, "ACME")
            bought = sum(t.shares for t in prefix if t.kind == TransactionKind.BUY)
            sold = sum(t.shares for t in prefix if t.kind == TransactionKind.SELL)
            assert result.open_shares == bought - sold

    @pytest.mark.parametrize("method", list(AccountingMethod.__members__.values()))
    def test_exact_fill(self, log, method):
        selections = {
            "s1": [LotSelection(lot_id="b2"), LotSelection(lot_id="b1")],
            "s2": [LotSelection(lot_id="b3"), LotSelection(lot_id="b1")],
        }
        result = self.ledger.replay(log, "ACME", method, selections)
        by_id = {t.id: t for t in log}
        for allocation in result.allocations:
            assert allocation.shares_allocated == by_id[allocation.sale_transaction_id].shares

    def test_idempotent(self, log):
        first = self.ledger.replay(log, "ACME", AccountingMethod.LIFO)
        second = self.ledger.replay(log, "ACME", AccountingMethod.LIFO)
        assert first == second

    def test_other_tickers_ignored(self, log):
        mixed = [_buy("x1", date(2023, 1, 1), "999", "1", ticker="OTHER")] + log
        result = self.ledger.replay(mixed, "acme")
        assert result.ticker == "ACME"
        assert all(lot.ticker == "ACME" for lot in result.open_lots)

    def test_non_lot_kinds_do_not_touch_lots(self):
        log = [
            _buy("b1", date(2023, 1, 5), "100", "10"),
            Transaction(id="d1", ticker="ACME", kind=TransactionKind.DIVIDEND,
                        date=date(2023, 2, 1), amount=Decimal("25")),
            Transaction(id="sp1", ticker="ACME", kind=TransactionKind.SPLIT,
                        date=date(2023, 3, 1), amount=Decimal("0"), split_ratio="2:1"),
            Transaction(id="f1", ticker="ACME", kind=TransactionKind.FEE,
                        date=date(2023, 4, 1), amount=Decimal("-5"), fees=Decimal("5")),
            Transaction(id="m1", ticker="ACME", kind=TransactionKind.MERGER,
                        date=date(2023, 5, 1), amount=Decimal("0"), new_ticker="NEWCO"),
        ]
        result = self.ledger.replay(log, "ACME")
        assert len(result.open_lots) == 1
        assert result.open_lots[0].remaining_shares == Decimal("100")
        assert result.open_lots[0].cost_basis_per_share == Decimal("10")
        assert result.allocations == []

    def test_rights_open_a_lot(self):
        log = [
            Transaction(id="r1", ticker="ACME", kind=TransactionKind.RIGHTS, date=date(2023, 1, 5),
                        shares=Decimal("10"), price_per_share=Decimal("2"), amount=Decimal("-20")),
        ]
        result = self.ledger.replay(log, "ACME")
        assert [lot.lot_id for lot in result.open_lots] == ["r1"]

    def test_specific_lot_selections(self, log):
        selections = {
            "s1": [LotSelection(lot_id="b2", shares=Decimal("50")), LotSelection(lot_id="b1", shares=Decimal("70"))],
            "s2": [LotSelection(lot_id="b3", shares=Decimal("40")), LotSelection(lot_id="b1", shares=Decimal("10"))],
        }
        result = self.ledger.replay(log, "ACME", AccountingMethod.SPECIFIC_LOT, selections)
        assert [lot.lot_id for lot in result.open_lots] == ["b1"]
        assert result.open_lots[0].remaining_shares == Decimal("20")

    def test_average_cost_keeps_blended_basis(self):
        log = [
            _buy("b1", date(2023, 1, 5), "100", "10"),
            _buy("b2", date(2023, 2, 5), "300", "30"),
            _sell("s1", date(2023, 6, 1), "200", "40"),
        ]
        result = self.ledger.replay(log, "ACME", AccountingMethod.AVERAGE_COST)
        assert [lot.remaining_shares for lot in result.open_lots] == [Decimal("50"), Decimal("150")]
        assert average_cost_basis(result.open_lots) == Decimal("25")
        assert result.allocations[0].total_cost_basis == Decimal("5000.00")


class TestReplayErrors:
    def setup_method(self):
        self.ledger = LotLedger()

    def test_insufficient_lots(self):
        log = [
            _buy("b1", date(2023, 1, 5), "100", "10"),
            _sell("s1", date(2023, 6, 1), "101", "25"),
        ]
        with pytest.raises(InsufficientLotsError) as exc:
            self.ledger.replay(log, "ACME")
        assert exc.value.transaction_id == "s1"
        assert exc.value.shortfall == Decimal("1")

    def test_sell_before_buy_on_same_day_fails(self):
        log = [
            _sell("s1", date(2023, 1, 5), "10", "25"),
            _buy("b1", date(2023, 1, 5), "100", "10"),
        ]
        with pytest.raises(InsufficientLotsError):
            self.ledger.replay(log, "ACME")

    def test_buy_then_sell_on_same_day(self):
        log = [
            _buy("b1", date(2023, 1, 5), "100", "10"),
            _sell("s1", date(2023, 1, 5), "10", "25"),
        ]
        result = self.ledger.replay(log, "ACME")
        assert result.open_shares == Decimal("90")

    def test_unsorted_input(self):
        log = [
            _buy("b1", date(2023, 3, 5), "100", "10"),
            _buy("b2", date(2023, 1, 5), "100", "10"),
        ]
        with pytest.raises(InvalidDateOrderingError) as exc:
            self.ledger.replay(log, "ACME")
        assert exc.value.transaction_id == "b2"

    def test_duplicate_ids(self):
        log = [
            _buy("b1", date(2023, 1, 5), "100", "10"),
            _buy("b1", date(2023, 2, 5), "100", "10"),
        ]
        with pytest.raises(MalformedTransactionError):
            self.ledger.replay(log, "ACME")
