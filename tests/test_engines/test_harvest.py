"""Tests for tax-loss harvesting suggestions."""

from datetime import date
from decimal import Decimal

from taxlots.engines.harvest import HarvestAdvisor
from taxlots.engines.portfolio import TaxLotEngine
from taxlots.models.enums import Priority, TransactionKind
from taxlots.models.transaction import Transaction


def _buy(txn_id, ticker, day, shares, price):
    return Transaction(
        id=txn_id,
        ticker=ticker,
        kind=TransactionKind.BUY,
        date=day,
        shares=Decimal(shares),
        price_per_share=Decimal(price),
        amount=-Decimal(shares) * Decimal(price),
    )


class TestFindOpportunities:
    def setup_method(self):
        self.engine = TaxLotEngine()
        self.advisor = HarvestAdvisor()
        self.log = [
            _buy("aapl-1", "AAPL", date(2024, 1, 2), "100", "150"),
            _buy("msft-1", "MSFT", date(2024, 2, 20), "10", "400"),
            _buy("ko-1", "KO", date(2024, 1, 5), "100", "60"),
        ]
        self.prices = {"AAPL": Decimal("90"), "MSFT": Decimal("250"), "KO": Decimal("55")}

    def _suggest(self, as_of=date(2024, 3, 1)):
        positions = [
            self.engine.position(self.log, ticker, current_price=price)
            for ticker, price in self.prices.items()
        ]
        return self.advisor.find_opportunities(positions, self.log, as_of)

    def test_large_loss_is_high_priority(self):
        aapl = next(s for s in self._suggest() if s.ticker == "AAPL")
        assert aapl.priority == Priority.HIGH
        assert aapl.estimated_savings == Decimal("1440.00")
        assert aapl.warnings == []

    def test_medium_loss_with_recent_purchase_warning(self):
        msft = next(s for s in self._suggest() if s.ticker == "MSFT")
        assert msft.priority == Priority.MEDIUM
        assert msft.estimated_savings == Decimal("360.00")
        assert len(msft.warnings) == 1
        assert "2024-02-20" in msft.warnings[0]

    def test_small_loss_not_suggested(self):
        assert "KO" not in {s.ticker for s in self._suggest()}

    def test_sorted_by_priority(self):
        assert [s.priority for s in self._suggest()] == [Priority.HIGH, Priority.MEDIUM]

    def test_unpriced_position_skipped(self):
        position = self.engine.position(self.log, "AAPL")
        assert self.advisor.find_opportunities([position], self.log, date(2024, 3, 1)) == []

    def test_long_term_portion_in_description(self):
        aapl = next(s for s in self._suggest(as_of=date(2025, 3, 1)) if s.ticker == "AAPL")
        assert "$6,000.00 long-term" in aapl.description


class TestWashSaleWarnings:
    def test_negative_savings(self, wash_sale_log):
        _, flags = TaxLotEngine().process_ticker(wash_sale_log, "AAPL")
        suggestions = HarvestAdvisor().wash_sale_warnings(flags)
        assert len(suggestions) == 1
        warning = suggestions[0]
        assert warning.priority == Priority.HIGH
        assert warning.estimated_savings == Decimal("-1200.00")
        assert "$5,000.00" in warning.description

    def test_no_flags(self):
        assert HarvestAdvisor().wash_sale_warnings([]) == []
