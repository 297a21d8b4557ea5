"""Tests for Form 8949 line generation and rendering."""

from datetime import date
from decimal import Decimal

from taxlots.engines.ledger import LotLedger
from taxlots.engines.wash_sale import WashSaleDetector
from taxlots.models.enums import AdjustmentCode, Form8949Category, TransactionKind
from taxlots.models.transaction import Transaction
from taxlots.reports.form8949 import Form8949Generator


def _trade(txn_id, kind, day, shares, price):
    gross = Decimal(shares) * Decimal(price)
    return Transaction(
        id=txn_id,
        ticker="ACME",
        kind=kind,
        date=day,
        shares=Decimal(shares),
        price_per_share=Decimal(price),
        amount=gross if kind == TransactionKind.SELL else -gross,
    )


class TestForm8949Generator:
    def setup_method(self):
        self.generator = Form8949Generator()

    def test_mixed_sale_split_into_categories(self):
        log = [
            _trade("b1", TransactionKind.BUY, date(2022, 1, 3), "10", "100"),
            _trade("b2", TransactionKind.BUY, date(2023, 6, 1), "10", "150"),
            _trade("s1", TransactionKind.SELL, date(2023, 12, 1), "15", "200"),
        ]
        allocations = LotLedger().replay(log, "ACME").allocations
        long_line, short_line = self.generator.generate_lines(allocations)

        assert long_line.category == Form8949Category.D
        assert long_line.description == "10 sh ACME"
        assert long_line.proceeds == Decimal("2000.00")
        assert long_line.gain_loss == Decimal("1000.00")
        assert short_line.category == Form8949Category.A
        assert short_line.description == "5 sh ACME"
        assert short_line.gain_loss == Decimal("250.00")
        assert long_line.adjustment_code == AdjustmentCode.NONE

    def test_wash_sale_adjustment(self, wash_sale_log):
        allocations = LotLedger().replay(wash_sale_log, "AAPL").allocations
        flags = WashSaleDetector().detect("AAPL", allocations, wash_sale_log)

        (line,) = self.generator.generate_lines(allocations, flags)

        assert line.adjustment_code == AdjustmentCode.W
        assert line.adjustment_amount == Decimal("5000.00")
        assert line.gain_loss == Decimal("0.00")

    def test_render(self, wash_sale_log):
        allocations = LotLedger().replay(wash_sale_log, "AAPL").allocations
        flags = WashSaleDetector().detect("AAPL", allocations, wash_sale_log)
        output = self.generator.render(self.generator.generate_lines(allocations, flags))

        assert "FORM 8949" in output
        assert "Part I" in output
        assert "100 sh AAPL" in output
        assert "5,000.00" in output
        assert "(no transactions)" in output

    def test_render_empty(self):
        output = self.generator.render([])
        assert output.count("(no transactions)") == 2
