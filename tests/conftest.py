"""Shared test fixtures for the tax-lot engine."""

from datetime import date
from decimal import Decimal

import pytest

from taxlots.models.enums import TransactionKind
from taxlots.models.lots import Lot
from taxlots.models.transaction import Transaction


@pytest.fixture
def wash_sale_log() -> list[Transaction]:
    """Buy 100 AAPL at $150, sell at $100 for a $5,000 loss, rebuy 14 days later at $110."""
    return [
        Transaction(
            id="aapl-buy-1",
            ticker="AAPL",
            kind=TransactionKind.BUY,
            date=date(2024, 1, 1),
            shares=Decimal("100"),
            price_per_share=Decimal("150"),
            amount=Decimal("-15000"),
        ),
        Transaction(
            id="aapl-sell-1",
            ticker="AAPL",
            kind=TransactionKind.SELL,
            date=date(2024, 6, 1),
            shares=Decimal("100"),
            price_per_share=Decimal("100"),
            amount=Decimal("10000"),
        ),
        Transaction(
            id="aapl-buy-2",
            ticker="AAPL",
            kind=TransactionKind.BUY,
            date=date(2024, 6, 15),
            shares=Decimal("100"),
            price_per_share=Decimal("110"),
            amount=Decimal("-11000"),
        ),
    ]


@pytest.fixture
def three_lots() -> list[Lot]:
    """Lots acquired d1 < d2 < d3 at $10, $20, $30."""
    return [
        Lot(
            lot_id=f"lot-{i}",
            ticker="ACME",
            acquisition_date=acquired,
            original_shares=Decimal("100"),
            cost_basis_per_share=basis,
            remaining_shares=Decimal("100"),
            source_transaction_id=f"lot-{i}",
        )
        for i, (acquired, basis) in enumerate(
            [
                (date(2023, 1, 10), Decimal("10")),
                (date(2023, 4, 10), Decimal("20")),
                (date(2023, 7, 10), Decimal("30")),
            ],
            start=1,
        )
    ]
