"""Portfolio-level pipeline: ledger replay, wash-sale scan, yearly rollup.

Every call recomputes from the transaction log it is given. Nothing is cached
between calls, so callers that want caching wrap the engine.
"""

import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal

from taxlots.engines.aggregator import TaxReportAggregator
from taxlots.engines.ledger import LotLedger
from taxlots.engines.sale_resolver import average_cost_basis, round_cents
from taxlots.engines.wash_sale import WashSaleDetector
from taxlots.models.enums import AccountingMethod
from taxlots.models.lots import LedgerResult, LotSelection, SaleAllocation, WashSaleFlag
from taxlots.models.reports import PositionSummary, TaxYearReport
from taxlots.models.transaction import Transaction
from taxlots.normalization.events import TransactionLogNormalizer

logger = logging.getLogger(__name__)


class TaxLotEngine:
    """Runs the lot ledger, wash-sale detector and aggregator over a multi-ticker log."""

    def __init__(self) -> None:
        self.ledger = LotLedger()
        self.detector = WashSaleDetector()
        self.aggregator = TaxReportAggregator()
        self.normalizer = TransactionLogNormalizer()

    def process_ticker(
        self,
        transactions: Sequence[Transaction],
        ticker: str,
        method: AccountingMethod = AccountingMethod.FIFO,
        selections: Mapping[str, list[LotSelection]] | None = None,
    ) -> tuple[LedgerResult, list[WashSaleFlag]]:
        result = self.ledger.replay(transactions, ticker, method, selections)
        flags = self.detector.detect(ticker, result.allocations, transactions)
        return result, flags

    def process_all(
        self,
        transactions: Sequence[Transaction],
        method: AccountingMethod = AccountingMethod.FIFO,
        selections: Mapping[str, list[LotSelection]] | None = None,
    ) -> dict[str, tuple[LedgerResult, list[WashSaleFlag]]]:
        """Process every ticker in order of first appearance.

        A failure for any ticker propagates; no partial results are returned.
        """
        return {
            ticker: self.process_ticker(transactions, ticker, method, selections)
            for ticker in self.normalizer.tickers(transactions)
        }

    def tax_report(
        self,
        transactions: Sequence[Transaction],
        year: int,
        method: AccountingMethod = AccountingMethod.FIFO,
        selections: Mapping[str, list[LotSelection]] | None = None,
    ) -> TaxYearReport:
        allocations: list[SaleAllocation] = []
        flags: list[WashSaleFlag] = []
        for result, ticker_flags in self.process_all(transactions, method, selections).values():
            allocations.extend(result.allocations)
            flags.extend(ticker_flags)
        return self.aggregator.aggregate(allocations, transactions, flags, year)

    def position(
        self,
        transactions: Sequence[Transaction],
        ticker: str,
        method: AccountingMethod = AccountingMethod.FIFO,
        current_price: Decimal | None = None,
        selections: Mapping[str, list[LotSelection]] | None = None,
    ) -> PositionSummary:
        """Open-lot summary for one ticker; unrealized gain needs ``current_price``."""
        result = self.ledger.replay(transactions, ticker, method, selections)
        total_shares = result.open_shares
        total_cost = round_cents(sum((lot.remaining_cost_basis for lot in result.open_lots), Decimal("0")))
        unrealized = None
        if current_price is not None:
            unrealized = round_cents(total_shares * current_price) - total_cost
        return PositionSummary(
            ticker=result.ticker,
            method=method,
            total_shares=total_shares,
            total_cost_basis=total_cost,
            average_cost_basis=average_cost_basis(result.open_lots),
            open_lots=result.open_lots,
            realized_gain=result.realized_gain,
            current_price=current_price,
            unrealized_gain=unrealized,
        )
