"""Yearly rollup of realized gains, income, and wash-sale flags."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from taxlots.engines.sale_resolver import round_cents
from taxlots.models.enums import HoldingPeriod, TransactionKind
from taxlots.models.lots import SaleAllocation, WashSaleFlag
from taxlots.models.reports import TaxYearReport
from taxlots.models.transaction import Transaction

logger = logging.getLogger(__name__)


class TaxReportAggregator:
    """Buckets realized gains by holding period and sums income for a tax year."""

    def aggregate(
        self,
        allocations: Iterable[SaleAllocation],
        dividend_transactions: Iterable[Transaction],
        wash_flags: Iterable[WashSaleFlag],
        year: int,
    ) -> TaxYearReport:
        """Build the TaxYearReport for ``year``.

        Sales are selected by sale date. Each lot consumption is classified on
        its own acquisition date, so one sale can feed both buckets. Dividend
        transactions are summed into ``dividend_income``; interest transactions
        in the same iterable go to ``interest_income``; other kinds are ignored.
        Wash-sale flags are filtered to the year and listed, not netted.
        """
        short_term = Decimal("0")
        long_term = Decimal("0")
        sale_count = 0
        for allocation in allocations:
            if allocation.sale_date.year != year:
                continue
            sale_count += 1
            split = self.split_gain(allocation)
            short_term += split[HoldingPeriod.SHORT_TERM]
            long_term += split[HoldingPeriod.LONG_TERM]

        dividends = Decimal("0")
        interest = Decimal("0")
        for txn in dividend_transactions:
            if txn.date.year != year:
                continue
            if txn.kind == TransactionKind.DIVIDEND:
                dividends += txn.amount
            elif txn.kind == TransactionKind.INTEREST:
                interest += txn.amount

        flags = [flag for flag in wash_flags if flag.sale_date.year == year]
        logger.info(
            "Tax year %d: %d sale(s), short-term %s, long-term %s, %d wash sale flag(s)",
            year, sale_count, short_term, long_term, len(flags),
        )
        return TaxYearReport(
            tax_year=year,
            short_term_gain=short_term,
            long_term_gain=long_term,
            total_gain=short_term + long_term,
            dividend_income=dividends,
            interest_income=interest,
            sale_count=sale_count,
            wash_sale_flags=flags,
        )

    @staticmethod
    def split_gain(allocation: SaleAllocation) -> dict[HoldingPeriod, Decimal]:
        """Split a sale's realized gain into short- and long-term parts.

        The parts always add up to ``allocation.realized_gain``; the long-term
        part absorbs any cent left over from rounding.
        """
        split = {HoldingPeriod.SHORT_TERM: Decimal("0"), HoldingPeriod.LONG_TERM: Decimal("0")}
        periods = {c.holding_period for c in allocation.consumptions}
        if len(periods) == 1:
            split[periods.pop()] = allocation.realized_gain
            return split

        short = [c for c in allocation.consumptions if c.holding_period == HoldingPeriod.SHORT_TERM]
        short_shares = sum((c.shares_taken for c in short), Decimal("0"))
        short_proceeds = round_cents(short_shares * allocation.sale_price)
        short_basis = round_cents(sum((c.cost_basis for c in short), Decimal("0")))
        split[HoldingPeriod.SHORT_TERM] = short_proceeds - short_basis
        split[HoldingPeriod.LONG_TERM] = allocation.realized_gain - split[HoldingPeriod.SHORT_TERM]
        return split
