"""Tax-loss harvesting suggestions and wash-sale warnings."""

from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal

from taxlots.engines.sale_resolver import LONG_TERM_THRESHOLD_DAYS, round_cents
from taxlots.engines.wash_sale import WASH_SALE_WINDOW_DAYS
from taxlots.models.enums import Priority, TransactionKind
from taxlots.models.lots import WashSaleFlag
from taxlots.models.reports import HarvestSuggestion, PositionSummary
from taxlots.models.transaction import Transaction

DEFAULT_TAX_RATE = Decimal("0.24")
HARVEST_THRESHOLD = Decimal("1000")
HIGH_PRIORITY_LOSS = Decimal("5000")

_PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class HarvestAdvisor:
    """Turns positions and wash-sale flags into advisory suggestions."""

    def find_opportunities(
        self,
        positions: Iterable[PositionSummary],
        transactions: Iterable[Transaction],
        as_of: date,
        tax_rate: Decimal = DEFAULT_TAX_RATE,
        threshold: Decimal = HARVEST_THRESHOLD,
    ) -> list[HarvestSuggestion]:
        """One suggestion per priced position whose unrealized loss exceeds ``threshold``."""
        recent_buys: dict[str, list[date]] = {}
        for txn in transactions:
            if txn.kind != TransactionKind.BUY:
                continue
            days_ago = (as_of - txn.date).days
            if 0 < days_ago <= WASH_SALE_WINDOW_DAYS:
                recent_buys.setdefault(txn.ticker, []).append(txn.date)

        suggestions: list[HarvestSuggestion] = []
        for position in positions:
            if position.unrealized_gain is None or position.current_price is None:
                continue
            loss = -position.unrealized_gain
            if loss <= threshold:
                continue

            long_term_loss = Decimal("0")
            for lot in position.open_lots:
                lot_gain = (position.current_price - lot.cost_basis_per_share) * lot.remaining_shares
                if lot_gain < 0 and (as_of - lot.acquisition_date).days > LONG_TERM_THRESHOLD_DAYS:
                    long_term_loss -= lot_gain
            long_term_loss = round_cents(long_term_loss)

            warnings: list[str] = []
            for bought in recent_buys.get(position.ticker, []):
                clear_on = bought + timedelta(days=WASH_SALE_WINDOW_DAYS + 1)
                warnings.append(
                    f"Bought {position.ticker} on {bought}; a loss sale before {clear_on} "
                    "would be a wash sale"
                )

            suggestions.append(HarvestSuggestion(
                ticker=position.ticker,
                title=f"Tax-Loss Harvest: {position.ticker}",
                priority=Priority.HIGH if loss > HIGH_PRIORITY_LOSS else Priority.MEDIUM,
                description=(
                    f"Realize ${loss:,.2f} unrealized loss on {position.total_shares} shares "
                    f"(${long_term_loss:,.2f} long-term) to offset gains."
                ),
                estimated_savings=round_cents(loss * tax_rate),
                action=(
                    f"Consider selling {position.ticker}; wait {WASH_SALE_WINDOW_DAYS + 1} days "
                    "before repurchasing"
                ),
                warnings=warnings,
            ))
        return self.rank(suggestions)

    def wash_sale_warnings(
        self,
        flags: Iterable[WashSaleFlag],
        tax_rate: Decimal = DEFAULT_TAX_RATE,
    ) -> list[HarvestSuggestion]:
        """One HIGH suggestion per ticker with wash-sale flags; savings are negative."""
        by_ticker: dict[str, list[WashSaleFlag]] = {}
        for flag in flags:
            by_ticker.setdefault(flag.ticker, []).append(flag)

        suggestions: list[HarvestSuggestion] = []
        for ticker, ticker_flags in by_ticker.items():
            disallowed = sum((f.disallowed_loss for f in ticker_flags), Decimal("0"))
            suggestions.append(HarvestSuggestion(
                ticker=ticker,
                title=f"Wash Sale Detected: {ticker}",
                priority=Priority.HIGH,
                description=(
                    f"{len(ticker_flags)} potential wash sale(s) may disallow "
                    f"${disallowed:,.2f} in losses"
                ),
                estimated_savings=-round_cents(disallowed * tax_rate),
                action="Review recent purchases and avoid repurchasing within 30 days of a loss sale",
            ))
        return self.rank(suggestions)

    @staticmethod
    def rank(suggestions: list[HarvestSuggestion]) -> list[HarvestSuggestion]:
        return sorted(suggestions, key=lambda s: _PRIORITY_ORDER[s.priority])
