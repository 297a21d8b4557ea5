"""Sale resolver: match one sale to open lots under an accounting method."""

import logging
from datetime import date
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from taxlots.exceptions import (
    AmbiguousSpecificLotError,
    InsufficientLotsError,
    LotNotFoundError,
    MalformedTransactionError,
)
from taxlots.models.enums import AccountingMethod, HoldingPeriod
from taxlots.models.lots import Lot, LotConsumption, LotSelection, SaleAllocation

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
SHARE_QUANTUM = Decimal("0.000000001")
LONG_TERM_THRESHOLD_DAYS = 365


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def classify_holding(acquisition_date: date, sale_date: date) -> tuple[int, HoldingPeriod]:
    """Calendar-day holding period; more than 365 days is long-term."""
    days = (sale_date - acquisition_date).days
    if days > LONG_TERM_THRESHOLD_DAYS:
        return days, HoldingPeriod.LONG_TERM
    return days, HoldingPeriod.SHORT_TERM


def average_cost_basis(lots: list[Lot]) -> Decimal:
    """Blended per-share basis across the open shares of ``lots``."""
    total_shares = sum((lot.remaining_shares for lot in lots), Decimal("0"))
    if total_shares <= 0:
        return Decimal("0")
    total_cost = sum((lot.remaining_cost_basis for lot in lots), Decimal("0"))
    return total_cost / total_shares


class SaleResolver:
    """Selects which lots, and how many shares of each, satisfy a sale.

    Stateless: ``resolve`` never mutates the lots it is given. The caller
    applies the returned consumptions.
    """

    def resolve(
        self,
        method: AccountingMethod,
        open_lots: list[Lot],
        shares_to_sell: Decimal,
        sale_price: Decimal,
        sale_date: date,
        *,
        sale_transaction_id: str = "",
        ticker: str = "",
        selection: list[LotSelection] | None = None,
    ) -> SaleAllocation:
        """Resolve a sale against ``open_lots``.

        Args:
            method: Accounting method used to pick lots.
            open_lots: Lots for the ticker, in creation order.
            shares_to_sell: Shares sold; must be fully satisfiable.
            sale_price: Price per share received.
            sale_date: Date of the sale, used for holding periods.
            sale_transaction_id: Id of the sell transaction, for errors and output.
            ticker: Ticker of the sale.
            selection: Lot selection, required for SPECIFIC_LOT.

        Returns:
            The SaleAllocation, with cent-rounded proceeds, basis and gain.
        """
        if shares_to_sell <= 0:
            raise MalformedTransactionError(
                sale_transaction_id, f"shares to sell must be positive, got {shares_to_sell}"
            )
        lots = [lot for lot in open_lots if not lot.is_closed]
        available = sum((lot.remaining_shares for lot in lots), Decimal("0"))
        if shares_to_sell > available:
            raise InsufficientLotsError(sale_transaction_id, ticker, shares_to_sell, available)

        basis_override: Decimal | None = None
        match method:
            case AccountingMethod.FIFO:
                taken = self._match_fifo(lots, shares_to_sell)
            case AccountingMethod.LIFO:
                taken = self._match_lifo(lots, shares_to_sell)
            case AccountingMethod.SPECIFIC_LOT:
                taken = self._match_specific(lots, shares_to_sell, selection, sale_transaction_id)
            case AccountingMethod.AVERAGE_COST:
                basis_override = average_cost_basis(lots)
                taken = self._match_average(lots, shares_to_sell)
            case _:
                raise ValueError(f"Unsupported accounting method: {method}")

        consumptions: list[LotConsumption] = []
        for lot, shares in taken:
            days, holding = classify_holding(lot.acquisition_date, sale_date)
            basis = lot.cost_basis_per_share if basis_override is None else basis_override
            consumptions.append(LotConsumption(
                lot_id=lot.lot_id,
                shares_taken=shares,
                cost_basis_per_share=basis,
                acquisition_date=lot.acquisition_date,
                holding_days=days,
                holding_period=holding,
            ))
            logger.debug(
                "Sale %s takes %s sh from lot %s at basis %s (%s)",
                sale_transaction_id, shares, lot.lot_id, basis, holding.value,
            )

        proceeds = round_cents(shares_to_sell * sale_price)
        total_cost_basis = round_cents(sum((c.cost_basis for c in consumptions), Decimal("0")))
        return SaleAllocation(
            sale_transaction_id=sale_transaction_id,
            ticker=ticker,
            sale_date=sale_date,
            shares=shares_to_sell,
            sale_price=sale_price,
            method=method,
            consumptions=consumptions,
            proceeds=proceeds,
            total_cost_basis=total_cost_basis,
            realized_gain=proceeds - total_cost_basis,
        )

    def _match_fifo(self, lots: list[Lot], shares: Decimal) -> list[tuple[Lot, Decimal]]:
        """FIFO: allocate shares from oldest lots first."""
        ordered = sorted(lots, key=lambda lot: lot.acquisition_date)
        return self._take_in_order(ordered, shares)

    def _match_lifo(self, lots: list[Lot], shares: Decimal) -> list[tuple[Lot, Decimal]]:
        """LIFO: newest lots first; same-day lots newest-created first."""
        ordered = sorted(reversed(lots), key=lambda lot: lot.acquisition_date, reverse=True)
        return self._take_in_order(ordered, shares)

    @staticmethod
    def _take_in_order(ordered: list[Lot], shares: Decimal) -> list[tuple[Lot, Decimal]]:
        remaining = shares
        allocations: list[tuple[Lot, Decimal]] = []
        for lot in ordered:
            if remaining <= 0:
                break
            allocated = min(lot.remaining_shares, remaining)
            allocations.append((lot, allocated))
            remaining -= allocated
        return allocations

    def _match_specific(
        self,
        lots: list[Lot],
        shares: Decimal,
        selection: list[LotSelection] | None,
        sale_id: str,
    ) -> list[tuple[Lot, Decimal]]:
        """Specific identification: consume exactly the lots the caller chose."""
        if not selection:
            raise AmbiguousSpecificLotError(sale_id, "no lot selection supplied")

        lot_map = {lot.lot_id: lot for lot in lots}
        taken: dict[str, Decimal] = {}
        needed = shares
        for choice in selection:
            lot = lot_map.get(choice.lot_id)
            if lot is None:
                raise LotNotFoundError(sale_id, choice.lot_id)
            capacity = lot.remaining_shares - taken.get(lot.lot_id, Decimal("0"))
            if choice.shares is None:
                if needed <= 0:
                    continue
                amount = min(capacity, needed)
            else:
                if choice.shares > capacity:
                    raise AmbiguousSpecificLotError(
                        sale_id,
                        f"selection asks {choice.shares} sh from lot {lot.lot_id} "
                        f"with only {capacity} open",
                    )
                if choice.shares > needed:
                    raise AmbiguousSpecificLotError(
                        sale_id, f"selection covers more than the {shares} sh sold"
                    )
                amount = choice.shares
            if amount > 0:
                taken[lot.lot_id] = taken.get(lot.lot_id, Decimal("0")) + amount
                needed -= amount

        if needed > 0:
            raise AmbiguousSpecificLotError(
                sale_id, f"selection covers only {shares - needed} of {shares} sh"
            )
        # Preserve the caller's order of first mention
        return [(lot_map[lot_id], amount) for lot_id, amount in taken.items()]

    def _match_average(self, lots: list[Lot], shares: Decimal) -> list[tuple[Lot, Decimal]]:
        """Average cost: reduce every open lot in proportion to its share of the total.

        Takes are quantized to ``SHARE_QUANTUM`` and the leftover is handed
        out one quantum at a time by largest remainder, so every take is
        within one quantum of its exact proportional share. Share counts are
        conserved exactly; the blended basis of the remaining lots can drift
        by a few billionths of a dollar when the proportions do not
        terminate (e.g. thirds).
        """
        total = sum((lot.remaining_shares for lot in lots), Decimal("0"))
        if shares == total:
            return [(lot, lot.remaining_shares) for lot in lots]

        exact = [lot.remaining_shares * shares / total for lot in lots]
        takes = [value.quantize(SHARE_QUANTUM, rounding=ROUND_DOWN) for value in exact]
        residual = shares - sum(takes, Decimal("0"))
        by_remainder = sorted(range(len(lots)), key=lambda i: exact[i] - takes[i], reverse=True)
        while residual > 0:
            progressed = False
            for i in by_remainder:
                if residual <= 0:
                    break
                extra = min(SHARE_QUANTUM, residual, lots[i].remaining_shares - takes[i])
                if extra > 0:
                    takes[i] += extra
                    residual -= extra
                    progressed = True
            if not progressed:
                break
        return [(lot, take) for lot, take in zip(lots, takes) if take > 0]
