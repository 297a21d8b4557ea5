"""Lot ledger: rebuild open lots and sale allocations by replaying a ticker's log."""

import logging
from collections.abc import Mapping, Sequence

from taxlots.engines.sale_resolver import SaleResolver
from taxlots.models.enums import AccountingMethod, TransactionKind
from taxlots.models.lots import LedgerResult, Lot, LotSelection, SaleAllocation
from taxlots.models.transaction import Transaction
from taxlots.normalization.events import TransactionLogNormalizer

logger = logging.getLogger(__name__)


class LotLedger:
    """Replays buy/rights/sell transactions into open lots and sale allocations."""

    def __init__(self, resolver: SaleResolver | None = None) -> None:
        self.resolver = resolver or SaleResolver()
        self.normalizer = TransactionLogNormalizer()

    def replay(
        self,
        transactions: Sequence[Transaction],
        ticker: str,
        method: AccountingMethod = AccountingMethod.FIFO,
        selections: Mapping[str, list[LotSelection]] | None = None,
    ) -> LedgerResult:
        """Replay ``ticker``'s transactions in order.

        Args:
            transactions: Transaction log sorted ascending by date. Other
                tickers' transactions are ignored.
            ticker: Ticker to replay.
            method: Accounting method applied to every sale.
            selections: Lot selections keyed by sell transaction id
                (SPECIFIC_LOT only).

        Returns:
            The lots still open after the last transaction and one
            SaleAllocation per sell, in log order.

        Raises:
            InvalidDateOrderingError: The ticker's log is not sorted by date.
            InsufficientLotsError: A sell exceeds the shares open at that point.
            AmbiguousSpecificLotError: SPECIFIC_LOT without a usable selection.
        """
        ticker = ticker.strip().upper()
        log = self.normalizer.for_ticker(transactions, ticker)
        self.normalizer.check_ordering(log)
        self.normalizer.check_unique_ids(log)
        selections = selections or {}

        lots: list[Lot] = []
        allocations: list[SaleAllocation] = []
        for txn in log:
            if txn.is_acquisition:
                lots.append(self.build_lot(txn))
            elif txn.kind == TransactionKind.SELL:
                allocation = self.resolver.resolve(
                    method,
                    lots,
                    txn.shares,
                    txn.price_per_share,
                    txn.date,
                    sale_transaction_id=txn.id,
                    ticker=ticker,
                    selection=selections.get(txn.id),
                )
                self._apply(lots, allocation)
                lots = [lot for lot in lots if not lot.is_closed]
                allocations.append(allocation)
            else:
                logger.debug("%s %s on %s does not touch lots", ticker, txn.kind.value, txn.date)

        logger.info(
            "Replayed %s (%s): %d open lot(s), %d sale(s)",
            ticker, method.value, len(lots), len(allocations),
        )
        return LedgerResult(ticker=ticker, method=method, open_lots=lots, allocations=allocations)

    @staticmethod
    def build_lot(txn: Transaction) -> Lot:
        """One lot per acquisition; the lot id is the transaction id."""
        return Lot(
            lot_id=txn.id,
            ticker=txn.ticker,
            acquisition_date=txn.date,
            original_shares=txn.shares,
            cost_basis_per_share=txn.price_per_share,
            remaining_shares=txn.shares,
            source_transaction_id=txn.id,
        )

    @staticmethod
    def _apply(lots: list[Lot], allocation: SaleAllocation) -> None:
        lot_map = {lot.lot_id: lot for lot in lots}
        for consumption in allocation.consumptions:
            lot = lot_map[consumption.lot_id]
            lot.remaining_shares -= consumption.shares_taken
