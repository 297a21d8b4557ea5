"""Wash sale detection over realized losses.

A loss sale is flagged for every purchase of the same ticker made within 30
days before or after the sale date (the sale date itself excluded). Flags are
an overlay: allocations and lots are never modified, and the disallowed
amounts are not capped in aggregate across several replacement purchases.
"""

import logging
from collections.abc import Iterable
from datetime import timedelta

from taxlots.engines.sale_resolver import round_cents
from taxlots.models.enums import TransactionKind
from taxlots.models.lots import SaleAllocation, WashSaleFlag
from taxlots.models.transaction import Transaction

logger = logging.getLogger(__name__)

WASH_SALE_WINDOW_DAYS = 30


class WashSaleDetector:
    """Flags loss sales that have replacement purchases inside the wash window."""

    def detect(
        self,
        ticker: str,
        allocations: Iterable[SaleAllocation],
        all_transactions: Iterable[Transaction],
    ) -> list[WashSaleFlag]:
        """Flag every loss allocation of ``ticker`` against each in-window buy.

        Any ``buy`` of the ticker in the window counts, whether or not its lot
        is still open. That includes the purchase that created the very lot
        being sold: buying on 05-15 and selling those shares at a loss on
        06-01 flags the 05-15 buy. Rights acquisitions are never replacements.
        """
        ticker = ticker.strip().upper()
        purchases = [
            txn for txn in all_transactions
            if txn.ticker == ticker and txn.kind == TransactionKind.BUY
        ]
        window = timedelta(days=WASH_SALE_WINDOW_DAYS)

        flags: list[WashSaleFlag] = []
        for allocation in allocations:
            if allocation.ticker != ticker or not allocation.is_loss:
                continue
            loss = -allocation.realized_gain
            sale_date = allocation.sale_date
            window_start, window_end = sale_date - window, sale_date + window

            sale_flags: list[WashSaleFlag] = []
            for purchase in purchases:
                if purchase.date == sale_date:
                    continue
                if not window_start <= purchase.date <= window_end:
                    continue
                replacement_value = purchase.shares * purchase.price_per_share
                sale_flags.append(WashSaleFlag(
                    sale_transaction_id=allocation.sale_transaction_id,
                    ticker=ticker,
                    sale_date=sale_date,
                    realized_loss=loss,
                    replacement_transaction_id=purchase.id,
                    replacement_date=purchase.date,
                    replacement_shares=purchase.shares,
                    replacement_price=purchase.price_per_share,
                    disallowed_loss=round_cents(min(loss, replacement_value)),
                    days_from_sale=(purchase.date - sale_date).days,
                ))

            disallowed_total = sum(f.disallowed_loss for f in sale_flags)
            if disallowed_total > loss:
                logger.warning(
                    "Wash sale flags for %s sale %s disallow %s in total, more than the %s loss",
                    ticker, allocation.sale_transaction_id, disallowed_total, loss,
                )
            flags.extend(sale_flags)

        logger.info("Wash sale scan for %s: %d flag(s)", ticker, len(flags))
        return flags
