"""Transaction log checks: per-ticker filtering, ordering, duplicate ids."""

from collections.abc import Iterable

from taxlots.exceptions import InvalidDateOrderingError, MalformedTransactionError
from taxlots.models.transaction import Transaction


class TransactionLogNormalizer:
    """Checks a caller-supplied transaction log without reordering or fixing it."""

    def for_ticker(self, transactions: Iterable[Transaction], ticker: str) -> list[Transaction]:
        """Transactions of ``ticker``, in input order."""
        wanted = ticker.strip().upper()
        return [txn for txn in transactions if txn.ticker == wanted]

    def tickers(self, transactions: Iterable[Transaction]) -> list[str]:
        """Distinct tickers in order of first appearance."""
        seen: dict[str, None] = {}
        for txn in transactions:
            seen.setdefault(txn.ticker, None)
        return list(seen)

    def check_ordering(self, transactions: list[Transaction]) -> None:
        """Raise if dates ever go backwards. Same-date runs keep input order."""
        for previous, current in zip(transactions, transactions[1:]):
            if current.date < previous.date:
                raise InvalidDateOrderingError(current.id, previous.date, current.date)

    def check_unique_ids(self, transactions: list[Transaction]) -> None:
        seen: set[str] = set()
        for txn in transactions:
            if txn.id in seen:
                raise MalformedTransactionError(txn.id, "duplicate transaction id")
            seen.add(txn.id)

    def ordering_problems(self, transactions: list[Transaction]) -> list[str]:
        """Human-readable ordering problems per ticker, for validation reports."""
        problems: list[str] = []
        for ticker in self.tickers(transactions):
            log = self.for_ticker(transactions, ticker)
            for previous, current in zip(log, log[1:]):
                if current.date < previous.date:
                    problems.append(
                        f"{ticker}: transaction {current.id} ({current.date}) "
                        f"is listed after {previous.id} ({previous.date})"
                    )
        return problems
