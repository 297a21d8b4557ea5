"""Base adapter interface for transaction log ingestion."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from taxlots.models.transaction import Transaction


@dataclass
class ImportResult:
    """Bundles the output from an adapter's parse method."""

    source: str
    transactions: list[Transaction] = field(default_factory=list)

    @property
    def tickers(self) -> list[str]:
        return list(dict.fromkeys(txn.ticker for txn in self.transactions))


class BaseAdapter(ABC):
    """Abstract base class for all ingestion adapters."""

    @abstractmethod
    def parse(self, file_path: Path) -> ImportResult:
        """Parse a file and return an ImportResult with typed models."""
        ...

    @abstractmethod
    def validate(self, data: ImportResult) -> list[str]:
        """Validate parsed data. Returns a list of validation error messages."""
        ...
