"""Transaction log normalization."""

from taxlots.normalization.events import TransactionLogNormalizer

__all__ = ["TransactionLogNormalizer"]
