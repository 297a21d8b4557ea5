"""Transaction log ingestion adapters."""

from taxlots.ingestion.base import BaseAdapter, ImportResult
from taxlots.ingestion.transactions import TransactionFileAdapter, load_selections

__all__ = ["BaseAdapter", "ImportResult", "TransactionFileAdapter", "load_selections"]
