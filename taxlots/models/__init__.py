"""Data models for the tax-lot engine."""

from taxlots.models.enums import (
    AccountingMethod,
    AdjustmentCode,
    Form8949Category,
    HoldingPeriod,
    Priority,
    TransactionKind,
)
from taxlots.models.lots import (
    LedgerResult,
    Lot,
    LotConsumption,
    LotSelection,
    SaleAllocation,
    WashSaleFlag,
)
from taxlots.models.reports import (
    Form8949Line,
    HarvestSuggestion,
    PositionSummary,
    TaxYearReport,
)
from taxlots.models.transaction import Transaction

__all__ = [
    "AccountingMethod",
    "AdjustmentCode",
    "Form8949Category",
    "Form8949Line",
    "HarvestSuggestion",
    "HoldingPeriod",
    "LedgerResult",
    "Lot",
    "LotConsumption",
    "LotSelection",
    "PositionSummary",
    "Priority",
    "SaleAllocation",
    "TaxYearReport",
    "Transaction",
    "TransactionKind",
    "WashSaleFlag",
]
