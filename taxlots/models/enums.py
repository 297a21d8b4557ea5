"""Enumerations for the tax-lot engine."""

from enum import StrEnum


class TransactionKind(StrEnum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    SPLIT = "split"
    SPINOFF = "spinoff"
    MERGER = "merger"
    RIGHTS = "rights"
    RETURN_OF_CAPITAL = "return_of_capital"
    FEE = "fee"
    INTEREST = "interest"


class AccountingMethod(StrEnum):
    FIFO = "FIFO"
    LIFO = "LIFO"
    SPECIFIC_LOT = "SPECIFIC_LOT"
    AVERAGE_COST = "AVERAGE_COST"

    @classmethod
    def parse(cls, value: str) -> "AccountingMethod":
        """Parse a method name, accepting "SpecificLot"/"average-cost" style aliases."""
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        aliases = {"SPECIFICLOT": cls.SPECIFIC_LOT, "AVERAGECOST": cls.AVERAGE_COST}
        if key in aliases:
            return aliases[key]
        return cls(key)


class HoldingPeriod(StrEnum):
    SHORT_TERM = "SHORT_TERM"
    LONG_TERM = "LONG_TERM"


class Form8949Category(StrEnum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    F = "F"


class AdjustmentCode(StrEnum):
    W = "W"
    NONE = ""


class Priority(StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
