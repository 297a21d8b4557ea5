"""Transaction log model.

A transaction is one immutable event in a security's history. Which optional
fields are required depends on the kind; the shape is checked once, when the
model is built, so downstream engines never see a malformed record.
"""

import datetime as dt
import re
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from taxlots.exceptions import MalformedTransactionError
from taxlots.models.enums import TransactionKind

PRICED_KINDS = frozenset({TransactionKind.BUY, TransactionKind.SELL, TransactionKind.RIGHTS})
ACQUISITION_KINDS = frozenset({TransactionKind.BUY, TransactionKind.RIGHTS})
RETICKER_KINDS = frozenset({TransactionKind.SPINOFF, TransactionKind.MERGER})

_SPLIT_RATIO = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*:\s*(\d+(?:\.\d+)?)\s*$")


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    ticker: str
    kind: TransactionKind
    date: dt.date
    shares: Decimal | None = None
    price_per_share: Decimal | None = None
    amount: Decimal
    fees: Decimal | None = None
    notes: str | None = None
    split_ratio: str | None = None
    new_ticker: str | None = None

    @field_validator("ticker", "new_ticker", mode="before")
    @classmethod
    def _normalize_ticker(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_kind_fields(self) -> "Transaction":
        if not self.id:
            raise MalformedTransactionError("<missing>", "transaction id is required")
        if not self.ticker:
            raise MalformedTransactionError(self.id, "ticker is required")

        priced = self.kind in PRICED_KINDS
        if priced:
            if self.shares is None or self.price_per_share is None:
                raise MalformedTransactionError(
                    self.id, f"{self.kind} requires shares and price_per_share"
                )
            if self.shares <= 0:
                raise MalformedTransactionError(self.id, f"shares must be positive, got {self.shares}")
            if self.price_per_share < 0:
                raise MalformedTransactionError(
                    self.id, f"price_per_share must not be negative, got {self.price_per_share}"
                )
        elif self.shares is not None or self.price_per_share is not None:
            raise MalformedTransactionError(
                self.id, f"{self.kind} must not carry shares or price_per_share"
            )

        if self.kind == TransactionKind.SPLIT:
            if self.split_ratio is None:
                raise MalformedTransactionError(self.id, "split requires split_ratio")
            if _parse_ratio(self.split_ratio) is None:
                raise MalformedTransactionError(
                    self.id, f"split_ratio must look like 'N:M', got {self.split_ratio!r}"
                )
        elif self.split_ratio is not None:
            raise MalformedTransactionError(self.id, f"{self.kind} must not carry split_ratio")

        if self.kind in RETICKER_KINDS:
            if not self.new_ticker:
                raise MalformedTransactionError(self.id, f"{self.kind} requires new_ticker")
        elif self.new_ticker is not None:
            raise MalformedTransactionError(self.id, f"{self.kind} must not carry new_ticker")

        if self.fees is not None and self.fees < 0:
            raise MalformedTransactionError(self.id, f"fees must not be negative, got {self.fees}")
        return self

    @property
    def is_acquisition(self) -> bool:
        return self.kind in ACQUISITION_KINDS

    @property
    def split_factor(self) -> Decimal | None:
        """Shares after the split per share before it ("2:1" -> 2)."""
        if self.split_ratio is None:
            return None
        return _parse_ratio(self.split_ratio)

    @property
    def gross_value(self) -> Decimal | None:
        if self.shares is None or self.price_per_share is None:
            return None
        return self.shares * self.price_per_share


def _parse_ratio(ratio: str) -> Decimal | None:
    match = _SPLIT_RATIO.match(ratio)
    if not match:
        return None
    try:
        new, old = Decimal(match.group(1)), Decimal(match.group(2))
    except InvalidOperation:
        return None
    if new <= 0 or old <= 0:
        return None
    return new / old
