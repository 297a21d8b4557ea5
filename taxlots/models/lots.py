"""Lot, sale allocation, and wash-sale flag models."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from taxlots.models.enums import AccountingMethod, HoldingPeriod


class Lot(BaseModel):
    """An open (or partially open) acquisition lot.

    Everything except ``remaining_shares`` is fixed when the lot is created.
    """

    lot_id: str
    ticker: str
    acquisition_date: date
    original_shares: Decimal = Field(gt=0)
    cost_basis_per_share: Decimal = Field(ge=0)
    remaining_shares: Decimal = Field(ge=0)
    source_transaction_id: str

    @property
    def remaining_cost_basis(self) -> Decimal:
        return self.remaining_shares * self.cost_basis_per_share

    @property
    def is_closed(self) -> bool:
        return self.remaining_shares <= 0


class LotSelection(BaseModel):
    """Caller-directed lot for a specific-lot sale.

    ``shares=None`` means "take as many as still needed from this lot".
    """

    lot_id: str
    shares: Decimal | None = Field(default=None, gt=0)


class LotConsumption(BaseModel):
    """Shares taken from one lot to satisfy part of a sale."""

    lot_id: str
    shares_taken: Decimal
    cost_basis_per_share: Decimal
    acquisition_date: date
    holding_days: int
    holding_period: HoldingPeriod

    @property
    def cost_basis(self) -> Decimal:
        return self.shares_taken * self.cost_basis_per_share


class SaleAllocation(BaseModel):
    """The resolution of one sell transaction against open lots."""

    sale_transaction_id: str
    ticker: str
    sale_date: date
    shares: Decimal
    sale_price: Decimal
    method: AccountingMethod
    consumptions: list[LotConsumption]
    proceeds: Decimal
    total_cost_basis: Decimal
    realized_gain: Decimal

    @property
    def is_loss(self) -> bool:
        return self.realized_gain < 0

    @property
    def shares_allocated(self) -> Decimal:
        return sum((c.shares_taken for c in self.consumptions), Decimal("0"))


class WashSaleFlag(BaseModel):
    """Overlay annotation on a loss sale with a replacement purchase in the window."""

    sale_transaction_id: str
    ticker: str
    sale_date: date
    realized_loss: Decimal
    replacement_transaction_id: str
    replacement_date: date
    replacement_shares: Decimal
    replacement_price: Decimal
    disallowed_loss: Decimal
    days_from_sale: int


class LedgerResult(BaseModel):
    """Output of replaying one ticker's transaction log."""

    ticker: str
    method: AccountingMethod
    open_lots: list[Lot]
    allocations: list[SaleAllocation]

    @property
    def open_shares(self) -> Decimal:
        return sum((lot.remaining_shares for lot in self.open_lots), Decimal("0"))

    @property
    def realized_gain(self) -> Decimal:
        return sum((a.realized_gain for a in self.allocations), Decimal("0"))
