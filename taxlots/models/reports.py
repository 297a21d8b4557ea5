"""Report output models."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel

from taxlots.models.enums import (
    AccountingMethod,
    AdjustmentCode,
    Form8949Category,
    HoldingPeriod,
    Priority,
)
from taxlots.models.lots import Lot, WashSaleFlag


class TaxYearReport(BaseModel):
    tax_year: int
    short_term_gain: Decimal
    long_term_gain: Decimal
    total_gain: Decimal
    dividend_income: Decimal
    interest_income: Decimal = Decimal("0")
    sale_count: int = 0
    wash_sale_flags: list[WashSaleFlag] = []

    @property
    def total_disallowed_loss(self) -> Decimal:
        """Sum of flagged disallowances. Reported alongside the totals, never netted."""
        return sum((f.disallowed_loss for f in self.wash_sale_flags), Decimal("0"))


class PositionSummary(BaseModel):
    ticker: str
    method: AccountingMethod
    total_shares: Decimal
    total_cost_basis: Decimal
    average_cost_basis: Decimal
    open_lots: list[Lot]
    realized_gain: Decimal
    current_price: Decimal | None = None
    unrealized_gain: Decimal | None = None


class Form8949Line(BaseModel):
    description: str
    date_acquired: date
    date_sold: date
    proceeds: Decimal
    cost_basis: Decimal
    adjustment_code: AdjustmentCode
    adjustment_amount: Decimal
    gain_loss: Decimal
    holding_period: HoldingPeriod
    category: Form8949Category


class HarvestSuggestion(BaseModel):
    """A single tax-loss harvesting or wash-sale suggestion."""

    ticker: str
    title: str
    priority: Priority
    description: str
    estimated_savings: Decimal
    action: str
    warnings: list[str] = []
