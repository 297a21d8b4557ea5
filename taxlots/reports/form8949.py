"""Form 8949 report generator."""

from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from taxlots.engines.sale_resolver import round_cents
from taxlots.models.enums import AdjustmentCode, Form8949Category, HoldingPeriod
from taxlots.models.lots import SaleAllocation, WashSaleFlag
from taxlots.models.reports import Form8949Line

TEMPLATE_DIR = Path(__file__).parent / "templates"


class Form8949Generator:
    """Generates Form 8949 lines from sale allocations and wash-sale flags."""

    def __init__(self) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True
        )

    def generate_lines(
        self,
        allocations: Iterable[SaleAllocation],
        flags: Iterable[WashSaleFlag] = (),
    ) -> list[Form8949Line]:
        """One line per lot consumption.

        Wash-sale flags become code W adjustments: the sale's flagged amount,
        capped at its loss, is spread over its lines by shares. The last line
        of each sale takes the rounding remainder so line totals match the sale.
        """
        disallowed_by_sale: dict[str, Decimal] = {}
        for flag in flags:
            disallowed_by_sale[flag.sale_transaction_id] = (
                disallowed_by_sale.get(flag.sale_transaction_id, Decimal("0")) + flag.disallowed_loss
            )

        lines: list[Form8949Line] = []
        for allocation in allocations:
            disallowed = Decimal("0")
            if allocation.is_loss and allocation.sale_transaction_id in disallowed_by_sale:
                disallowed = min(disallowed_by_sale[allocation.sale_transaction_id], -allocation.realized_gain)

            proceeds_left = allocation.proceeds
            basis_left = allocation.total_cost_basis
            adjustment_left = disallowed
            last = len(allocation.consumptions) - 1
            for i, consumption in enumerate(allocation.consumptions):
                if i == last:
                    proceeds, basis, adjustment = proceeds_left, basis_left, adjustment_left
                else:
                    proceeds = round_cents(consumption.shares_taken * allocation.sale_price)
                    basis = round_cents(consumption.cost_basis)
                    adjustment = round_cents(disallowed * consumption.shares_taken / allocation.shares)
                proceeds_left -= proceeds
                basis_left -= basis
                adjustment_left -= adjustment

                long_term = consumption.holding_period == HoldingPeriod.LONG_TERM
                lines.append(Form8949Line(
                    description=f"{consumption.shares_taken.normalize():f} sh {allocation.ticker}",
                    date_acquired=consumption.acquisition_date,
                    date_sold=allocation.sale_date,
                    proceeds=proceeds,
                    cost_basis=basis,
                    adjustment_code=AdjustmentCode.W if adjustment else AdjustmentCode.NONE,
                    adjustment_amount=adjustment,
                    gain_loss=proceeds - basis + adjustment,
                    holding_period=consumption.holding_period,
                    category=Form8949Category.D if long_term else Form8949Category.A,
                ))
        return lines

    def render(self, lines: list[Form8949Line]) -> str:
        """Render Form 8949 report using Jinja2 template."""
        template = self.env.get_template("form8949.txt")
        return template.render(lines=lines)
