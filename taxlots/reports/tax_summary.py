"""Tax year summary report generator."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from taxlots.models.enums import AccountingMethod
from taxlots.models.reports import TaxYearReport

TEMPLATE_DIR = Path(__file__).parent / "templates"


class TaxSummaryGenerator:
    """Generates a human-readable summary of a TaxYearReport."""

    def __init__(self) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)), trim_blocks=True, lstrip_blocks=True
        )

    def render(self, report: TaxYearReport, method: AccountingMethod | None = None) -> str:
        template = self.env.get_template("tax_report.txt")
        return template.render(report=report, method=method.value if method else None)
