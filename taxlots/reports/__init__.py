"""Report generation for the tax-lot engine."""

from taxlots.reports.form8949 import Form8949Generator
from taxlots.reports.tax_summary import TaxSummaryGenerator

__all__ = ["Form8949Generator", "TaxSummaryGenerator"]
