"""Tax-lot computation engines."""

from taxlots.engines.aggregator import TaxReportAggregator
from taxlots.engines.harvest import HarvestAdvisor
from taxlots.engines.ledger import LotLedger
from taxlots.engines.portfolio import TaxLotEngine
from taxlots.engines.sale_resolver import SaleResolver
from taxlots.engines.wash_sale import WashSaleDetector

__all__ = [
    "HarvestAdvisor",
    "LotLedger",
    "SaleResolver",
    "TaxLotEngine",
    "TaxReportAggregator",
    "WashSaleDetector",
]
