"""Pure computation components."""

from workforce_engine.calculators.conflict_detector import ConflictDetector
from workforce_engine.calculators.geofence import GeofenceTracker, haversine_distance
from workforce_engine.calculators.invoice_grouper import InvoiceLineGrouper
from workforce_engine.calculators.line_builder import LineItemBuilder
from workforce_engine.calculators.payroll_aggregator import PayrollAggregator
from workforce_engine.calculators.rate_resolver import RateResolver

__all__ = [
    "ConflictDetector",
    "GeofenceTracker",
    "InvoiceLineGrouper",
    "LineItemBuilder",
    "PayrollAggregator",
    "RateResolver",
    "haversine_distance",
]
