"""Performance reporting over operation items."""

from app.services.reporting.aggregator import Metrics, ReportContext, ReportFilters, aggregate
from app.services.reporting.annual import annual_summary
from app.services.reporting.facade import ReportingService

__all__ = [
    "Metrics",
    "ReportContext",
    "ReportFilters",
    "ReportingService",
    "aggregate",
    "annual_summary",
]
