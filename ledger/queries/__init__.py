"""Report generation package."""

from ledger.queries.reports import ReportEngine, build_report

__all__ = ["ReportEngine", "build_report"]
