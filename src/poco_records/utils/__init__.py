"""Utility modules."""

from poco_records.utils.boundary import BoundaryResult, ErrorBoundary, Failed, Rendered

__all__ = ["BoundaryResult", "ErrorBoundary", "Failed", "Rendered"]
