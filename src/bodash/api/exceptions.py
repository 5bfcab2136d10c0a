"""
bodash Optimization API Exceptions
"""

from typing import Any


class OptimizerError(Exception):
    """Base exception for optimization API calls."""
    pass


class OptimizerConnectionError(OptimizerError):
    """Failed to reach the optimization API."""
    pass


class OptimizerAPIError(OptimizerError):
    """Optimization API returned an error response."""

    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error ({status_code}): {detail}")
