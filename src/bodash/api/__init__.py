"""
bodash Optimization API

Client for the remote Bayesian optimization service.
"""

from bodash.api.client import OptimizerAPIClient, BestPoint, DEFAULT_BASE_URL
from bodash.api.exceptions import (
    OptimizerError,
    OptimizerAPIError,
    OptimizerConnectionError,
)

__all__ = [
    "OptimizerAPIClient",
    "BestPoint",
    "DEFAULT_BASE_URL",
    "OptimizerError",
    "OptimizerAPIError",
    "OptimizerConnectionError",
]
