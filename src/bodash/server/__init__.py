"""
bodash FastAPI Server

REST API for the Bayesian Optimization Dashboard.
"""

from bodash.server.app import create_app
from bodash.server.config import ServerConfig

__all__ = [
    "create_app",
    "ServerConfig",
]
