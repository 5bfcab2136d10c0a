"""
bodash - Bayesian Optimization Dashboard

A service for configuring and monitoring Bayesian optimization campaigns
run by a remote optimization API.
"""

__version__ = "1.0.0"
