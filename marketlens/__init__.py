"""
MarketLens - eBay market research client.

This package verifies eBay API keys, detects the environment they belong to,
and searches active and sold listings through a single normalized item model.
"""

__version__ = "0.1.0"
__author__ = "MarketLens Team"
