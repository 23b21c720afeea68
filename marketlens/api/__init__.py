"""
API module for MarketLens.

This module provides the REST endpoints used by the web front end to
configure eBay keys and run searches.
"""
