"""
API routes for MarketLens.
"""
