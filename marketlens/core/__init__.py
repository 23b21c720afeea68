"""
Core configuration for MarketLens.
"""
