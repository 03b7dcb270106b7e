"""Liquidation bot for Comet and Aave-style lending markets."""

__version__ = "0.1.0"
