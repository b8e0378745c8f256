"""Loan distress engine for a turn-based winery management game."""

__version__ = "0.1.0"
