"""Seeded generators for lenders and company assets."""

from winery_finance.generators.base import BaseGenerator

__all__ = ["BaseGenerator"]
