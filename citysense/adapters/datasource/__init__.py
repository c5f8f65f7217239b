"""
Data source adapters for CitySense.
"""

from .memory import InMemoryDataSource

__all__ = ["InMemoryDataSource"]
