"""
Adapters for CitySense hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import SQLiteKVStore, MemoryKVStore, WarningStateGateway, PersistedState
from .datasource import InMemoryDataSource

__all__ = ["SQLiteKVStore", "MemoryKVStore", "WarningStateGateway", "PersistedState", "InMemoryDataSource"]
