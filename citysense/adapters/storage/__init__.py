"""
Storage adapters for CitySense hexagonal architecture.

This module contains key-value store adapters and the gateway that
persists warning state documents through them.
"""

from .sqlite_kv import SQLiteKVStore
from .memory_kv import MemoryKVStore
from .state_gateway import WarningStateGateway, PersistedState

__all__ = ["SQLiteKVStore", "MemoryKVStore", "WarningStateGateway", "PersistedState"]
