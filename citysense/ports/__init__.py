"""
Port interfaces for CitySense hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external adapters.
"""

from .datasource import DataSourcePort
from .analysis import AnalysisPort
from .kvstore import KVStorePort

__all__ = ["DataSourcePort", "AnalysisPort", "KVStorePort"]
