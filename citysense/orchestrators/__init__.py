"""
Orchestrators for CitySense.

This module contains the components that coordinate the flow between
the detection core, ports and adapters.
"""
from .scheduler import AutoCheckScheduler
from .warning_manager import WarningManager

__all__ = ["AutoCheckScheduler", "WarningManager"]
