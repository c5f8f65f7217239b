"""
Core domain models and pure functions for CitySense.

This module contains the domain models and pure detection logic
that are independent of external I/O and infrastructure concerns.
"""

from .models import (
    Location, CityEvent, SensorReading, CityWarning, WarningConfig,
    ConfigUpdate, DataSnapshot, AnalysisResult,
)
from .rules import detect_event_clusters, detect_sensor_streaks, detect_correlations, detect_all
from .dedup import dedupe

__all__ = [
    "Location", "CityEvent", "SensorReading", "CityWarning", "WarningConfig",
    "ConfigUpdate", "DataSnapshot", "AnalysisResult",
    "detect_event_clusters", "detect_sensor_streaks", "detect_correlations", "detect_all",
    "dedupe",
]
