"""
CitySense warning engine.

Detects clustered events, persistent sensor anomalies and co-located
event/sensor anomalies, and manages the resulting warnings.
"""

__version__ = "0.1.0"
