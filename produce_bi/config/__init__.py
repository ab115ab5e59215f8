"""
Produce BI Core
Configuration Module
"""
from .settings import Settings, AggregationSettings, ScoringSettings, get_settings
from .logging import configure_logging

__all__ = [
    "Settings",
    "AggregationSettings",
    "ScoringSettings",
    "get_settings",
    "configure_logging",
]
