"""
Core domain models and pure functions for TouristSafe.

This module contains the domain models and pure business logic
(zone classification, safety scoring, alert generation and message
templates) that are independent of external I/O.
"""

from .models import (
    Coordinate, LocationSample, SafetyZone, ZoneClassification,
    SafetyScoreResult, SafetyAlert, EmergencyContact, UserProfile,
)
from .zones import classify
from .scoring import SafetyScorer, ScoreOptions, get_risk_level, score
from .alerts import AlertGenerator, generate

__all__ = [
    "Coordinate", "LocationSample", "SafetyZone", "ZoneClassification",
    "SafetyScoreResult", "SafetyAlert", "EmergencyContact", "UserProfile",
    "classify", "SafetyScorer", "ScoreOptions", "get_risk_level", "score",
    "AlertGenerator", "generate",
]
