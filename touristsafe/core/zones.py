"""
Zone classification for TouristSafe.

This module resolves which safety zone (if any) contains a location.
Zones are tested in the order given and the first polygon match wins;
callers control precedence of overlapping zones through list order
(for example most restrictive first).
"""

from typing import Any, Iterable, Union
from pydantic import ValidationError
from touristsafe.core.models import Coordinate, SafetyLevel, SafetyZone, ZoneClassification
from touristsafe.common.geo import point_in_polygon
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.zones")

ZoneLike = Union[SafetyZone, dict]

# 구역 밖에서의 기본 안전 수준 (보수적으로 caution)
DEFAULT_SAFETY_LEVEL: SafetyLevel = "caution"

SAFETY_MESSAGES = {
    "safe": "You are in a safe zone. Enjoy your visit!",
    "caution": "Exercise caution in this area. Stay alert and avoid isolated areas.",
    "restricted": "This is a restricted area. Please leave immediately and contact authorities if needed.",
}

UNMONITORED_MESSAGE = "You are in an unmonitored area. Please exercise caution."

def get_safety_message(safety_level: str) -> str:
    """안전 수준별 사용자 메시지를 반환합니다."""
    return SAFETY_MESSAGES.get(safety_level, "Safety status unknown. Please exercise caution.")

def _as_zone(zone: Any) -> SafetyZone:
    if isinstance(zone, SafetyZone):
        return zone
    return SafetyZone.model_validate(zone)

def classify(location: Coordinate, zones: Iterable[ZoneLike]) -> ZoneClassification:
    """
    위치가 속한 안전 구역을 판정합니다.

    Args:
        location: 판정할 위치
        zones: 안전 구역 목록 (순서가 우선순위)

    Returns:
        구역 분류 결과. 실패해도 예외를 던지지 않습니다.
    """
    try:
        for raw in zones or []:
            zone = _as_zone(raw)
            if point_in_polygon(location, zone.coordinates):
                return ZoneClassification(
                    success=True,
                    safety_level=zone.safety_level,
                    is_in_safe_zone=zone.safety_level == "safe",
                    zone=zone,
                    message=get_safety_message(zone.safety_level),
                )
    except (ValidationError, TypeError, ValueError, AttributeError) as e:
        log.warning("구역 분류 실패", error=str(e))
        return ZoneClassification(success=False, error=str(e))

    # 어느 구역에도 속하지 않음
    return ZoneClassification(
        success=True,
        safety_level=DEFAULT_SAFETY_LEVEL,
        is_in_safe_zone=False,
        zone=None,
        message=UNMONITORED_MESSAGE,
    )
