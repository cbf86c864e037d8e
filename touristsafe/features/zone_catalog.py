"""
Safety zone catalog for TouristSafe.

This module provides the zone data the monitor and HTTP routes work
with: the built-in demonstration zones, JSON loading, proximity lookup
and the nearest emergency services for a location.
"""

import json
from typing import Any, Dict, List, Optional, Sequence, Tuple
from touristsafe.common.geo import haversine_distance, polygon_centroid
from touristsafe.core.models import EmergencyService, SafetyZone
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.zones")

# 이 거리 안에 구역이 없으면 국가 기본 번호 사용
SERVICES_RADIUS_KM = 2.0

DEFAULT_EMERGENCY_SERVICES = [
    EmergencyService(type="police", number="100"),
    EmergencyService(type="medical", number="108"),
    EmergencyService(type="fire", number="101"),
    EmergencyService(type="tourist_helpline", number="1363"),
]

def _service(kind: str, number: str, distance: str, lat: float, lon: float) -> Dict[str, Any]:
    return {"type": kind, "number": number, "distance": distance,
            "location": {"latitude": lat, "longitude": lon}}

_DEFAULT_ZONE_DATA: List[Dict[str, Any]] = [
    {
        "id": "zone_001",
        "name": "Tourist District Central",
        "safetyLevel": "safe",
        "description": "Main tourist area with high security presence",
        "coordinates": [
            {"latitude": 28.6139, "longitude": 77.2090},
            {"latitude": 28.6150, "longitude": 77.2100},
            {"latitude": 28.6140, "longitude": 77.2110},
            {"latitude": 28.6130, "longitude": 77.2100},
        ],
        "emergencyServices": [
            _service("police", "100", "0.2km", 28.6145, 77.2095),
            _service("medical", "108", "0.5km", 28.6142, 77.2098),
            _service("tourist_helpline", "1363", "0.1km", 28.6141, 77.2092),
        ],
        "safetyFeatures": ["CCTV Coverage", "24/7 Security Patrol", "Tourist Police", "Emergency Phones"],
        "crowdLevel": "high",
        "riskFactors": [],
        "safetyTips": ["Stay in groups when possible", "Keep valuables secure", "Use official tourist guides"],
    },
    {
        "id": "zone_002",
        "name": "Market Area",
        "safetyLevel": "caution",
        "description": "Busy market area - watch for pickpockets",
        "coordinates": [
            {"latitude": 28.6120, "longitude": 77.2080},
            {"latitude": 28.6130, "longitude": 77.2090},
            {"latitude": 28.6125, "longitude": 77.2095},
            {"latitude": 28.6115, "longitude": 77.2085},
        ],
        "emergencyServices": [
            _service("police", "100", "0.8km", 28.6118, 77.2088),
            _service("medical", "108", "1.2km", 28.6115, 77.2092),
            _service("tourist_helpline", "1363", "0.6km", 28.6122, 77.2087),
        ],
        "safetyFeatures": ["Some CCTV", "Market Security", "Crowd Presence"],
        "crowdLevel": "very_high",
        "riskFactors": ["Pickpocketing", "Overcrowding", "Traffic congestion"],
        "safetyTips": [
            "Keep bags in front and zipped",
            "Avoid displaying expensive items",
            "Stay aware of surroundings",
            "Use registered shops only",
        ],
    },
    {
        "id": "zone_003",
        "name": "Industrial Area",
        "safetyLevel": "restricted",
        "description": "Industrial zone - not recommended for tourists",
        "coordinates": [
            {"latitude": 28.6100, "longitude": 77.2050},
            {"latitude": 28.6110, "longitude": 77.2060},
            {"latitude": 28.6105, "longitude": 77.2065},
            {"latitude": 28.6095, "longitude": 77.2055},
        ],
        "emergencyServices": [
            _service("police", "100", "2.5km", 28.6080, 77.2030),
            _service("medical", "108", "3.0km", 28.6075, 77.2025),
            _service("fire", "101", "1.8km", 28.6085, 77.2035),
        ],
        "safetyFeatures": ["Limited CCTV", "Industrial Security"],
        "crowdLevel": "low",
        "riskFactors": ["Isolated area", "Poor lighting", "Limited help available", "Industrial hazards"],
        "safetyTips": [
            "Avoid this area entirely",
            "If lost, contact emergency services immediately",
            "Do not enter industrial premises",
            "Leave the area as quickly as possible",
        ],
    },
    {
        "id": "zone_004",
        "name": "Heritage Monument Zone",
        "safetyLevel": "safe",
        "description": "Protected heritage area with good security",
        "coordinates": [
            {"latitude": 28.6160, "longitude": 77.2120},
            {"latitude": 28.6170, "longitude": 77.2130},
            {"latitude": 28.6165, "longitude": 77.2135},
            {"latitude": 28.6155, "longitude": 77.2125},
        ],
        "emergencyServices": [
            _service("police", "100", "0.3km", 28.6162, 77.2127),
            _service("medical", "108", "0.7km", 28.6158, 77.2132),
            _service("tourist_helpline", "1363", "0.2km", 28.6163, 77.2128),
        ],
        "safetyFeatures": ["Heritage Security", "Tourist Guides", "CCTV Monitoring", "Regular Patrols"],
        "crowdLevel": "medium",
        "riskFactors": ["Occasional overcrowding during peak hours"],
        "safetyTips": [
            "Follow monument guidelines",
            "Stay with official tour groups",
            "Respect cultural norms",
            "Keep tickets and ID ready",
        ],
    },
]

DEFAULT_ZONES: List[SafetyZone] = [SafetyZone.model_validate(z) for z in _DEFAULT_ZONE_DATA]

def load_zones(path: str) -> List[SafetyZone]:
    """
    JSON 파일에서 안전 구역을 로드합니다.

    파일은 구역 목록이거나 {"zones": [...]} 형태입니다.

    Raises:
        ValueError: 형식이 올바르지 않은 경우
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("zones")
    if not isinstance(data, list):
        raise ValueError(f"zone file must contain a list of zones: {path}")

    zones = [SafetyZone.model_validate(z) for z in data]
    log.info("안전 구역 로드됨", path=path, count=len(zones))
    return zones

class ZoneCatalog:
    """안전 구역 카탈로그"""

    def __init__(self, zones: Optional[Sequence[SafetyZone]] = None):
        self._zones: List[SafetyZone] = list(DEFAULT_ZONES if zones is None else zones)
        self._centroids: Dict[str, Tuple[float, float]] = {
            z.id: polygon_centroid(z.coordinates) for z in self._zones
        }

    @classmethod
    def from_file(cls, path: str) -> "ZoneCatalog":
        return cls(load_zones(path))

    def all(self) -> List[SafetyZone]:
        return list(self._zones)

    def get_by_id(self, zone_id: str) -> Optional[SafetyZone]:
        for zone in self._zones:
            if zone.id == zone_id:
                return zone
        return None

    def _distance_km(self, zone: SafetyZone, lat: float, lon: float) -> float:
        c_lat, c_lon = self._centroids[zone.id]
        return haversine_distance(lat, lon, c_lat, c_lon)

    def near(self, lat: float, lon: float, radius_km: float = 5.0) -> List[SafetyZone]:
        """구역 중심점 기준으로 반경 안의 구역을 가까운 순으로 반환합니다."""
        ranked = sorted((self._distance_km(z, lat, lon), i, z) for i, z in enumerate(self._zones))
        return [z for d, _, z in ranked if d <= radius_km]

    def emergency_services(self, lat: float, lon: float) -> List[EmergencyService]:
        """
        위치에서 가장 가까운 구역의 긴급 서비스를 반환합니다.

        반경 안에 구역이 없으면 국가 기본 번호를 반환합니다.
        """
        nearby = self.near(lat, lon, SERVICES_RADIUS_KM)
        if nearby and nearby[0].emergency_services:
            return list(nearby[0].emergency_services)
        return list(DEFAULT_EMERGENCY_SERVICES)
