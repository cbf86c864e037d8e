"""
Geographic utilities for TouristSafe.

This module provides geographic calculations including
distance calculation, point-in-polygon testing and
polygon helpers used by zone classification and scoring.
"""

import math
from typing import Any, Sequence, Tuple, Union

# (위도, 경도) 튜플 또는 latitude/longitude 속성을 가진 객체 (Coordinate)
PointLike = Union[Any, Tuple[float, float]]

EARTH_RADIUS_KM = 6371

def _lat_lon(point: PointLike) -> Tuple[float, float]:
    if hasattr(point, "latitude"):
        return point.latitude, point.longitude
    return float(point[0]), float(point[1])

def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (킬로미터).

    Args:
        lat1: 첫 번째 지점의 위도
        lon1: 첫 번째 지점의 경도
        lat2: 두 번째 지점의 위도
        lon2: 두 번째 지점의 경도

    Returns:
        두 지점 간의 거리 (킬로미터)
    """
    # 도를 라디안으로 변환
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2 - lon1)

    # Haversine 공식
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return c * EARTH_RADIUS_KM

def point_in_polygon(point: PointLike, polygon: Sequence[PointLike]) -> bool:
    """
    점이 폴리곤 내부에 있는지 Ray casting 알고리즘으로 확인합니다.

    폴리곤은 닫힌 것으로 간주합니다 (마지막 꼭짓점이 첫 꼭짓점과 연결).
    광선은 +경도 방향이며 변은 반열린 구간으로 처리합니다. 따라서 서쪽/남쪽
    경계 위의 점은 내부, 동쪽/북쪽 경계 위의 점은 외부로 판정됩니다.

    Args:
        point: 확인할 점 (Coordinate 또는 (위도, 경도))
        polygon: 폴리곤의 꼭짓점들

    Returns:
        점이 폴리곤 내부에 있으면 True, 외부에 있으면 False
    """
    if len(polygon) < 3:
        return False

    lat, lon = _lat_lon(point)
    vertices = [_lat_lon(p) for p in polygon]
    inside = False

    j = len(vertices) - 1
    for i in range(len(vertices)):
        yi, xi = vertices[i]
        yj, xj = vertices[j]
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lon < x_cross:
                inside = not inside
        j = i

    return inside

def polygon_centroid(polygon: Sequence[PointLike]) -> Tuple[float, float]:
    """
    꼭짓점 평균으로 폴리곤 중심을 계산합니다.

    Returns:
        (위도, 경도)
    """
    if not polygon:
        return (0.0, 0.0)

    points = [_lat_lon(p) for p in polygon]
    lat = sum(p[0] for p in points) / len(points)
    lon = sum(p[1] for p in points) / len(points)
    return (lat, lon)

def calculate_bounding_box(polygon: Sequence[PointLike]) -> Tuple[float, float, float, float]:
    """
    폴리곤의 경계 상자를 계산합니다.

    Returns:
        (min_lat, min_lon, max_lat, max_lon)
    """
    if not polygon:
        return (0, 0, 0, 0)

    points = [_lat_lon(p) for p in polygon]
    lats = [p[0] for p in points]
    lons = [p[1] for p in points]

    return (min(lats), min(lons), max(lats), max(lons))

def validate_coordinates(lat: float, lon: float) -> bool:
    """좌표가 유효한지 확인합니다."""
    return -90 <= lat <= 90 and -180 <= lon <= 180
