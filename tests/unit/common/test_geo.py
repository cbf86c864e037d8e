"""
지리 유틸리티 단위 테스트

이 모듈은 거리 계산과 폴리곤 포함 판정을 테스트합니다.
"""

import pytest
from hypothesis import given, strategies as st
from touristsafe.common.geo import (
    calculate_bounding_box, haversine_distance, point_in_polygon, polygon_centroid, validate_coordinates,
)
from touristsafe.core.models import Coordinate

UNIT_SQUARE = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0)]


class TestPointInPolygon:
    """Ray casting 포함 판정 테스트"""

    def test_known_polygon_inside_and_outside(self, square_polygon):
        """알려진 폴리곤의 내부/외부 판정"""
        assert point_in_polygon((28.6140, 77.2095), square_polygon) is True
        assert point_in_polygon((28.7000, 77.3000), square_polygon) is False

    def test_accepts_coordinate_models(self, square_polygon):
        """Coordinate 모델도 점/꼭짓점으로 사용 가능"""
        polygon = [Coordinate(latitude=lat, longitude=lon) for lat, lon in square_polygon]
        assert point_in_polygon(Coordinate(latitude=28.6140, longitude=77.2095), polygon) is True

    def test_degenerate_polygon_is_empty(self):
        """꼭짓점이 3개 미만이면 항상 외부"""
        assert point_in_polygon((0.5, 0.5), []) is False
        assert point_in_polygon((0.0, 0.0), [(0.0, 0.0), (1.0, 1.0)]) is False

    def test_centroid_of_square_is_inside(self):
        lat, lon = polygon_centroid(UNIT_SQUARE)
        assert point_in_polygon((lat, lon), UNIT_SQUARE)

    @pytest.mark.parametrize("point,expected", [
        ((0.5, 0.0), True),    # 서쪽 경계
        ((0.0, 0.5), True),    # 남쪽 경계
        ((0.5, 1.0), False),   # 동쪽 경계
        ((1.0, 0.5), False),   # 북쪽 경계
    ])
    def test_boundary_tie_break(self, point, expected):
        """경계 위의 점은 서/남 포함, 동/북 제외"""
        assert point_in_polygon(point, UNIT_SQUARE) is expected

    @given(
        lat=st.floats(min_value=-80, max_value=80),
        lon=st.floats(min_value=-170, max_value=170),
        offset=st.floats(min_value=1.01, max_value=5),
    )
    def test_points_outside_bounding_box_are_outside(self, lat, lon, offset):
        """경계 상자 밖의 점은 항상 외부"""
        polygon = [(lat, lon), (lat, lon + 1), (lat + 1, lon + 1), (lat + 1, lon)]
        assert point_in_polygon((lat + offset, lon + 0.5), polygon) is False
        assert point_in_polygon((lat + 0.5, lon - offset), polygon) is False


class TestHaversine:
    """Haversine 거리 테스트"""

    def test_zero_distance(self):
        assert haversine_distance(28.6139, 77.2090, 28.6139, 77.2090) == 0

    def test_one_degree_latitude(self):
        """위도 1도는 약 111km"""
        assert haversine_distance(0, 0, 1, 0) == pytest.approx(111.19, rel=1e-3)

    def test_symmetry(self):
        d1 = haversine_distance(28.61, 77.20, 19.07, 72.87)
        d2 = haversine_distance(19.07, 72.87, 28.61, 77.20)
        assert d1 == pytest.approx(d2)
        assert 1100 < d1 < 1200


class TestPolygonHelpers:
    """폴리곤 보조 함수 테스트"""

    def test_centroid(self, square_polygon):
        lat, lon = polygon_centroid(square_polygon)
        assert lat == pytest.approx(28.613975)
        assert lon == pytest.approx(77.2100)

    def test_bounding_box(self, square_polygon):
        assert calculate_bounding_box(square_polygon) == (28.6130, 77.2090, 28.6150, 77.2110)

    def test_empty_polygon_helpers(self):
        assert polygon_centroid([]) == (0.0, 0.0)
        assert calculate_bounding_box([]) == (0, 0, 0, 0)

    @pytest.mark.parametrize("lat,lon,valid", [
        (0, 0, True),
        (90, 180, True),
        (-90, -180, True),
        (90.1, 0, False),
        (0, -180.5, False),
    ])
    def test_validate_coordinates(self, lat, lon, valid):
        assert validate_coordinates(lat, lon) is valid
