"""
코어 모델 단위 테스트

이 모듈은 검증 규칙과 camelCase 문서 변환을 테스트합니다.
"""

import pytest
from datetime import datetime
from hypothesis import given, strategies as st
from pydantic import ValidationError
from touristsafe.core.models import (
    Coordinate, EmergencyContact, LocationSample, SafetyScoreResult, SafetyZone, ZoneTransition,
)


class TestCoordinate:
    """Coordinate 모델 테스트"""

    @given(lat=st.floats(min_value=-90, max_value=90), lon=st.floats(min_value=-180, max_value=180))
    def test_valid_range(self, lat, lon):
        c = Coordinate(latitude=lat, longitude=lon)
        assert (c.latitude, c.longitude) == (lat, lon)

    @pytest.mark.parametrize("lat,lon", [(91, 0), (-90.5, 0), (0, 181), (0, -200)])
    def test_out_of_range(self, lat, lon):
        with pytest.raises(ValidationError):
            Coordinate(latitude=lat, longitude=lon)

    def test_frozen(self):
        c = Coordinate(latitude=1, longitude=2)
        with pytest.raises(ValidationError):
            c.latitude = 3

    def test_location_sample_defaults(self):
        sample = LocationSample(latitude=1, longitude=2)
        assert sample.accuracy == 0.0
        assert sample.address is None
        assert isinstance(sample.timestamp, datetime)


class TestDocuments:
    """문서 변환 테스트"""

    def test_camel_case_keys(self):
        contact = EmergencyContact(id="c1", name="A", phone_number="+1", is_primary=True)
        doc = contact.to_document()
        assert doc == {"id": "c1", "name": "A", "phoneNumber": "+1", "relationship": "", "isPrimary": True}

    def test_populate_by_alias_or_name(self):
        a = EmergencyContact.model_validate({"id": "c", "name": "n", "phoneNumber": "1"})
        b = EmergencyContact(id="c", name="n", phone_number="1")
        assert a == b

    def test_zone_transition_uses_from_and_to(self):
        t = ZoneTransition(from_zone="zone_001", to_zone=None, timestamp=datetime(2025, 1, 1, 12, 0, 0),
                           time_in_previous_zone=30.0)
        doc = t.to_document()
        assert doc["from"] == "zone_001"
        assert "to" not in doc
        assert doc["timeInPreviousZone"] == 30.0
        assert ZoneTransition.model_validate(doc) == t


class TestValidation:

    def test_zone_requires_three_vertices(self):
        with pytest.raises(ValidationError):
            SafetyZone(id="z", name="Z", safety_level="safe",
                       coordinates=[{"latitude": 0, "longitude": 0}, {"latitude": 1, "longitude": 1}])

    def test_zone_rejects_unknown_level(self):
        with pytest.raises(ValidationError):
            SafetyZone(id="z", name="Z", safety_level="dangerous",
                       coordinates=[{"latitude": 0, "longitude": 0}] * 3)

    @pytest.mark.parametrize("score", [-1, 101])
    def test_score_bounds(self, score):
        with pytest.raises(ValidationError):
            SafetyScoreResult(success=True, score=score)
