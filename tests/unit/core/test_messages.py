"""
긴급 메시지 템플릿 단위 테스트
"""

from datetime import datetime
from touristsafe.core import messages
from touristsafe.core.models import LocationSample, UserProfile

NOW = datetime(2025, 3, 10, 14, 30, 0)
USER = UserProfile(id="u1", name="Alex Kim")
NUMBERS = {"police": "100", "medical": "108", "fire": "101", "tourist_helpline": "1363"}


class TestEmergencyMessage:
    """패닉 경보 메시지 테스트"""

    def test_contains_required_parts(self):
        location = LocationSample(latitude=28.614, longitude=77.2095, address="Janpath, New Delhi")
        text = messages.create_emergency_message(location, USER, NUMBERS, NOW)

        assert text.startswith("EMERGENCY ALERT")
        assert "Alex Kim needs immediate help!" in text
        assert "Location: 28.614, 77.2095" in text
        assert "Address: Janpath, New Delhi" in text
        assert "Time: 2025-03-10 14:30:00" in text
        assert "https://maps.google.com/?q=28.614,77.2095" in text
        assert "Police: 100" in text
        assert "Medical: 108" in text
        assert "Tourist Helpline: 1363" in text
        assert "Tourist Safety App" in text

    def test_missing_address(self):
        text = messages.create_emergency_message(LocationSample(latitude=1, longitude=2), USER, NUMBERS, NOW)
        assert "Address: Address not available" in text

    def test_custom_map_url_and_app_name(self):
        text = messages.create_emergency_message(
            LocationSample(latitude=1.5, longitude=2.5), USER, NUMBERS, NOW,
            map_url="https://maps.example/?ll={lat},{lon}", app_name="SafeTrip")
        assert "https://maps.example/?ll=1.5,2.5" in text
        assert text.endswith("This is an automated emergency alert from SafeTrip.")


class TestLocationMessages:
    """위치 공유 메시지 테스트"""

    def test_emergency_share_message(self):
        text = messages.create_location_share_message(
            LocationSample(latitude=1, longitude=2), USER, True, NOW)
        assert text.startswith("EMERGENCY LOCATION UPDATE")
        assert "Alex Kim is currently at:" in text
        assert "Address:" not in text
        assert text.endswith("This is an emergency location update.")

    def test_regular_share_message_with_address(self):
        text = messages.create_location_share_message(
            LocationSample(latitude=1, longitude=2, address="Main St"), USER, False, NOW)
        assert text.startswith("LOCATION UPDATE")
        assert "Address: Main St" in text
        assert "Tourist Safety App" in text

    def test_update_message(self):
        text = messages.create_location_update_message(LocationSample(latitude=1, longitude=2), NOW)
        assert text == "LOCATION UPDATE: I am now at 1.0, 2.0. Time: 2025-03-10 14:30:00"


class TestTemplates:

    def test_template_keys(self):
        templates = messages.get_message_templates()
        assert set(templates) == {"medical", "safety", "lost", "accident", "custom"}

    def test_templates_are_copies(self):
        templates = messages.get_message_templates()
        templates["medical"] = "changed"
        assert messages.get_message_templates()["medical"] != "changed"
