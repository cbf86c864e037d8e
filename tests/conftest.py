"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
import asyncio
import tempfile
import os
from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from touristsafe.settings import Settings
from touristsafe.core.models import EmergencyContact, LocationSample, SafetyZone, UserProfile
from touristsafe.ports.messaging import PushResult, SMSSendResult
from touristsafe.adapters.storage.memory import InMemoryDocumentStore, InMemoryKVStore


class FakeClock:
    """테스트용 고정 시계"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def sample_settings():
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    settings.emergency.sms_send_delay_sec = 0
    return settings


@pytest.fixture
def clock():
    """오후 2시 고정 시계"""
    return FakeClock(datetime(2025, 3, 10, 14, 0, 0))


@pytest.fixture
def night_clock():
    """오후 11시 고정 시계"""
    return FakeClock(datetime(2025, 3, 10, 23, 0, 0))


@pytest.fixture
def square_polygon():
    """테스트용 폴리곤 (위도, 경도)"""
    return [
        (28.6139, 77.2090),
        (28.6150, 77.2100),
        (28.6140, 77.2110),
        (28.6130, 77.2100),
    ]


def make_zone(zone_id: str, level: str, polygon, **extra) -> SafetyZone:
    return SafetyZone(
        id=zone_id,
        name=f"Zone {zone_id}",
        safety_level=level,
        coordinates=[{"latitude": lat, "longitude": lon} for lat, lon in polygon],
        **extra,
    )


@pytest.fixture
def zone_factory():
    """SafetyZone 생성 함수"""
    return make_zone


@pytest.fixture
def safe_zone(square_polygon):
    return make_zone("safe_1", "safe", square_polygon)


@pytest.fixture
def restricted_zone(square_polygon):
    return make_zone("restricted_1", "restricted", square_polygon)


@pytest.fixture
def inside_location():
    """테스트 폴리곤 내부 위치"""
    return LocationSample(latitude=28.6140, longitude=77.2095)


@pytest.fixture
def outside_location():
    """모든 구역 밖 위치"""
    return LocationSample(latitude=28.7000, longitude=77.3000)


@pytest.fixture
def user_profile():
    return UserProfile(id="user_1", name="Alex Kim", phone_number="+911234567890")


@pytest.fixture
def contacts():
    """주 연락처가 두 번째에 있는 연락처 목록"""
    return [
        EmergencyContact(id="c1", name="Friend", phone_number="+911111111111", relationship="friend"),
        EmergencyContact(id="c2", name="Parent", phone_number="+912222222222", relationship="parent", is_primary=True),
        EmergencyContact(id="c3", name="Sibling", phone_number="+913333333333", relationship="sibling"),
    ]


@pytest.fixture
def mock_messaging():
    """테스트용 SMS 전송 포트"""
    messaging = AsyncMock()
    messaging.is_available.return_value = True
    messaging.send_sms.return_value = SMSSendResult(result="sent")
    return messaging


@pytest.fixture
def mock_push():
    """테스트용 푸시 알림 포트"""
    push = AsyncMock()
    push.schedule_notification.return_value = PushResult(success=True, notification_id="n-1")
    return push


@pytest.fixture
def mock_dialer():
    """테스트용 전화 걸기 포트"""
    dialer = AsyncMock()
    dialer.can_open_url.return_value = True
    return dialer


@pytest.fixture
def documents():
    return InMemoryDocumentStore()


@pytest.fixture
def kv_store():
    return InMemoryKVStore()


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "asyncio: 비동기 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 비동기 테스트에 asyncio 마커 추가
        if asyncio.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)

        # 통합 테스트 마커 추가
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
