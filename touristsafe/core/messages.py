"""
Emergency message templates for TouristSafe.

This module provides the text sent to emergency contacts:
the panic alert body, location share/update messages and the
static quick-message templates.
"""

from datetime import datetime
from typing import Dict, Mapping, Optional
from touristsafe.core.models import Coordinate, UserProfile

DEFAULT_MAP_URL = "https://maps.google.com/?q={lat},{lon}"
DEFAULT_APP_NAME = "Tourist Safety App"

# 빠른 메시지 템플릿
MESSAGE_TEMPLATES: Dict[str, str] = {
    "medical": "MEDICAL EMERGENCY: I need immediate medical assistance. Please call emergency services and come to my location.",
    "safety": "SAFETY EMERGENCY: I am in danger and need help immediately. Please contact police and emergency services.",
    "lost": "HELP: I am lost and need assistance finding my way back. Please help me or contact local authorities.",
    "accident": "ACCIDENT: I have been in an accident and need help. Please call emergency services immediately.",
    "custom": "EMERGENCY: I need help immediately. Please contact emergency services and come to my assistance.",
}

# 긴급 번호 표시 이름 (표시 순서)
NUMBER_LABELS = {
    "police": "Police",
    "medical": "Medical",
    "tourist_helpline": "Tourist Helpline",
}

def get_message_templates() -> Dict[str, str]:
    """빠른 메시지 템플릿 사본을 반환합니다."""
    return dict(MESSAGE_TEMPLATES)

def map_link(location: Coordinate, url_template: str = DEFAULT_MAP_URL) -> str:
    """지도 링크를 생성합니다."""
    return url_template.format(lat=location.latitude, lon=location.longitude)

def _format_time(now: datetime) -> str:
    return now.strftime("%Y-%m-%d %H:%M:%S")

def create_emergency_message(location: Coordinate,
                             user: UserProfile,
                             numbers: Mapping[str, str],
                             now: datetime,
                             *,
                             map_url: str = DEFAULT_MAP_URL,
                             app_name: str = DEFAULT_APP_NAME) -> str:
    """
    패닉 버튼 경보 메시지를 생성합니다.

    Args:
        location: 현재 위치 (address 속성이 있으면 포함)
        user: 사용자 프로필
        numbers: 긴급 번호 (police, medical, tourist_helpline)
        now: 발송 시각
        map_url: 지도 URL 템플릿
        app_name: 앱 이름

    Returns:
        SMS 본문
    """
    address = getattr(location, "address", None) or "Address not available"
    number_lines = "\n".join(
        f"{label}: {numbers[key]}" for key, label in NUMBER_LABELS.items() if key in numbers
    )

    return (
        "EMERGENCY ALERT\n"
        f"{user.name} needs immediate help!\n"
        "\n"
        f"Location: {location.latitude}, {location.longitude}\n"
        f"Address: {address}\n"
        f"Time: {_format_time(now)}\n"
        "\n"
        f"View on map: {map_link(location, map_url)}\n"
        "\n"
        "Emergency Numbers:\n"
        f"{number_lines}\n"
        "\n"
        f"This is an automated emergency alert from {app_name}."
    )

def create_location_share_message(location: Coordinate,
                                  user: UserProfile,
                                  is_emergency: bool,
                                  now: datetime,
                                  *,
                                  map_url: str = DEFAULT_MAP_URL,
                                  app_name: str = DEFAULT_APP_NAME) -> str:
    """위치 공유 메시지를 생성합니다."""
    prefix = "EMERGENCY LOCATION UPDATE" if is_emergency else "LOCATION UPDATE"
    address: Optional[str] = getattr(location, "address", None)

    lines = [
        prefix,
        "",
        f"{user.name} is currently at:",
        "",
        f"Coordinates: {location.latitude}, {location.longitude}",
    ]
    if address:
        lines.append(f"Address: {address}")
    lines += [
        f"Time: {_format_time(now)}",
        "",
        f"View on map: {map_link(location, map_url)}",
        "",
        "This is an emergency location update." if is_emergency
        else f"This is a location update from {app_name}.",
    ]
    return "\n".join(lines)

def create_location_update_message(location: Coordinate, now: datetime) -> str:
    """진행 중인 긴급 상황의 위치 갱신 메시지를 생성합니다."""
    return f"LOCATION UPDATE: I am now at {location.latitude}, {location.longitude}. Time: {_format_time(now)}"
