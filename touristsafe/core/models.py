"""
Core domain models for TouristSafe.

This module defines the core domain models using Pydantic v2
for type safety and validation. Stored documents use camelCase
keys through the alias generator.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# 열거형 타입 정의
SafetyLevel = Literal["safe", "caution", "restricted"]
RiskLevel = Literal["low", "medium", "high", "critical"]
AlertType = Literal["danger", "warning", "info"]
AlertPriority = Literal["high", "medium", "low"]
IncidentStatus = Literal["active", "resolved"]

class DomainModel(BaseModel):
    """camelCase 별칭을 사용하는 기본 모델"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """문서 저장소에 기록할 JSON 호환 딕셔너리로 변환합니다."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

class Coordinate(DomainModel):
    """위도/경도 좌표 (불변)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

class LocationSample(Coordinate):
    """위치 제공자가 생성하는 위치 샘플"""
    accuracy: float = 0.0
    timestamp: datetime = Field(default_factory=datetime.now)
    address: Optional[str] = None

class EmergencyService(DomainModel):
    """구역 인근 긴급 서비스"""
    type: str
    number: str
    distance: str = "Unknown"
    location: Optional[Coordinate] = None

class SafetyZone(DomainModel):
    """안전 구역 (닫힌 폴리곤)"""
    id: str
    name: str
    safety_level: SafetyLevel
    coordinates: List[Coordinate] = Field(min_length=3)
    emergency_services: List[EmergencyService] = Field(default_factory=list)
    description: str = ""
    safety_features: List[str] = Field(default_factory=list)
    risk_factors: List[str] = Field(default_factory=list)
    safety_tips: List[str] = Field(default_factory=list)
    crowd_level: Optional[str] = None

class ZoneClassification(DomainModel):
    """구역 분류 결과"""
    success: bool
    safety_level: SafetyLevel = "caution"
    is_in_safe_zone: bool = False
    zone: Optional[SafetyZone] = None
    message: str = ""
    error: Optional[str] = None

class SafetyFactor(DomainModel):
    """안전 점수 조정 요인"""
    factor: str
    impact: int
    description: str = ""

class SafetyScoreResult(DomainModel):
    """안전 점수 결과"""
    success: bool
    score: int = Field(default=0, ge=0, le=100)
    factors: List[SafetyFactor] = Field(default_factory=list)
    base_score: int = 0
    risk_level: Optional[RiskLevel] = None
    recommendation: str = ""
    error: Optional[str] = None

class RouteBreakdown(DomainModel):
    safe: int = 0
    caution: int = 0
    restricted: int = 0
    total: int = 0

class RouteSafetyResult(DomainModel):
    """경로 안전 점수 결과"""
    success: bool
    score: int = 0
    breakdown: RouteBreakdown = Field(default_factory=RouteBreakdown)
    recommendation: str = ""
    error: Optional[str] = None

class SafetyAlert(DomainModel):
    """사용자 안전 알림"""
    type: AlertType
    title: str
    message: str
    priority: AlertPriority
    actions: List[str] = Field(default_factory=list)

class EmergencyContact(DomainModel):
    """긴급 연락처"""
    id: str
    name: str
    phone_number: str
    relationship: str = ""
    is_primary: bool = False

class UserProfile(DomainModel):
    """사용자 프로필 (외부 소유)"""
    id: str
    name: str
    phone_number: Optional[str] = None
    email: Optional[str] = None

class LocationHistoryEntry(DomainModel):
    """위치 이력 항목 (id는 항목마다 고유)"""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    location: Coordinate
    timestamp: datetime
    shared: bool = False

class EmergencyIncident(DomainModel):
    """패닉 버튼 발동 시 생성되는 사건 기록"""
    user_id: str
    type: Literal["panic_button"] = "panic_button"
    location: LocationSample
    message: str
    emergency_contacts: List[EmergencyContact] = Field(default_factory=list)
    timestamp: datetime
    status: IncidentStatus = "active"
    location_history: List[LocationHistoryEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

class LocationSharingSession(DomainModel):
    """긴급 상황 중 위치 공유 세션"""
    session_id: Optional[str] = None
    emergency_id: str
    user_id: str
    contacts: List[EmergencyContact] = Field(default_factory=list)
    start_time: datetime
    end_time: Optional[datetime] = None
    is_active: bool = True
    location_history: List[LocationHistoryEntry] = Field(default_factory=list)
    share_interval_sec: float = 300.0
    last_shared_at: datetime

class ZoneTransition(DomainModel):
    """구역 전환 기록"""
    from_zone: Optional[str] = Field(default=None, alias="from")
    to_zone: Optional[str] = Field(default=None, alias="to")
    timestamp: datetime
    time_in_previous_zone: Optional[float] = None

class OperationResult(DomainModel):
    """단일 작업 결과"""
    success: bool
    error: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

class ContactSendResult(DomainModel):
    """연락처별 SMS 발송 결과"""
    contact: EmergencyContact
    success: bool
    phone_number: str
    result: Optional[str] = None
    error: Optional[str] = None

class ChannelResult(DomainModel):
    """채널(푸시/저장소) 결과"""
    channel: str
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None

class EmergencyAlertResult(DomainModel):
    """긴급 경보 발송 결과"""
    success: bool
    error: Optional[str] = None
    emergency_id: Optional[str] = None
    message: str = ""
    sms_results: List[ContactSendResult] = Field(default_factory=list)
    notification_results: List[ChannelResult] = Field(default_factory=list)
    firestore_results: List[ChannelResult] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

class SharingResult(DomainModel):
    """위치 공유 작업 결과"""
    success: bool
    session_id: Optional[str] = None
    shared: bool = False
    error: Optional[str] = None

class GeoFenceUpdate(DomainModel):
    """지오펜스 모니터가 콜백으로 전달하는 갱신 정보"""
    location: LocationSample
    classification: ZoneClassification
    score: Optional[SafetyScoreResult] = None
    alerts: List[SafetyAlert] = Field(default_factory=list)
    transition: Optional[ZoneTransition] = None
    timestamp: datetime
