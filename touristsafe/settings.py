# touristsafe/settings.py
from __future__ import annotations
from typing import Dict, List
from pydantic import BaseModel, Field

class GeoFenceConfig(BaseModel):
    normal_interval_ms: int = 8000
    normal_distance_m: float = 10.0
    emergency_interval_ms: int = 3000
    emergency_distance_m: float = 3.0
    transition_cache_size: int = 50
    transition_cache_key: str = "zone_transitions"

class ScoringConfig(BaseModel):
    base_safe: int = 90
    base_caution: int = 60
    base_restricted: int = 20
    night_start_hour: int = 22                # 22:00 ~ 06:00
    night_end_hour: int = 6
    day_start_hour: int = 6                   # 06:00 ~ 19:00
    day_end_hour: int = 19
    night_impact: int = -20
    day_impact: int = 10
    high_crowd_threshold: float = 0.7
    high_crowd_impact: int = 5
    low_crowd_threshold: float = 0.2
    low_crowd_impact: int = -10
    adverse_weather: List[str] = Field(default_factory=lambda: ["rain", "storm"])
    bad_weather_impact: int = -15
    emergency_proximity_enabled: bool = False  # 근접성 요인 (선택)
    services_near_km: float = 1.0
    services_far_km: float = 5.0
    services_near_impact: int = 10
    services_far_impact: int = -10

class EmergencyConfig(BaseModel):
    numbers: Dict[str, str] = Field(default_factory=lambda: {
        "police": "100",
        "medical": "108",
        "fire": "101",
        "tourist_helpline": "1363",
    })
    sms_send_delay_sec: float = 1.0
    transport_timeout_sec: float = 10.0
    map_url: str = "https://maps.google.com/?q={lat},{lon}"
    app_name: str = "Tourist Safety App"
    collection: str = "emergencies"

class SharingConfig(BaseModel):
    share_interval_sec: float = 300.0         # 5분
    record_interval_sec: float = 60.0
    collection: str = "locationSessions"

class StorageConfig(BaseModel):
    backend: str = "memory"                   # memory | sqlite
    documents_path: str = "/data/documents.db"
    kv_path: str = "/data/kv.db"

class GatewayConfig(BaseModel):
    sms_url: str = ""
    push_url: str = ""
    token: str = ""
    timeout_sec: int = 10
    max_retries: int = 2

class Observability(BaseModel):
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "TouristSafe"
    build_version: str = "0.1.0"
    build_date: str = "2026-10-01"
    log_level: str = "INFO"
    log_json: bool = False                    # 한 줄 JSON 로그

class Settings(BaseModel):
    # 하위 섹션 (기본값/팩토리로 누락 방지)
    geofence: GeoFenceConfig = Field(default_factory=GeoFenceConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    emergency: EmergencyConfig = Field(default_factory=EmergencyConfig)
    sharing: SharingConfig = Field(default_factory=SharingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    observability: Observability = Field(default_factory=Observability)
    zones_path: str = ""                      # 비어 있으면 기본 구역 사용
    track_path: str = ""                      # 재생할 위치 트랙 (JSON), 비어 있으면 모니터 미실행
