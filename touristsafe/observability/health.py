"""
HTTP endpoints for TouristSafe.

This module implements health, readiness, metrics and info endpoints
for operational visibility, plus the safety and emergency routes
that expose the core services.
"""

import time
from typing import List, Optional
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from pydantic import Field
from touristsafe.core.alerts import AlertGenerator
from touristsafe.core.models import (
    Coordinate, DomainModel, EmergencyContact, LocationSample, SafetyZone, UserProfile,
)
from touristsafe.core.scoring import SafetyScorer, ScoreOptions
from touristsafe.core.zones import classify
from touristsafe.features.zone_catalog import ZoneCatalog
from touristsafe.orchestrators.emergency_dispatcher import EmergencyDispatcher
from touristsafe.orchestrators.location_sharing import LocationSharingService
from touristsafe.settings import Settings
from touristsafe.observability import metrics as prom
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.http")

class Services:
    """HTTP 라우트가 사용하는 서비스 묶음"""

    def __init__(self,
                 catalog: ZoneCatalog,
                 scorer: SafetyScorer,
                 alerts: AlertGenerator,
                 dispatcher: EmergencyDispatcher,
                 sharing: LocationSharingService,
                 ready_checks: Optional[List] = None):
        self.catalog = catalog
        self.scorer = scorer
        self.alerts = alerts
        self.dispatcher = dispatcher
        self.sharing = sharing
        self.ready_checks = ready_checks or []

# ---- 요청 모델 ----
class ClassifyRequest(DomainModel):
    location: LocationSample
    zones: Optional[List[SafetyZone]] = None

class ScoreRequest(DomainModel):
    location: LocationSample
    crowd_density: Optional[float] = Field(default=None, ge=0, le=1)
    weather: Optional[str] = None
    zones: Optional[List[SafetyZone]] = None

class RouteRequest(DomainModel):
    points: List[Coordinate] = Field(min_length=1)
    zones: Optional[List[SafetyZone]] = None

class AlertRequest(DomainModel):
    location: LocationSample
    user: UserProfile
    contacts: List[EmergencyContact] = Field(default_factory=list)
    custom_message: Optional[str] = None

class StartSessionRequest(DomainModel):
    emergency_id: str
    user: UserProfile
    contacts: List[EmergencyContact] = Field(default_factory=list)
    location: LocationSample

class UpdateLocationRequest(DomainModel):
    location: LocationSample
    user: UserProfile
    contacts: Optional[List[EmergencyContact]] = None

def create_app(settings: Settings, services: Services) -> FastAPI:
    """FastAPI 애플리케이션을 생성합니다."""
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="TouristSafe geofencing and emergency dispatch service"
    )

    start_time = time.time()

    def _zones(requested: Optional[List[SafetyZone]]) -> List[SafetyZone]:
        return requested if requested is not None else services.catalog.all()

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트"""
        failed = []
        for check in services.ready_checks:
            try:
                await check()
            except Exception as e:
                failed.append(str(e))
        if failed:
            return JSONResponse({"status": "not_ready", "errors": failed}, status_code=503)
        return JSONResponse({
            "status": "ready",
            "service": settings.observability.service_name,
            "zones": len(services.catalog.all()),
            "timestamp": time.time()
        })

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        prom.uptime_seconds.set(time.time() - start_time)
        try:
            return Response(
                generate_latest(),
                media_type=CONTENT_TYPE_LATEST
            )
        except Exception as e:
            log.error("메트릭 생성 오류", error=str(e))
            raise HTTPException(status_code=500, detail="Metrics generation failed")

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level,
            "storage_backend": settings.storage.backend
        })

    @app.get("/zones")
    async def zones(lat: Optional[float] = None, lon: Optional[float] = None, radius_km: float = 5.0):
        """안전 구역 목록 (좌표가 있으면 반경 내 구역)"""
        if lat is not None and lon is not None:
            found = services.catalog.near(lat, lon, radius_km)
        else:
            found = services.catalog.all()
        return {"zones": [z.to_document() for z in found]}

    @app.get("/emergency/services")
    async def emergency_services(lat: float, lon: float):
        """가까운 긴급 서비스"""
        return {"services": [s.to_document() for s in services.catalog.emergency_services(lat, lon)]}

    @app.post("/safety/classify")
    async def safety_classify(req: ClassifyRequest):
        """위치의 안전 구역 분류"""
        result = classify(req.location, _zones(req.zones))
        return result.to_document()

    @app.post("/safety/score")
    async def safety_score(req: ScoreRequest):
        """안전 점수와 알림 계산"""
        zones = _zones(req.zones)
        now = services.scorer.clock()
        options = ScoreOptions(crowd_density=req.crowd_density, weather=req.weather, now=now)
        classification = classify(req.location, zones)
        score = services.scorer.score_classification(req.location, classification, zones, options)
        alerts = services.alerts.generate(req.location, classification, score if score.success else None, now=now)
        return {
            "classification": classification.to_document(),
            "score": score.to_document(),
            "alerts": [a.to_document() for a in alerts],
        }

    @app.post("/safety/route")
    async def safety_route(req: RouteRequest):
        """경로 안전 점수"""
        return services.scorer.score_route(req.points, _zones(req.zones)).to_document()

    @app.post("/emergency/alert")
    async def emergency_alert(req: AlertRequest):
        """패닉 버튼 긴급 경보 발송"""
        result = await services.dispatcher.send_emergency_alert(
            req.location, req.user, req.contacts, req.custom_message)
        return JSONResponse(result.to_document(), status_code=200 if result.success else 502)

    @app.post("/emergency/sessions")
    async def start_session(req: StartSessionRequest):
        """긴급 위치 공유 시작"""
        result = await services.sharing.start_emergency_location_sharing(
            req.emergency_id, req.user, req.contacts, req.location)
        return JSONResponse(result.to_document(), status_code=200 if result.success else 502)

    @app.post("/emergency/sessions/{session_id}/location")
    async def update_session(session_id: str, req: UpdateLocationRequest):
        """긴급 위치 갱신"""
        result = await services.sharing.update_emergency_location(
            session_id, req.location, req.user, req.contacts)
        if result.error == "session not found":
            raise HTTPException(status_code=404, detail=result.error)
        if result.error == "session is not active":
            raise HTTPException(status_code=409, detail=result.error)
        return JSONResponse(result.to_document(), status_code=200 if result.success else 502)

    @app.post("/emergency/sessions/{session_id}/stop")
    async def stop_session(session_id: str):
        """긴급 위치 공유 중지"""
        result = await services.sharing.stop_emergency_location_sharing(session_id)
        return JSONResponse(result.to_document(), status_code=200 if result.success else 502)

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info",
                "zones": "/zones",
                "emergency_services": "/emergency/services",
                "classify": "/safety/classify",
                "score": "/safety/score",
                "route": "/safety/route",
                "alert": "/emergency/alert",
                "sessions": "/emergency/sessions"
            }
        })

    return app
