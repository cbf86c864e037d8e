# touristsafe/main.py
import os, asyncio, json, signal
from typing import List, Optional, Tuple
import uvicorn
from touristsafe.settings import Settings
from touristsafe.core.alerts import AlertGenerator
from touristsafe.core.models import GeoFenceUpdate, LocationSample
from touristsafe.core.scoring import SafetyScorer
from touristsafe.features.zone_catalog import ZoneCatalog
from touristsafe.adapters.storage import InMemoryDocumentStore, InMemoryKVStore, SQLiteDocumentStore, SQLiteKVStore
from touristsafe.adapters.gateway import HTTPSMSGateway, HTTPPushGateway
from touristsafe.adapters.location import ReplayLocationProvider
from touristsafe.orchestrators import EmergencyDispatcher, GeoFenceMonitor, LocationSharingService, MonitorOptions
from touristsafe.observability.health import Services, create_app
from touristsafe.observability.logging_setup import setup_logging, get_logger

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # 지오펜스
    s.geofence.normal_interval_ms = int(os.getenv("NORMAL_INTERVAL_MS", s.geofence.normal_interval_ms))
    s.geofence.emergency_interval_ms = int(os.getenv("EMERGENCY_INTERVAL_MS", s.geofence.emergency_interval_ms))
    s.geofence.transition_cache_size = int(os.getenv("TRANSITION_CACHE_SIZE", s.geofence.transition_cache_size))

    # 점수
    s.scoring.emergency_proximity_enabled = _b("EMERGENCY_PROXIMITY_ENABLED", s.scoring.emergency_proximity_enabled)
    s.scoring.low_crowd_impact = int(os.getenv("LOW_CROWD_IMPACT", s.scoring.low_crowd_impact))

    # 긴급
    s.emergency.sms_send_delay_sec = float(os.getenv("SMS_SEND_DELAY_SEC", s.emergency.sms_send_delay_sec))
    s.emergency.transport_timeout_sec = float(os.getenv("TRANSPORT_TIMEOUT_SEC", s.emergency.transport_timeout_sec))
    s.emergency.app_name = os.getenv("APP_NAME", s.emergency.app_name)

    # 위치 공유
    s.sharing.share_interval_sec = float(os.getenv("SHARE_INTERVAL_SEC", s.sharing.share_interval_sec))
    s.sharing.record_interval_sec = float(os.getenv("RECORD_INTERVAL_SEC", s.sharing.record_interval_sec))

    # 저장소
    s.storage.backend = os.getenv("STORAGE_BACKEND", s.storage.backend)
    s.storage.documents_path = os.getenv("DOCUMENTS_PATH", s.storage.documents_path)
    s.storage.kv_path = os.getenv("KV_PATH", s.storage.kv_path)

    # 게이트웨이
    s.gateway.sms_url = os.getenv("SMS_GATEWAY_URL", s.gateway.sms_url)
    s.gateway.push_url = os.getenv("PUSH_GATEWAY_URL", s.gateway.push_url)
    s.gateway.token = os.getenv("GATEWAY_TOKEN", s.gateway.token)
    s.gateway.timeout_sec = int(os.getenv("GATEWAY_TIMEOUT_SEC", s.gateway.timeout_sec))

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("HTTP_PORT", s.observability.http_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.log_json = _b("LOG_JSON", s.observability.log_json)

    s.zones_path = os.getenv("ZONES_PATH", s.zones_path)
    s.track_path = os.getenv("TRACK_PATH", s.track_path)
    return s

async def build_stores(s: Settings) -> Tuple[object, object]:
    if s.storage.backend == "sqlite":
        documents = SQLiteDocumentStore(s.storage.documents_path); await documents.init()
        kv = SQLiteKVStore(s.storage.kv_path); await kv.init()
        return documents, kv
    return InMemoryDocumentStore(), InMemoryKVStore()

def load_track(path: str) -> List[LocationSample]:
    with open(path, encoding="utf-8") as f:
        return [LocationSample.model_validate(p) for p in json.load(f)]

async def start_http(settings: Settings, services: Services) -> Optional[asyncio.Task]:
    app = create_app(settings, services)
    return asyncio.create_task(uvicorn.Server(
        uvicorn.Config(app, host="0.0.0.0", port=settings.observability.http_port, log_level="info")
    ).serve())

async def main():
    s = build_settings()
    setup_logging(s.observability.log_level, json_logs=s.observability.log_json)
    log = get_logger()
    log.info("설정 로드 완료", storage=s.storage.backend)

    catalog = ZoneCatalog.from_file(s.zones_path) if s.zones_path else ZoneCatalog()
    documents, kv = await build_stores(s)

    sms = HTTPSMSGateway(s.gateway.sms_url, s.gateway.token, s.gateway.timeout_sec, s.gateway.max_retries)
    push = HTTPPushGateway(s.gateway.push_url, s.gateway.token, s.gateway.timeout_sec, s.gateway.max_retries)
    if not s.gateway.sms_url:
        log.warning("SMS 게이트웨이 미설정, 연락처 SMS는 실패로 기록됩니다")

    scorer = SafetyScorer(s.scoring)
    alerts = AlertGenerator(s.scoring)
    dispatcher = EmergencyDispatcher(sms, push, documents, config=s.emergency)

    provider = ReplayLocationProvider(load_track(s.track_path), loop=True) if s.track_path else None
    sharing = LocationSharingService(dispatcher, documents, push, provider, config=s.sharing)
    services = Services(catalog, scorer, alerts, dispatcher, sharing)
    log.info("서비스 생성 완료", zones=len(catalog.all()))

    monitor = None
    if provider is not None:
        monitor = GeoFenceMonitor(provider, scorer=scorer, alert_generator=alerts,
                                  transition_store=kv, config=s.geofence)

        def on_update(update: GeoFenceUpdate) -> None:
            log.info("위치 평가",
                     level=update.classification.safety_level,
                     score=update.score.score if update.score else None,
                     alerts=[a.title for a in update.alerts])

        result = await monitor.start(catalog.all(), on_update, MonitorOptions())
        if not result.success:
            log.error("지오펜스 모니터 시작 실패", error=result.error)

    http_task = await start_http(s, services)
    log.info("HTTP 서버 시작됨", port=s.observability.http_port)

    stop = asyncio.Future()
    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
            except NotImplementedError: pass
    except RuntimeError: pass

    await stop
    log.info("종료 중")
    if monitor: monitor.stop()
    await sharing.close()
    await sms.close(); await push.close()
    http_task.cancel()

def cli():
    asyncio.run(main())

if __name__ == "__main__":
    cli()
