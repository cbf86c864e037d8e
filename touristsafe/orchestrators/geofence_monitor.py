"""
Geofence monitor for TouristSafe.

This module implements the stateful monitor that subscribes to a
location stream and, for every sample, classifies the location,
computes the safety score, generates alerts, detects zone
transitions and hands the result to the caller's callback.
"""

import inspect
import json
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence, Union
from pydantic import BaseModel, Field
from touristsafe.core.alerts import AlertGenerator
from touristsafe.core.models import GeoFenceUpdate, LocationSample, OperationResult, ZoneTransition
from touristsafe.core.scoring import SafetyScorer, ScoreOptions
from touristsafe.core.zones import ZoneLike, classify
from touristsafe.ports.kvstore import KVStorePort
from touristsafe.ports.location import LocationProviderPort, Subscription, WatchOptions
from touristsafe.settings import GeoFenceConfig
from touristsafe.observability import metrics
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.geofence")

UpdateCallback = Callable[[GeoFenceUpdate], Union[None, Awaitable[None]]]

class MonitorState(str, Enum):
    STOPPED = "stopped"
    MONITORING = "monitoring"

class MonitorOptions(BaseModel):
    """모니터링 옵션"""
    is_emergency: bool = False
    score_options: ScoreOptions = Field(default_factory=ScoreOptions)

class GeoFenceMonitor:
    """지오펜스 모니터 (STOPPED ↔ MONITORING)"""

    def __init__(self,
                 location_provider: LocationProviderPort,
                 *,
                 scorer: Optional[SafetyScorer] = None,
                 alert_generator: Optional[AlertGenerator] = None,
                 transition_store: Optional[KVStorePort] = None,
                 config: Optional[GeoFenceConfig] = None,
                 clock: Callable[[], datetime] = datetime.now):
        """
        초기화합니다.

        Args:
            location_provider: 위치 스트림 제공자
            scorer: 안전 점수 계산기
            alert_generator: 알림 생성기
            transition_store: 구역 전환 로그 캐시 (없으면 기록하지 않음)
            config: 지오펜스 설정
            clock: 현재 시각 함수
        """
        self.location_provider = location_provider
        self.scorer = scorer or SafetyScorer(clock=clock)
        self.alert_generator = alert_generator or AlertGenerator(self.scorer.config, clock=clock)
        self.transition_store = transition_store
        self.config = config or GeoFenceConfig()
        self.clock = clock

        self.state = MonitorState.STOPPED
        self.zones: List[ZoneLike] = []
        self.options = MonitorOptions()
        self._on_update: Optional[UpdateCallback] = None
        self._subscription: Optional[Subscription] = None
        self._generation = 0

        # 현재 구역 추적
        self.current_zone_id: Optional[str] = None
        self.zone_entry_time: Optional[datetime] = None

    @property
    def is_monitoring(self) -> bool:
        return self.state is MonitorState.MONITORING

    def watch_options(self, is_emergency: bool) -> WatchOptions:
        """모드에 따른 위치 구독 옵션을 반환합니다."""
        if is_emergency:
            return WatchOptions(interval_ms=self.config.emergency_interval_ms,
                                distance_m=self.config.emergency_distance_m,
                                is_emergency=True)
        return WatchOptions(interval_ms=self.config.normal_interval_ms,
                            distance_m=self.config.normal_distance_m,
                            is_emergency=False)

    async def start(self,
                    zones: Sequence[ZoneLike],
                    on_update: UpdateCallback,
                    options: Optional[MonitorOptions] = None) -> OperationResult:
        """
        모니터링을 시작합니다.

        위치 스트림 구독에 실패하면 실패 결과를 반환하고 STOPPED 상태를 유지합니다.
        """
        if self.is_monitoring:
            return OperationResult(success=False, error="already monitoring")

        self.zones = list(zones)
        self.options = options or MonitorOptions()
        self._on_update = on_update
        self.current_zone_id = None
        self.zone_entry_time = None

        result = await self._subscribe(self.options.is_emergency)
        if not result.success:
            return result

        self.state = MonitorState.MONITORING
        metrics.monitor_active.inc()
        log.info("지오펜스 모니터링 시작",
                 zones=len(self.zones),
                 emergency=self.options.is_emergency)
        return OperationResult(success=True)

    async def _subscribe(self, is_emergency: bool) -> OperationResult:
        self._generation += 1
        generation = self._generation

        async def _callback(sample: LocationSample) -> None:
            await self._handle_sample(sample, generation)

        try:
            self._subscription = await self.location_provider.watch(_callback, self.watch_options(is_emergency))
        except Exception as e:
            log.error("위치 구독 실패", error=str(e))
            self._subscription = None
            return OperationResult(success=False, error=str(e))

        if self._subscription is None:
            return OperationResult(success=False, error="location stream unavailable")
        return OperationResult(success=True)

    def _unsubscribe(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        try:
            subscription.remove()
        except Exception as e:
            log.warning("위치 구독 해제 오류", error=str(e))

    def stop(self) -> None:
        """모니터링을 중지합니다 (멱등, 동기)."""
        if not self.is_monitoring:
            return
        # 상태를 먼저 바꿔 이미 전달 중인 샘플도 무시되게 함
        self.state = MonitorState.STOPPED
        self._generation += 1
        self._unsubscribe()
        metrics.monitor_active.dec()
        log.info("지오펜스 모니터링 중지")

    async def set_emergency_mode(self, is_emergency: bool) -> OperationResult:
        """
        긴급/일반 모드를 전환합니다.

        모니터링 중이면 새 간격으로 다시 구독합니다.
        """
        if self.options.is_emergency == is_emergency:
            return OperationResult(success=True)

        self.options = self.options.model_copy(update={"is_emergency": is_emergency})
        if not self.is_monitoring:
            return OperationResult(success=True)

        self._unsubscribe()
        result = await self._subscribe(is_emergency)
        if not result.success:
            self.state = MonitorState.STOPPED
            metrics.monitor_active.dec()
            log.error("모드 전환 중 재구독 실패, 모니터링 중지", error=result.error)
            return result

        log.info("모니터링 모드 전환", emergency=is_emergency)
        return OperationResult(success=True)

    def _is_current(self, generation: int) -> bool:
        return self.is_monitoring and generation == self._generation

    async def _handle_sample(self, sample: LocationSample, generation: int) -> None:
        """위치 샘플 하나를 처리합니다. 실패한 샘플은 건너뜁니다."""
        if not self._is_current(generation):
            return

        try:
            update = self.evaluate(sample)
        except Exception as e:
            metrics.location_samples_failed.inc()
            log.warning("위치 샘플 처리 실패, 건너뜀", error=str(e))
            return

        metrics.location_samples.labels(mode="emergency" if self.options.is_emergency else "normal").inc()

        if update.transition is not None:
            await self.cache_zone_transition(update.transition)

        # 처리 중에 stop()이 호출되었으면 콜백하지 않음
        if not self._is_current(generation) or self._on_update is None:
            return

        try:
            result = self._on_update(update)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            log.error("지오펜스 콜백 오류", error=str(e))

    def evaluate(self, sample: LocationSample) -> GeoFenceUpdate:
        """
        분류 → 점수 → 알림 → 전환 감지를 수행합니다.

        Raises:
            ValueError: 구역 분류 실패
        """
        now = self.clock()
        classification = classify(sample, self.zones)
        if not classification.success:
            raise ValueError(classification.error or "classification failed")

        score_options = self.options.score_options
        if score_options.now is None:
            score_options = score_options.model_copy(update={"now": now})

        score = self.scorer.score_classification(sample, classification, self.zones, score_options)
        if score.success:
            metrics.safety_score.observe(score.score)

        alerts = self.alert_generator.generate(sample, classification,
                                               score if score.success else None,
                                               now=score_options.now)
        for alert in alerts:
            metrics.safety_alerts_generated.labels(type=alert.type).inc()

        zone_id = classification.zone.id if classification.zone else None
        transition = None
        if zone_id != self.current_zone_id:
            elapsed = None
            if self.current_zone_id is not None and self.zone_entry_time is not None:
                elapsed = (now - self.zone_entry_time).total_seconds()
            transition = ZoneTransition(
                from_zone=self.current_zone_id,
                to_zone=zone_id,
                timestamp=now,
                time_in_previous_zone=elapsed,
            )
            self.current_zone_id = zone_id
            self.zone_entry_time = now
            metrics.zone_transitions.labels(to_level=classification.safety_level).inc()
            log.info("구역 전환 감지",
                     from_zone=transition.from_zone,
                     to_zone=transition.to_zone,
                     seconds=elapsed)

        return GeoFenceUpdate(
            location=sample,
            classification=classification,
            score=score if score.success else None,
            alerts=alerts,
            transition=transition,
            timestamp=now,
        )

    async def cache_zone_transition(self, transition: ZoneTransition) -> None:
        """
        구역 전환을 로컬 로그에 추가합니다 (최신순, 최대 크기 유지).

        저장 실패는 기록만 하고 무시합니다.
        """
        if self.transition_store is None:
            return
        try:
            raw = await self.transition_store.get(self.config.transition_cache_key)
            history = json.loads(raw) if raw else []
            history.insert(0, transition.to_document())
            del history[self.config.transition_cache_size:]
            await self.transition_store.set(self.config.transition_cache_key, json.dumps(history))
        except Exception as e:
            log.warning("구역 전환 캐시 저장 실패", error=str(e))

    async def get_zone_transition_history(self) -> List[ZoneTransition]:
        """캐시된 구역 전환 기록을 최신순으로 반환합니다."""
        if self.transition_store is None:
            return []
        try:
            raw = await self.transition_store.get(self.config.transition_cache_key)
            return [ZoneTransition.model_validate(item) for item in json.loads(raw)] if raw else []
        except Exception as e:
            log.warning("구역 전환 기록 조회 실패", error=str(e))
            return []
