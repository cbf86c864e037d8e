"""
Safety scoring for TouristSafe.

This module computes a 0-100 composite safety score from the zone
safety level plus contextual factors (time of day, crowd density,
weather and emergency-service proximity). Factors are additive signed
impacts applied to a zone base score, and the total is clamped.
"""

import math
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence
from pydantic import BaseModel, Field
from touristsafe.core.models import (
    Coordinate, RiskLevel, RouteBreakdown, RouteSafetyResult,
    SafetyFactor, SafetyScoreResult, SafetyZone, ZoneClassification,
)
from touristsafe.core.zones import ZoneLike, classify
from touristsafe.common.geo import haversine_distance, polygon_centroid
from touristsafe.settings import ScoringConfig
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.scoring")

# 경로 점수 (구역 수준별 점수)
ROUTE_LEVEL_SCORES = {"safe": 100, "caution": 50, "restricted": 0}

class ScoreOptions(BaseModel):
    """점수 계산 옵션"""
    crowd_density: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    weather: Optional[str] = None
    now: Optional[datetime] = None

def get_risk_level(score: float) -> RiskLevel:
    """
    점수를 위험 수준으로 변환합니다.

    80 이상 low, 60 이상 medium, 40 이상 high, 그 외 critical.
    """
    if score >= 80:
        return "low"
    if score >= 60:
        return "medium"
    if score >= 40:
        return "high"
    return "critical"

def get_route_recommendation(score: float) -> str:
    """점수에 따른 경로 권고 문구를 반환합니다."""
    if score >= 80:
        return "This route is generally safe for tourists."
    if score >= 50:
        return "This route requires caution. Consider alternative paths."
    return "This route is not recommended. Please choose a safer alternative."

def get_detailed_recommendation(score: float, factors: Sequence[SafetyFactor]) -> str:
    """점수와 요인 목록으로 상세 권고 문구를 생성합니다."""
    recommendation = get_route_recommendation(score)

    negative = [f.description for f in factors if f.impact < 0]
    positive = [f.description for f in factors if f.impact > 0]

    if negative:
        recommendation += f" Consider: {', '.join(negative)}."
    if positive:
        recommendation += f" Advantages: {', '.join(positive)}."

    return recommendation

def nearest_emergency_service_km(location: Coordinate, zones: Iterable[SafetyZone]) -> Optional[float]:
    """
    긴급 서비스가 등록된 구역 중심까지의 최단 거리를 계산합니다.

    Returns:
        거리 (킬로미터), 긴급 서비스가 있는 구역이 없으면 None
    """
    best = math.inf
    for zone in zones:
        if not zone.emergency_services:
            continue
        lat, lon = polygon_centroid(zone.coordinates)
        best = min(best, haversine_distance(location.latitude, location.longitude, lat, lon))
    return None if best == math.inf else best

def clamp_score(value: float) -> int:
    return int(max(0, min(100, round(value))))

class SafetyScorer:
    """다요인 안전 점수 계산기"""

    def __init__(self,
                 config: Optional[ScoringConfig] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.config = config or ScoringConfig()
        self.clock = clock

    def base_score(self, safety_level: str) -> int:
        return {
            "safe": self.config.base_safe,
            "caution": self.config.base_caution,
            "restricted": self.config.base_restricted,
        }[safety_level]

    def is_night(self, hour: int) -> bool:
        return hour >= self.config.night_start_hour or hour < self.config.night_end_hour

    def is_day(self, hour: int) -> bool:
        return self.config.day_start_hour <= hour < self.config.day_end_hour

    def score(self,
              location: Coordinate,
              zones: Sequence[ZoneLike],
              options: Optional[ScoreOptions] = None) -> SafetyScoreResult:
        """
        위치의 안전 점수를 계산합니다.

        Args:
            location: 평가할 위치
            zones: 안전 구역 목록
            options: 군중 밀도, 날씨, 기준 시각

        Returns:
            안전 점수 결과 (예외를 던지지 않음)
        """
        classification = classify(location, zones)
        return self.score_classification(location, classification, zones, options)

    def score_classification(self,
                             location: Coordinate,
                             classification: ZoneClassification,
                             zones: Sequence[ZoneLike],
                             options: Optional[ScoreOptions] = None) -> SafetyScoreResult:
        """이미 계산된 구역 분류로 점수를 계산합니다."""
        if not classification.success:
            return SafetyScoreResult(success=False, score=0, factors=[],
                                     error=classification.error or "classification failed")

        try:
            opts = options or ScoreOptions()
            cfg = self.config
            now = opts.now or self.clock()

            base = self.base_score(classification.safety_level)
            factors: List[SafetyFactor] = []

            # 시간대 요인
            hour = now.hour
            if self.is_night(hour):
                factors.append(SafetyFactor(factor="Night time", impact=cfg.night_impact,
                                            description="Reduced visibility and activity"))
            elif self.is_day(hour):
                factors.append(SafetyFactor(factor="Day time", impact=cfg.day_impact,
                                            description="Better visibility and activity"))

            # 군중 밀도 요인
            if opts.crowd_density is not None:
                if opts.crowd_density > cfg.high_crowd_threshold:
                    factors.append(SafetyFactor(factor="High crowd density", impact=cfg.high_crowd_impact,
                                                description="More people around for help"))
                elif opts.crowd_density < cfg.low_crowd_threshold:
                    factors.append(SafetyFactor(factor="Low crowd density", impact=cfg.low_crowd_impact,
                                                description="Fewer people around"))

            # 날씨 요인
            if opts.weather and opts.weather.lower() in cfg.adverse_weather:
                factors.append(SafetyFactor(factor="Bad weather", impact=cfg.bad_weather_impact,
                                            description="Weather conditions affect safety"))

            # 긴급 서비스 근접성 요인
            if cfg.emergency_proximity_enabled:
                parsed = [z if isinstance(z, SafetyZone) else SafetyZone.model_validate(z) for z in zones]
                distance = nearest_emergency_service_km(location, parsed)
                if distance is not None and distance < cfg.services_near_km:
                    factors.append(SafetyFactor(factor="Emergency services nearby", impact=cfg.services_near_impact,
                                                description="Quick response available"))
                elif distance is not None and distance > cfg.services_far_km:
                    factors.append(SafetyFactor(factor="Emergency services distant", impact=cfg.services_far_impact,
                                                description="Slower response time"))

            score = clamp_score(base + sum(f.impact for f in factors))

            return SafetyScoreResult(
                success=True,
                score=score,
                factors=factors,
                base_score=base,
                risk_level=get_risk_level(score),
                recommendation=get_detailed_recommendation(score, factors),
            )
        except Exception as e:
            log.error("안전 점수 계산 오류", error=str(e))
            return SafetyScoreResult(success=False, score=0, factors=[], error=str(e))

    def score_route(self, points: Sequence[Coordinate], zones: Sequence[ZoneLike]) -> RouteSafetyResult:
        """
        경로 지점들의 평균 안전 점수를 계산합니다.

        safe=100, caution=50, restricted=0 으로 평균을 냅니다.
        """
        breakdown = RouteBreakdown(total=len(points))
        total = 0

        for point in points:
            check = classify(point, zones)
            if not check.success:
                continue
            total += ROUTE_LEVEL_SCORES[check.safety_level]
            setattr(breakdown, check.safety_level, getattr(breakdown, check.safety_level) + 1)

        average = total / len(points) if points else 0
        return RouteSafetyResult(
            success=True,
            score=round(average),
            breakdown=breakdown,
            recommendation=get_route_recommendation(average),
        )

# 기본 설정 점수 계산기
default_scorer = SafetyScorer()

def score(location: Coordinate,
          zones: Sequence[ZoneLike],
          options: Optional[ScoreOptions] = None) -> SafetyScoreResult:
    """기본 설정으로 안전 점수를 계산합니다."""
    return default_scorer.score(location, zones, options)
