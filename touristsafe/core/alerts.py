"""
Safety alert generation for TouristSafe.

Rules are evaluated independently and in a fixed order, so one
location can produce several alerts. No deduplication happens here;
suppressing repeats across evaluations is the caller's job.
"""

from datetime import datetime
from typing import Callable, List, Optional
from touristsafe.core.models import Coordinate, SafetyAlert, SafetyScoreResult, ZoneClassification
from touristsafe.settings import ScoringConfig

LOW_SCORE_THRESHOLD = 40

class AlertGenerator:
    """구역 분류와 점수로 안전 알림 목록을 생성합니다."""

    def __init__(self,
                 config: Optional[ScoringConfig] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.config = config or ScoringConfig()
        self.clock = clock

    def is_night(self, now: datetime) -> bool:
        return now.hour >= self.config.night_start_hour or now.hour < self.config.night_end_hour

    def generate(self,
                 location: Coordinate,
                 classification: ZoneClassification,
                 score_result: Optional[SafetyScoreResult],
                 now: Optional[datetime] = None) -> List[SafetyAlert]:
        """
        안전 알림을 생성합니다.

        Args:
            location: 현재 위치
            classification: 구역 분류 결과
            score_result: 안전 점수 결과 (없을 수 있음)
            now: 기준 시각 (기본값: clock)

        Returns:
            규칙 평가 순서대로 정렬된 알림 목록
        """
        alerts: List[SafetyAlert] = []
        now = now or self.clock()

        # 구역 기반 알림
        if classification.safety_level == "restricted":
            alerts.append(SafetyAlert(
                type="danger",
                title="Restricted Area Warning",
                message="You have entered a restricted area. Please leave immediately.",
                priority="high",
                actions=["Call Emergency", "Get Directions Out", "Share Location"],
            ))
        elif classification.safety_level == "caution":
            alerts.append(SafetyAlert(
                type="warning",
                title="Caution Area",
                message="Exercise extra caution in this area. Stay alert and avoid isolated spots.",
                priority="medium",
                actions=["View Safety Tips", "Share Location", "Find Safe Route"],
            ))

        # 점수 기반 알림
        if score_result is not None and score_result.success and score_result.score < LOW_SCORE_THRESHOLD:
            alerts.append(SafetyAlert(
                type="warning",
                title="Low Safety Score",
                message=f"Current safety score: {score_result.score}/100. Consider moving to a safer area.",
                priority="medium",
                actions=["Find Safe Route", "Call Contact", "View Recommendations"],
            ))

        # 시간 기반 알림
        if self.is_night(now):
            alerts.append(SafetyAlert(
                type="info",
                title="Night Safety Reminder",
                message="It's late. Consider staying in well-lit, populated areas.",
                priority="low",
                actions=["Find Accommodation", "Call Taxi", "Share Location"],
            ))

        return alerts

def generate(location: Coordinate,
             classification: ZoneClassification,
             score_result: Optional[SafetyScoreResult],
             now: Optional[datetime] = None) -> List[SafetyAlert]:
    """기본 설정으로 안전 알림을 생성합니다."""
    return AlertGenerator().generate(location, classification, score_result, now)
