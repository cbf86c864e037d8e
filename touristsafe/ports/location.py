"""
Location provider port interface.

This module defines the protocol for on-device location sources
and the cancellable subscription handle they return.
"""

from typing import Awaitable, Callable, Optional, Protocol, Union
from pydantic import BaseModel
from touristsafe.core.models import LocationSample

LocationCallback = Callable[[LocationSample], Union[None, Awaitable[None]]]

class WatchOptions(BaseModel):
    """위치 구독 옵션"""
    interval_ms: int = 8000
    distance_m: float = 10.0
    is_emergency: bool = False

class Subscription(Protocol):
    """취소 가능한 위치 구독 핸들"""

    def remove(self) -> None:
        """구독을 즉시 해제합니다 (멱등)."""
        ...

class LocationProviderPort(Protocol):
    """위치 제공자 포트 인터페이스"""

    async def get_current_location(self) -> LocationSample:
        """
        현재 위치를 가져옵니다.

        Raises:
            위치를 가져올 수 없으면 예외
        """
        ...

    async def watch(self, callback: LocationCallback, options: WatchOptions) -> Subscription:
        """
        위치 스트림을 구독합니다.

        Args:
            callback: 샘플마다 호출될 콜백 (동기/비동기)
            options: 샘플링 간격 및 거리 필터

        Returns:
            구독 핸들
        """
        ...

    def unwatch(self, subscription: Optional[Subscription]) -> None:
        """구독을 해제합니다."""
        ...
