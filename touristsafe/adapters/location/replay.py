"""
Replay location provider for TouristSafe.

This module implements the location provider port by replaying a
recorded track on an asyncio timer, and lets callers push samples
directly. It backs the demo service and the tests.
"""

import asyncio
import inspect
from typing import List, Optional, Sequence
from touristsafe.core.models import LocationSample
from touristsafe.ports.location import LocationCallback, WatchOptions
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.location")

class ReplaySubscription:
    """재생 구독 핸들"""

    def __init__(self, provider: "ReplayLocationProvider", callback: LocationCallback, options: WatchOptions):
        self.provider = provider
        self.callback = callback
        self.options = options
        self.active = True
        self.task: Optional[asyncio.Task] = None

    def remove(self) -> None:
        """구독을 해제하고 재생 태스크를 취소합니다 (멱등)."""
        if not self.active:
            return
        self.active = False
        if self.task and not self.task.done():
            self.task.cancel()
        self.provider._subscriptions.discard(self)

class ReplayLocationProvider:
    """기록된 트랙을 재생하는 위치 제공자"""

    def __init__(self,
                 track: Sequence[LocationSample] = (),
                 *,
                 loop: bool = False,
                 time_scale: float = 1.0):
        """
        초기화합니다.

        Args:
            track: 재생할 위치 샘플
            loop: 끝까지 재생한 뒤 처음부터 반복 여부
            time_scale: 구독 간격에 곱할 배율 (0이면 대기 없음)
        """
        self.track: List[LocationSample] = list(track)
        self.loop = loop
        self.time_scale = time_scale
        self.last_location: Optional[LocationSample] = self.track[0] if self.track else None
        self._subscriptions = set()

    async def get_current_location(self) -> LocationSample:
        if self.last_location is None:
            raise LookupError("No location available")
        return self.last_location

    async def watch(self, callback: LocationCallback, options: WatchOptions) -> ReplaySubscription:
        subscription = ReplaySubscription(self, callback, options)
        self._subscriptions.add(subscription)
        if self.track:
            subscription.task = asyncio.create_task(self._replay(subscription))
        log.debug("위치 구독 시작", interval_ms=options.interval_ms, emergency=options.is_emergency)
        return subscription

    def unwatch(self, subscription: Optional[ReplaySubscription]) -> None:
        if subscription is not None:
            subscription.remove()

    async def emit(self, sample: LocationSample) -> None:
        """활성 구독자 모두에게 샘플을 전달합니다."""
        self.last_location = sample
        for subscription in list(self._subscriptions):
            await self._deliver(subscription, sample)

    async def _deliver(self, subscription: ReplaySubscription, sample: LocationSample) -> None:
        if not subscription.active:
            return
        result = subscription.callback(sample)
        if inspect.isawaitable(result):
            await result

    async def _replay(self, subscription: ReplaySubscription) -> None:
        delay = subscription.options.interval_ms / 1000 * self.time_scale
        while subscription.active:
            for sample in self.track:
                if not subscription.active:
                    return
                self.last_location = sample
                await self._deliver(subscription, sample)
                await asyncio.sleep(delay)
            if not self.loop:
                return
