"""
Retry and timeout utilities for TouristSafe.

This module provides the backoff retry used by the HTTP gateways and
the per-call timeout applied to every transport and persistence call.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

T = TypeVar('T')

class TransportTimeout(Exception):
    """전송/저장 호출이 제한 시간을 넘김"""

    def __init__(self, channel: str, timeout: float):
        super().__init__(f"{channel} timed out after {timeout:g}s")
        self.channel = channel
        self.timeout = timeout

async def call_with_timeout(awaitable: Awaitable[T], timeout: Optional[float], channel: str) -> T:
    """
    제한 시간을 걸고 호출합니다.

    Args:
        awaitable: 실행할 코루틴
        timeout: 제한 시간 (초), None 또는 0 이하면 제한 없음
        channel: 오류 메시지에 쓸 채널 이름

    Raises:
        TransportTimeout: 제한 시간 초과
    """
    if not timeout or timeout <= 0:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise TransportTimeout(channel, timeout) from None

async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
) -> T:
    """
    지수 백오프와 함께 함수를 재시도합니다.

    Args:
        func: 재시도할 비동기 함수
        max_retries: 최대 재시도 횟수
        base_delay: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: 지터 적용 여부
        retry_on: 재시도할 예외 타입

    Returns:
        함수 실행 결과

    Raises:
        마지막 시도에서 발생한 예외
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await func()
        except retry_on:
            if attempt > max_retries:
                raise

            delay = min(max_delay, base_delay * (2 ** (attempt - 1)))
            if jitter:
                delay = delay * (0.5 + random.random() * 0.5)

            await asyncio.sleep(delay)
