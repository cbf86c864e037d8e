"""
Shared HTTP client base for TouristSafe gateways.

This module wraps an aiohttp session with bearer auth, a total
timeout and backoff retries on connection errors.
"""

import aiohttp
from typing import Any, Dict, Optional
from touristsafe.common.retry import retry_with_backoff
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.gateway")

class HTTPGateway:
    """aiohttp 기반 게이트웨이 기본 클래스"""

    def __init__(self, url: str, token: str = "", timeout: int = 10, max_retries: int = 2):
        """
        초기화합니다.

        Args:
            url: 게이트웨이 엔드포인트 URL
            token: Bearer 토큰 (비어 있으면 인증 헤더 없음)
            timeout: 요청 타임아웃 (초)
            max_retries: 연결 오류 재시도 횟수
        """
        self.url = url
        self.token = token
        self.timeout = timeout
        self.max_retries = max_retries
        self.session: Optional[aiohttp.ClientSession] = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self.session

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def _post_json(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        JSON POST 요청을 수행합니다.

        연결 오류만 재시도하며 HTTP 오류 응답은 즉시 예외로 전달됩니다.
        """
        session = await self._ensure_session()

        async def _request():
            async with session.post(self.url, json=payload) as response:
                response.raise_for_status()
                if response.content_type == "application/json":
                    return await response.json()
                return {}

        return await retry_with_backoff(
            _request,
            max_retries=self.max_retries,
            base_delay=0.5,
            max_delay=5.0,
            retry_on=(aiohttp.ClientConnectionError,)
        )
