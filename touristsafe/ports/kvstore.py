"""
Key-value cache port interface.

This module defines the protocol for the small local caches the
geofence monitor keeps (for example the zone-transition log).
Values are JSON strings.
"""

from typing import Protocol, Optional

class KVStorePort(Protocol):
    """로컬 키-값 캐시 포트 인터페이스"""

    async def get(self, key: str) -> Optional[str]:
        """
        캐시된 JSON 문자열을 조회합니다.

        Returns:
            값 또는 None (없거나 만료됨)
        """
        ...

    async def set(self, key: str, value: str, ttl_sec: Optional[int] = None) -> None:
        """
        값을 덮어씁니다.

        Args:
            ttl_sec: 만료 시간 (초), None이면 만료 없음
        """
        ...

    async def delete(self, key: str) -> None:
        """키를 삭제합니다."""
        ...
