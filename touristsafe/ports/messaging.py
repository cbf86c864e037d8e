"""
Messaging transport port interfaces.

This module defines the protocols for SMS delivery, push
notifications and the phone dialer capability.
"""

from typing import Any, Dict, List, Literal, Optional, Protocol
from pydantic import BaseModel

class SMSSendResult(BaseModel):
    """SMS 전송 결과"""
    result: Literal["sent", "failed", "cancelled", "unknown"]

class PushResult(BaseModel):
    """푸시 알림 예약 결과"""
    success: bool
    notification_id: Optional[str] = None
    error: Optional[str] = None

class MessagingTransportPort(Protocol):
    """SMS 전송 포트 인터페이스"""

    async def is_available(self) -> bool:
        """SMS 전송 가능 여부를 반환합니다."""
        ...

    async def send_sms(self, phone_numbers: List[str], body: str) -> SMSSendResult:
        """
        SMS를 전송합니다.

        Raises:
            하드 실패 시 예외
        """
        ...

class PushNotifierPort(Protocol):
    """푸시 알림 포트 인터페이스"""

    async def schedule_notification(self,
                                    title: str,
                                    body: str,
                                    data: Optional[Dict[str, Any]] = None,
                                    options: Optional[Dict[str, Any]] = None) -> PushResult:
        """알림을 예약합니다."""
        ...

class DialerPort(Protocol):
    """전화 걸기 포트 인터페이스"""

    async def can_open_url(self, url: str) -> bool:
        ...

    async def open_url(self, url: str) -> None:
        ...
