"""
HTTP SMS gateway adapter for TouristSafe.

This module implements the messaging transport port against an
HTTP SMS provider that accepts ``{"to": [...], "body": "..."}``.
"""

from typing import List
from touristsafe.adapters.gateway.http_base import HTTPGateway
from touristsafe.ports.messaging import SMSSendResult
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.sms")

def mask_number(phone_number: str) -> str:
    """로그용 전화번호 마스킹"""
    return phone_number[:6] + "****" if len(phone_number) > 6 else "****"

class HTTPSMSGateway(HTTPGateway):
    """HTTP SMS 게이트웨이"""

    async def is_available(self) -> bool:
        """게이트웨이 URL이 설정되어 있으면 사용 가능합니다."""
        return bool(self.url)

    async def send_sms(self, phone_numbers: List[str], body: str) -> SMSSendResult:
        """
        SMS를 전송합니다.

        Raises:
            aiohttp.ClientError: 전송 실패
        """
        data = await self._post_json({"to": phone_numbers, "body": body})
        status = str(data.get("status", "sent")).lower()
        if status not in ("sent", "failed", "cancelled"):
            status = "unknown"

        log.info("SMS 전송 요청 완료",
                 to=[mask_number(n) for n in phone_numbers],
                 status=status)
        return SMSSendResult(result=status)
