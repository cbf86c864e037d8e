"""
HTTP push notification adapter for TouristSafe.

This module implements the push notifier port against an HTTP
push relay (for example a messaging webhook).
"""

import aiohttp
from typing import Any, Dict, Optional
from touristsafe.adapters.gateway.http_base import HTTPGateway
from touristsafe.ports.messaging import PushResult
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.push")

class HTTPPushGateway(HTTPGateway):
    """HTTP 푸시 알림 게이트웨이"""

    async def schedule_notification(self,
                                    title: str,
                                    body: str,
                                    data: Optional[Dict[str, Any]] = None,
                                    options: Optional[Dict[str, Any]] = None) -> PushResult:
        """
        푸시 알림을 예약합니다.

        HTTP 오류는 실패 결과로 변환됩니다.
        """
        if not self.url:
            return PushResult(success=False, error="push gateway not configured")

        try:
            response = await self._post_json({
                "title": title,
                "body": body,
                "data": data or {},
                "options": options or {},
            })
        except aiohttp.ClientError as e:
            log.error("푸시 알림 전송 실패", error=str(e))
            return PushResult(success=False, error=str(e))

        notification_id = response.get("id")
        return PushResult(success=True, notification_id=str(notification_id) if notification_id else None)
