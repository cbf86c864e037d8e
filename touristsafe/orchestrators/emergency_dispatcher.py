"""
Emergency dispatcher for TouristSafe.

This module implements the panic-button pipeline: compose the
alert, fan it out to emergency contacts over SMS, confirm to the
user by push, and persist the incident record. Every channel is
best effort except persistence.
"""

import asyncio
import time
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Sequence
from touristsafe.common.retry import call_with_timeout
from touristsafe.core import messages
from touristsafe.core.models import (
    ChannelResult, ContactSendResult, Coordinate, EmergencyAlertResult, EmergencyContact,
    EmergencyIncident, LocationHistoryEntry, LocationSample, OperationResult, UserProfile,
)
from touristsafe.ports.documents import ArrayUnion, DocumentStorePort
from touristsafe.ports.messaging import DialerPort, MessagingTransportPort, PushNotifierPort
from touristsafe.settings import EmergencyConfig
from touristsafe.observability import metrics
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.emergency")

SMS_UNAVAILABLE = "SMS not available on this device"
CALL_UNSUPPORTED = "Phone calls not supported on this device"

def order_contacts(contacts: Sequence[EmergencyContact]) -> List[EmergencyContact]:
    """주 연락처를 앞으로, 나머지는 입력 순서를 유지한 새 목록을 반환합니다."""
    primary = [c for c in contacts if c.is_primary]
    others = [c for c in contacts if not c.is_primary]
    return primary + others

class EmergencyDispatcher:
    """긴급 경보 발송기"""

    def __init__(self,
                 messaging: MessagingTransportPort,
                 push: PushNotifierPort,
                 documents: DocumentStorePort,
                 dialer: Optional[DialerPort] = None,
                 *,
                 config: Optional[EmergencyConfig] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """
        초기화합니다.

        Args:
            messaging: SMS 전송 포트
            push: 푸시 알림 포트
            documents: 사건 기록 저장소
            dialer: 전화 걸기 포트 (없으면 통화 불가)
            config: 긴급 설정
            clock: 현재 시각 함수
            sleep: 연락처 간 대기 함수
        """
        self.messaging = messaging
        self.push = push
        self.documents = documents
        self.dialer = dialer
        self.config = config or EmergencyConfig()
        self.clock = clock
        self.sleep = sleep

    @property
    def timeout(self) -> float:
        return self.config.transport_timeout_sec

    async def send_emergency_alert(self,
                                   location: Optional[LocationSample],
                                   user_profile: Optional[UserProfile],
                                   contacts: Optional[Sequence[EmergencyContact]] = None,
                                   custom_message: Optional[str] = None) -> EmergencyAlertResult:
        """
        긴급 경보를 발송합니다.

        SMS → 푸시 → 사건 기록 → 외부 기관 통지 순서로 진행합니다.
        사건 기록 저장 실패만 전체 실패로 처리됩니다.

        Args:
            location: 현재 위치
            user_profile: 사용자 프로필
            contacts: 긴급 연락처 (원본은 변경하지 않음)
            custom_message: 사용자 지정 메시지 (없으면 템플릿 사용)

        Returns:
            채널별 결과를 포함한 발송 결과
        """
        if location is None:
            return EmergencyAlertResult(success=False, error="location is required")
        if user_profile is None:
            return EmergencyAlertResult(success=False, error="user profile is required")

        started = time.perf_counter()
        contacts = list(contacts or [])
        now = self.clock()
        message = custom_message or messages.create_emergency_message(
            location, user_profile, self.config.numbers, now,
            map_url=self.config.map_url,
            app_name=self.config.app_name,
        )

        log.info("긴급 경보 발송 시작", user_id=user_profile.id, contacts=len(contacts))
        result = EmergencyAlertResult(success=False, message=message)

        # 1. 연락처 SMS
        if contacts:
            result.sms_results = await self.notify_contacts(contacts, message)
            result.errors += [f"sms {r.phone_number}: {r.error}" for r in result.sms_results if r.error]

        # 2. 사용자 확인 푸시
        push_result = await self._send_confirmation(location, now)
        result.notification_results.append(push_result)
        if push_result.error:
            result.errors.append(f"push: {push_result.error}")

        # 3. 사건 기록 (필수)
        record = await self._persist_incident(user_profile, location, contacts, message, now)
        result.firestore_results.append(record)
        if not record.success:
            metrics.emergency_alerts.labels(outcome="failed").inc()
            log.error("사건 기록 실패로 긴급 경보 실패", user_id=user_profile.id, error=record.error)
            result.error = record.error
            result.errors.append(f"persistence: {record.error}")
            return result

        # 4. 외부 기관 통지 (기록만)
        self._notify_emergency_services(location, user_profile, now)

        result.success = True
        result.emergency_id = record.id
        metrics.emergency_alerts.labels(outcome="sent").inc()
        metrics.dispatch_seconds.observe(time.perf_counter() - started)
        log.info("긴급 경보 발송 완료",
                 emergency_id=record.id,
                 sms_ok=sum(1 for r in result.sms_results if r.success),
                 sms_total=len(result.sms_results))
        return result

    async def notify_contacts(self,
                              contacts: Sequence[EmergencyContact],
                              message: str,
                              should_continue: Optional[Callable[[], bool]] = None) -> List[ContactSendResult]:
        """
        연락처에 순서대로 SMS를 보냅니다.

        주 연락처가 먼저 전송되며, 전송 사이에 설정된 지연을 둡니다.
        SMS를 쓸 수 없으면 전송을 시도하지 않고 모든 연락처를 실패로 기록합니다.

        Args:
            should_continue: 각 전송 직전에 확인하며, False면 남은 연락처를 건너뜀
        """
        ordered = order_contacts(contacts)
        if not ordered:
            return []

        availability = await self.check_sms_availability()
        if not availability.success:
            metrics.sms_sends.labels(result="unavailable").inc(len(ordered))
            log.warning("SMS 사용 불가", contacts=len(ordered), error=availability.error)
            return [
                ContactSendResult(contact=c, success=False, phone_number=c.phone_number, error=SMS_UNAVAILABLE)
                for c in ordered
            ]

        results = []
        for index, contact in enumerate(ordered):
            if index > 0 and self.config.sms_send_delay_sec > 0:
                await self.sleep(self.config.sms_send_delay_sec)
            if should_continue is not None and not should_continue():
                log.info("연락처 전송 중단", sent=len(results), skipped=len(ordered) - index)
                break
            results.append(await self._send_to_contact(contact, message))
        return results

    async def _send_to_contact(self, contact: EmergencyContact, message: str) -> ContactSendResult:
        try:
            sent = await call_with_timeout(
                self.messaging.send_sms([contact.phone_number], message), self.timeout, "sms")
        except Exception as e:
            metrics.sms_sends.labels(result="error").inc()
            log.warning("SMS 전송 실패", contact_id=contact.id, error=str(e))
            return ContactSendResult(contact=contact, success=False,
                                     phone_number=contact.phone_number, error=str(e) or type(e).__name__)

        metrics.sms_sends.labels(result=sent.result).inc()
        success = sent.result == "sent"
        return ContactSendResult(
            contact=contact,
            success=success,
            phone_number=contact.phone_number,
            result=sent.result,
            error=None if success else f"SMS {sent.result}",
        )

    async def _send_confirmation(self, location: Coordinate, now: datetime) -> ChannelResult:
        try:
            pushed = await call_with_timeout(
                self.push.schedule_notification(
                    "Emergency Alert Sent",
                    "Your emergency contacts have been notified with your current location.",
                    {"type": "emergency", "location": location.to_document(), "timestamp": now.isoformat()},
                ),
                self.timeout, "push")
        except Exception as e:
            metrics.push_notifications.labels(result="error").inc()
            log.warning("긴급 푸시 알림 실패", error=str(e))
            return ChannelResult(channel="push", success=False, error=str(e) or type(e).__name__)

        metrics.push_notifications.labels(result="sent" if pushed.success else "failed").inc()
        return ChannelResult(channel="push", success=pushed.success,
                             id=pushed.notification_id, error=pushed.error)

    async def _persist_incident(self,
                                user_profile: UserProfile,
                                location: LocationSample,
                                contacts: List[EmergencyContact],
                                message: str,
                                now: datetime) -> ChannelResult:
        incident = EmergencyIncident(
            user_id=user_profile.id,
            location=location,
            message=message,
            emergency_contacts=contacts,
            timestamp=now,
            location_history=[LocationHistoryEntry(location=location, timestamp=now)],
            created_at=now,
            updated_at=now,
        )
        try:
            emergency_id = await call_with_timeout(
                self.documents.add(self.config.collection, incident.to_document()), self.timeout, "persistence")
        except Exception as e:
            return ChannelResult(channel="firestore", success=False, error=str(e) or type(e).__name__)
        return ChannelResult(channel="firestore", success=True, id=emergency_id)

    def _notify_emergency_services(self, location: Coordinate, user_profile: UserProfile, now: datetime) -> None:
        # 외부 기관 연동 없음
        log.info("긴급 기관 통지",
                 user=user_profile.name,
                 lat=location.latitude,
                 lon=location.longitude,
                 at=now.isoformat())

    async def make_emergency_call(self, number: Optional[str] = None) -> OperationResult:
        """
        긴급 전화를 겁니다 (기본: 경찰).

        예외를 던지지 않고 실패 결과를 반환합니다.
        """
        number = number or self.config.numbers.get("police", "100")
        if self.dialer is None:
            return OperationResult(success=False, error=CALL_UNSUPPORTED)

        url = f"tel:{number}"
        try:
            if not await call_with_timeout(self.dialer.can_open_url(url), self.timeout, "dialer"):
                return OperationResult(success=False, error=CALL_UNSUPPORTED)
            await call_with_timeout(self.dialer.open_url(url), self.timeout, "dialer")
        except Exception as e:
            log.error("긴급 전화 실패", number=number, error=str(e))
            return OperationResult(success=False, error=str(e) or type(e).__name__)

        log.info("긴급 전화 연결", number=number)
        return OperationResult(success=True)

    async def send_location_update(self,
                                   location: LocationSample,
                                   emergency_id: str,
                                   user_profile: Optional[UserProfile] = None,
                                   contacts: Optional[Sequence[EmergencyContact]] = None) -> OperationResult:
        """
        진행 중인 사건 기록에 위치를 추가하고 사용자에게 알립니다.

        연락처가 주어지면 짧은 위치 갱신 SMS도 보냅니다.
        저장 오류는 그대로 실패 결과로 반환되며, 이때 SMS는 보내지 않습니다.
        """
        try:
            await self.record_incident_location(location, emergency_id)
        except Exception as e:
            log.error("사건 위치 갱신 실패", emergency_id=emergency_id, error=str(e))
            return OperationResult(success=False, error=str(e) or type(e).__name__)

        try:
            await call_with_timeout(
                self.push.schedule_notification(
                    "Location Updated",
                    "Your location has been shared with emergency contacts.",
                    {"type": "location_update", "location": location.to_document()},
                ),
                self.timeout, "push")
        except Exception as e:
            log.warning("위치 갱신 푸시 실패", error=str(e))

        data = {"emergencyId": emergency_id}
        if contacts:
            text = messages.create_location_update_message(location, self.clock())
            results = await self.notify_contacts(contacts, text)
            data["smsSent"] = sum(1 for r in results if r.success)

        log.debug("사건 위치 갱신",
                  emergency_id=emergency_id,
                  user_id=user_profile.id if user_profile else None)
        return OperationResult(success=True, data=data)

    async def record_incident_location(self, location: Coordinate, emergency_id: str, shared: bool = False) -> None:
        """
        사건 기록의 위치 이력에 항목을 추가합니다.

        Raises:
            DocumentNotFound: 사건 기록이 없는 경우
            TransportTimeout: 저장소 응답 지연
        """
        now = self.clock()
        entry = LocationHistoryEntry(location=location, timestamp=now, shared=shared)
        await call_with_timeout(
            self.documents.update(self.config.collection, emergency_id, {
                "currentLocation": location.to_document(),
                "lastLocationUpdate": now.isoformat(),
                "updatedAt": now.isoformat(),
                "locationHistory": ArrayUnion(entry.to_document()),
            }),
            self.timeout, "persistence")

    def get_message_templates(self) -> Dict[str, str]:
        return messages.get_message_templates()

    async def check_sms_availability(self) -> OperationResult:
        """SMS 사용 가능 여부를 확인합니다."""
        try:
            available = await call_with_timeout(self.messaging.is_available(), self.timeout, "sms")
        except Exception as e:
            return OperationResult(success=False, error=str(e) or type(e).__name__, data={"available": False})
        return OperationResult(success=bool(available),
                               error=None if available else SMS_UNAVAILABLE,
                               data={"available": bool(available)})
