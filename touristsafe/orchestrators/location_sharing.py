"""
Emergency location sharing for TouristSafe.

This module implements the sharing session that runs while an
emergency is active: it records every location update and re-shares
the position with contacts at most once per share interval.
"""

import asyncio
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence
from touristsafe.common.retry import call_with_timeout
from touristsafe.core import messages
from touristsafe.core.models import (
    EmergencyAlertResult, EmergencyContact, LocationHistoryEntry, LocationSample,
    LocationSharingSession, SharingResult, UserProfile,
)
from touristsafe.orchestrators.emergency_dispatcher import EmergencyDispatcher
from touristsafe.ports.documents import ArrayUnion, DocumentStorePort
from touristsafe.ports.location import LocationProviderPort
from touristsafe.ports.messaging import PushNotifierPort
from touristsafe.settings import SharingConfig
from touristsafe.observability import metrics
from touristsafe.observability.logging_setup import get_logger, with_context

log = get_logger("touristsafe.sharing")

class LocationSharingService:
    """긴급 위치 공유 서비스"""

    def __init__(self,
                 dispatcher: EmergencyDispatcher,
                 documents: DocumentStorePort,
                 push: PushNotifierPort,
                 location_provider: Optional[LocationProviderPort] = None,
                 *,
                 config: Optional[SharingConfig] = None,
                 clock: Callable[[], datetime] = datetime.now):
        """
        초기화합니다.

        Args:
            dispatcher: 긴급 경보 발송기
            documents: 세션 저장소
            push: 푸시 알림 포트
            location_provider: 주기적 위치 기록용 제공자 (없으면 수동 갱신만)
            config: 공유 설정
            clock: 현재 시각 함수
        """
        self.dispatcher = dispatcher
        self.documents = documents
        self.push = push
        self.location_provider = location_provider
        self.config = config or SharingConfig()
        self.clock = clock

        self.sessions: Dict[str, LocationSharingSession] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    @property
    def timeout(self) -> float:
        return self.dispatcher.timeout

    def _share_message(self, location: LocationSample, user_profile: UserProfile, is_emergency: bool) -> str:
        return messages.create_location_share_message(
            location, user_profile, is_emergency, self.clock(),
            map_url=self.dispatcher.config.map_url,
            app_name=self.dispatcher.config.app_name,
        )

    async def start_emergency_location_sharing(self,
                                               emergency_id: str,
                                               user_profile: Optional[UserProfile],
                                               contacts: Sequence[EmergencyContact],
                                               initial_location: Optional[LocationSample]) -> SharingResult:
        """
        위치 공유 세션을 시작합니다.

        세션을 저장한 뒤 즉시 한 번 전체 경보를 발송하고 (간격 제한 없음),
        위치 제공자가 있으면 주기적 기록을 시작합니다.
        """
        if user_profile is None or initial_location is None:
            return SharingResult(success=False, error="user profile and initial location are required")

        now = self.clock()
        contacts = list(contacts)
        session = LocationSharingSession(
            emergency_id=emergency_id,
            user_id=user_profile.id,
            contacts=contacts,
            start_time=now,
            location_history=[LocationHistoryEntry(location=initial_location, timestamp=now)],
            share_interval_sec=self.config.share_interval_sec,
            last_shared_at=now,
        )

        try:
            session_id = await call_with_timeout(
                self.documents.add(self.config.collection, session.to_document()), self.timeout, "persistence")
        except Exception as e:
            log.error("위치 공유 세션 생성 실패", emergency_id=emergency_id, error=str(e))
            return SharingResult(success=False, error=str(e) or type(e).__name__)

        session.session_id = session_id
        self.sessions[session_id] = session
        metrics.active_sharing_sessions.inc()

        # 최초 공유는 간격 제한 없이 전체 발송
        alert = await self.dispatcher.send_emergency_alert(
            initial_location, user_profile, contacts,
            self._share_message(initial_location, user_profile, is_emergency=True))
        if alert.success:
            await self._notify_shared(initial_location, len(contacts))
        metrics.location_shares.labels(action="initial").inc()

        if self.location_provider is not None:
            self._tasks[session_id] = asyncio.create_task(self._record_periodically(session_id, user_profile))

        log.info("위치 공유 시작", session_id=session_id, emergency_id=emergency_id, shared=alert.success)
        return SharingResult(success=True, session_id=session_id, shared=alert.success)

    async def _record_periodically(self, session_id: str, user_profile: UserProfile) -> None:
        with with_context(session_id=session_id):
            while True:
                await asyncio.sleep(self.config.record_interval_sec)
                session = self.sessions.get(session_id)
                if session is None or not session.is_active:
                    return
                try:
                    location = await self.location_provider.get_current_location()
                    await self.update_emergency_location(session_id, location, user_profile)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    log.warning("주기적 위치 기록 실패", error=str(e))

    async def _load_session(self, session_id: str) -> Optional[LocationSharingSession]:
        session = self.sessions.get(session_id)
        if session is not None:
            return session

        doc = await call_with_timeout(
            self.documents.get(self.config.collection, session_id), self.timeout, "persistence")
        if doc is None:
            return None
        session = LocationSharingSession.model_validate(doc)
        session.session_id = session_id
        self.sessions[session_id] = session
        return session

    async def update_emergency_location(self,
                                        session_id: str,
                                        new_location: LocationSample,
                                        user_profile: UserProfile,
                                        contacts: Optional[Sequence[EmergencyContact]] = None) -> SharingResult:
        """
        세션에 새 위치를 기록합니다.

        위치는 항상 이력에 추가되며, 마지막 공유 후 공유 간격이 지났을 때만
        연락처에 다시 알립니다. 같은 세션의 갱신은 호출 순서대로 하나씩
        처리되고, 처리 도중 세션이 중지되면 남은 전송과 기록을 멈춥니다.

        Args:
            session_id: 세션 ID
            new_location: 새 위치
            user_profile: 사용자 프로필
            contacts: 알릴 연락처 (없으면 세션의 연락처)
        """
        try:
            session = await self._load_session(session_id)
        except Exception as e:
            log.error("위치 공유 세션 조회 실패", session_id=session_id, error=str(e))
            return SharingResult(success=False, session_id=session_id, error=str(e) or type(e).__name__)

        if session is None:
            return SharingResult(success=False, session_id=session_id, error="session not found")

        # 세션별로 간격 확인부터 이력 추가까지 호출 순서대로 처리
        async with self._lock_for(session_id):
            if not session.is_active:
                return SharingResult(success=False, session_id=session_id, error="session is not active")

            now = self.clock()
            should_share = (now - session.last_shared_at).total_seconds() >= session.share_interval_sec

            shared = False
            if should_share:
                targets = list(contacts) if contacts is not None else session.contacts
                message = self._share_message(new_location, user_profile, is_emergency=True)
                results = await self.dispatcher.notify_contacts(
                    targets, message, should_continue=lambda: session.is_active)
                shared = any(r.success for r in results)
                if shared and session.is_active:
                    session.last_shared_at = now
                    await self._notify_shared(new_location, len(targets))
                metrics.location_shares.labels(action="shared" if shared else "share_failed").inc()
            else:
                metrics.location_shares.labels(action="throttled").inc()

            # 공유 도중 중지된 세션에는 기록하지 않음
            if not session.is_active:
                log.info("중지된 세션의 위치 갱신 폐기", session_id=session_id, shared=shared)
                return SharingResult(success=False, session_id=session_id, shared=shared,
                                     error="session is not active")

            entry = LocationHistoryEntry(location=new_location, timestamp=now, shared=shared)
            session.location_history.append(entry)
            await self._persist_entry(session, entry, shared)

        log.debug("위치 공유 갱신", session_id=session_id, shared=shared)
        return SharingResult(success=True, session_id=session_id, shared=shared)

    async def _persist_entry(self, session: LocationSharingSession, entry: LocationHistoryEntry, shared: bool) -> None:
        partial = {
            "locationHistory": ArrayUnion(entry.to_document()),
            "lastLocationUpdate": entry.timestamp.isoformat(),
        }
        if shared:
            partial["lastSharedAt"] = session.last_shared_at.isoformat()

        try:
            await call_with_timeout(
                self.documents.update(self.config.collection, session.session_id, partial), self.timeout, "persistence")
        except Exception as e:
            log.warning("세션 위치 이력 저장 실패", session_id=session.session_id, error=str(e))

        try:
            await self.dispatcher.record_incident_location(entry.location, session.emergency_id, shared=shared)
        except Exception as e:
            log.warning("사건 위치 이력 저장 실패", emergency_id=session.emergency_id, error=str(e))

    async def _notify_shared(self, location: LocationSample, contact_count: int) -> None:
        try:
            await call_with_timeout(
                self.push.schedule_notification(
                    "Location Shared",
                    f"Your location has been shared with {contact_count} emergency contacts.",
                    {"type": "location_update", "location": location.to_document(), "contactCount": contact_count},
                ),
                self.timeout, "push")
        except Exception as e:
            log.warning("위치 공유 푸시 실패", error=str(e))

    async def stop_emergency_location_sharing(self, session_id: str) -> SharingResult:
        """
        위치 공유를 중지합니다 (멱등).

        주기적 기록 태스크는 저장소 호출 전에 즉시 취소됩니다.
        """
        task = self._tasks.pop(session_id, None)
        if task is not None and not task.done():
            task.cancel()

        session = self.sessions.get(session_id)
        if session is not None:
            if not session.is_active:
                return SharingResult(success=True, session_id=session_id)
            session.is_active = False
            session.end_time = self.clock()
            metrics.active_sharing_sessions.dec()
        end_time = session.end_time if session is not None else self.clock()

        try:
            await call_with_timeout(
                self.documents.update(self.config.collection, session_id, {
                    "isActive": False,
                    "endTime": end_time.isoformat(),
                }),
                self.timeout, "persistence")
        except Exception as e:
            log.error("위치 공유 중지 저장 실패", session_id=session_id, error=str(e))
            return SharingResult(success=False, session_id=session_id, error=str(e) or type(e).__name__)

        log.info("위치 공유 중지", session_id=session_id)
        return SharingResult(success=True, session_id=session_id)

    async def get_active_location_sessions(self, user_id: str) -> List[LocationSharingSession]:
        """사용자의 활성 위치 공유 세션을 반환합니다."""
        try:
            docs = await call_with_timeout(
                self.documents.query(self.config.collection, "userId", "==", user_id), self.timeout, "persistence")
        except Exception as e:
            log.error("활성 세션 조회 실패", user_id=user_id, error=str(e))
            return []

        sessions = []
        for doc in docs:
            if not doc.get("isActive"):
                continue
            session = LocationSharingSession.model_validate(doc)
            session.session_id = doc.get("id")
            sessions.append(session)
        return sessions

    async def share_location_manually(self,
                                      contacts: Sequence[EmergencyContact],
                                      location: LocationSample,
                                      user_profile: UserProfile,
                                      message: Optional[str] = None) -> EmergencyAlertResult:
        """현재 위치를 수동으로 공유합니다."""
        text = message or self._share_message(location, user_profile, is_emergency=False)
        result = await self.dispatcher.send_emergency_alert(location, user_profile, contacts, text)
        metrics.location_shares.labels(action="manual").inc()
        return result

    async def close(self) -> None:
        """실행 중인 기록 태스크를 모두 취소합니다."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
