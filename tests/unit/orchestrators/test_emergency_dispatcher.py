"""
긴급 경보 발송기 단위 테스트

이 모듈은 연락처 순서, 채널별 부분 실패, 필수 사건 기록과
입력 검증을 테스트합니다.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock
from touristsafe.orchestrators.emergency_dispatcher import (
    CALL_UNSUPPORTED, SMS_UNAVAILABLE, EmergencyDispatcher, order_contacts,
)
from touristsafe.ports.messaging import SMSSendResult
from touristsafe.settings import EmergencyConfig


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def dispatcher(mock_messaging, mock_push, documents, mock_dialer, clock, sleep):
    return EmergencyDispatcher(mock_messaging, mock_push, documents, mock_dialer,
                               config=EmergencyConfig(), clock=clock, sleep=sleep)


def sent_numbers(messaging):
    return [c.args[0][0] for c in messaging.send_sms.await_args_list]


class TestContactOrdering:
    """연락처 순서 테스트"""

    def test_primary_first_then_input_order(self, contacts):
        assert [c.id for c in order_contacts(contacts)] == ["c2", "c1", "c3"]

    @pytest.mark.asyncio
    async def test_primary_contact_is_sent_first(self, dispatcher, mock_messaging, inside_location,
                                                 user_profile, contacts):
        """입력 순서와 관계없이 주 연락처가 먼저 전송"""
        original = list(contacts)
        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts)

        assert result.success is True
        assert sent_numbers(mock_messaging) == ["+912222222222", "+911111111111", "+913333333333"]
        assert [r.contact.id for r in result.sms_results] == ["c2", "c1", "c3"]
        assert contacts == original

    @pytest.mark.asyncio
    async def test_delay_between_sends(self, dispatcher, sleep, inside_location, user_profile, contacts):
        await dispatcher.send_emergency_alert(inside_location, user_profile, contacts)
        assert sleep.await_count == 2
        assert all(c.args == (1.0,) for c in sleep.await_args_list)

    @pytest.mark.asyncio
    async def test_stops_when_should_continue_turns_false(self, dispatcher, mock_messaging, contacts):
        """중단 조건이 거짓이 되면 남은 연락처는 건너뜀"""
        results = await dispatcher.notify_contacts(
            contacts, "msg", should_continue=lambda: mock_messaging.send_sms.await_count == 0)

        assert [r.contact.id for r in results] == ["c2"]
        assert sent_numbers(mock_messaging) == ["+912222222222"]


class TestSendEmergencyAlert:
    """send_emergency_alert() 테스트"""

    @pytest.mark.asyncio
    async def test_full_success(self, dispatcher, mock_push, documents, inside_location, user_profile, contacts):
        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts)

        assert result.success is True
        assert result.emergency_id
        assert all(r.success and r.result == "sent" for r in result.sms_results)
        assert result.notification_results[0].success is True
        assert result.notification_results[0].id == "n-1"
        assert result.firestore_results[0].success is True
        assert "EMERGENCY ALERT" in result.message
        assert result.errors == []

        title = mock_push.schedule_notification.await_args.args[0]
        assert title == "Emergency Alert Sent"

        incident = await documents.get("emergencies", result.emergency_id)
        assert incident["userId"] == "user_1"
        assert incident["type"] == "panic_button"
        assert incident["status"] == "active"
        assert len(incident["emergencyContacts"]) == 3
        assert len(incident["locationHistory"]) == 1

    @pytest.mark.asyncio
    async def test_one_sms_failure_does_not_fail_call(self, dispatcher, mock_messaging, inside_location,
                                                      user_profile, contacts):
        """한 연락처 SMS 예외는 해당 항목만 실패"""
        mock_messaging.send_sms.side_effect = [
            SMSSendResult(result="sent"),
            RuntimeError("carrier rejected"),
            SMSSendResult(result="sent"),
        ]

        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts)

        assert result.success is True
        assert [r.success for r in result.sms_results] == [True, False, True]
        assert result.sms_results[1].error == "carrier rejected"
        assert result.sms_results[1].phone_number == "+911111111111"

    @pytest.mark.asyncio
    async def test_non_sent_result_is_failure(self, dispatcher, mock_messaging, inside_location,
                                              user_profile, contacts):
        mock_messaging.send_sms.return_value = SMSSendResult(result="cancelled")
        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts[:1])
        assert result.success is True
        assert result.sms_results[0].success is False
        assert result.sms_results[0].result == "cancelled"

    @pytest.mark.asyncio
    async def test_persistence_failure_fails_call(self, mock_messaging, mock_push, clock, sleep,
                                                  inside_location, user_profile, contacts):
        """사건 기록 실패는 전체 실패"""
        documents = AsyncMock()
        documents.add.side_effect = ConnectionError("firestore unavailable")
        dispatcher = EmergencyDispatcher(mock_messaging, mock_push, documents, clock=clock, sleep=sleep)

        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts)

        assert result.success is False
        assert result.error == "firestore unavailable"
        assert all(r.success for r in result.sms_results)
        assert result.notification_results[0].success is True
        assert result.firestore_results[0].success is False
        assert result.emergency_id is None

    @pytest.mark.asyncio
    async def test_push_failure_does_not_fail_call(self, dispatcher, mock_push, inside_location,
                                                   user_profile, contacts):
        mock_push.schedule_notification.side_effect = RuntimeError("push service down")
        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts)
        assert result.success is True
        assert result.notification_results[0].success is False
        assert "push service down" in result.notification_results[0].error

    @pytest.mark.parametrize("missing", ["location", "user"])
    @pytest.mark.asyncio
    async def test_missing_input_has_no_side_effects(self, dispatcher, mock_messaging, mock_push, documents,
                                                     inside_location, user_profile, contacts, missing):
        """위치나 사용자 정보가 없으면 아무것도 보내지 않음"""
        location = None if missing == "location" else inside_location
        user = None if missing == "user" else user_profile

        result = await dispatcher.send_emergency_alert(location, user, contacts)

        assert result.success is False
        assert result.error
        mock_messaging.is_available.assert_not_awaited()
        mock_messaging.send_sms.assert_not_awaited()
        mock_push.schedule_notification.assert_not_awaited()
        assert await documents.get_count("emergencies") == 0

    @pytest.mark.asyncio
    async def test_sms_unavailable_marks_every_contact(self, dispatcher, mock_messaging, inside_location,
                                                       user_profile, contacts):
        """SMS 불가 시 전송 시도 없이 연락처별 실패 기록"""
        mock_messaging.is_available.return_value = False

        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts)

        assert result.success is True
        assert len(result.sms_results) == 3
        assert all(r.error == SMS_UNAVAILABLE and not r.success for r in result.sms_results)
        mock_messaging.send_sms.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sms_availability_error_treated_as_unavailable(self, dispatcher, mock_messaging,
                                                                 inside_location, user_profile, contacts):
        mock_messaging.is_available.side_effect = OSError("no modem")
        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts)
        assert all(r.error == SMS_UNAVAILABLE for r in result.sms_results)

    @pytest.mark.asyncio
    async def test_sms_timeout_is_channel_failure(self, mock_messaging, mock_push, documents, clock, sleep,
                                                  inside_location, user_profile, contacts):
        async def slow_send(numbers, body):
            await asyncio.sleep(1)
        mock_messaging.send_sms.side_effect = slow_send
        dispatcher = EmergencyDispatcher(mock_messaging, mock_push, documents,
                                         config=EmergencyConfig(transport_timeout_sec=0.01),
                                         clock=clock, sleep=sleep)

        result = await dispatcher.send_emergency_alert(inside_location, user_profile, contacts[:1])

        assert result.success is True
        assert result.sms_results[0].success is False
        assert "timed out" in result.sms_results[0].error

    @pytest.mark.asyncio
    async def test_no_contacts(self, dispatcher, mock_messaging, inside_location, user_profile):
        result = await dispatcher.send_emergency_alert(inside_location, user_profile, [])
        assert result.success is True
        assert result.sms_results == []
        mock_messaging.is_available.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_custom_message(self, dispatcher, mock_messaging, inside_location, user_profile, contacts):
        await dispatcher.send_emergency_alert(inside_location, user_profile, contacts, "Help at the station")
        assert mock_messaging.send_sms.await_args.args[1] == "Help at the station"


class TestEmergencyCall:
    """긴급 전화 테스트"""

    @pytest.mark.asyncio
    async def test_default_police_number(self, dispatcher, mock_dialer):
        result = await dispatcher.make_emergency_call()
        assert result.success is True
        mock_dialer.can_open_url.assert_awaited_once_with("tel:100")
        mock_dialer.open_url.assert_awaited_once_with("tel:100")

    @pytest.mark.asyncio
    async def test_unsupported_device(self, dispatcher, mock_dialer):
        mock_dialer.can_open_url.return_value = False
        result = await dispatcher.make_emergency_call("108")
        assert result.success is False
        assert result.error == CALL_UNSUPPORTED
        mock_dialer.open_url.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_dialer(self, mock_messaging, mock_push, documents, clock):
        dispatcher = EmergencyDispatcher(mock_messaging, mock_push, documents, clock=clock)
        result = await dispatcher.make_emergency_call()
        assert result.success is False

    @pytest.mark.asyncio
    async def test_dialer_error_never_raises(self, dispatcher, mock_dialer):
        mock_dialer.open_url.side_effect = RuntimeError("dialer crashed")
        result = await dispatcher.make_emergency_call("101")
        assert result.success is False
        assert result.error == "dialer crashed"


class TestLocationUpdate:
    """사건 위치 갱신 테스트"""

    @pytest.mark.asyncio
    async def test_appends_location_and_notifies(self, dispatcher, documents, mock_push, clock,
                                                 inside_location, outside_location, user_profile):
        alert = await dispatcher.send_emergency_alert(inside_location, user_profile, [])
        mock_push.schedule_notification.reset_mock()
        clock.advance(60)

        result = await dispatcher.send_location_update(outside_location, alert.emergency_id, user_profile)

        assert result.success is True
        incident = await documents.get("emergencies", alert.emergency_id)
        assert len(incident["locationHistory"]) == 2
        assert incident["currentLocation"]["latitude"] == outside_location.latitude
        assert incident["lastLocationUpdate"] == clock().isoformat()
        assert mock_push.schedule_notification.await_args.args[0] == "Location Updated"

    @pytest.mark.asyncio
    async def test_sends_update_sms_to_given_contacts(self, dispatcher, mock_messaging, inside_location,
                                                     outside_location, user_profile, contacts):
        alert = await dispatcher.send_emergency_alert(inside_location, user_profile, [])

        result = await dispatcher.send_location_update(outside_location, alert.emergency_id, user_profile, contacts)

        assert result.success is True
        assert result.data["smsSent"] == 3
        body = mock_messaging.send_sms.await_args.args[1]
        assert body.startswith(f"LOCATION UPDATE: I am now at {outside_location.latitude}")

    @pytest.mark.asyncio
    async def test_without_contacts_sends_no_sms(self, dispatcher, mock_messaging, inside_location,
                                                 outside_location, user_profile):
        alert = await dispatcher.send_emergency_alert(inside_location, user_profile, [])

        result = await dispatcher.send_location_update(outside_location, alert.emergency_id, user_profile)

        assert "smsSent" not in result.data
        mock_messaging.send_sms.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_identical_updates_are_both_recorded(self, dispatcher, documents, inside_location, user_profile):
        """같은 시각 같은 위치의 갱신도 각각 이력에 남음"""
        alert = await dispatcher.send_emergency_alert(inside_location, user_profile, [])

        await dispatcher.record_incident_location(inside_location, alert.emergency_id)
        await dispatcher.record_incident_location(inside_location, alert.emergency_id)

        incident = await documents.get("emergencies", alert.emergency_id)
        assert len(incident["locationHistory"]) == 3
        assert len({e["id"] for e in incident["locationHistory"]}) == 3

    @pytest.mark.asyncio
    async def test_unknown_incident_fails(self, dispatcher, inside_location, user_profile):
        result = await dispatcher.send_location_update(inside_location, "missing", user_profile)
        assert result.success is False
        assert "missing" in result.error


class TestMisc:

    def test_message_templates(self, dispatcher):
        assert "medical" in dispatcher.get_message_templates()

    @pytest.mark.asyncio
    async def test_check_sms_availability(self, dispatcher, mock_messaging):
        assert (await dispatcher.check_sms_availability()).data == {"available": True}
        mock_messaging.is_available.return_value = False
        result = await dispatcher.check_sms_availability()
        assert result.success is False
        assert result.error == SMS_UNAVAILABLE
