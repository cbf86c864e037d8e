"""
Port 모듈 단위 테스트

이 모듈은 포트 인터페이스와 어댑터의 계약 일치, 그리고 포트가
정의하는 값 타입들을 테스트합니다.
"""

import pytest
from touristsafe.adapters import (
    HTTPPushGateway, HTTPSMSGateway, InMemoryDocumentStore, InMemoryKVStore,
    ReplayLocationProvider, SQLiteDocumentStore, SQLiteKVStore,
)
from touristsafe.ports import (
    ArrayUnion, DocumentStorePort, KVStorePort, LocationProviderPort,
    MessagingTransportPort, PushNotifierPort, SMSSendResult, WatchOptions,
)


def implements(obj, port) -> bool:
    """포트의 모든 공개 메서드를 갖추었는지 확인"""
    methods = [name for name in vars(port) if not name.startswith("_") and callable(getattr(port, name))]
    return all(callable(getattr(obj, name, None)) for name in methods)


class TestAdapterConformance:
    """어댑터가 포트 계약을 따르는지 테스트"""

    @pytest.mark.parametrize("adapter,port", [
        (InMemoryDocumentStore(), DocumentStorePort),
        (SQLiteDocumentStore(":memory:"), DocumentStorePort),
        (InMemoryKVStore(), KVStorePort),
        (SQLiteKVStore(":memory:"), KVStorePort),
        (ReplayLocationProvider(), LocationProviderPort),
        (HTTPSMSGateway(""), MessagingTransportPort),
        (HTTPPushGateway(""), PushNotifierPort),
    ])
    def test_adapter_implements_port(self, adapter, port):
        assert implements(adapter, port)


class TestArrayUnion:
    """ArrayUnion 갱신 지시자 테스트"""

    def test_apply_keeps_order_and_skips_existing(self):
        assert ArrayUnion(2, 3, 2).apply([1, 2]) == [1, 2, 3]

    def test_apply_on_none(self):
        assert ArrayUnion({"a": 1}).apply(None) == [{"a": 1}]

    def test_apply_does_not_mutate(self):
        current = [1]
        ArrayUnion(2).apply(current)
        assert current == [1]

    def test_equality(self):
        assert ArrayUnion(1, 2) == ArrayUnion(1, 2)
        assert ArrayUnion(1) != ArrayUnion(2)
        assert ArrayUnion(1) != [1]


class TestValueTypes:

    def test_watch_options_defaults(self):
        options = WatchOptions()
        assert (options.interval_ms, options.distance_m, options.is_emergency) == (8000, 10.0, False)

    def test_sms_result_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            SMSSendResult(result="queued")
