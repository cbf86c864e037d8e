"""
In-memory storage adapters for TouristSafe.

This module implements the document store and key-value cache
ports in process memory. They back tests and the default
``memory`` storage backend.
"""

import copy
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple
from touristsafe.ports.documents import ArrayUnion, DocumentNotFound, QUERY_OPERATORS
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.storage")

def _field(doc: Dict[str, Any], path: str) -> Any:
    """점(.) 경로로 필드 값을 가져옵니다."""
    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current

def matches(doc: Dict[str, Any], field: str, op: str, value: Any) -> bool:
    """문서가 조건을 만족하는지 확인합니다."""
    if op not in QUERY_OPERATORS:
        raise ValueError(f"지원하지 않는 연산자: {op}")

    actual = _field(doc, field)
    if op == "==":
        return actual == value
    if op == "!=":
        return actual != value
    if op == "in":
        return actual in value
    if op == "array-contains":
        return isinstance(actual, list) and value in actual
    if actual is None:
        return False
    try:
        if op == "<":
            return actual < value
        if op == "<=":
            return actual <= value
        if op == ">":
            return actual > value
        return actual >= value
    except TypeError:
        return False

def apply_update(doc: Dict[str, Any], partial: Dict[str, Any]) -> Dict[str, Any]:
    """부분 갱신을 적용한 새 문서를 반환합니다 (ArrayUnion 지원)."""
    updated = dict(doc)
    for key, value in partial.items():
        if isinstance(value, ArrayUnion):
            updated[key] = value.apply(updated.get(key))
        else:
            updated[key] = value
    return updated

class InMemoryDocumentStore:
    """메모리 기반 문서 저장소"""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    async def add(self, collection: str, doc: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(doc)
        log.debug("문서 추가됨", collection=collection, doc_id=doc_id)
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            return None
        return {"id": doc_id, **copy.deepcopy(doc)}

    async def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise DocumentNotFound(f"{collection}/{doc_id}")
        docs[doc_id] = apply_update(docs[doc_id], copy.deepcopy(partial))

    async def query(self, collection: str, field: str, op: str, value: Any) -> List[Dict[str, Any]]:
        return [
            {"id": doc_id, **copy.deepcopy(doc)}
            for doc_id, doc in self._collections.get(collection, {}).items()
            if matches(doc, field, op, value)
        ]

    async def get_count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))

class InMemoryKVStore:
    """메모리 기반 키-값 캐시 (TTL 지원)"""

    def __init__(self):
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    async def get(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, exp = item
        if exp is not None and exp < time.time():
            self._data.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, ttl_sec: Optional[int] = None) -> None:
        exp = time.time() + ttl_sec if ttl_sec else None
        self._data[key] = (value, exp)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
