"""
Document store port interface.

This module defines the Firestore-shaped protocol for incident
and session persistence, including the array-union update primitive.
"""

from typing import Any, Dict, List, Optional, Protocol

QUERY_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "array-contains")

class ArrayUnion:
    """배열 필드에 값을 추가하는 갱신 지시자"""

    def __init__(self, *values: Any):
        self.values = list(values)

    def apply(self, current: Optional[List[Any]]) -> List[Any]:
        """현재 배열에 없는 값만 순서대로 추가한 새 배열을 반환합니다."""
        result = list(current or [])
        for value in self.values:
            if value not in result:
                result.append(value)
        return result

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ArrayUnion) and other.values == self.values

    def __repr__(self) -> str:
        return f"ArrayUnion({self.values!r})"

class DocumentNotFound(LookupError):
    """갱신 대상 문서가 없음"""

class DocumentStorePort(Protocol):
    """문서 저장소 포트 인터페이스"""

    async def add(self, collection: str, doc: Dict[str, Any]) -> str:
        """
        문서를 추가합니다.

        Returns:
            생성된 문서 ID
        """
        ...

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        문서를 조회합니다.

        Returns:
            문서 (id 포함) 또는 None
        """
        ...

    async def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        """
        문서를 부분 갱신합니다. ArrayUnion 값은 배열 추가로 처리됩니다.

        Raises:
            DocumentNotFound: 문서가 없는 경우
        """
        ...

    async def query(self, collection: str, field: str, op: str, value: Any) -> List[Dict[str, Any]]:
        """
        필드 조건으로 문서를 조회합니다.

        Args:
            op: QUERY_OPERATORS 중 하나
        """
        ...
