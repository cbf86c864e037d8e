"""
SQLite-based document store for TouristSafe.

This module implements the document store port on top of SQLite,
persisting each document as a JSON body keyed by collection and id.
"""

import aiosqlite
import json
import time
import uuid
from typing import Any, Dict, List, Optional
from touristsafe.adapters.storage.memory import apply_update, matches
from touristsafe.ports.documents import DocumentNotFound
from touristsafe.observability.logging_setup import get_logger

log = get_logger("touristsafe.documents")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    body TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    PRIMARY KEY (collection, id)
);
CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(collection, created_at);
"""

class SQLiteDocumentStore:
    """SQLite 기반 문서 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteDocumentStore 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteDocumentStore 스키마 초기화 완료: {self.path}")

    async def add(self, collection: str, doc: Dict[str, Any]) -> str:
        """
        문서를 추가합니다.

        Returns:
            생성된 문서 ID
        """
        doc_id = uuid.uuid4().hex
        now = int(time.time())

        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT INTO documents (collection, id, body, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (collection, doc_id, json.dumps(doc, ensure_ascii=False), now, now)
            )
            await db.commit()
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """문서를 조회합니다. 없으면 None."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT body FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id)
            )
            row = await cursor.fetchone()

        if row is None:
            return None
        return {"id": doc_id, **json.loads(row[0])}

    async def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        """
        문서를 부분 갱신합니다 (읽기-수정-쓰기, 단일 연결에서 수행).

        Raises:
            DocumentNotFound: 문서가 없는 경우
        """
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT body FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id)
            )
            row = await cursor.fetchone()
            if row is None:
                raise DocumentNotFound(f"{collection}/{doc_id}")

            body = apply_update(json.loads(row[0]), partial)
            await db.execute(
                "UPDATE documents SET body = ?, updated_at = ? WHERE collection = ? AND id = ?",
                (json.dumps(body, ensure_ascii=False), int(time.time()), collection, doc_id)
            )
            await db.commit()

    async def query(self, collection: str, field: str, op: str, value: Any) -> List[Dict[str, Any]]:
        """필드 조건으로 문서를 조회합니다."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id, body FROM documents WHERE collection = ? ORDER BY created_at ASC",
                (collection,)
            )
            rows = await cursor.fetchall()

        results = []
        for doc_id, body in rows:
            doc = json.loads(body)
            if matches(doc, field, op, value):
                results.append({"id": doc_id, **doc})
        return results

    async def get_count(self, collection: str) -> int:
        """컬렉션의 문서 수를 반환합니다."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM documents WHERE collection = ?",
                (collection,)
            )
            result = await cursor.fetchone()
            return result[0] if result else 0
