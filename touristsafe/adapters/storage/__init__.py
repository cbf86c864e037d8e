"""
Storage adapters for TouristSafe hexagonal architecture.

This module contains storage adapters for incident/session documents
and the local key-value cache, in memory and on SQLite.
"""

from .memory import InMemoryDocumentStore, InMemoryKVStore
from .sqlite_documents import SQLiteDocumentStore
from .sqlite_kv import SQLiteKVStore

__all__ = ["InMemoryDocumentStore", "InMemoryKVStore", "SQLiteDocumentStore", "SQLiteKVStore"]
