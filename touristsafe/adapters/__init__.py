"""
Adapters for TouristSafe hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import InMemoryDocumentStore, InMemoryKVStore, SQLiteDocumentStore, SQLiteKVStore
from .gateway import HTTPSMSGateway, HTTPPushGateway
from .location import ReplayLocationProvider

__all__ = [
    "InMemoryDocumentStore", "InMemoryKVStore", "SQLiteDocumentStore", "SQLiteKVStore",
    "HTTPSMSGateway", "HTTPPushGateway", "ReplayLocationProvider",
]
