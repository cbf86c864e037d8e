"""
Port interfaces for TouristSafe hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external collaborators.
"""

from .location import LocationProviderPort, Subscription, WatchOptions
from .documents import ArrayUnion, DocumentNotFound, DocumentStorePort
from .messaging import DialerPort, MessagingTransportPort, PushNotifierPort, PushResult, SMSSendResult
from .kvstore import KVStorePort

__all__ = [
    "LocationProviderPort", "Subscription", "WatchOptions",
    "ArrayUnion", "DocumentNotFound", "DocumentStorePort",
    "DialerPort", "MessagingTransportPort", "PushNotifierPort", "PushResult", "SMSSendResult",
    "KVStorePort",
]
