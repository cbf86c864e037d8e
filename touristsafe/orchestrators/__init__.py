"""
Orchestrators for TouristSafe.

This module contains the orchestrators that coordinate
the flow between ports and adapters.
"""
from .geofence_monitor import GeoFenceMonitor, MonitorOptions, MonitorState
from .emergency_dispatcher import EmergencyDispatcher
from .location_sharing import LocationSharingService

__all__ = ["GeoFenceMonitor", "MonitorOptions", "MonitorState", "EmergencyDispatcher", "LocationSharingService"]
