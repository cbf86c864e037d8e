"""
Metrics definitions for TouristSafe.

This module defines Prometheus metrics for monitoring
geofencing, safety scoring and the emergency dispatch pipeline.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
location_samples = Counter(
    "location_samples_total",
    "Number of location samples processed by the geofence monitor",
    ["mode"]
)

location_samples_failed = Counter(
    "location_samples_failed_total",
    "Number of location samples skipped because processing failed"
)

zone_transitions = Counter(
    "zone_transitions_total",
    "Number of detected zone transitions",
    ["to_level"]
)

safety_alerts_generated = Counter(
    "safety_alerts_generated_total",
    "Number of safety alerts generated",
    ["type"]
)

emergency_alerts = Counter(
    "emergency_alerts_total",
    "Emergency alert dispatch outcomes",
    ["outcome"]
)

sms_sends = Counter(
    "sms_sends_total",
    "SMS send attempts per contact",
    ["result"]
)

push_notifications = Counter(
    "push_notifications_total",
    "Push notification attempts",
    ["result"]
)

location_shares = Counter(
    "location_shares_total",
    "Location updates handled by sharing sessions",
    ["action"]
)

# 히스토그램 메트릭
safety_score = Histogram(
    "safety_score",
    "Distribution of computed safety scores",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
)

dispatch_seconds = Histogram(
    "emergency_dispatch_duration_seconds",
    "Time spent dispatching an emergency alert",
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0]
)

# 게이지 메트릭
monitor_active = Gauge(
    "geofence_monitor_active",
    "Number of geofence monitors currently running"
)

active_sharing_sessions = Gauge(
    "active_sharing_sessions",
    "Current number of active location sharing sessions"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
