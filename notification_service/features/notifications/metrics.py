"""Prometheus metrics for notification dispatch.

Usage:
    from notification_service.features.notifications.metrics import (
        notification_dispatched_total,
    )

    notification_dispatched_total.labels(
        notification_type="sos_match",
        status="sent",
    ).inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Dispatch Lifecycle Metrics
# =============================================================================

notification_created_total = Counter(
    "notification_created_total",
    "Total number of notifications persisted as pending",
    labelnames=["notification_type", "priority"],
)
"""
Counter for tracking notification creation.

Labels:
    notification_type: sos_match, sos_request, disaster_alert, match_accepted, ...
    priority: high, medium, low
"""

notification_dispatched_total = Counter(
    "notification_dispatched_total",
    "Total number of completed dispatches by final status",
    labelnames=["notification_type", "status"],
)
"""
Counter for tracking dispatch completion.

Labels:
    notification_type: Type of notification
    status: sent, failed, or duplicate (id already terminal)
"""

# =============================================================================
# Channel Metrics
# =============================================================================

notification_delivered_total = Counter(
    "notification_delivered_total",
    "Total number of channel attempts by channel and outcome",
    labelnames=["channel", "status"],
)
"""
Counter for tracking channel attempts and results.

Labels:
    channel: sms, push
    status: sent, failed
"""

notification_delivery_duration_seconds = Histogram(
    "notification_delivery_duration_seconds",
    "Channel attempt duration in seconds",
    labelnames=["channel"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)
"""
Histogram tracking channel attempt duration, timeouts included.
"""

notification_errors_total = Counter(
    "notification_errors_total",
    "Total number of channel failures by kind",
    labelnames=["channel", "error_kind"],
)
"""
Counter for tracking channel failures.

Labels:
    channel: sms, push
    error_kind: configuration_missing, target_missing, provider_error, timeout
"""

notification_recipient_lookups_total = Counter(
    "notification_recipient_lookups_total",
    "Phone number lookups against the user service",
    labelnames=["result"],
)
"""
Counter for recipient phone resolution.

Labels:
    result: found, missing
"""

# =============================================================================
# Consumer Metrics
# =============================================================================

notification_consumer_messages_total = Counter(
    "notification_consumer_messages_total",
    "Queue messages handled by the notification consumer",
    labelnames=["event", "decision"],
)
"""
Counter for consumer decisions.

Labels:
    event: Known event name, ``other`` for unmapped events, ``unknown`` if unparseable
    decision: ack, requeue, dead_letter
"""
