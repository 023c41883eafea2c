"""Prometheus counters shared by the services."""

from prometheus_client import Counter

ANALYTICS_REFRESH = Counter(
    "tapcard_analytics_refresh_total",
    "Analytics summary refresh attempts by outcome",
    ["outcome"],  # enqueued, coalesced, enqueue_failed, completed, failed
)

EVENTS_RECORDED = Counter(
    "tapcard_events_recorded_total",
    "Analytics events recorded",
    ["event_type"],
)

PAYMENT_NOTIFICATIONS = Counter(
    "tapcard_payment_notifications_total",
    "PayFast notifications by result",
    ["result"],  # paid, failed, duplicate, rejected
)
