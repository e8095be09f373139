"""
Prometheus metrics for reservation scheduling and store operations.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from coworking_scheduler.metrics import reservations_created
    >>> reservations_created.labels(resource_id=3, payment_method="card").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Reservation Metrics
# =============================================================================

reservations_created = Counter(
    "coworking_reservations_created_total",
    "Total number of reservations created",
    ["resource_id", "payment_method"],
)
"""
Counter for successfully created reservations.

Labels:
    resource_id: Booked resource ID
    payment_method: onsite, card or paypal
"""

slot_conflicts = Counter(
    "coworking_slot_conflicts_total",
    "Total number of create/modify requests rejected with a slot conflict",
    ["resource_id"],
)

lifecycle_transitions = Counter(
    "coworking_lifecycle_transitions_total",
    "Total number of reservation status transitions",
    ["from_status", "to_status"],
)
"""
Counter for status transitions.

Labels:
    from_status: Previous status ("none" for creation)
    to_status: New status
"""

availability_query_duration = Histogram(
    "coworking_availability_query_duration_seconds",
    "Duration of availability computations in seconds",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, float("inf")),
)

# =============================================================================
# Store Metrics
# =============================================================================

store_operation_duration = Histogram(
    "coworking_store_operation_duration_seconds",
    "Reservation store operation time in seconds",
    ["operation"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")),
)
"""
Histogram for store operation duration.

Labels:
    operation: Store method name (try_insert, transition, list_for_day, ...)

Buckets: 0.01s, 0.05s, 0.1s, 0.25s, 0.5s, 1s, 2.5s, 5s, +Inf
"""
