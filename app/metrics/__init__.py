# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Prometheus metrics for the membership service."""
from prometheus_client import Counter, Gauge, Histogram

INVITATIONS_CREATED = Counter(
    "invitations_created_total", "Total invitations issued"
)
INVITATIONS_REDEEMED = Counter(
    "invitations_redeemed_total", "Total invitations redeemed"
)
INVITATIONS_EXPIRED = Counter(
    "invitations_expired_total", "Total invitations flipped to EXPIRED", ["trigger"]
)
MEMBER_STATUS_TRANSITIONS = Counter(
    "member_status_transitions_total", "Member status transitions", ["from_status", "to_status"]
)
MEMBERS_CREATED = Counter(
    "members_created_total", "Total members created", ["status"]
)
CYCLE_ACTIVATIONS = Counter(
    "dues_cycle_activations_total", "Total dues cycle activations"
)
ACTIVE_CYCLE_INFO = Gauge(
    "dues_cycle_active", "1 for the currently active dues cycle", ["cycle_id"]
)
PAYMENTS_CREATED = Counter(
    "payments_created_total", "Total payments recorded", ["currency"]
)
RECONCILIATIONS = Counter(
    "payment_reconciliations_total", "Payment reconciliations by outcome", ["outcome"]
)
DUES_ADMIN_ACTIONS = Counter(
    "dues_admin_actions_total", "Offline payment and waiver actions", ["action"]
)
GRACE_INACTIVATIONS = Counter(
    "grace_period_inactivations_total", "Members inactivated after the grace period"
)
ACCESS_CHECKS = Counter(
    "access_checks_total", "Access gate decisions", ["outcome"]
)
WEBHOOK_EVENTS = Counter(
    "webhook_events_total", "Payment gateway webhook events", ["event_type", "outcome"]
)
REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request latency", ["method", "endpoint"]
)
HTTP_ERRORS = Counter(
    "http_errors_total", "Total HTTP errors", ["method", "endpoint", "status"]
)
