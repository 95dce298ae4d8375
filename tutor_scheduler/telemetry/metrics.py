from __future__ import annotations

import time
from contextlib import contextmanager

from prometheus_client import Counter, Histogram


# --- HTTP
HTTP_REQUESTS = Counter("http_requests_total", "Total HTTP requests", ["route", "method", "status"])
HTTP_LATENCY = Histogram("http_request_latency_seconds", "HTTP request latency seconds", ["route", "method"])

# --- Matching
MATCH_REQUESTS = Counter("match_requests_total", "Tutor match requests", ["outcome"])
MATCH_LATENCY = Histogram("match_latency_seconds", "Tutor match latency seconds")
RETRIEVAL_CHANNEL = Counter(
    "match_retrieval_channel_total",
    "Retrieval strategy that produced the primary candidate set",
    ["strategy"],
)
UPSTREAM_FAILURES = Counter("upstream_failures_total", "Embedding / vector index failures", ["code"])
FILTER_REVERTS = Counter(
    "match_filter_reverts_total",
    "Availability filters dropped because they would have emptied the candidate set",
    ["filter"],
)

# --- Booking
BOOKING_TRANSITIONS = Counter(
    "booking_transitions_total",
    "Booking state machine transitions",
    ["step", "accepted"],
)
BOOKINGS_COMPLETED = Counter("bookings_completed_total", "Bookings that reached the complete step")


@contextmanager
def timer(hist: Histogram, labels: dict | None = None):
    t0 = time.time()
    try:
        yield
    finally:
        dt = time.time() - t0
        if labels:
            hist.labels(**labels).observe(dt)
        else:
            hist.observe(dt)
