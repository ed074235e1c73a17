"""
Prometheus metrics for the room projection.

Counters are process-wide and updated by the reducer; they never influence
state. start_metrics_server() exposes them over HTTP for scraping.

Usage:
    from roomstate.metrics import EVENTS_APPLIED, start_metrics_server

    start_metrics_server(port=9108)
    EVENTS_APPLIED.labels(event_type="STORY_ADDED").inc()
"""

import logging

from prometheus_client import Counter, start_http_server

logger = logging.getLogger(__name__)

EVENTS_APPLIED = Counter(
    "roomstate_events_applied_total",
    "Events applied to room state",
    ["event_type"],
)

EVENTS_DROPPED = Counter(
    "roomstate_events_dropped_total",
    "Events ignored by the reducer",
    ["reason"],
)

COMMANDS_REJECTED = Counter(
    "roomstate_commands_rejected_total",
    "Commands rejected by the server",
    ["command"],
)

_server_started = False


def start_metrics_server(port: int = 9108) -> None:
    """Start the /metrics HTTP endpoint once per process."""
    global _server_started
    if _server_started:
        logger.debug("Metrics server already running")
        return
    start_http_server(port)
    _server_started = True
    logger.info(f"Metrics server started on port {port}")
