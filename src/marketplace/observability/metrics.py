"""Prometheus metrics instrumentation for the marketplace.

Provides:
- ``setup_metrics(app)``: Attach prometheus-fastapi-instrumentator to a FastAPI
  app, exposing ``/metrics`` with HTTP request duration/count.
- Business counters updated by the services as money moves.
"""

from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

APPLICATIONS_SUBMITTED: Counter = Counter(
    "marketplace_applications_submitted_total",
    "Total number of campaign applications created",
)

ESCROWS_FUNDED: Counter = Counter(
    "marketplace_escrows_funded_total",
    "Total number of escrow accounts funded after payment verification",
)

ESCROWS_RELEASED: Counter = Counter(
    "marketplace_escrows_released_total",
    "Total number of escrow accounts released to influencers",
    ["trigger"],
)

PAYOUTS_REQUESTED: Counter = Counter(
    "marketplace_payouts_requested_total",
    "Total number of influencer payout requests",
)


def setup_metrics(app: FastAPI) -> None:
    """Instrument *app* with Prometheus HTTP metrics and expose ``/metrics``.

    Health, readiness and metrics endpoints are excluded from instrumentation.

    Args:
        app: The FastAPI application to instrument.
    """
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=["/health", "/ready", "/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, should_gzip=True)
