from __future__ import annotations

from flask import Blueprint, Response
from prometheus_client import Counter, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

ENRICHMENT_ATTEMPTS = Counter(
    "music_library_enrichment_attempts_total",
    "Total number of HTTP calls made to the enrichment service.",
)
ENRICHMENT_OUTCOMES = Counter(
    "music_library_enrichment_outcomes_total",
    "Terminal states reached by enrichment lookups.",
    ["state"],
)
CATALOG_OPERATIONS = Counter(
    "music_library_catalog_operations_total",
    "Catalog operations handled, by operation and result.",
    ["operation", "result"],
)


def record_enrichment_attempt() -> None:
    ENRICHMENT_ATTEMPTS.inc()


def record_enrichment_outcome(state: str) -> None:
    ENRICHMENT_OUTCOMES.labels(state=state).inc()


def record_catalog_operation(operation: str, result: str) -> None:
    CATALOG_OPERATIONS.labels(operation=operation, result=result).inc()


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
