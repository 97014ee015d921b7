# noqa: D104 - package initialization
from .logging import configure_structured_logging  # noqa: F401
from .metrics import (  # noqa: F401
    metrics_blueprint,
    record_catalog_operation,
    record_enrichment_attempt,
    record_enrichment_outcome,
)
