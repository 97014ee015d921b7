"""Catalog domain services (queries, lyrics, enrichment, persistence)."""

from .enrichment import EnrichmentClient, EnrichmentResult, EnrichmentState
from .repository import CatalogRepository, SqlCatalogRepository
from .service import CatalogService

__all__ = [
    "EnrichmentClient",
    "EnrichmentResult",
    "EnrichmentState",
    "CatalogRepository",
    "SqlCatalogRepository",
    "CatalogService",
]
