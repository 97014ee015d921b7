"""Catalog orchestration: validation, then query/enrich/persist."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import List, Optional

from pydantic import ValidationError

from music_library.models.dto import FilterSpec, SongDetailDTO, SongDTO, SongIdentityDTO
from music_library.observability.metrics import record_catalog_operation

from .enrichment import EnrichmentClient
from .errors import CatalogError, InvalidPayload, MissingIdentity, NotFound
from .lyrics import parse_verse_index, select_verse
from .query_builder import build_list_query
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


def _require_identity(author: Optional[str], title: Optional[str]) -> None:
    if not author or not title:
        raise MissingIdentity()


def _parse_payload(model, payload):
    if not isinstance(payload, Mapping):
        raise InvalidPayload("request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidPayload(f"invalid request body: {exc.error_count()} error(s)") from exc


class CatalogService:
    def __init__(self, repository: CatalogRepository, enrichment_client: EnrichmentClient):
        self.repository = repository
        self.enrichment_client = enrichment_client

    def _track(self, operation: str, func, *args, **kwargs):
        try:
            result = func(*args, **kwargs)
        except CatalogError as exc:
            record_catalog_operation(operation, exc.error_code)
            raise
        record_catalog_operation(operation, "ok")
        return result

    def list_songs(self, filter_spec: FilterSpec, offset: Optional[str] = None, limit: Optional[str] = None) -> List[SongDTO]:
        """Songs matching every set filter field, ordered by (author, title).

        An empty list means nothing matched; it is not an error here.
        """
        def _list():
            query = build_list_query(filter_spec, offset, limit)
            return self.repository.list(query)

        return self._track("list", _list)

    def get_text(self, author: str, title: str, verse: Optional[str] = None) -> str:
        """Whole lyric text, or a single verse when ``verse`` is a 1-based index."""
        def _get_text():
            _require_identity(author, title)
            verse_index = parse_verse_index(verse)
            song = self.repository.get(author, title)
            return select_verse(song.text, verse_index)

        return self._track("text", _get_text)

    def delete_song(self, author: str, title: str) -> None:
        def _delete():
            _require_identity(author, title)
            if self.repository.delete(author, title) == 0:
                raise NotFound(f"song {title!r} by {author!r} not found")

        self._track("delete", _delete)

    def create_song(self, payload, cancel_event: Optional[threading.Event] = None) -> SongDTO:
        """Enrich the identified song from the external service, then store it."""
        def _create():
            identity = _parse_payload(SongIdentityDTO, payload)
            _require_identity(identity.author, identity.title)
            song = self.enrichment_client.enrich(identity, cancel_event=cancel_event)
            logger.debug("adding song to catalog: %s", song.to_wire())
            self.repository.insert(song)
            return song

        return self._track("create", _create)

    def update_song(self, author: str, title: str, payload) -> SongDTO:
        """Replace release date, text and link; identity comes from the caller."""
        def _update():
            _require_identity(author, title)
            detail = _parse_payload(SongDetailDTO, payload)
            song = SongDTO.from_parts(SongIdentityDTO(author=author, title=title), detail)
            self.repository.update(song)
            return song

        return self._track("update", _update)


__all__ = ["CatalogService"]
