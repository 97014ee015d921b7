"""Translate listing filters and pagination text into a catalog query.

Pure and stateless: nothing here touches the database. The repository turns
the resulting ``ListQuery`` into a SQLAlchemy statement and executes it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import Select, and_, literal, or_, select

from music_library.database.db_manager import Song
from music_library.models.dto import FilterSpec, PaginationWindow

from .errors import MalformedPagination

logger = logging.getLogger(__name__)

# ASCII decimal digits only
_DECIMAL = re.compile(r"[+-]?[0-9]+")

# (filter attribute, mapped column) in the order constraints are emitted
FILTER_COLUMNS = (
    ("author", Song.author),
    ("title", Song.title),
    ("release_date", Song.release_date),
    ("text", Song.text),
    ("link", Song.link),
)

ORDERING = (Song.author.asc(), Song.title.asc())


@dataclass(frozen=True)
class ListQuery:
    # (attribute, value) for every filter field; "" means unconstrained
    constraints: Tuple[Tuple[str, str], ...]
    window: PaginationWindow

    @property
    def active_constraints(self) -> Tuple[Tuple[str, str], ...]:
        return tuple((name, value) for name, value in self.constraints if value != "")

    def statement(self) -> Select:
        columns = dict(FILTER_COLUMNS)
        # "value is unset OR column equals value" for each field
        clauses = [
            or_(literal(value) == "", columns[name] == value)
            for name, value in self.constraints
        ]
        stmt = select(Song).where(and_(*clauses)).order_by(*ORDERING)
        if self.window.offset is not None:
            stmt = stmt.offset(self.window.offset)
        if self.window.limit is not None:
            stmt = stmt.limit(self.window.limit)
        return stmt


def parse_window_value(name: str, raw: Optional[str]) -> Optional[int]:
    """Parse an offset/limit query value; empty or missing means "not given"."""
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str) or not _DECIMAL.fullmatch(raw.strip()):
        raise MalformedPagination(f"{name} must be a non-negative integer, got {raw!r}")
    value = int(raw.strip())
    if value < 0:
        raise MalformedPagination(f"{name} must be a non-negative integer, got {raw!r}")
    return value


def build_list_query(filter_spec: FilterSpec, offset: Optional[str] = None, limit: Optional[str] = None) -> ListQuery:
    """Build the listing query for ``filter_spec`` and the optional window text.

    Raises MalformedPagination if offset or limit is present but not a
    non-negative integer.
    """
    window = PaginationWindow(
        offset=parse_window_value("offset", offset),
        limit=parse_window_value("limit", limit),
    )
    constraints = tuple((name, getattr(filter_spec, name)) for name, _ in FILTER_COLUMNS)
    query = ListQuery(constraints=constraints, window=window)
    logger.debug(
        "list query built: filters=%s offset=%s limit=%s",
        dict(query.active_constraints), window.offset, window.limit,
    )
    return query


__all__ = ["ListQuery", "build_list_query", "parse_window_value", "FILTER_COLUMNS"]
