from __future__ import annotations

import logging
from typing import List

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from music_library.database.db_manager import db, Song
from music_library.models.dto import SongDTO

from .errors import Conflict, NotFound, StoreFailure
from .query_builder import ListQuery


logger = logging.getLogger(__name__)


def _to_dto(row: Song) -> SongDTO:
    return SongDTO(
        author=row.author,
        title=row.title,
        release_date=row.release_date or "",
        text=row.text or "",
        link=row.link or "",
    )


class CatalogRepository:
    """Interface for the persisted song catalog."""

    def list(self, query: ListQuery) -> List[SongDTO]:  # pragma: no cover - interface
        raise NotImplementedError

    def get(self, author: str, title: str) -> SongDTO:  # pragma: no cover - interface
        raise NotImplementedError

    def insert(self, song: SongDTO) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def update(self, song: SongDTO) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def delete(self, author: str, title: str) -> int:  # pragma: no cover - interface
        raise NotImplementedError


class SqlCatalogRepository(CatalogRepository):
    """Catalog store backed by the ``music_library`` table.

    Each call runs in the request's scoped session and commits or rolls back
    before returning, so no state is carried between calls. Database errors
    are rolled back and re-raised as StoreFailure.
    """

    def list(self, query: ListQuery) -> List[SongDTO]:
        try:
            rows = db.session.execute(query.statement()).scalars().all()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Failed to list catalog: %s", e, exc_info=True)
            raise StoreFailure(f"database error while listing songs: {e}") from e
        return [_to_dto(row) for row in rows]

    def get(self, author: str, title: str) -> SongDTO:
        try:
            row = db.session.get(Song, (author, title))
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Failed to fetch %s - %s: %s", author, title, e, exc_info=True)
            raise StoreFailure(f"database error while reading song: {e}") from e
        if row is None:
            raise NotFound(f"song {title!r} by {author!r} not found")
        return _to_dto(row)

    def insert(self, song: SongDTO) -> None:
        try:
            if db.session.get(Song, (song.author, song.title)) is not None:
                raise Conflict(f"song {song.title!r} by {song.author!r} already exists")
            db.session.add(
                Song(
                    author=song.author,
                    title=song.title,
                    release_date=song.release_date,
                    text=song.text,
                    link=song.link,
                )
            )
            db.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same song
            db.session.rollback()
            logger.info("Insert of %s - %s rejected by uniqueness constraint", song.author, song.title)
            raise Conflict(f"song {song.title!r} by {song.author!r} already exists") from e
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Failed to insert %s - %s: %s", song.author, song.title, e, exc_info=True)
            raise StoreFailure(f"database error while adding song: {e}") from e
        logger.debug("Inserted %s - %s", song.author, song.title)

    def update(self, song: SongDTO) -> None:
        stmt = (
            update(Song)
            .where(Song.author == song.author, Song.title == song.title)
            .values({Song.release_date: song.release_date, Song.text: song.text, Song.link: song.link})
        )
        try:
            result = db.session.execute(stmt)
            if result.rowcount == 0:
                db.session.rollback()
                raise NotFound(f"song {song.title!r} by {song.author!r} not found")
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Failed to update %s - %s: %s", song.author, song.title, e, exc_info=True)
            raise StoreFailure(f"database error while updating song: {e}") from e
        logger.debug("Updated %s - %s", song.author, song.title)

    def delete(self, author: str, title: str) -> int:
        stmt = (
            delete(Song)
            .where(Song.author == author, Song.title == title)
        )
        try:
            result = db.session.execute(stmt)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Failed to delete %s - %s: %s", author, title, e, exc_info=True)
            raise StoreFailure(f"database error while deleting song: {e}") from e
        logger.debug("Deleted %s row(s) for %s - %s", result.rowcount, author, title)
        return result.rowcount


__all__ = ["CatalogRepository", "SqlCatalogRepository"]
