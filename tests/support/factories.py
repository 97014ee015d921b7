"""Factory Boy factories for database models used in tests."""

import factory
from factory.alchemy import SQLAlchemyModelFactory

from music_library.database.db_manager import Song


class _BaseFactory(SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"


class SongFactory(_BaseFactory):
    class Meta:
        model = Song

    author = factory.Sequence(lambda n: f"Artist {n}")
    title = factory.Sequence(lambda n: f"Song {n}")
    release_date = factory.Sequence(lambda n: f"{(n % 28) + 1:02d}.01.2000")
    text = factory.LazyAttribute(lambda obj: f"{obj.title} first verse\n\n{obj.title} second verse")
    link = factory.LazyAttribute(lambda obj: f"https://example.com/{obj.author}/{obj.title}".replace(" ", "_"))


_FACTORIES = [SongFactory]


def set_session(session):
    for factory_cls in _FACTORIES:
        factory_cls._meta.sqlalchemy_session = session


def reset_session():
    for factory_cls in _FACTORIES:
        factory_cls._meta.sqlalchemy_session = None


__all__ = [
    "SongFactory",
    "set_session",
    "reset_session",
]
