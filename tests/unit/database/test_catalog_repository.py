import pytest

from music_library.domain.catalog.errors import Conflict, NotFound
from music_library.domain.catalog.query_builder import build_list_query
from music_library.domain.catalog.repository import SqlCatalogRepository
from music_library.models.dto import FilterSpec, SongDTO


def _song(author="Muse", title="Uprising", **kwargs):
    data = {"release_date": "07.09.2009", "text": "Paranoia\n\nThey will not force us", "link": "https://l"}
    data.update(kwargs)
    return SongDTO(author=author, title=title, **data)


@pytest.mark.unit
def test_insert_then_get_round_trips_all_fields(db_session):
    repo = SqlCatalogRepository()
    song = _song()
    repo.insert(song)
    assert repo.get("Muse", "Uprising") == song


@pytest.mark.unit
def test_get_missing_raises_not_found(db_session):
    with pytest.raises(NotFound):
        SqlCatalogRepository().get("Nobody", "Nothing")


@pytest.mark.unit
def test_duplicate_insert_conflicts_and_keeps_existing_row(db_session):
    repo = SqlCatalogRepository()
    repo.insert(_song(link="original"))
    with pytest.raises(Conflict):
        repo.insert(_song(link="replacement"))
    assert repo.get("Muse", "Uprising").link == "original"


@pytest.mark.unit
def test_update_replaces_mutable_fields(db_session):
    repo = SqlCatalogRepository()
    repo.insert(_song())
    repo.update(_song(release_date="2010", text="new", link="new-link"))
    stored = repo.get("Muse", "Uprising")
    assert (stored.release_date, stored.text, stored.link) == ("2010", "new", "new-link")


@pytest.mark.unit
def test_update_missing_row_is_not_an_upsert(db_session):
    repo = SqlCatalogRepository()
    with pytest.raises(NotFound):
        repo.update(_song())
    assert repo.list(build_list_query(FilterSpec())) == []


@pytest.mark.unit
def test_delete_reports_affected_rows(db_session):
    repo = SqlCatalogRepository()
    repo.insert(_song())
    assert repo.delete("Muse", "Uprising") == 1
    assert repo.delete("Muse", "Uprising") == 0
    with pytest.raises(NotFound):
        repo.get("Muse", "Uprising")


@pytest.mark.unit
def test_list_orders_by_author_then_title(factories):
    factories.SongFactory(author="B", title="a")
    factories.SongFactory(author="A", title="z")
    factories.SongFactory(author="A", title="b")

    songs = SqlCatalogRepository().list(build_list_query(FilterSpec()))
    assert [(s.author, s.title) for s in songs] == [("A", "b"), ("A", "z"), ("B", "a")]


@pytest.mark.unit
def test_list_filters_are_exact_match(factories):
    factories.SongFactory(author="Muse", title="Uprising")
    factories.SongFactory(author="Muse Tribute", title="Uprising")
    factories.SongFactory(author="Other", title="Uprising 2")

    repo = SqlCatalogRepository()
    songs = repo.list(build_list_query(FilterSpec(author="Muse")))
    assert [(s.author, s.title) for s in songs] == [("Muse", "Uprising")]

    songs = repo.list(build_list_query(FilterSpec(title="Uprising")))
    assert [s.author for s in songs] == ["Muse", "Muse Tribute"]


@pytest.mark.unit
def test_list_window_is_contiguous_slice(factories):
    for i in range(6):
        factories.SongFactory(author="Artist", title=f"Song {i}")

    repo = SqlCatalogRepository()
    everything = repo.list(build_list_query(FilterSpec()))
    window = repo.list(build_list_query(FilterSpec(), offset="2", limit="3"))
    assert window == everything[2:5]

    assert repo.list(build_list_query(FilterSpec(), offset="2")) == everything[2:]
    assert repo.list(build_list_query(FilterSpec(), limit="0")) == []
    assert repo.list(build_list_query(FilterSpec(), offset="6")) == []
    assert repo.list(build_list_query(FilterSpec(), offset="100", limit="5")) == []
