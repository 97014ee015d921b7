import pytest

from tests.support.stubs import bad_request, connection_error, detail_response, server_error


@pytest.mark.unit
def test_list_all_returns_ordered_json(client, factories):
    factories.SongFactory(author="Zed", title="A", release_date="1", text="t", link="l")
    factories.SongFactory(author="Abba", title="Waterloo", release_date="2", text="t2", link="l2")

    r = client.get('/library/all')
    assert r.status_code == 200
    data = r.get_json()
    assert [item["group"] for item in data] == ["Abba", "Zed"]
    assert data[0] == {"group": "Abba", "song": "Waterloo", "releaseDate": "2", "text": "t2", "link": "l2"}


@pytest.mark.unit
def test_list_all_filters_and_paginates(client, factories):
    for i in range(4):
        factories.SongFactory(author="Same", title=f"T{i}")
    factories.SongFactory(author="Other", title="X")

    r = client.get('/library/all?author=Same&offset=1&limit=2')
    assert r.status_code == 200
    assert [item["song"] for item in r.get_json()] == ["T1", "T2"]


@pytest.mark.unit
def test_list_all_with_no_matches_is_404(client, db_session):
    r = client.get('/library/all?author=nobody')
    assert r.status_code == 404
    assert r.get_json()["error"] == "not_found"


@pytest.mark.unit
def test_list_all_malformed_limit_is_400(client, db_session):
    r = client.get('/library/all?limit=abc')
    assert r.status_code == 400
    assert r.get_json()["error"] == "malformed_pagination"


@pytest.mark.unit
def test_text_returns_plain_text_verse(client, factories):
    factories.SongFactory(author="A", title="B", text="one\n\ntwo")
    r = client.get('/library/text?author=A&song=B&verse=2')
    assert r.status_code == 200
    assert r.mimetype == 'text/plain'
    assert r.get_data(as_text=True) == "two"

    r = client.get('/library/text?author=A&song=B')
    assert r.get_data(as_text=True) == "one\n\ntwo"


@pytest.mark.unit
@pytest.mark.parametrize("query", ["author=A", "song=B", "author=A&song=B&verse=5", "author=A&song=B&verse=-1"])
def test_text_bad_requests(client, factories, query):
    factories.SongFactory(author="A", title="B", text="one\n\ntwo")
    r = client.get(f'/library/text?{query}')
    assert r.status_code == 400


@pytest.mark.unit
def test_delete_song(client, factories):
    factories.SongFactory(author="A", title="B")
    assert client.delete('/library/delete?author=A&song=B').status_code == 204
    assert client.delete('/library/delete?author=A&song=B').status_code == 404
    assert client.delete('/library/delete?author=A').status_code == 400


@pytest.mark.unit
def test_add_song_enriches_and_returns_201(client, db_session, install_enrichment):
    install_enrichment(detail_response(release_date="16.07.2006", text="Ooh baby\n\nOoh", link="https://y"))
    r = client.post('/library/add', json={"group": "Muse", "song": "Supermassive Black Hole"})
    assert r.status_code == 201
    assert r.get_json()["releaseDate"] == "16.07.2006"

    r = client.get('/library/text', query_string={"author": "Muse", "song": "Supermassive Black Hole", "verse": "1"})
    assert r.get_data(as_text=True) == "Ooh baby"


@pytest.mark.unit
def test_add_duplicate_song_is_409(client, factories, install_enrichment):
    factories.SongFactory(author="Muse", title="Uprising")
    install_enrichment(detail_response())
    r = client.post('/library/add', json={"group": "Muse", "song": "Uprising"})
    assert r.status_code == 409
    assert r.get_json()["error"] == "conflict"


@pytest.mark.unit
def test_add_song_upstream_failures(client, db_session, install_enrichment, sleeper):
    install_enrichment(bad_request())
    r = client.post('/library/add', json={"group": "A", "song": "B"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "upstream_bad_request"

    install_enrichment(server_error())
    r = client.post('/library/add', json={"group": "A", "song": "B"})
    assert r.status_code == 500
    assert r.get_json() == {"error": "upstream_unavailable", "message": "external api is not working"}
    assert sleeper.delays == [1, 2, 4, 8, 10]

    install_enrichment(connection_error("refused"))
    r = client.post('/library/add', json={"group": "A", "song": "B"})
    assert r.status_code == 500
    assert r.get_json()["error"] == "upstream_unexpected"
    assert "refused" in r.get_json()["message"]

    assert client.get('/library/all').status_code == 404


@pytest.mark.unit
def test_add_song_invalid_body_is_400(client, db_session, install_enrichment):
    install_enrichment(detail_response())
    r = client.post('/library/add', data="not json", content_type="application/json")
    assert r.status_code == 400
    assert r.get_json()["error"] == "invalid_payload"


@pytest.mark.unit
def test_update_song(client, factories):
    factories.SongFactory(author="A", title="B", text="old")
    r = client.put('/library/update?author=A&song=B', json={"releaseDate": "2020", "text": "new", "link": "x"})
    assert r.status_code == 204
    assert client.get('/library/text?author=A&song=B').get_data(as_text=True) == "new"

    r = client.put('/library/update?author=A&song=Missing', json={"text": "new"})
    assert r.status_code == 404

    r = client.put('/library/update?song=B', json={"text": "new"})
    assert r.status_code == 400


@pytest.mark.unit
def test_request_id_is_echoed(client, db_session):
    r = client.get('/library/all', headers={"X-Request-ID": "abc123"})
    assert r.headers["X-Request-ID"] == "abc123"
    assert client.get('/library/all').headers.get("X-Request-ID")
