import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so 'app', 'config', and 'music_library' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support import factories as test_factories
from tests.support import stubs as test_stubs

ENRICHMENT_URL = "http://enrichment.test/info"


@pytest.fixture
def database_uri(tmp_path_factory):
    db_dir = tmp_path_factory.mktemp("db")
    return f"sqlite:///{(Path(db_dir) / 'test.sqlite').as_posix()}"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, database_uri):
    """Ensure a clean env for tests with per-test sqlite files."""
    monkeypatch.setenv("DATABASE_URL", database_uri)
    monkeypatch.setenv("EXTERNAL_API_URL", ENRICHMENT_URL)
    monkeypatch.delenv("SCHEMA_MISMATCH_POLICY", raising=False)
    yield


@pytest.fixture
def app(database_uri):
    from app import create_app

    application = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": database_uri,
            "EXTERNAL_API_URL": ENRICHMENT_URL,
            "SCHEMA_MISMATCH_POLICY": "wipe-and-recreate",
            "LOG_LEVEL": "debug",
        }
    )
    yield application


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def db_session(app_context):
    from music_library.database.db_manager import db

    test_factories.set_session(db.session)
    try:
        yield db.session
    finally:
        db.session.rollback()
        db.session.remove()
        test_factories.reset_session()


@pytest.fixture
def factories(db_session):
    yield test_factories


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sleeper():
    return test_stubs.SleepRecorder()


@pytest.fixture
def install_enrichment(app, sleeper):
    """Swap the app's enrichment client for one driven by a scripted HTTP stub."""
    from music_library.domain.catalog import EnrichmentClient

    def _install(*script):
        http = test_stubs.EnrichmentHttpStub(script)
        app.extensions["catalog_service"].enrichment_client = EnrichmentClient(
            base_url=ENRICHMENT_URL,
            http=http,
            max_attempts=5,
            initial_delay=1.0,
            max_delay=10.0,
            timeout=2.0,
            sleep=sleeper,
        )
        return http

    return _install
