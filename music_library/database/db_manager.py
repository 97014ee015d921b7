# database/db_manager.py
import os  # Import os for path handling
import logging

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import inspect
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError

# Initialize the SQLAlchemy object
db = SQLAlchemy()
logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 1
WIPE_AND_RECREATE = "wipe-and-recreate"
FAIL_ON_MISMATCH = "fail-on-mismatch"


class SchemaVersionMismatch(RuntimeError):
    """Raised at startup when the stored schema version is not the expected one."""

    def __init__(self, found, expected=CURRENT_SCHEMA_VERSION):
        self.found = found
        self.expected = expected
        super().__init__(
            f"Database schema version is {found!r}, expected {expected}. "
            "Run 'python manage.py reset-db' to recreate the catalog (this deletes all songs)."
        )


class Song(db.Model):
    __tablename__ = 'music_library'

    author = db.Column(db.String(255), primary_key=True)
    title = db.Column('song', db.String(255), primary_key=True)
    release_date = db.Column('releasedate', db.String(32), nullable=False, default='')
    text = db.Column('song_text', db.Text, nullable=False, default='')
    link = db.Column(db.String(500), nullable=False, default='')

    def __repr__(self):
        return f'<Song {self.title} by {self.author}>'


class SchemaVersion(db.Model):
    __tablename__ = 'version'

    version = db.Column(db.Integer, primary_key=True, autoincrement=False)


def read_schema_version():
    """Return the persisted schema version, or None when the marker is absent."""
    if not inspect(db.engine).has_table(SchemaVersion.__tablename__):
        return None
    row = db.session.query(SchemaVersion.version).first()
    return row[0] if row else None


def reset_schema():
    """Drop and recreate the catalog and the version marker. Deletes every song."""
    logger.warning("Recreating catalog schema at version %s; existing songs are discarded", CURRENT_SCHEMA_VERSION)
    tables = [Song.__table__, SchemaVersion.__table__]
    try:
        db.session.remove()
        db.metadata.drop_all(bind=db.engine, tables=tables)
        db.metadata.create_all(bind=db.engine, tables=tables)
        db.session.add(SchemaVersion(version=CURRENT_SCHEMA_VERSION))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


def ensure_schema(policy=WIPE_AND_RECREATE):
    """Verify the schema-version marker and apply the mismatch policy.

    Must run inside an application context. Returns the version in effect.
    """
    found = read_schema_version()
    if found == CURRENT_SCHEMA_VERSION:
        logger.info("Catalog schema version %s verified", found)
        return found
    if policy == FAIL_ON_MISMATCH:
        logger.error("Catalog schema version mismatch: found %r, expected %s", found, CURRENT_SCHEMA_VERSION)
        raise SchemaVersionMismatch(found)
    logger.warning("Catalog schema version %r does not match %s", found, CURRENT_SCHEMA_VERSION)
    reset_schema()
    return CURRENT_SCHEMA_VERSION


def ensure_sqlite_directory(app):
    """Create the instance folder and any missing SQLite file directory."""
    # Ensure the instance folder exists for SQLite database file
    instance_path = app.instance_path
    if not os.path.exists(instance_path):
        os.makedirs(instance_path)
        logger.info("Created instance folder: %s", instance_path)

    # Ensure the directory for the configured SQLite file exists
    uri = app.config.get('SQLALCHEMY_DATABASE_URI')
    if uri:
        url = make_url(uri)
        # Only handle file-based SQLite (not :memory:)
        if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
            db_dir = os.path.dirname(url.database)
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir, exist_ok=True)
                logger.info("Created SQLite DB directory: %s", db_dir)


def initialize_database(app):
    """
    Initializes the SQLAlchemy extension with the Flask app instance
    and runs the schema-version check under the configured policy.
    """
    db.init_app(app)
    ensure_sqlite_directory(app)
    with app.app_context():
        ensure_schema(app.config.get('SCHEMA_MISMATCH_POLICY', WIPE_AND_RECREATE))
