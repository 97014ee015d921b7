# manage.py
import argparse
import importlib
import os
import sys

from dotenv import load_dotenv
from flask import Flask

from config import Config
from music_library.database.db_manager import (
    FAIL_ON_MISMATCH,
    SchemaVersionMismatch,
    db,
    ensure_schema,
    ensure_sqlite_directory,
    read_schema_version,
    reset_schema,
)


def _bare_app(config_object=Config):
    """App with only the database bound, so no schema policy runs on startup."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    db.init_app(app)
    ensure_sqlite_directory(app)
    return app


def init_db(app):
    """Create the schema if absent; refuses to touch a mismatched version."""
    with app.app_context():
        if read_schema_version() is None:
            reset_schema()
            print("Catalog schema created.")
            return 0
        try:
            version = ensure_schema(FAIL_ON_MISMATCH)
        except SchemaVersionMismatch as exc:
            print(exc, file=sys.stderr)
            return 1
        print(f"Catalog schema already at version {version}.")
        return 0


def reset_db(app, assume_yes=False):
    """Drop and recreate the catalog. All songs are lost."""
    if not assume_yes:
        answer = input("This deletes every song in the catalog. Continue? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return 1
    with app.app_context():
        reset_schema()
    print("Catalog schema recreated.")
    return 0


def schema_version(app):
    with app.app_context():
        print(read_schema_version())
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Catalog database management")
    parser.add_argument("-p", "--env-path", default=".env", help="Location of environment file")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="create the catalog schema if it does not exist")
    reset = sub.add_parser("reset-db", help="drop and recreate the catalog schema")
    reset.add_argument("-y", "--yes", action="store_true", help="do not ask for confirmation")
    sub.add_parser("schema-version", help="print the stored schema version")
    args = parser.parse_args(argv)

    if os.path.exists(args.env_path):
        load_dotenv(args.env_path)
    # Re-read configuration so DATABASE_URL from the env file takes effect
    import config as _config
    importlib.reload(_config)

    app = _bare_app(_config.Config)
    if args.command == "init-db":
        return init_db(app)
    if args.command == "reset-db":
        return reset_db(app, assume_yes=args.yes)
    return schema_version(app)


if __name__ == '__main__':
    sys.exit(main())
