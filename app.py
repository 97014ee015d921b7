import argparse
import importlib
import os
import logging
from datetime import datetime
from uuid import uuid4

from dotenv import load_dotenv

# --- Flask specific imports ---
from flask import Flask, request, g
from flask_cors import CORS

from config import Config, validate_config
from music_library.database.db_manager import initialize_database
from music_library.domain.catalog import CatalogService, EnrichmentClient, SqlCatalogRepository
from music_library.interfaces.http.routes import library_bp, health_bp
from music_library.observability import configure_structured_logging, metrics_blueprint
from music_library.observability.logging import JsonFormatter, RequestContextFilter


logger = logging.getLogger(__name__)


def configure_logging(log_dir: str, level: str = "info", enable_console: bool = False) -> str:
    """Send root logging to a per-run JSON-lines file ``log-YYYY-MM-DD-HH-MM-SS``.

    The console handler, when enabled, stays plain text at WARNING and above.
    Returns the path to the created log file.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, datetime.now().strftime("log-%Y-%m-%d-%H-%M-%S"))

    root = logging.getLogger()
    root.setLevel(level.upper())
    # A relaunch in the same process replaces the previous run's file
    for stale in [h for h in root.handlers if isinstance(h, logging.FileHandler)]:
        root.removeHandler(stale)
        stale.close()

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setFormatter(JsonFormatter())
    file_handler.addFilter(RequestContextFilter())
    root.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        root.addHandler(console_handler)

    # Werkzeug request lines go through the root handlers only
    for name in ("werkzeug", "flask.app"):
        framework_logger = logging.getLogger(name)
        framework_logger.handlers = []
        framework_logger.propagate = True

    return log_path


def create_app(config_overrides=None, config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if config_overrides:
        app.config.update(config_overrides)
    validate_config(app.config)
    configure_structured_logging(app)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or uuid4().hex

    @app.after_request
    def _inject_request_id(response):
        if getattr(g, 'request_id', None):
            response.headers.setdefault('X-Request-ID', g.request_id)
        return response

    allowed_origins = sorted({
        origin.strip()
        for origin in app.config.get('CORS_ALLOWED_ORIGINS', [])
        if origin and origin.strip() and origin.strip() != "*"
    })
    if allowed_origins:
        CORS(app, resources={r"/library/*": {"origins": allowed_origins}})

    # Initialize database and verify the schema version
    initialize_database(app)

    # Build domain services to keep orchestration wiring at the app boundary
    enrichment_client = EnrichmentClient(
        base_url=app.config.get('EXTERNAL_API_URL'),
        max_attempts=app.config.get('ENRICHMENT_MAX_ATTEMPTS'),
        initial_delay=app.config.get('ENRICHMENT_INITIAL_DELAY_SECONDS'),
        max_delay=app.config.get('ENRICHMENT_MAX_DELAY_SECONDS'),
        timeout=app.config.get('ENRICHMENT_TIMEOUT_SECONDS'),
    )
    app.extensions['catalog_service'] = CatalogService(
        repository=SqlCatalogRepository(),
        enrichment_client=enrichment_client,
    )

    # --- Register Blueprints ---
    app.register_blueprint(library_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(metrics_blueprint)

    return app


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Song catalog API server")
    parser.add_argument('-p', '--env-path', default='.env', help="Location of environment file")
    parser.add_argument('-d', '--debug', action='store_true', help="Start service in debug")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if os.path.exists(args.env_path):
        load_dotenv(args.env_path)
    else:
        logger.warning("Environment file %s not found; using process environment only", args.env_path)
    # Overrides LOG_LEVEL even if the env file sets another level
    if args.debug:
        os.environ['LOG_LEVEL'] = 'debug'

    # Re-read configuration now that the env file is loaded
    import config as _config
    importlib.reload(_config)
    cfg = _config.Config

    log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'music_library', 'log')
    log_file_path = configure_logging(log_dir, cfg.LOG_LEVEL, cfg.ENABLE_CONSOLE_LOGS)
    logger.info("File logging initialized at %s", log_file_path)

    app = create_app(config_object=cfg)
    # Route app.logger through root handlers, keep levels consistent
    app.logger.handlers = []
    app.logger.propagate = True
    logger.debug("debug is enabled")
    logger.info("Starting api server on %s:%s", cfg.BIND_HOST, cfg.BIND_PORT)
    # One thread per request so enrichment backoff never blocks other requests
    app.run(debug=cfg.DEBUG, host=cfg.BIND_HOST, port=cfg.BIND_PORT, threaded=True)
    logger.info("api server stopped")


if __name__ == '__main__':
    main()
