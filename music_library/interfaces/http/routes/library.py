"""Song catalog endpoints."""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from music_library.domain.catalog.errors import CatalogError
from music_library.models.dto import FilterSpec


logger = logging.getLogger(__name__)

library_bp = Blueprint('library_bp', __name__, url_prefix='/library')


# Helper function to get the CatalogService instance
def get_catalog_service():
    return current_app.extensions['catalog_service']


def _identity_args():
    return request.args.get('author', ''), request.args.get('song', '')


@library_bp.errorhandler(CatalogError)
def _handle_catalog_error(exc: CatalogError):
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.error_code, exc.message)
    else:
        logger.info("%s: %s", exc.error_code, exc.message)
    return jsonify(exc.to_dict()), exc.status_code


@library_bp.before_request
def _log_request():
    logger.info("%s request from %s to %s", request.endpoint, request.remote_addr, request.full_path)


@library_bp.route('/all', methods=['GET'])
def list_library():
    filter_spec = FilterSpec(
        author=request.args.get('author', ''),
        title=request.args.get('song', ''),
        release_date=request.args.get('releaseDate', ''),
        text=request.args.get('text', ''),
        link=request.args.get('link', ''),
    )
    offset = request.args.get('offset')
    limit = request.args.get('limit')
    logger.debug("filter parameters: %s offset=%s limit=%s", filter_spec.model_dump(), offset, limit)

    songs = get_catalog_service().list_songs(filter_spec, offset, limit)
    if not songs:
        logger.debug("no songs matched %s", request.full_path)
        return jsonify({"error": "not_found", "message": "No songs matched the given filters."}), 404
    return jsonify([song.to_wire() for song in songs]), 200


@library_bp.route('/text', methods=['GET'])
def show_song_text():
    author, title = _identity_args()
    text = get_catalog_service().get_text(author, title, request.args.get('verse'))
    return Response(text, status=200, mimetype='text/plain')


@library_bp.route('/delete', methods=['DELETE'])
def delete_song():
    author, title = _identity_args()
    get_catalog_service().delete_song(author, title)
    return '', 204


@library_bp.route('/add', methods=['POST'])
def add_song():
    payload = request.get_json(silent=True)
    song = get_catalog_service().create_song(payload)
    logger.info("Added %s - %s to the catalog", song.author, song.title)
    return jsonify(song.to_wire()), 201


@library_bp.route('/update', methods=['PUT'])
def update_song():
    author, title = _identity_args()
    get_catalog_service().update_song(author, title, request.get_json(silent=True))
    return '', 204


__all__ = ["library_bp"]
