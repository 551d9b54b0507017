"""Game library API routes."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request

from library.models import CreateGameInput
from library.service import GameService
from routes.api_utils import BadRequestError, handle_api_errors

games_blueprint = Blueprint("games", __name__)

SERVICE_EXTENSION_KEY = "game_service"


def _service() -> GameService:
    service = current_app.extensions.get(SERVICE_EXTENSION_KEY)
    if service is None:
        raise RuntimeError("game service is not configured for this app")
    return service


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise BadRequestError("Request body must be a JSON object.")
    return payload


@games_blueprint.route("/api/games", methods=["GET"])
@handle_api_errors
def api_list_games():
    query = (request.args.get("q") or "").strip()
    status = (request.args.get("status") or "").strip()
    service = _service()
    if query:
        games = service.search_games(query)
    else:
        games = service.filter_games(status or None)
    return jsonify({"games": [game.to_dict() for game in games], "total": len(games)})


@games_blueprint.route("/api/games/<int:game_id>", methods=["GET"])
@handle_api_errors
def api_get_game(game_id: int):
    return jsonify(_service().get_game(game_id).to_dict())


@games_blueprint.route("/api/games", methods=["POST"])
@handle_api_errors
def api_create_game():
    try:
        data = CreateGameInput.from_mapping(_json_body())
    except ValueError as exc:
        raise BadRequestError(str(exc)) from exc
    game = _service().create_game(data)
    return jsonify(game.to_dict()), 201


@games_blueprint.route("/api/games/<int:game_id>/status", methods=["POST"])
@handle_api_errors
def api_update_status(game_id: int):
    status = str(_json_body().get("status") or "").strip()
    if not status:
        raise BadRequestError("missing required fields: status")
    _service().update_game_status(game_id, status)
    return jsonify({"id": game_id, "status": status})


@games_blueprint.route("/api/games/<int:game_id>", methods=["DELETE"])
@handle_api_errors
def api_delete_game(game_id: int):
    _service().delete_game(game_id)
    return jsonify({"id": game_id, "deleted": True})


@games_blueprint.route("/api/stats", methods=["GET"])
@handle_api_errors
def api_stats():
    return jsonify(_service().get_stats().to_dict())


@games_blueprint.route("/api/catalog/search", methods=["GET"])
@handle_api_errors
def api_catalog_search():
    query = (request.args.get("q") or "").strip()
    if not query:
        raise BadRequestError("Query parameter 'q' is required.")
    results = _service().search_catalog(query)
    return jsonify({"results": [entry.to_dict() for entry in results]})


@games_blueprint.route("/api/index", methods=["POST"])
@handle_api_errors
def api_index():
    return jsonify(_service().index_all().to_dict())


@games_blueprint.route("/api/games/export.csv", methods=["GET"])
@handle_api_errors
def api_export_csv():
    with tempfile.TemporaryDirectory() as tmp_dir:
        export_path = Path(tmp_dir) / "games.csv"
        _service().export_library(export_path)
        body = export_path.read_bytes()
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=games.csv"},
    )


__all__ = ["SERVICE_EXTENSION_KEY", "games_blueprint"]
