from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game import service
from ..game.store import normalize_room_code

bp = Blueprint("rooms", __name__)


@bp.get("/rooms/<code>")
def get_room(code: str):
    state = current_app.extensions["imprompt"]
    with state.store.lock:
        room = state.store.get(normalize_room_code(code))
        if not room:
            return jsonify({"error": "room_not_found"}), 404
        return jsonify(service.room_public_state(room, state.settings))
