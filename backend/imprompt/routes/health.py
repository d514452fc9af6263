from __future__ import annotations

import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    state = current_app.extensions["imprompt"]
    return jsonify(
        {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "rooms": len(state.store),
            "uptime": round(time.monotonic() - state.started_at, 3),
        }
    )


@bp.get("/costs")
def costs():
    state = current_app.extensions["imprompt"]
    return jsonify(state.costs.usage_stats())
