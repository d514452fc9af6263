from __future__ import annotations

import logging
import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

from flask import Flask, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config, GameSettings
from .game.scheduler import ManualScheduler, Scheduler, SocketIOScheduler
from .game.store import RoomStore
from .imaging.costs import CostTracker
from .imaging.generator import build_image_generator
from .realtime.gateway import Gateway
from .realtime.handlers import SocketIOTransport, register_socketio_handlers
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp


logger = logging.getLogger(__name__)

FRONTEND_DIST = Path(__file__).resolve().parents[2] / "frontend" / "dist"


@dataclass
class AppState:
    """Everything the routes and socket handlers share, kept in ``app.extensions``."""

    store: RoomStore
    settings: GameSettings
    scheduler: Scheduler
    gateway: Gateway
    costs: CostTracker
    started_at: float = field(default_factory=time.monotonic)


def _pick_async_mode(testing: bool) -> str:
    if testing:
        return "threading"
    env_async_mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if env_async_mode:
        return env_async_mode
    # eventlet is unreliable on Windows and on Python 3.13+.
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def _register_frontend(app: Flask, dist_dir: Path) -> None:
    """Serve the built single-page client, falling back to index.html for client routes."""

    @app.get("/")
    def index():
        return send_from_directory(dist_dir, "index.html")

    @app.get("/<path:path>")
    def static_proxy(path: str):
        if (dist_dir / path).is_file():
            return send_from_directory(dist_dir, path)
        return send_from_directory(dist_dir, "index.html")


def create_app(config_class=Config, store: RoomStore | None = None) -> tuple[Flask, SocketIO]:
    has_frontend = FRONTEND_DIST.exists()
    app = Flask(
        __name__,
        static_folder=str(FRONTEND_DIST) if has_frontend else None,
        static_url_path="/" if has_frontend else None,
    )
    app.config.from_object(config_class)
    testing = bool(app.config.get("TESTING", False))

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})
    socketio = SocketIO(app, cors_allowed_origins=cors_origins, async_mode=_pick_async_mode(testing))

    settings = GameSettings.from_config(app.config)
    store = store or RoomStore()
    # Tests drive the clock by hand.
    scheduler: Scheduler = ManualScheduler() if testing else SocketIOScheduler(socketio)
    costs = CostTracker()
    gateway = Gateway(
        store=store,
        scheduler=scheduler,
        transport=SocketIOTransport(socketio),
        image_generator=build_image_generator(app.config, tracker=costs),
        settings=settings,
    )
    app.extensions["imprompt"] = AppState(
        store=store,
        settings=settings,
        scheduler=scheduler,
        gateway=gateway,
        costs=costs,
    )

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")
    register_socketio_handlers(socketio, gateway)

    if has_frontend:
        _register_frontend(app, FRONTEND_DIST)

    logger.info(f"[app] async_mode={socketio.async_mode} testing={testing} provider={gateway.image_generator.provider}")
    return app, socketio
