"""Development entry point: ``python backend/app.py``.

Reads ``.env`` from the repository root, then serves the Socket.IO app.
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Engine.IO logs every poll at INFO.
    logging.getLogger("engineio.server").setLevel(logging.WARNING)
    logging.getLogger("socketio.server").setLevel(logging.WARNING)


def _wants_eventlet() -> bool:
    mode = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if mode and mode != "eventlet":
        return False
    return not sys.platform.startswith("win") and sys.version_info < (3, 13)


def main() -> None:
    load_dotenv(Path(__file__).resolve().parents[1] / ".env")
    _configure_logging()

    # Must patch before Flask and the game timers import socket/threading.
    if _wants_eventlet():
        import eventlet

        eventlet.monkey_patch()

    try:
        from backend.imprompt.server import create_app
    except ImportError:  # pragma: no cover
        from imprompt.server import create_app

    app, socketio = create_app()
    logging.getLogger("imprompt").info(
        f"[startup] image_provider={app.config['IMAGE_PROVIDER']} async_mode={socketio.async_mode}"
    )

    socketio.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "5000")),
        debug=_env_flag("FLASK_DEBUG", "0"),
        use_reloader=_env_flag("FLASK_USE_RELOADER", "0"),
        allow_unsafe_werkzeug=_env_flag("ALLOW_UNSAFE_WERKZEUG", "1"),
    )


if __name__ == "__main__":
    main()
