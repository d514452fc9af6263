from __future__ import annotations

import logging

from flask import request
from flask_socketio import SocketIO

from . import events as ev
from .events import Transport
from .gateway import Gateway


logger = logging.getLogger(__name__)


class SocketIOTransport(Transport):
    def __init__(self, socketio: SocketIO, namespace: str = "/") -> None:
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, event, payload, to):
        self.socketio.emit(event, payload, to=to, namespace=self.namespace)

    def enter_room(self, sid, room):
        self.socketio.server.enter_room(sid, room, namespace=self.namespace)

    def leave_room(self, sid, room):
        self.socketio.server.leave_room(sid, room, namespace=self.namespace)


INTENTS = (
    ev.CREATE_ROOM,
    ev.JOIN_ROOM,
    ev.JOIN_ROOM_AS_SPECTATOR,
    ev.TOGGLE_READY,
    ev.SET_MAX_ROUNDS,
    ev.SUBMIT_PROMPT,
    ev.SUBMIT_GUESS,
    ev.LEAVE_ROOM,
)


def register_socketio_handlers(socketio: SocketIO, gateway: Gateway) -> None:
    def _make_handler(intent: str):
        def _handler(data=None):
            return gateway.handle(intent, data, request.sid)

        _handler.__name__ = f"on_{intent}"
        return _handler

    for intent in INTENTS:
        socketio.on_event(intent, _make_handler(intent))

    @socketio.on("connect")
    def on_connect(auth=None):
        logger.debug(f"[connect] sid={request.sid}")

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        logger.debug(f"[disconnect] sid={request.sid}")
        gateway.disconnect(request.sid)
