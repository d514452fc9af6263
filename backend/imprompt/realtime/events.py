from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# Inbound intents
CREATE_ROOM = "create_room"
JOIN_ROOM = "join_room"
JOIN_ROOM_AS_SPECTATOR = "join_room_as_spectator"
TOGGLE_READY = "toggle_ready"
SET_MAX_ROUNDS = "set_max_rounds"
SUBMIT_PROMPT = "submit_prompt"
SUBMIT_GUESS = "submit_guess"
LEAVE_ROOM = "leave_room"

# Outbound events
ROOM_CREATED = "room_created"
ROOM_UPDATE = "room_update"
SPECTATOR_JOINED = "spectator_joined"
GAME_STARTED = "game_started"
PROMPT_TIMER_UPDATE = "prompt_timer_update"
IMAGE_GENERATING = "image_generating"
PROMPT_SUBMITTED = "prompt_submitted"
TIMER_UPDATE = "timer_update"
GUESS_SUBMITTED = "guess_submitted"
ROUND_ENDED = "round_ended"
NEXT_TURN = "next_turn"
PLAYER_LEFT = "player_left"
GAME_FINISHED = "game_finished"
ERROR = "error"

# Error codes that travel under their own event name.
DEDICATED_ERROR_EVENTS = frozenset({"room_not_found", "game_in_progress", "name_taken"})


@dataclass
class Emit:
    event: str
    payload: dict = field(default_factory=dict)
    to: str | None = None


@dataclass
class Enter:
    sid: str
    room: str


@dataclass
class Leave:
    sid: str
    room: str


Effect = Emit | Enter | Leave


class Transport:
    """Where effects end up: a live Socket.IO server or a test recorder."""

    def emit(self, event: str, payload: dict, to: str | None) -> None:
        raise NotImplementedError

    def enter_room(self, sid: str, room: str) -> None:
        raise NotImplementedError

    def leave_room(self, sid: str, room: str) -> None:
        raise NotImplementedError

    def apply(self, effects: list[Any]) -> None:
        for effect in effects:
            if isinstance(effect, Emit):
                self.emit(effect.event, effect.payload, effect.to)
            elif isinstance(effect, Enter):
                self.enter_room(effect.sid, effect.room)
            elif isinstance(effect, Leave):
                self.leave_room(effect.sid, effect.room)


class RecordingTransport(Transport):
    """Keeps every effect in order; rooms are tracked so broadcasts can be resolved."""

    def __init__(self) -> None:
        self.effects: list[Any] = []
        self.members: dict[str, set[str]] = {}

    def emit(self, event, payload, to):
        self.effects.append(Emit(event, payload, to))

    def enter_room(self, sid, room):
        self.members.setdefault(room, set()).add(sid)
        self.effects.append(Enter(sid, room))

    def leave_room(self, sid, room):
        self.members.get(room, set()).discard(sid)
        self.effects.append(Leave(sid, room))

    def emitted(self, event: str | None = None, to: str | None = None) -> list[Emit]:
        return [
            e
            for e in self.effects
            if isinstance(e, Emit) and (event is None or e.event == event) and (to is None or e.to == to)
        ]

    def clear(self) -> None:
        self.effects.clear()
