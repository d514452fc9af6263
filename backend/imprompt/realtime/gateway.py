"""Session gateway: client intents in, room effects out.

Every intent maps to a command ``(room, payload, sid) -> [effects]`` in
``Gateway.commands``. Commands, timer callbacks and generation results all
run under the store lock, and their effects are applied to the transport
before the lock is released, so each room sees its events in processing
order. Image generation is the only slow step and runs outside the lock.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..config import GameSettings
from ..game import service
from ..game.errors import ConflictError, GameError, GenerationFailure, NotFoundError
from ..game.models import Room
from ..game.prompts import RANDOM_IMAGE_PROMPT, pick_filler_prompt
from ..game.scheduler import Scheduler, TimerHandle
from ..game.store import RoomStore, normalize_room_code
from ..imaging.generator import ImageGenerator, StockImageGenerator
from . import events as ev
from .events import DEDICATED_ERROR_EVENTS, Emit, Enter, Leave, Transport


logger = logging.getLogger(__name__)

Command = Callable[[Room | None, dict, str], list]


class Gateway:
    def __init__(
        self,
        store: RoomStore,
        scheduler: Scheduler,
        transport: Transport,
        image_generator: ImageGenerator,
        settings: GameSettings | None = None,
        stock_images: ImageGenerator | None = None,
        filler_prompt: Callable[[], str] = pick_filler_prompt,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self.transport = transport
        self.image_generator = image_generator
        self.stock_images = stock_images or StockImageGenerator()
        self.settings = settings or GameSettings()
        self.filler_prompt = filler_prompt
        self._deferred: list[tuple[Callable[..., Any], tuple]] = []

        self.commands: dict[str, Command] = {
            ev.CREATE_ROOM: self.create_room,
            ev.JOIN_ROOM: self.join_room,
            ev.JOIN_ROOM_AS_SPECTATOR: self.join_room_as_spectator,
            ev.TOGGLE_READY: self.toggle_ready,
            ev.SET_MAX_ROUNDS: self.set_max_rounds,
            ev.SUBMIT_PROMPT: self.submit_prompt,
            ev.SUBMIT_GUESS: self.submit_guess,
            ev.LEAVE_ROOM: self.leave_room,
        }

    # -- dispatch ---------------------------------------------------------

    def handle(self, intent: str, data: Any, sid: str) -> dict:
        command = self.commands.get(intent)
        if command is None:
            return {"ok": False, "error": "unknown_intent"}

        payload = data if isinstance(data, dict) else {}
        room_id = normalize_room_code(payload.get("roomId"))

        with self.store.lock:
            room = self.store.get(room_id) if room_id else None
            try:
                effects = command(room, payload, sid)
                ack = {"ok": True}
            except GameError as err:
                effects = self._error_effects(intent, err, sid)
                ack = {"ok": False, "error": err.code}
            self.transport.apply(effects)
            jobs = self._take_deferred()

        self._run_jobs(jobs)
        return ack

    def disconnect(self, sid: str) -> None:
        with self.store.lock:
            effects: list = []
            for room in self.store.list():
                if sid in room.players or sid in room.spectators:
                    effects += self._depart(room, sid)
            self.transport.apply(effects)
            jobs = self._take_deferred()
        self._run_jobs(jobs)

    def _error_effects(self, intent: str, err: GameError, sid: str) -> list:
        if err.silent:
            logger.debug(f"[ignored] intent={intent} sid={sid} code={err.code}")
            return []
        logger.info(f"[rejected] intent={intent} sid={sid} code={err.code} message={err.message}")
        event = err.code if err.code in DEDICATED_ERROR_EVENTS else ev.ERROR
        return [Emit(event, {"error": err.code, "message": err.message}, to=sid)]

    def _defer(self, fn: Callable[..., Any], *args: Any) -> None:
        self._deferred.append((fn, args))

    def _take_deferred(self) -> list:
        jobs, self._deferred = self._deferred, []
        return jobs

    def _run_jobs(self, jobs: list) -> None:
        for fn, args in jobs:
            self.scheduler.spawn(fn, *args)

    def _require(self, room: Room | None) -> Room:
        if room is None:
            raise NotFoundError("Room does not exist. Please check the room code or create a new room.")
        return room

    def _room_update(self, room: Room, **extra: Any) -> Emit:
        payload = service.room_public_state(room, self.settings)
        payload.update(extra)
        return Emit(ev.ROOM_UPDATE, payload, to=room.id)

    # -- commands ---------------------------------------------------------

    def create_room(self, room: Room | None, payload: dict, sid: str) -> list:
        if room is not None:
            raise ConflictError("A room with this code already exists.", code="room_exists")

        code = normalize_room_code(payload.get("roomId")) or self.store.new_code()
        new_room = service.create_room(code, self.settings)
        service.add_player(new_room, sid, payload.get("playerName", ""), self.settings)
        self.store.set(new_room)
        logger.info(f"[room-created] room={code} creator={sid}")

        state = service.room_public_state(new_room, self.settings)
        state["isCreator"] = True
        return [Enter(sid, code), Emit(ev.ROOM_CREATED, state, to=sid)]

    def join_room(self, room: Room | None, payload: dict, sid: str) -> list:
        room = self._require(room)
        player = service.add_player(room, sid, payload.get("playerName", ""), self.settings)
        logger.info(f"[join] room={room.id} player={player.name} sid={sid}")
        return [Enter(sid, room.id), self._room_update(room)]

    def join_room_as_spectator(self, room: Room | None, payload: dict, sid: str) -> list:
        room = self._require(room)
        name = payload.get("spectatorName") or payload.get("name") or ""
        spectator = service.add_spectator(room, sid, name, self.settings)
        logger.info(f"[spectate] room={room.id} spectator={spectator.name} sid={sid}")

        state = service.room_public_state(room, self.settings)
        state["isSpectator"] = True
        if room.game_state == "round_results" and room.last_round_results:
            state["lastRoundResults"] = room.last_round_results
        return [Enter(sid, room.id), Emit(ev.SPECTATOR_JOINED, state, to=sid), self._room_update(room)]

    def toggle_ready(self, room: Room | None, payload: dict, sid: str) -> list:
        room = self._require(room)
        should_start = service.toggle_ready(room, sid, self.settings)
        effects: list = [self._room_update(room)]
        if should_start:
            effects += self._start_game(room)
        return effects

    def set_max_rounds(self, room: Room | None, payload: dict, sid: str) -> list:
        room = self._require(room)
        service.set_max_rounds(room, sid, payload.get("maxRounds"), self.settings)
        return [self._room_update(room)]

    def submit_prompt(self, room: Room | None, payload: dict, sid: str) -> list:
        room = self._require(room)
        service.check_prompt_submission(room, sid)

        use_random_image = bool(payload.get("useRandomImage", False))
        raw = str(payload.get("prompt") or "")
        if use_random_image:
            prompt = raw.strip() or RANDOM_IMAGE_PROMPT
        else:
            prompt = service.validate_prompt(raw, self.settings)

        return self._submit_prompt(room, prompt, auto_submitted=False, use_stock=use_random_image)

    def submit_guess(self, room: Room | None, payload: dict, sid: str) -> list:
        room = self._require(room)
        guess = service.add_guess(room, sid, str(payload.get("guess") or ""), self.scheduler.now_ms(), self.settings)
        return [
            Emit(
                ev.GUESS_SUBMITTED,
                {
                    "playerId": guess.player_id,
                    "playerName": guess.player_name,
                    "guess": guess.text,
                    "timestamp": guess.timestamp,
                },
                to=room.id,
            )
        ]

    def leave_room(self, room: Room | None, payload: dict, sid: str) -> list:
        room = self._require(room)
        if sid not in room.players and sid not in room.spectators:
            return []
        return self._depart(room, sid)

    # -- transitions ------------------------------------------------------

    def _start_game(self, room: Room) -> list:
        service.start_game(room, self.scheduler.now_ms())
        self._start_prompt_timer(room)
        return [Emit(ev.GAME_STARTED, service.turn_public_state(room), to=room.id)]

    def _start_prompt_timer(self, room: Room) -> None:
        if room.prompt_timer is not None:
            room.prompt_timer.cancel()
        room.prompt_timer = self.scheduler.call_every(
            self.settings.tick_interval_sec,
            self._bind(room.id, "prompt_timer", self._on_prompt_tick),
            name=f"prompt:{room.id}",
        )

    def _start_round_timer(self, room: Room) -> None:
        if room.round_timer is not None:
            room.round_timer.cancel()
        room.round_timer = self.scheduler.call_every(
            self.settings.tick_interval_sec,
            self._bind(room.id, "round_timer", self._on_guess_tick),
            name=f"guess:{room.id}",
        )

    def _stop_timer(self, room: Room, attr: str) -> None:
        handle = getattr(room, attr)
        if handle is not None:
            handle.cancel()
            setattr(room, attr, None)

    def _submit_prompt(self, room: Room, prompt: str, auto_submitted: bool, use_stock: bool) -> list:
        self._stop_timer(room, "prompt_timer")
        turn_id = service.begin_generation(room, prompt, auto_submitted=auto_submitted)
        logger.info(
            f"[prompt] room={room.id} giver={room.current_prompt_giver_id} auto={auto_submitted} stock={use_stock}"
        )
        self._defer(self._generate, room.id, turn_id, prompt, use_stock)
        return [Emit(ev.IMAGE_GENERATING, {"promptGiver": room.current_prompt_giver_id}, to=room.id)]

    def _generate(self, room_id: str, turn_id: int, prompt: str, use_stock: bool) -> None:
        generator = self.stock_images if use_stock else self.image_generator
        failure: GenerationFailure | None = None
        image_url = ""
        try:
            image_url = generator.generate(prompt)
        except GenerationFailure as exc:
            failure = exc
        except Exception as exc:
            logger.exception(f"[generate-error] room={room_id} provider={generator.provider}")
            failure = GenerationFailure(str(exc))

        with self.store.lock:
            room = self.store.get(room_id)
            if not service.generation_applies(room, turn_id):
                logger.info(f"[generate-stale] room={room_id} turn={turn_id} discarded")
                return

            if failure is not None:
                logger.warning(f"[generate-failed] room={room_id} turn={turn_id} error={failure.message}")
                service.generation_failed(room)
                effects = [
                    Emit(
                        ev.ERROR,
                        {"error": failure.code, "message": "Failed to generate image. Please try again."},
                        to=room_id,
                    )
                ]
            else:
                service.start_guessing(room, image_url, self.scheduler.now_ms())
                self._start_round_timer(room)
                effects = [
                    Emit(
                        ev.PROMPT_SUBMITTED,
                        {"imageUrl": image_url, "timeRemaining": self.settings.guess_duration_sec},
                        to=room_id,
                    )
                ]
            self.transport.apply(effects)

    def _resolve_turn(self, room: Room) -> list:
        self._stop_timer(room, "prompt_timer")
        self._stop_timer(room, "round_timer")
        results = service.resolve_turn(room)
        service.hand_over_vacated_turn(room)
        room.review_timer = self.scheduler.call_later(
            self.settings.review_duration_sec,
            self._bind(room.id, "review_timer", self._on_review_done),
            name=f"review:{room.id}",
        )
        return [Emit(ev.ROUND_ENDED, results, to=room.id)]

    def _finish_game(self, room: Room) -> list:
        return [Emit(ev.GAME_FINISHED, service.finish_game(room), to=room.id)]

    def _restart_turn(self, room: Room) -> list:
        self._stop_timer(room, "round_timer")
        self._start_prompt_timer(room)
        return [Emit(ev.NEXT_TURN, service.turn_public_state(room), to=room.id)]

    def _depart(self, room: Room, sid: str) -> list:
        effects: list = [Leave(sid, room.id)]
        player = room.players.get(sid)
        spectator = room.spectators.get(sid)

        action: service.Departure = "none"
        if player is not None:
            action = service.remove_player(room, sid, self.scheduler.now_ms(), self.settings)
            logger.info(f"[leave] room={room.id} player={player.name} action={action}")
        if spectator is not None:
            service.remove_spectator(room, sid)
            logger.info(f"[leave] room={room.id} spectator={spectator.name}")

        if room.is_empty:
            service.cancel_timers(room)
            self.store.delete(room.id)
            logger.info(f"[room-deleted] room={room.id}")
            return effects

        if action == "end_game":
            effects += self._finish_game(room)
        elif action == "restart_turn":
            effects += self._restart_turn(room)
        elif action == "end_turn":
            effects += self._resolve_turn(room)

        effects.append(self._room_update(room))
        if player is not None:
            effects.append(
                Emit(
                    ev.PLAYER_LEFT,
                    {
                        "playerName": player.name,
                        "message": f"{player.name} has left the game. The game will continue with remaining players.",
                    },
                    to=room.id,
                )
            )
        return effects

    # -- timers -----------------------------------------------------------

    def _bind(self, room_id: str, attr: str, callback: Callable[[Room, TimerHandle], list]) -> Callable[[TimerHandle], None]:
        """Wrap a timer callback so it only runs against the live room that owns it."""

        def _fire(handle: TimerHandle) -> None:
            with self.store.lock:
                room = self.store.get(room_id)
                if room is None or getattr(room, attr) is not handle:
                    handle.cancel()
                    return
                effects = callback(room, handle)
                self.transport.apply(effects)
                jobs = self._take_deferred()
            self._run_jobs(jobs)

        return _fire

    def _on_prompt_tick(self, room: Room, handle: TimerHandle) -> list:
        remaining = service.prompt_time_remaining(room, self.scheduler.now_ms(), self.settings)
        effects: list = [Emit(ev.PROMPT_TIMER_UPDATE, {"timeRemaining": remaining}, to=room.id)]
        if remaining > 0:
            return effects

        self._stop_timer(room, "prompt_timer")
        if not room.current_prompt and not room.is_generating:
            prompt = self.filler_prompt()
            logger.info(f"[prompt-timeout] room={room.id} giver={room.current_prompt_giver_id} filler={prompt}")
            effects += self._submit_prompt(room, prompt, auto_submitted=True, use_stock=False)
        return effects

    def _on_guess_tick(self, room: Room, handle: TimerHandle) -> list:
        remaining = service.guess_time_remaining(room, self.scheduler.now_ms(), self.settings)
        effects: list = [Emit(ev.TIMER_UPDATE, {"timeRemaining": remaining}, to=room.id)]
        if remaining > 0:
            return effects
        return effects + self._resolve_turn(room)

    def _on_review_done(self, room: Room, handle: TimerHandle) -> list:
        room.review_timer = None
        if room.game_state != "round_results":
            return []

        if service.is_last_turn(room):
            return self._finish_game(room)

        service.advance_turn(room, self.scheduler.now_ms())
        self._start_prompt_timer(room)
        return [Emit(ev.NEXT_TURN, service.turn_public_state(room), to=room.id)]
