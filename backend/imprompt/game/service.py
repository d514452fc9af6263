from __future__ import annotations

import logging
import re
import uuid
from typing import Literal

from ..config import GameSettings
from . import scoring
from .errors import AuthorizationError, ConflictError, ValidationError
from .models import Guess, Player, Room, Spectator


logger = logging.getLogger(__name__)

Departure = Literal["none", "restart_turn", "end_turn", "end_game"]


def validate_name(name: str, max_chars: int) -> str:
    n = (name or "").strip()
    if not n:
        raise ValidationError("Name cannot be empty.", code="invalid_name")
    if len(n) > max_chars:
        raise ValidationError(f"Name must be {max_chars} characters or less.", code="invalid_name")
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        raise ValidationError("Name contains invalid characters.", code="invalid_name")
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            raise ValidationError("Name contains invalid characters.", code="invalid_name")
    return n


def create_room(code: str, settings: GameSettings) -> Room:
    return Room(id=code, max_rounds=settings.default_max_rounds)


def add_player(room: Room, socket_id: str, name: str, settings: GameSettings) -> Player:
    n = validate_name(name, settings.max_name_chars)

    if len(room.players) >= settings.max_players:
        raise ConflictError(
            f"Room is full! Maximum {settings.max_players} players allowed.", code="room_full"
        )
    if room.game_state != "waiting":
        raise ConflictError(
            "This game is already in progress. You cannot join once a game has started.",
            code="game_in_progress",
        )
    if any(p.name == n for p in room.players.values()):
        raise ConflictError(
            "A player with this name is already in the room. Please choose a different name.",
            code="name_taken",
        )
    if socket_id in room.players:
        raise ConflictError("You are already in this room.", code="already_joined")

    if not room.players and room.creator_id is None:
        room.creator_id = socket_id

    player = Player(id=socket_id, name=n, is_room_creator=socket_id == room.creator_id)
    room.players[socket_id] = player
    return player


def add_spectator(room: Room, socket_id: str, name: str, settings: GameSettings) -> Spectator:
    n = validate_name(name, settings.max_name_chars)

    if any(s.name == n for s in room.spectators.values()):
        raise ConflictError(
            "A spectator with this name is already in the room. Please choose a different name.",
            code="name_taken",
        )

    spectator = Spectator(id=socket_id, name=n)
    room.spectators[socket_id] = spectator
    return spectator


def all_ready(room: Room, settings: GameSettings) -> bool:
    players = list(room.players.values())
    return len(players) >= settings.min_players and all(p.is_ready for p in players)


def toggle_ready(room: Room, socket_id: str, settings: GameSettings) -> bool:
    """Flip a player's readiness. Returns True when the game should start."""
    if room.game_state != "waiting":
        raise ConflictError("Game already started.", code="wrong_phase", silent=True)

    player = room.players.get(socket_id)
    if player is None:
        raise AuthorizationError("Only players can ready up.", code="not_a_player", silent=True)

    player.is_ready = not player.is_ready
    return all_ready(room, settings)


def set_max_rounds(room: Room, socket_id: str, value, settings: GameSettings) -> int:
    if room.game_state != "waiting":
        raise ConflictError("Rounds can only be changed before the game starts.", code="wrong_phase", silent=True)
    if socket_id != room.creator_id:
        raise AuthorizationError("Only the room creator can change the number of rounds.", code="only_creator")

    try:
        rounds = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid number of rounds.", code="invalid_rounds")

    room.max_rounds = max(settings.min_rounds, min(settings.max_rounds, rounds))
    return room.max_rounds


def _assign_prompt_giver(room: Room, player_id: str | None) -> None:
    room.current_prompt_giver_id = player_id
    for pid, player in room.players.items():
        player.is_prompt_giver = pid == player_id


def _begin_turn(room: Room, now_ms: int) -> None:
    room.turn_id += 1
    room.guesses = {}
    room.current_prompt = ""
    room.current_image_url = ""
    room.is_auto_submitted_prompt = False
    room.is_generating = False
    room.vacated_turn_index = None
    room.round_start_time = None
    room.prompt_start_time = now_ms
    _assign_prompt_giver(room, room.player_order[room.current_turn_index])
    room.game_state = "waiting_for_prompt"


def start_game(room: Room, now_ms: int) -> None:
    # Turn order is a snapshot of join order, taken once.
    room.player_order = list(room.players.keys())
    room.current_round = 1
    room.current_turn_index = 0
    room.turns_completed_in_round = 0
    room.last_round_results = None
    _begin_turn(room, now_ms)
    logger.info(
        f"[game-start] room={room.id} order={room.player_order} max_rounds={room.max_rounds} "
        f"giver={room.current_prompt_giver_id}"
    )


def validate_prompt(prompt: str, settings: GameSettings) -> str:
    p = (prompt or "").strip()
    if not p:
        raise ValidationError("Prompt cannot be empty!", code="invalid_prompt")
    if len(p) > settings.max_prompt_chars:
        raise ValidationError(
            f"Prompt must be {settings.max_prompt_chars} characters or less!", code="invalid_prompt"
        )
    if len(re.split(r"\s+", p)) > settings.max_prompt_words:
        raise ValidationError(f"Prompt must be {settings.max_prompt_words} words or less!", code="invalid_prompt")
    return p


def check_prompt_submission(room: Room, socket_id: str) -> None:
    if room.game_state != "waiting_for_prompt" or socket_id != room.current_prompt_giver_id:
        raise AuthorizationError("Not your turn to submit a prompt.", code="not_prompt_giver", silent=True)
    if room.is_generating:
        raise ConflictError("An image is already being generated.", code="generation_in_progress")


def begin_generation(room: Room, prompt: str, auto_submitted: bool = False) -> int:
    """Record the prompt and mark generation in flight. Returns the turn token."""
    room.current_prompt = prompt
    room.is_auto_submitted_prompt = auto_submitted
    room.is_generating = True
    return room.turn_id


def generation_applies(room: Room | None, turn_id: int) -> bool:
    return (
        room is not None
        and room.game_state == "waiting_for_prompt"
        and room.turn_id == turn_id
        and room.is_generating
    )


def generation_failed(room: Room) -> None:
    # The prompt stays recorded; the giver has to submit again.
    room.is_generating = False


def start_guessing(room: Room, image_url: str, now_ms: int) -> None:
    room.is_generating = False
    room.current_image_url = image_url
    room.round_start_time = now_ms
    room.game_state = "guessing"


def _remaining(start_ms: int | None, duration_sec: int, now_ms: int) -> int:
    if start_ms is None:
        return duration_sec
    elapsed = (now_ms - start_ms) // 1000
    return max(0, duration_sec - elapsed)


def prompt_time_remaining(room: Room, now_ms: int, settings: GameSettings) -> int:
    return _remaining(room.prompt_start_time, settings.prompt_duration_sec, now_ms)


def guess_time_remaining(room: Room, now_ms: int, settings: GameSettings) -> int:
    return _remaining(room.round_start_time, settings.guess_duration_sec, now_ms)


def add_guess(room: Room, socket_id: str, text: str, now_ms: int, settings: GameSettings) -> Guess:
    if room.game_state != "guessing":
        raise ConflictError("Guessing is not open.", code="wrong_phase", silent=True)

    player = room.players.get(socket_id)
    if player is None or player.is_prompt_giver:
        raise AuthorizationError("You cannot guess this turn.", code="not_a_guesser", silent=True)

    t = (text or "").strip()
    if not t:
        raise ValidationError("Guess cannot be empty!", code="invalid_guess")
    if len(t) > settings.max_guess_chars:
        raise ValidationError(f"Guess must be {settings.max_guess_chars} characters or less!", code="invalid_guess")

    guess = Guess(
        id=f"{socket_id}_{uuid.uuid4().hex[:8]}",
        player_id=socket_id,
        player_name=player.name,
        text=t,
        timestamp=now_ms,
    )
    room.guesses[guess.id] = guess
    return guess


def resolve_turn(room: Room) -> dict:
    """Score the turn, persist points and move to ``round_results``."""
    giver_id = room.current_prompt_giver_id
    guesser_ids = [pid for pid in room.players if pid != giver_id]

    result = scoring.score_turn(
        room.current_prompt,
        room.guesses.values(),
        guesser_ids,
        auto_submitted=room.is_auto_submitted_prompt,
    )

    for pid, points in result.awards.items():
        room.players[pid].score += points

    giver_bonus = 0
    giver = room.players.get(giver_id) if giver_id else None
    if giver is not None:
        giver_bonus = result.prompt_giver_points
        giver.score += giver_bonus

    room.game_state = "round_results"
    room.round_start_time = None
    room.prompt_start_time = None

    logger.info(
        f"[turn-resolved] room={room.id} round={room.current_round} giver={giver_id} "
        f"guesses={len(room.guesses)} awards={result.awards} giver_bonus={giver_bonus}"
    )

    payload = {
        "originalPrompt": room.current_prompt,
        "isAutoSubmitted": room.is_auto_submitted_prompt,
        "guesses": [sg.to_public() for sg in result.ranked],
        "awards": dict(result.awards),
        "players": players_public(room),
        "round": room.current_round,
        "promptGiver": giver_id,
        "promptGiverBonus": giver_bonus,
    }
    room.last_round_results = payload
    return payload


def _turns_done_after_current(room: Room) -> int:
    # A vacated turn belonged to a departed giver and does not count.
    bump = 0 if room.vacated_turn_index is not None else 1
    return room.turns_completed_in_round + bump


def is_last_turn(room: Room) -> bool:
    return (
        room.current_round >= room.max_rounds
        and _turns_done_after_current(room) >= len(room.player_order)
    )


def advance_turn(room: Room, now_ms: int) -> None:
    """Rotate to the next prompt giver, wrapping into the next round."""
    if room.vacated_turn_index is not None:
        # The next player already slid into the departed giver's slot.
        room.current_turn_index = room.vacated_turn_index
    else:
        room.current_turn_index = (room.current_turn_index + 1) % len(room.player_order)
        room.turns_completed_in_round += 1

    if room.turns_completed_in_round >= len(room.player_order) or room.current_turn_index >= len(room.player_order):
        room.current_round += 1
        room.turns_completed_in_round = 0
        room.current_turn_index = 0

    _begin_turn(room, now_ms)
    logger.info(
        f"[next-turn] room={room.id} round={room.current_round}/{room.max_rounds} "
        f"turn_index={room.current_turn_index} turns_done={room.turns_completed_in_round} "
        f"giver={room.current_prompt_giver_id}"
    )


def finish_game(room: Room) -> dict:
    cancel_timers(room)
    room.game_state = "finished"
    room.is_generating = False
    room.prompt_start_time = None
    room.round_start_time = None

    final = sorted(players_public(room), key=lambda p: p["score"], reverse=True)
    logger.info(f"[game-finished] room={room.id} standings={[(p['name'], p['score']) for p in final]}")
    return {"players": final, "winner": final[0] if final else None}


def remove_from_order(room: Room, player_id: str) -> int | None:
    """Drop ``player_id`` from the turn order, keeping the turn counters aligned."""
    if player_id not in room.player_order:
        return None

    index = room.player_order.index(player_id)
    room.player_order.pop(index)

    if index < room.current_turn_index:
        # They already had their turn this round.
        room.turns_completed_in_round = max(0, room.turns_completed_in_round - 1)
    if index <= room.current_turn_index:
        room.current_turn_index = max(0, room.current_turn_index - 1)
    if room.current_turn_index >= len(room.player_order) and room.player_order:
        room.current_turn_index = 0
    if room.vacated_turn_index is not None and index < room.vacated_turn_index:
        room.vacated_turn_index -= 1
        # The next giver slid down one slot with everyone else.
        hand_over_vacated_turn(room)

    logger.info(f"[order] room={room.id} removed={player_id} order={room.player_order} turn_index={room.current_turn_index}")
    return index


def remove_player(room: Room, socket_id: str, now_ms: int, settings: GameSettings) -> Departure:
    """Delete a player and repair the game around the hole they leave.

    The returned action tells the caller which transition to drive:
    ``restart_turn`` (new giver, fresh prompt phase already set up here),
    ``end_turn`` (giver left mid-guessing, resolve now), ``end_game``.
    """
    if socket_id not in room.players:
        return "none"

    was_giver = room.current_prompt_giver_id == socket_id
    del room.players[socket_id]

    if not room.is_active:
        return "none"

    removed = remove_from_order(room, socket_id)

    if len(room.player_order) < settings.min_players or len(room.players) < settings.min_players:
        return "end_game"

    if not was_giver or removed is None:
        return "none"

    if room.game_state == "waiting_for_prompt":
        if removed >= len(room.player_order):
            # The departed giver was the last one this round.
            if room.current_round >= room.max_rounds:
                return "end_game"
            room.current_round += 1
            room.turns_completed_in_round = 0
            room.current_turn_index = 0
        else:
            room.current_turn_index = removed
        _begin_turn(room, now_ms)
        return "restart_turn"

    room.vacated_turn_index = removed
    if room.game_state == "guessing":
        return "end_turn"

    # round_results: the turn is already scored, hand the flag to whoever plays next.
    hand_over_vacated_turn(room)
    return "none"


def hand_over_vacated_turn(room: Room) -> None:
    """After an early resolution, designate who plays the vacated slot."""
    if room.vacated_turn_index is None or not room.player_order:
        return
    next_index = room.vacated_turn_index if room.vacated_turn_index < len(room.player_order) else 0
    _assign_prompt_giver(room, room.player_order[next_index])


def remove_spectator(room: Room, socket_id: str) -> bool:
    if socket_id in room.spectators:
        del room.spectators[socket_id]
        return True
    return False


def cancel_timers(room: Room) -> None:
    for attr in ("prompt_timer", "round_timer", "review_timer"):
        handle = getattr(room, attr)
        if handle is not None:
            handle.cancel()
            setattr(room, attr, None)


def players_public(room: Room) -> list[dict]:
    players = []
    for p in room.players.values():
        players.append(
            {
                "id": p.id,
                "name": p.name,
                "score": p.score,
                "isReady": p.is_ready,
                "isRoomCreator": p.is_room_creator,
                "isPromptGiver": p.is_prompt_giver,
                "isConnected": p.is_connected,
            }
        )
    return players


def spectators_public(room: Room) -> list[dict]:
    return [
        {"id": s.id, "name": s.name, "isConnected": s.is_connected, "isSpectator": True}
        for s in room.spectators.values()
    ]


def turn_public_state(room: Room) -> dict:
    return {
        "round": room.current_round,
        "maxRounds": room.max_rounds,
        "currentPromptGiver": room.current_prompt_giver_id,
        "players": players_public(room),
        "gameState": room.game_state,
        "currentTurnIndex": room.current_turn_index,
        "turnsCompletedInRound": room.turns_completed_in_round,
        "totalPlayersInRound": len(room.player_order),
    }


def room_public_state(room: Room, settings: GameSettings, viewer_socket_id: str | None = None) -> dict:
    payload = {
        "roomId": room.id,
        "players": players_public(room),
        "spectators": spectators_public(room),
        "gameState": room.game_state,
        "currentRound": room.current_round,
        "maxRounds": room.max_rounds,
        "currentPromptGiver": room.current_prompt_giver_id,
        "currentImage": room.current_image_url,
        "playerOrder": list(room.player_order),
        "allReady": all_ready(room, settings) if room.game_state == "waiting" else False,
    }

    # The prompt stays secret until the turn is scored.
    if room.game_state in ("round_results", "finished") or (
        viewer_socket_id is not None and viewer_socket_id == room.current_prompt_giver_id
    ):
        payload["currentPrompt"] = room.current_prompt
    else:
        payload["currentPrompt"] = ""

    return payload
