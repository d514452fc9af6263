from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .scheduler import TimerHandle


GameState = Literal["waiting", "waiting_for_prompt", "guessing", "round_results", "finished"]

ACTIVE_STATES: tuple[GameState, ...] = ("waiting_for_prompt", "guessing", "round_results")


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    is_ready: bool = False
    is_room_creator: bool = False
    is_prompt_giver: bool = False
    is_connected: bool = True


@dataclass
class Spectator:
    id: str
    name: str
    is_connected: bool = True


@dataclass
class Guess:
    id: str
    player_id: str
    player_name: str
    text: str
    timestamp: int


@dataclass
class Room:
    id: str
    creator_id: str | None = None
    game_state: GameState = "waiting"
    current_round: int = 0
    max_rounds: int = 5
    current_turn_index: int = 0
    turns_completed_in_round: int = 0
    current_prompt_giver_id: str | None = None
    current_prompt: str = ""
    current_image_url: str = ""
    is_auto_submitted_prompt: bool = False
    prompt_start_time: int | None = None
    round_start_time: int | None = None
    players: dict[str, Player] = field(default_factory=dict)
    spectators: dict[str, Spectator] = field(default_factory=dict)
    player_order: list[str] = field(default_factory=list)
    guesses: dict[str, Guess] = field(default_factory=dict)
    # Bumped on every fresh turn; async image results carry it back.
    turn_id: int = 0
    is_generating: bool = False
    # Order index the departed prompt giver held, while its turn is resolving.
    vacated_turn_index: int | None = None
    last_round_results: dict | None = None
    prompt_timer: TimerHandle | None = None
    round_timer: TimerHandle | None = None
    review_timer: TimerHandle | None = None

    @property
    def is_active(self) -> bool:
        return self.game_state in ACTIVE_STATES

    @property
    def is_empty(self) -> bool:
        return not self.players and not self.spectators
