from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Game
    PROMPT_DURATION_SEC = int(os.environ.get("PROMPT_DURATION_SEC", "30"))
    GUESS_DURATION_SEC = int(os.environ.get("GUESS_DURATION_SEC", "30"))
    REVIEW_DURATION_SEC = int(os.environ.get("REVIEW_DURATION_SEC", "8"))
    TICK_INTERVAL_SEC = float(os.environ.get("TICK_INTERVAL_SEC", "1"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))
    MAX_PLAYERS = int(os.environ.get("MAX_PLAYERS", "5"))
    DEFAULT_MAX_ROUNDS = int(os.environ.get("DEFAULT_MAX_ROUNDS", "5"))
    MIN_ROUNDS = 1
    MAX_ROUNDS = 10
    MAX_PROMPT_CHARS = int(os.environ.get("MAX_PROMPT_CHARS", "20"))
    MAX_PROMPT_WORDS = int(os.environ.get("MAX_PROMPT_WORDS", "5"))
    MAX_GUESS_CHARS = int(os.environ.get("MAX_GUESS_CHARS", "50"))
    MAX_NAME_CHARS = int(os.environ.get("MAX_NAME_CHARS", "20"))

    # Image generation
    IMAGE_PROVIDER = os.environ.get("IMAGE_PROVIDER", "mock")
    TOGETHER_API_KEY = os.environ.get("TOGETHER_API_KEY", "")
    TOGETHER_API_URL = os.environ.get("TOGETHER_API_URL", "https://api.together.xyz/v1/images/generations")
    TOGETHER_MODEL = os.environ.get("TOGETHER_MODEL", "black-forest-labs/FLUX.1-dev")
    IMAGE_TIMEOUT_SEC = float(os.environ.get("IMAGE_TIMEOUT_SEC", "60"))
    MOCK_IMAGE_DELAY_SEC = float(os.environ.get("MOCK_IMAGE_DELAY_SEC", "2"))


@dataclass(frozen=True)
class GameSettings:
    """Game constants handed to the state machine and the gateway."""

    prompt_duration_sec: int = 30
    guess_duration_sec: int = 30
    review_duration_sec: int = 8
    tick_interval_sec: float = 1.0
    min_players: int = 2
    max_players: int = 5
    default_max_rounds: int = 5
    min_rounds: int = 1
    max_rounds: int = 10
    max_prompt_chars: int = 20
    max_prompt_words: int = 5
    max_guess_chars: int = 50
    max_name_chars: int = 20

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> GameSettings:
        guess_chars = int(config.get("MAX_GUESS_CHARS", cls.max_guess_chars))
        return cls(
            prompt_duration_sec=int(config.get("PROMPT_DURATION_SEC", cls.prompt_duration_sec)),
            guess_duration_sec=int(config.get("GUESS_DURATION_SEC", cls.guess_duration_sec)),
            review_duration_sec=int(config.get("REVIEW_DURATION_SEC", cls.review_duration_sec)),
            tick_interval_sec=float(config.get("TICK_INTERVAL_SEC", cls.tick_interval_sec)),
            min_players=int(config.get("MIN_PLAYERS", cls.min_players)),
            max_players=int(config.get("MAX_PLAYERS", cls.max_players)),
            default_max_rounds=int(config.get("DEFAULT_MAX_ROUNDS", cls.default_max_rounds)),
            min_rounds=int(config.get("MIN_ROUNDS", cls.min_rounds)),
            max_rounds=int(config.get("MAX_ROUNDS", cls.max_rounds)),
            max_prompt_chars=int(config.get("MAX_PROMPT_CHARS", cls.max_prompt_chars)),
            max_prompt_words=int(config.get("MAX_PROMPT_WORDS", cls.max_prompt_words)),
            # Guess limit is caller-configurable but stays within 20..50.
            max_guess_chars=max(20, min(50, guess_chars)),
            max_name_chars=int(config.get("MAX_NAME_CHARS", cls.max_name_chars)),
        )
