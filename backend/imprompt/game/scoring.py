"""Turn scoring: similarity -> game points.

The point tables below are tuning values. Their tiers and ordering matter,
the exact numbers are policy and can be changed here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Iterable

from . import similarity
from .models import Guess


MIN_SCORING_SIMILARITY = 10

# (threshold, multiplier, offset): first row with similarity >= threshold wins.
GUESS_POINT_STEPS: tuple[tuple[int, float, int], ...] = (
    (80, 1.0, 8),
    (65, 1.0, 3),
    (50, 1.0, 0),
    (35, 0.9, 0),
    (20, 0.8, 0),
    (10, 0.7, 0),
)

SPEED_BONUSES: tuple[int, ...] = (10, 7, 4)
SPEED_BONUS_MIN_SIMILARITY = 40

ACCURACY_BONUSES: tuple[tuple[int, int], ...] = (
    (85, 15),
    (75, 12),
    (65, 8),
    (50, 5),
    (35, 3),
)

PARTICIPATION_BONUSES: tuple[tuple[int, int], ...] = (
    (20, 3),
    (10, 1),
)

PROMPT_GIVER_MIN_POINTS = 3
PROMPT_GIVER_MAX_POINTS = 60


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _first_tier(value: int, tiers: Iterable[tuple[int, int]]) -> int:
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return 0


@dataclass
class ScoredGuess:
    guess: Guess
    score: int

    def to_public(self) -> dict:
        return {
            "id": self.guess.id,
            "playerId": self.guess.player_id,
            "playerName": self.guess.player_name,
            "guess": self.guess.text,
            "timestamp": self.guess.timestamp,
            "score": self.score,
        }


@dataclass
class TurnScores:
    ranked: list[ScoredGuess] = field(default_factory=list)
    best: dict[str, ScoredGuess] = field(default_factory=dict)
    awards: dict[str, int] = field(default_factory=dict)
    prompt_giver_points: int = 0


def guess_points(score: int) -> int:
    """Map a similarity percentage through the convex step table."""
    for threshold, multiplier, offset in GUESS_POINT_STEPS:
        if score >= threshold:
            return _round_half_up(score * multiplier + offset)
    return 0


def guesser_award(score: int, rank: int) -> int:
    """Points for a player's best guess; ``rank`` is its 0-based position among all guesses."""
    if score < MIN_SCORING_SIMILARITY:
        return 0

    points = guess_points(score)
    if rank < len(SPEED_BONUSES) and score >= SPEED_BONUS_MIN_SIMILARITY:
        points += SPEED_BONUSES[rank]
    points += _first_tier(score, ACCURACY_BONUSES)
    points += _first_tier(score, PARTICIPATION_BONUSES)
    return points


def prompt_giver_points(best_scores: list[int], guesser_count: int, auto_submitted: bool = False) -> int:
    """Inverse-difficulty reward for the prompt giver.

    ``best_scores`` holds one best score per guesser that guessed at all,
    ``guesser_count`` counts every eligible guesser including silent ones.
    """
    if auto_submitted or guesser_count <= 0:
        return 0

    average = sum(best_scores) / len(best_scores) if best_scores else 0.0
    excellent = sum(1 for s in best_scores if s >= 80)
    good = sum(1 for s in best_scores if s >= 50)
    decent = sum(1 for s in best_scores if s >= 25)
    any_guess = sum(1 for s in best_scores if s >= MIN_SCORING_SIMILARITY)

    # Nobody got anywhere near it: gibberish prompt.
    if any_guess == 0 and average < 5:
        return 0

    excellent_rate = excellent / guesser_count
    good_rate = good / guesser_count
    participation_rate = any_guess / guesser_count

    points = 0

    if participation_rate >= 0.8 and decent > 0:
        points += 15
    elif participation_rate >= 0.6 and decent > 0:
        points += 12
    elif participation_rate >= 0.4 and any_guess > 0:
        points += 8
    elif participation_rate >= 0.2:
        points += 3

    # Fewer excellent guesses means a better prompt.
    if excellent_rate == 0 and good_rate == 0 and decent > 0:
        points += 35
    elif excellent_rate == 0 and 0 < good_rate <= 0.4:
        points += 30
    elif excellent_rate == 0 and good_rate <= 0.6:
        points += 25
    elif excellent_rate <= 0.2 and good_rate <= 0.5:
        points += 20
    elif excellent_rate <= 0.4:
        points += 15
    elif excellent_rate <= 0.6:
        points += 10
    else:
        points += 5

    if 20 <= average <= 40:
        points += 8
    elif 15 <= average <= 50:
        points += 5
    elif 10 <= average <= 60:
        points += 2
    elif average < 5:
        points -= 15
    elif average < 10:
        points -= 8
    elif average > 70:
        points -= 8

    if participation_rate >= 0.8 and 20 <= average <= 45:
        points += 5

    return min(max(points, PROMPT_GIVER_MIN_POINTS), PROMPT_GIVER_MAX_POINTS)


def rank_guesses(
    prompt: str,
    guesses: Iterable[Guess],
    scorer: Callable[[str, str], int] = similarity.score,
) -> list[ScoredGuess]:
    """Score every guess and order them best first, earliest first on ties."""
    scored = [ScoredGuess(guess=g, score=scorer(prompt, g.text)) for g in guesses]
    # sort() is stable, so equal timestamps keep submission order.
    scored.sort(key=lambda sg: (-sg.score, sg.guess.timestamp))
    return scored


def best_guesses(ranked: list[ScoredGuess]) -> dict[str, ScoredGuess]:
    best: dict[str, ScoredGuess] = {}
    for sg in ranked:
        # ranked is best-first, so the first hit per player is their best.
        best.setdefault(sg.guess.player_id, sg)
    return best


def score_turn(
    prompt: str,
    guesses: Iterable[Guess],
    guesser_ids: Iterable[str],
    auto_submitted: bool = False,
    scorer: Callable[[str, str], int] = similarity.score,
) -> TurnScores:
    """Compute guesser awards and the prompt giver's reward for one turn.

    Only guesses from ``guesser_ids`` (players still in the room, excluding
    the prompt giver) are considered.
    """
    eligible = set(guesser_ids)
    ranked = rank_guesses(prompt, (g for g in guesses if g.player_id in eligible), scorer=scorer)
    best = best_guesses(ranked)

    awards: dict[str, int] = {}
    for player_id, sg in best.items():
        rank = next(i for i, candidate in enumerate(ranked) if candidate is sg)
        points = guesser_award(sg.score, rank)
        if points > 0:
            awards[player_id] = points

    giver_points = prompt_giver_points(
        [sg.score for sg in best.values()],
        guesser_count=len(eligible),
        auto_submitted=auto_submitted,
    )

    return TurnScores(ranked=ranked, best=best, awards=awards, prompt_giver_points=giver_points)
