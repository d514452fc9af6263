"""Prompt/guess similarity on a 0-100 scale.

Four sub-scores are blended: exact word matches, partial matches (substring
and typo tolerance), preserved word order and synonyms. The blend is scaled
down when the two texts differ a lot in length.
"""

from __future__ import annotations

import math
import re


EXACT_WEIGHT = 0.40
PARTIAL_WEIGHT = 0.25
ORDER_WEIGHT = 0.15
SYNONYM_WEIGHT = 0.20

SYNONYMS: dict[str, tuple[str, ...]] = {
    "car": ("automobile", "vehicle", "auto"),
    "dog": ("puppy", "canine", "hound"),
    "cat": ("kitten", "feline"),
    "house": ("home", "building", "residence"),
    "big": ("large", "huge", "giant", "massive"),
    "small": ("tiny", "little", "mini"),
    "happy": ("joyful", "cheerful", "glad"),
    "sad": ("unhappy", "depressed", "gloomy"),
    "fast": ("quick", "rapid", "speedy"),
    "slow": ("sluggish", "gradual"),
    "beautiful": ("pretty", "gorgeous", "lovely"),
    "ugly": ("hideous", "unattractive"),
    "red": ("crimson", "scarlet"),
    "blue": ("azure", "navy"),
    "green": ("emerald", "lime"),
    "old": ("ancient", "elderly", "aged"),
    "new": ("fresh", "modern", "recent"),
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize(text: str) -> str:
    t = (text or "").lower()
    t = re.sub(r"[^\w\s]", "", t)
    return t.strip()


def tokenize(text: str) -> list[str]:
    return [w for w in re.split(r"\s+", text) if w]


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        cur = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                cur.append(prev[j - 1])
            else:
                cur.append(min(prev[j - 1], prev[j], cur[j - 1]) + 1)
        prev = cur
    return prev[-1]


def levenshtein_similarity(a: str, b: str) -> int:
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 100
    return max(0, _round_half_up((max_len - levenshtein(a, b)) / max_len * 100))


def exact_word_score(original: list[str], guess: list[str]) -> float:
    if not original:
        return 0.0

    used: set[int] = set()
    matches = 0
    for word in original:
        for idx, candidate in enumerate(guess):
            if idx not in used and candidate == word:
                used.add(idx)
                matches += 1
                break
    return matches / len(original) * 100


def _partial_match(word: str, candidate: str) -> float:
    score = 0.0
    # Substring credit only for longer words; short words match too easily.
    if len(word) >= 4 and len(candidate) >= 4 and (word in candidate or candidate in word):
        score = min(len(word), len(candidate)) / max(len(word), len(candidate)) * 70

    if score < 50:
        lev = levenshtein_similarity(word, candidate)
        if lev > 60:
            score = max(score, lev * 0.8)
    return score


def partial_word_score(original: list[str], guess: list[str]) -> float:
    if not original:
        return 0.0

    used: set[int] = set()
    total = 0.0
    for word in original:
        best = 0.0
        best_idx = -1
        for idx, candidate in enumerate(guess):
            if idx in used:
                continue
            score = _partial_match(word, candidate)
            if score > best:
                best = score
                best_idx = idx
        if best_idx != -1:
            used.add(best_idx)
            total += best
    return total / len(original)


def word_order_score(original: list[str], guess: list[str]) -> float:
    if len(original) <= 1 or len(guess) <= 1:
        return 100.0

    preserved = 0
    comparisons = 0
    for first, second in zip(original, original[1:]):
        if first in guess and second in guess:
            comparisons += 1
            if guess.index(first) < guess.index(second):
                preserved += 1

    if comparisons == 0:
        return 50.0
    return preserved / comparisons * 100


def _are_synonyms(a: str, b: str) -> bool:
    return b in SYNONYMS.get(a, ()) or a in SYNONYMS.get(b, ())


def synonym_score(original: list[str], guess: list[str]) -> float:
    if not original:
        return 0.0

    used: set[int] = set()
    matches = 0
    for word in original:
        for idx, candidate in enumerate(guess):
            if idx not in used and _are_synonyms(word, candidate):
                used.add(idx)
                matches += 1
                break
    return matches / len(original) * 100


def length_penalty(original: str, guess: str) -> float:
    if not original or not guess:
        return 0.0

    ratio = min(len(original), len(guess)) / max(len(original), len(guess))
    if ratio < 0.3:
        return 0.7
    if ratio < 0.5:
        return 0.85
    return 1.0


def score(original: str, guess: str) -> int:
    """Similarity of ``guess`` to ``original`` as an integer in [0, 100]."""
    a = normalize(original)
    b = normalize(guess)
    if a == b:
        return 100

    original_words = tokenize(a)
    guess_words = tokenize(b)

    blended = (
        exact_word_score(original_words, guess_words) * EXACT_WEIGHT
        + partial_word_score(original_words, guess_words) * PARTIAL_WEIGHT
        + word_order_score(original_words, guess_words) * ORDER_WEIGHT
        + synonym_score(original_words, guess_words) * SYNONYM_WEIGHT
    ) * length_penalty(a, b)

    return _round_half_up(max(0.0, min(100.0, blended)))
