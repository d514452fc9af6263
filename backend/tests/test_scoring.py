import pytest

from imprompt.game import scoring
from imprompt.game.models import Guess


def _guess(player_id, text, ts):
    return Guess(id=f'{player_id}-{ts}', player_id=player_id, player_name=player_id.upper(), text=text, timestamp=ts)


def _numeric_scorer(prompt, guess):
    return int(guess)


@pytest.mark.parametrize('similarity,points', [
    (100, 108),
    (80, 88),
    (79, 82),
    (65, 68),
    (64, 64),
    (50, 50),
    (40, 36),
    (20, 16),
    (19, 13),
    (10, 7),
    (9, 0),
    (0, 0),
])
def test_guess_points_step_table(similarity, points):
    assert scoring.guess_points(similarity) == points


def test_guess_points_are_monotonic():
    values = [scoring.guess_points(s) for s in range(101)]
    assert values == sorted(values)


def test_guesser_award_bonuses():
    # 108 + speed 10 + accuracy 15 + participation 3
    assert scoring.guesser_award(100, rank=0) == 136
    # no speed bonus outside the top three
    assert scoring.guesser_award(60, rank=3) == 60 + 5 + 3
    # speed bonus needs 40+
    assert scoring.guesser_award(38, rank=0) == 34 + 3 + 3
    assert scoring.guesser_award(12, rank=0) == 8 + 1
    assert scoring.guesser_award(9, rank=0) == 0


def test_prompt_giver_nothing_for_auto_submitted_prompt():
    assert scoring.prompt_giver_points([30, 30], 2, auto_submitted=True) == 0


def test_prompt_giver_nothing_for_gibberish():
    assert scoring.prompt_giver_points([], 2) == 0
    assert scoring.prompt_giver_points([4, 0], 2) == 0


def test_prompt_giver_nothing_without_guessers():
    assert scoring.prompt_giver_points([], 0) == 0


def test_prompt_giver_hard_but_fair_prompt_is_capped():
    # 15 participation + 35 difficulty + 8 band + 5 engagement = 63
    assert scoring.prompt_giver_points([30, 30], 2) == scoring.PROMPT_GIVER_MAX_POINTS


def test_prompt_giver_easy_prompt_earns_little():
    # 15 participation + 5 difficulty - 8 too easy
    assert scoring.prompt_giver_points([100, 100], 2) == 12


def test_prompt_giver_hard_prompt_without_hits():
    # no participation, 25 difficulty, -8 too hard
    assert scoring.prompt_giver_points([9, 8], 2) == 17


def test_prompt_giver_single_solver_among_silent_guessers():
    # 3 participation + 20 difficulty - 8 too easy
    assert scoring.prompt_giver_points([100], 5) == 15


def test_score_turn_uses_best_guess_per_player():
    guesses = [
        _guess('p1', '30', 1),
        _guess('p1', '70', 2),
        _guess('p2', '70', 3),
        _guess('p3', '5', 4),
    ]
    result = scoring.score_turn('prompt', guesses, ['p1', 'p2', 'p3'], scorer=_numeric_scorer)

    assert [sg.score for sg in result.ranked] == [70, 70, 30, 5]
    assert result.best['p1'].guess.text == '70'
    # 73 base + speed 10/7 + accuracy 8 + participation 3
    assert result.awards == {'p1': 94, 'p2': 91}
    assert result.prompt_giver_points == 32


def test_best_guess_ties_go_to_earliest():
    guesses = [_guess('p1', '50', 9), _guess('p1', '50', 1)]
    result = scoring.score_turn('prompt', guesses, ['p1'], scorer=_numeric_scorer)
    assert result.best['p1'].guess.timestamp == 1


def test_score_turn_ignores_ineligible_guessers():
    guesses = [_guess('giver', '100', 1), _guess('p1', '40', 2)]
    result = scoring.score_turn('prompt', guesses, ['p1'], scorer=_numeric_scorer)
    assert set(result.best) == {'p1'}
    assert 'giver' not in result.awards


def test_score_turn_with_real_similarity():
    guesses = [_guess('b', 'car', 1), _guess('b', 'blue car', 2), _guess('c', 'red car', 3)]
    result = scoring.score_turn('red car', guesses, ['b', 'c'])

    assert result.best['c'].score == 100
    assert result.best['b'].guess.text == 'car'
    assert result.awards['c'] > result.awards['b'] > 0
