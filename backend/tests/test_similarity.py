import pytest

from imprompt.game import similarity


@pytest.mark.parametrize('prompt', ['red car', 'A big, happy DOG!', 'sunset', '  spaced   out  ', 'x'])
def test_identical_prompt_scores_full(prompt):
    assert similarity.score(prompt, prompt) == 100


def test_normalization_ignores_case_and_punctuation():
    assert similarity.normalize('  Hello, World! ') == 'hello world'
    assert similarity.score('Red Car!', 'red car') == 100


@pytest.mark.parametrize('original,guess', [
    ('red car', 'car'),
    ('red car', 'blue car'),
    ('big dog', 'large puppy'),
    ('elephant', 'elephnat'),
    ('cat', ''),
    ('', 'cat'),
    ('a a a a a', 'a'),
    ('car', 'auto vehicle automobile'),
    ('the quick brown fox', 'fox brown quick the'),
])
def test_score_stays_in_bounds(original, guess):
    assert 0 <= similarity.score(original, guess) <= 100


def test_single_word_overlap():
    # exact 50, partial 40, order 100, synonyms 0, length ratio 3/7 -> 0.85
    assert similarity.score('red car', 'car') == 38


def test_missing_word_neutralises_order():
    assert similarity.word_order_score(['red', 'car'], ['blue', 'car']) == 50
    assert similarity.score('red car', 'blue car') == 38


def test_synonyms_count_both_ways():
    assert similarity.synonym_score(['big', 'dog'], ['large', 'puppy']) == 100
    assert similarity.synonym_score(['puppy'], ['dog']) == 100
    assert similarity.score('big dog', 'large puppy') == 28


def test_synonym_match_is_one_to_one():
    assert similarity.synonym_score(['car'], ['auto', 'vehicle']) == 100


def test_typo_gets_partial_credit():
    assert similarity.score('elephant', 'elephnat') == 30


def test_swapped_words_lose_order_credit():
    assert similarity.word_order_score(['red', 'car'], ['car', 'red']) == 0
    assert similarity.score('red car', 'car red') == 60


def test_exact_words_consume_guess_tokens_once():
    assert similarity.exact_word_score(['a', 'a'], ['a']) == 50
    assert similarity.exact_word_score(['a'], ['a', 'a']) == 100


def test_empty_guess_scores_zero():
    assert similarity.score('cat', '') == 0
    assert similarity.score('cat', '!!!') == 0


def test_levenshtein():
    assert similarity.levenshtein('kitten', 'sitting') == 3
    assert similarity.levenshtein('', 'abc') == 3
    assert similarity.levenshtein('same', 'same') == 0
    assert similarity.levenshtein_similarity('', '') == 100


def test_substring_needs_four_letters():
    assert similarity.partial_word_score(['sun'], ['sunset']) == 0
    assert similarity.partial_word_score(['moon'], ['moonlight']) == pytest.approx(4 / 9 * 70)


def test_length_penalty_bands():
    assert similarity.length_penalty('abcdefghij', 'abcde') == 1.0
    assert similarity.length_penalty('abcdefghij', 'abcd') == 0.85
    assert similarity.length_penalty('abcdefghij', 'ab') == 0.7
    assert similarity.length_penalty('', 'ab') == 0.0


def test_order_defaults_for_short_inputs():
    assert similarity.word_order_score(['one'], ['one', 'two']) == 100
    assert similarity.word_order_score(['one', 'two'], ['two']) == 100
