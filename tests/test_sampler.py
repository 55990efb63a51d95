import random

import pytest

from langnotes.errors import InsufficientPool, InvalidInput
from langnotes.sampler import PoolItem, sample


def make_pool(n):
    return [PoolItem(item_id=str(i), prompt=f"q{i}", answer=f"a{i}") for i in range(n)]


def test_three_item_pool_gives_one_question_with_all_answers():
    pool = [PoolItem("1", "uno", "a"), PoolItem("2", "dos", "b"), PoolItem("3", "tres", "c")]
    questions = sample(pool, 1, rng=random.Random(7))
    assert len(questions) == 1
    q = questions[0]
    assert q.note_id in {"1", "2", "3"}
    assert sorted(q.options) == ["a", "b", "c"]


@pytest.mark.parametrize("seed", range(20))
def test_questions_have_distinct_options_including_the_answer(seed):
    rng = random.Random(seed)
    n = rng.randint(3, 15)
    q_count = rng.randint(1, n)
    pool = make_pool(n)
    by_id = {item.item_id: item for item in pool}

    questions = sample(pool, q_count, rng=rng)

    assert len(questions) == q_count
    assert len({q.note_id for q in questions}) == q_count
    for q in questions:
        anchor = by_id[q.note_id]
        assert q.note_name == anchor.prompt
        assert len(q.options) == 3
        assert len(set(q.options)) == 3
        assert anchor.answer in q.options


def test_seeded_rng_is_deterministic():
    pool = make_pool(10)
    first = sample(pool, 5, rng=random.Random(99))
    second = sample(pool, 5, rng=random.Random(99))
    assert first == second


def test_correct_answer_position_varies():
    pool = make_pool(6)
    rng = random.Random(3)
    positions = set()
    for _ in range(50):
        q = sample(pool, 1, rng=rng)[0]
        answer = pool[int(q.note_id)].answer
        positions.add(q.options.index(answer))
    assert positions == {0, 1, 2}


@pytest.mark.parametrize("n", [0, 1, 2])
def test_pool_smaller_than_options_is_rejected(n):
    with pytest.raises(InsufficientPool):
        sample(make_pool(n), 1, rng=random.Random(0))


def test_more_questions_than_notes_is_rejected():
    with pytest.raises(InsufficientPool):
        sample(make_pool(4), 5, rng=random.Random(0))


def test_invalid_counts():
    with pytest.raises(InvalidInput):
        sample(make_pool(5), 0)
    with pytest.raises(InvalidInput):
        sample(make_pool(5), 1, options_per_question=1)


def test_duplicate_answer_text_is_not_offered_twice():
    pool = [
        PoolItem("1", "hello", "merhaba"),
        PoolItem("2", "hi", "merhaba"),
        PoolItem("3", "cat", "kedi"),
        PoolItem("4", "dog", "köpek"),
    ]
    rng = random.Random(5)
    for _ in range(30):
        q = sample(pool, 1, rng=rng)[0]
        assert len(set(q.options)) == 3


def test_pool_without_enough_distinct_answers_still_samples_items():
    pool = [PoolItem(str(i), f"p{i}", "same") for i in range(3)]
    q = sample(pool, 2, rng=random.Random(1))
    assert len(q) == 2
    assert all(opts.options == ("same", "same", "same") for opts in q)


def test_more_options_per_question():
    pool = make_pool(8)
    questions = sample(pool, 8, options_per_question=4, rng=random.Random(11))
    assert all(len(set(q.options)) == 4 for q in questions)
