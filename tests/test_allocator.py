import random

import pytest

from allocator import next_id


@pytest.mark.parametrize(
    "existing, expected",
    [
        (set(), 1),
        ({1, 2, 4}, 3),
        ({1, 2, 3}, 4),
        ({2, 3}, 1),
        ({1, 3, 5, 7}, 2),
        ([3, 1, 2], 4),
    ],
)
def test_next_id_examples(existing, expected):
    assert next_id(existing) == expected


def test_next_id_is_smallest_missing_positive():
    rng = random.Random(1234)
    for _ in range(200):
        existing = set(rng.sample(range(1, 60), rng.randint(0, 50)))
        result = next_id(existing)
        assert result not in existing
        assert all(i in existing for i in range(1, result))


def test_next_id_ignores_non_positive_values():
    assert next_id({0, -3, 1}) == 2


def test_next_id_accepts_any_iterable():
    assert next_id(i for i in (1, 2)) == 3
