from typing import Iterable


def next_id(existing_ids: Iterable[int]) -> int:
    """Return the smallest positive integer not present in ``existing_ids``.

    Gaps left by deleted attendees are re-filled before the sequence grows:
    ``{1, 2, 4}`` gives 3, ``{}`` gives 1, ``{1, 2, 3}`` gives 4.
    """
    ids = sorted({i for i in existing_ids if i > 0})
    for i, value in enumerate(ids):
        if value != i + 1:
            return i + 1
    return len(ids) + 1
