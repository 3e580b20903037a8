import random
from typing import List

from entity_variants.selector import select_random


class FixedRandom:
    """Stand-in randomness source returning preset indices."""

    def __init__(self, *indices: int):
        self.indices = list(indices)
        self.bounds: List[int] = []

    def randrange(self, stop: int) -> int:
        self.bounds.append(stop)
        return self.indices.pop(0)


def test_empty_returns_fallback() -> None:
    assert select_random([], "default") == "default"
    assert select_random([], "default", rng=FixedRandom()) == "default"


def test_result_is_member() -> None:
    names = ["a", "b", "c"]
    for _ in range(50):
        assert select_random(names, "default") in {"a", "b", "c"}


def test_uses_injected_source_sized_to_list() -> None:
    rng = FixedRandom(2, 0)
    assert select_random(["a", "b", "c"], "default", rng=rng) == "c"
    assert select_random(["x", "y"], "default", rng=rng) == "x"
    assert rng.bounds == [3, 2]


def test_seeded_random_is_deterministic() -> None:
    names = ["a", "b", "c", "d"]
    first = [select_random(names, "z", rng=random.Random(7)) for _ in range(5)]
    second = [select_random(names, "z", rng=random.Random(7)) for _ in range(5)]
    assert first == second


def test_all_members_reachable() -> None:
    rng = random.Random(1)
    seen = {select_random(["a", "b", "c"], "default", rng=rng) for _ in range(200)}
    assert seen == {"a", "b", "c"}
