"""Uniform random variant selection."""

import random
from typing import Optional, Sequence

from entity_variants.types import VariantName

_rng = random.Random()


def select_random(
    names: Sequence[VariantName],
    fallback: VariantName,
    rng: Optional[random.Random] = None,
) -> VariantName:
    """Return a uniformly chosen element of ``names``, or ``fallback`` if empty.

    Args:
        names: Candidate variant names.
        fallback: Returned when ``names`` is empty.
        rng: Randomness source; anything with ``randrange``. Defaults to a
            process-wide unseeded ``random.Random``.
    """
    candidates = list(names)
    if not candidates:
        return fallback
    source = rng if rng is not None else _rng
    return candidates[source.randrange(len(candidates))]
