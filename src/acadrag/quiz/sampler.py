"""Random source selection and source-diversity checks for quiz batches."""

import random
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass
class DiversityProfile:
    """Which source a generated question claims to draw on."""

    question_text: str
    source: str | None


def shuffled_indices(pool_size: int, count: int, rng: random.Random) -> list[int]:
    """Fisher-Yates shuffle of ``range(pool_size)``, truncated to ``count`` indices.

    Every index is unique and within ``[0, pool_size)``; fewer than ``count``
    come back when the pool is smaller.
    """
    if pool_size < 0 or count < 0:
        raise ValueError("pool_size and count must not be negative")

    indices = list(range(pool_size))
    for i in range(pool_size - 1, 0, -1):
        j = rng.randint(0, i)
        indices[i], indices[j] = indices[j], indices[i]
    return indices[:count]


def select_source_material(
    items: list[T], count: int, rng: random.Random
) -> tuple[list[T], list[int]]:
    """Pick ``count`` items uniformly at random without replacement.

    Returns:
        The selected items and their positions in ``items``
    """
    indices = shuffled_indices(len(items), count, rng)
    return [items[index] for index in indices], indices


def diversity_profiles(questions: list[dict]) -> list[DiversityProfile]:
    return [
        DiversityProfile(
            question_text=question.get("questionText", ""),
            source=(str(question.get("sourceUsed")).strip() or None)
            if question.get("sourceUsed")
            else None,
        )
        for question in questions
    ]


def source_diversity_ratio(profiles: list[DiversityProfile]) -> float:
    """Distinct attributed sources divided by the number of questions."""
    if not profiles:
        return 0.0
    unique_sources = {profile.source for profile in profiles if profile.source}
    return len(unique_sources) / len(profiles)


def batch_is_diverse(profiles: list[DiversityProfile], threshold: float) -> bool:
    """Whether a batch draws on enough distinct sources to be kept.

    Batches of zero or one question always pass. Larger batches fail when the
    ratio is below ``threshold`` or every question names the same source.
    """
    if len(profiles) <= 1:
        return True
    unique_sources = {profile.source for profile in profiles if profile.source}
    if len(unique_sources) <= 1:
        return False
    return source_diversity_ratio(profiles) >= threshold
