"""Quiz generation with source-diversity sampling."""

from acadrag.quiz.generator import (
    QuizGenerator,
    QuizRequest,
    QuizResult,
    parse_questions,
    validate_questions,
)
from acadrag.quiz.sampler import (
    DiversityProfile,
    batch_is_diverse,
    diversity_profiles,
    select_source_material,
    shuffled_indices,
    source_diversity_ratio,
)

__all__ = [
    "DiversityProfile",
    "QuizGenerator",
    "QuizRequest",
    "QuizResult",
    "batch_is_diverse",
    "diversity_profiles",
    "parse_questions",
    "select_source_material",
    "shuffled_indices",
    "source_diversity_ratio",
    "validate_questions",
]
