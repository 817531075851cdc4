"""Vector similarity for ranking."""

import logging

from acadrag.service.database.utils import cosine_similarity

logger = logging.getLogger(__name__)

__all__ = ["cosine_similarity", "vector_similarity"]


def vector_similarity(vec_a: list[float], vec_b: list[float]) -> float:
    """Cosine similarity that logs when two non-empty vectors differ in length.

    Mismatched vectors come from corrupted or foreign chunks; they score 0
    instead of failing the request.
    """
    if vec_a and vec_b and len(vec_a) != len(vec_b):
        logger.warning(
            f"⚠️ Embedding length mismatch ({len(vec_a)} vs {len(vec_b)}), treating as dissimilar"
        )
        return 0.0
    return cosine_similarity(vec_a, vec_b)
