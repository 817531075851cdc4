"""Deduplication, Maximal Marginal Relevance re-ranking and cross-query blending."""

import logging
import math
from collections import defaultdict

from acadrag.retrieval.models import SearchResult
from acadrag.retrieval.similarity import vector_similarity

logger = logging.getLogger(__name__)


def deduplicate_by_text(results: list[SearchResult]) -> list[SearchResult]:
    """Drop results whose chunk text exactly repeats an earlier one (case-sensitive)."""
    seen: set[str] = set()
    unique = []
    for result in results:
        if result.chunk.text in seen:
            continue
        seen.add(result.chunk.text)
        unique.append(result)
    return unique


def _relevance(result: SearchResult, query_embedding: list[float] | None) -> float:
    """Similarity to the reference query, or the stored score when it cannot be computed."""
    if query_embedding and len(result.chunk.embedding) == len(query_embedding):
        return vector_similarity(query_embedding, result.chunk.embedding)
    return result.score


def mmr_rerank(
    candidates: list[SearchResult],
    query_embedding: list[float] | None,
    lambda_: float,
    k: int,
) -> list[SearchResult]:
    """Select ``k`` candidates balancing relevance against redundancy.

    Each step picks the candidate maximizing
    ``lambda_ * relevance + (1 - lambda_) * min(1 - sim(candidate, selected))``.
    The first pick is the most relevant candidate. Ties go to the candidate
    that comes first in the input.

    Args:
        candidates: Ranked candidates
        query_embedding: Reference embedding used to measure relevance; when
            None or of a different length the candidate's own score is used
        lambda_: Weight of relevance, in [0, 1] (1 = plain top-k)
        k: Number of results wanted

    Returns:
        list[SearchResult]: ``min(k, len(candidates))`` distinct candidates
    """
    if k <= 0 or not candidates:
        return []
    if len(candidates) <= k:
        return list(candidates)

    relevance = [_relevance(candidate, query_embedding) for candidate in candidates]
    remaining = list(range(len(candidates)))

    first = max(remaining, key=lambda i: (relevance[i], -i))
    selected = [first]
    remaining.remove(first)

    while len(selected) < k and remaining:
        best_index = remaining[0]
        best_score = -math.inf
        for i in remaining:
            novelty = min(
                1.0 - vector_similarity(candidates[i].chunk.embedding, candidates[s].chunk.embedding)
                for s in selected
            )
            score = lambda_ * relevance[i] + (1.0 - lambda_) * novelty
            if score > best_score:
                best_score = score
                best_index = i
        selected.append(best_index)
        remaining.remove(best_index)

    return [candidates[i] for i in selected]


def cap_per_query(results: list[SearchResult], target: int) -> list[SearchResult]:
    """Keep an equal share of ``target`` from each query variant's results.

    Groups are kept in order of first appearance; each is sorted by score.
    """
    if not results or target <= 0:
        return []

    groups: dict[int, list[SearchResult]] = defaultdict(list)
    for result in results:
        groups[result.query_index].append(result)

    share = math.ceil(target / len(groups))
    capped = []
    for group in groups.values():
        ranked = sorted(group, key=lambda result: result.score, reverse=True)
        capped.extend(ranked[:share])
    return capped


def blend_results(
    results: list[SearchResult],
    query_embedding: list[float] | None,
    lambda_: float,
    k: int,
    pool_size: int | None = None,
) -> list[SearchResult]:
    """Dedupe, cap per query variant, then MMR over the union.

    Deduplication runs before the cap, so a variant whose results repeat an
    earlier variant's leaves its share to its own remaining results.
    ``pool_size`` (default ``k``) is the number of candidates split across
    variants; a pool larger than ``k`` gives MMR room to trade relevance
    for novelty.
    """
    unique = deduplicate_by_text(results)
    capped = cap_per_query(unique, max(pool_size or k, k))
    blended = mmr_rerank(capped, query_embedding, lambda_, k)
    logger.debug(
        f"🔀 Blended {len(results)} results -> {len(unique)} unique -> "
        f"{len(capped)} capped -> {len(blended)} selected (λ={lambda_})"
    )
    return blended
