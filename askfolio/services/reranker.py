"""
Reranker/Booster: composable score adjustments and type diversification.

Each boost is a pure function over ScoredItem lists. Boost factors are stored
on the item under the boost's name, so re-applying a boost with the same
inputs leaves scores and ordering unchanged.
"""

import re
from typing import Callable, Dict, List, Optional, Sequence

from ..models.core import KnowledgeItem, extract_primary_year, get_specifics, get_summary
from ..models.query import AliasEntry, RetrievalPlan, ScoredItem
from ..utils.config import RetrievalConfig
from ..utils.logging_config import get_logger
from ..utils.temporal_utils import TemporalHints, year_distance
from .filter_engine import is_comparison_query

logger = get_logger(__name__)

TEMPORAL_BOOST = 'temporal'
TECHNICAL_BOOST = 'technical'

TECHNICAL_QUERY_PATTERN = re.compile(
    r'\b(technical|tech|engineer\w*|build\w*|built|develop\w*|algorithms?|ml|ai|data|code|coding|systems?)\b', re.I)

# (pattern, weight) pairs for technical complexity, heaviest first
TECHNICAL_WEIGHTS = (
    (re.compile(r'document ai|nlp|embeddings|transformers|faiss|sentence|gpt|neural|deep learning', re.I), 3),
    (re.compile(r'algorithm|optimization|rule engine|search|similarity|clustering|matching|pipeline', re.I), 2),
    (re.compile(r'100\+|600k|batch|parallel|throughput|scale|automation', re.I), 2),
    (re.compile(r'c#|\.net|assembly|hardware|cpu|memory', re.I), 1),
)
TECHNICAL_FACTOR_PER_POINT = 0.03

ACADEMIC_PATTERN = re.compile(r'\b(class|classes|course|courses|academic)\b', re.I)


def _sorted(results: Sequence[ScoredItem]) -> List[ScoredItem]:
    return sorted(results, key=lambda r: r.score, reverse=True)


def temporal_factor(distance: Optional[int]) -> float:
    """Multiplier for the distance in years to the nearest hinted year."""
    if distance is None:
        return 1.0
    if distance == 0:
        return 1.25
    if distance == 1:
        return 1.12
    if distance <= 2:
        return 1.05
    return 1.0


def apply_temporal_boost(results: Sequence[ScoredItem], hints: TemporalHints) -> List[ScoredItem]:
    """
    Favor items dated near the years a query hints at.

    Args:
        results: Scored items
        hints: Temporal hints from the query

    Returns:
        Re-sorted results (unchanged order when there are no hinted years)
    """
    if not hints.years:
        return list(results)

    boosted = []
    for result in results:
        distance = year_distance(extract_primary_year(result.item), hints.years)
        boosted.append(result.with_multiplier(TEMPORAL_BOOST, temporal_factor(distance)))
    return _sorted(boosted)


def is_technical_query(query: str) -> bool:
    return TECHNICAL_QUERY_PATTERN.search(query) is not None


def technical_score(item: KnowledgeItem) -> int:
    """Keyword-weighted technical complexity of an item's summary and highlights."""
    text = ' '.join([get_summary(item), *get_specifics(item)])
    if not text.strip():
        return 0
    return sum(weight for pattern, weight in TECHNICAL_WEIGHTS if pattern.search(text))


def apply_technical_boost(results: Sequence[ScoredItem], query: str) -> List[ScoredItem]:
    """
    Boost experience items by technical complexity when the query is technical.

    Args:
        results: Scored items
        query: Raw user query

    Returns:
        Re-sorted results (unchanged for non-technical queries)
    """
    if not is_technical_query(query):
        return list(results)

    boosted = []
    for result in results:
        if result.item.kind == 'experience':
            factor = 1 + technical_score(result.item) * TECHNICAL_FACTOR_PER_POINT
            result = result.with_multiplier(TECHNICAL_BOOST, factor)
        boosted.append(result)
    return _sorted(boosted)


def apply_importance_boost(results: Sequence[ScoredItem],
                           importance_of: Callable[[str], float],
                           evaluative: bool,
                           evaluative_importance_weight: float = 0.6,
                           default_importance_weight: float = 0.2) -> List[ScoredItem]:
    """
    Blend semantic score with precomputed importance.

    Args:
        results: Scored items
        importance_of: Lookup from item id to importance in 0..100
        evaluative: Whether the query uses comparative/superlative language
        evaluative_importance_weight: Importance weight for evaluative queries
        default_importance_weight: Importance weight otherwise

    Returns:
        Re-sorted results
    """
    importance_weight = evaluative_importance_weight if evaluative else default_importance_weight
    semantic_weight = 1.0 - importance_weight

    boosted = [
        result.with_importance(semantic_weight, importance_weight, min(max(importance_of(result.item.id), 0.0), 100.0) / 100)
        for result in results
    ]
    return _sorted(boosted)


def build_diversity_plan(query: str, retrieval_config: RetrievalConfig) -> RetrievalPlan:
    """Per-kind quotas for a broad query; classes get slots only for academic questions."""
    quotas = {'project': retrieval_config.project_quota, 'experience': retrieval_config.experience_quota}
    if ACADEMIC_PATTERN.search(query):
        quotas['class'] = retrieval_config.class_quota
    return RetrievalPlan(quotas=quotas, total=retrieval_config.general_top_k)


def diversify_by_type(results: Sequence[ScoredItem], quotas: Dict[str, int], total: int) -> List[ScoredItem]:
    """
    Fill per-kind quotas from the best-scoring items, then top up to ``total``.

    Args:
        results: Scored items, best first
        quotas: Maximum slots reserved per kind in the first pass
        total: Final result size

    Returns:
        At most ``total`` items, sorted by score
    """
    ordered = _sorted(results)
    taken: Dict[str, int] = {}
    selected: List[ScoredItem] = []
    selected_ids = set()

    for result in ordered:
        if len(selected) >= total:
            break
        kind = result.item.kind
        if taken.get(kind, 0) < quotas.get(kind, 0):
            selected.append(result)
            selected_ids.add(result.item.id)
            taken[kind] = taken.get(kind, 0) + 1

    for result in ordered:
        if len(selected) >= total:
            break
        if result.item.id not in selected_ids:
            selected.append(result)
            selected_ids.add(result.item.id)

    logger.debug(f'Diversified {len(ordered)} results into {len(selected)} with quotas {quotas}')
    return _sorted(selected)


def expand_for_comparison(query: str,
                          results: Sequence[ScoredItem],
                          candidates: Sequence[KnowledgeItem],
                          alias_matches: Sequence[AliasEntry]) -> List[ScoredItem]:
    """
    Add the items a comparative question implies but retrieval may have missed.

    Alias-mentioned items come first, then projects and experiences from the
    year before or after the anchor item for 'before'/'after' language. Only
    items from ``candidates`` are added, with scores just below the current
    minimum.

    Args:
        query: Raw user query
        results: Current scored items
        candidates: Filtered candidate items
        alias_matches: Alias entries mentioned in the query

    Returns:
        Results with comparison items appended (unchanged for other queries)
    """
    if not is_comparison_query(query):
        return list(results)

    expanded = list(results)
    seen = {r.item.id for r in expanded}
    by_id = {item.id: item for item in candidates}
    seed = min((r.score for r in expanded), default=1.0)

    def push(item: KnowledgeItem) -> None:
        nonlocal seed
        if item.id in seen:
            return
        seed -= 0.0005
        expanded.append(ScoredItem(item=item, similarity=seed))
        seen.add(item.id)

    alias_items = [by_id[m.id] for m in alias_matches if m.id in by_id]
    for item in alias_items:
        push(item)

    anchor = alias_items[0] if alias_items else (expanded[0].item if expanded else None)
    anchor_year = extract_primary_year(anchor) if anchor else None
    if anchor_year is None:
        return expanded

    pool = sorted((item for item in candidates if item.kind in ('project', 'experience')), key=lambda i: i.id)
    if re.search(r'\b(before|previous|prior|last)\b', query, re.I):
        for item in pool:
            if extract_primary_year(item) == anchor_year - 1:
                push(item)
    if re.search(r'\b(after|next|following|upcoming)\b', query, re.I):
        for item in pool:
            if extract_primary_year(item) == anchor_year + 1:
                push(item)

    return expanded
