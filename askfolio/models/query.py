"""
Query-understanding models: filters, intents, aliases and scored results.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from .core import KINDS, KnowledgeItem

INTENTS = ('contact', 'filter_query', 'specific_item', 'personal', 'general')
OPERATIONS = ('contains', 'exact', 'any')


def _scalars(value: Any) -> List[Any]:
    # Payload values may be a bare scalar; booleans and nested values are dropped
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [v for v in value if isinstance(v, (str, int, float)) and not isinstance(v, bool)]


def _str_list(value: Any) -> Optional[List[str]]:
    result = [str(v).strip() for v in _scalars(value) if str(v).strip()]
    return result or None


def _int_list(value: Any) -> Optional[List[int]]:
    result = []
    for v in _scalars(value):
        try:
            result.append(int(v))
        except (TypeError, ValueError):
            continue
    return result or None


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return value is True


@dataclass
class QueryFilter:
    """Structured filter over knowledge items.

    ``type`` uses OR semantics across kinds. ``operation`` controls how the
    multi-valued ``skills`` and ``tags`` criteria combine against an item's own
    lists.
    """
    type: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    company: Optional[List[str]] = None
    year: Optional[List[int]] = None
    tags: Optional[List[str]] = None
    title_match: Optional[str] = None
    operation: str = 'contains'
    show_all: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'QueryFilter':
        """Build a filter from its wire form, dropping unknown kinds and values."""
        if not data:
            return cls()

        kinds = _str_list(data.get('type'))
        if kinds:
            kinds = ['writing' if k.lower() == 'blog' else k.lower() for k in kinds]
            kinds = [k for k in kinds if k in KINDS] or None

        operation = data.get('operation')
        operation = operation.lower() if isinstance(operation, str) else 'contains'
        title_match = data.get('title_match')
        title_match = str(title_match).strip() if isinstance(title_match, (str, int)) and not isinstance(title_match, bool) else ''
        return cls(type=kinds,
                   skills=_str_list(data.get('skills')),
                   company=_str_list(data.get('company')),
                   year=_int_list(data.get('year')),
                   tags=_str_list(data.get('tags')),
                   title_match=title_match or None,
                   operation=operation if operation in OPERATIONS else 'contains',
                   show_all=_flag(data.get('show_all', False)))

    def to_dict(self) -> Dict[str, Any]:
        """Wire form with empty fields omitted."""
        data: Dict[str, Any] = {}
        for key in ('type', 'skills', 'company', 'year', 'tags'):
            value = getattr(self, key)
            if value:
                data[key] = list(value)
        if self.title_match:
            data['title_match'] = self.title_match
        if self.operation != 'contains':
            data['operation'] = self.operation
        if self.show_all:
            data['show_all'] = True
        return data

    def copy(self, **changes: Any) -> 'QueryFilter':
        return replace(self, **changes)

    def has_criteria(self) -> bool:
        """True when any dimension would narrow the item set."""
        return bool(self.type or self.skills or self.company or self.year or self.tags or self.title_match)


@dataclass
class IntentResult:
    """Classifier output."""
    intent: str = 'general'
    filters: Optional[QueryFilter] = None
    about_subject: bool = True


@dataclass(frozen=True)
class AliasEntry:
    """Name and aliases of one item, used only for matching."""
    id: str
    kind: str
    canonical_name: str
    aliases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoredItem:
    """A retrieved item with its semantic similarity and applied boosts.

    Boosts are stored by name rather than folded into the score, so applying
    the same boost again replaces its earlier factor instead of compounding.
    """
    item: KnowledgeItem
    similarity: float
    multipliers: Tuple[Tuple[str, float], ...] = ()
    importance_blend: Optional[Tuple[float, float, float]] = None  # (semantic_weight, importance_weight, importance 0..1)

    @property
    def boosted_similarity(self) -> float:
        value = self.similarity
        for _, factor in self.multipliers:
            value *= factor
        return value

    @property
    def score(self) -> float:
        if self.importance_blend is None:
            return self.boosted_similarity
        semantic_weight, importance_weight, importance = self.importance_blend
        return max(self.boosted_similarity, 0.0) * semantic_weight + importance * importance_weight

    def with_multiplier(self, name: str, factor: float) -> 'ScoredItem':
        others = tuple((n, f) for n, f in self.multipliers if n != name)
        if factor == 1.0:
            return replace(self, multipliers=others)
        return replace(self, multipliers=others + ((name, factor),))

    def with_importance(self, semantic_weight: float, importance_weight: float, importance: float) -> 'ScoredItem':
        return replace(self, importance_blend=(semantic_weight, importance_weight, importance))


@dataclass
class RetrievalPlan:
    """Kinds and quotas used to diversify a broad query."""
    quotas: Dict[str, int] = field(default_factory=dict)
    total: int = 5
