"""
Filter Engine: derive, merge, relax and apply structured query filters.
"""

import re
from datetime import date
from typing import Iterator, List, Optional, Sequence, Tuple

from ..models.core import (Experience, KnowledgeItem, Skill, extract_primary_year, get_aliases, get_date_range,
                           get_display_name, get_skills, get_tags, get_term)
from ..models.query import AliasEntry, QueryFilter
from ..utils.logging_config import get_logger
from ..utils.temporal_utils import TemporalHints, parse_year, today, year_distance
from ..utils.text_utils import normalize_query_text, normalize_skill_token
from .alias_resolver import skill_id_candidates

logger = get_logger(__name__)

COMPARISON_PATTERN = re.compile(r'\b(compare|comparison|versus|vs\.?|before|after|previous|next|difference)\b', re.I)

# Vocabulary rules for type inference: (pattern over normalized text, kind)
TYPE_RULES = (
    (re.compile(r'\bskills?\b|\btech\b|\btechnology\b|\bstack\b|\blanguages?\b|\btools?\b'), 'skill'),
    (re.compile(r'\bprojects?\b'), 'project'),
    (re.compile(r'\bexperiences?\b|\bwork\b|\broles?\b|\bjobs?\b|\bintern(ship|ships)?\b'), 'experience'),
    (re.compile(r'\bclass(es)?\b|\bcourses?\b'), 'class'),
    (re.compile(r'\bblogs?\b|\barticles?\b|\bposts?\b|\bwriting\b'), 'writing'),
)
SHOW_ALL_PATTERN = re.compile(r'\b(list|show|give me|display|enumerate|all|every|everything)\b')


def is_comparison_query(query: str) -> bool:
    return COMPARISON_PATTERN.search(query) is not None


def ensure_type(filters: QueryFilter, kind: str) -> None:
    if not filters.type:
        filters.type = [kind]
    elif kind not in filters.type:
        filters.type = filters.type + [kind]


def merge_filters(base: Optional[QueryFilter], extra: Optional[QueryFilter]) -> Optional[QueryFilter]:
    """Union list dimensions; title_match, operation and show_all from ``extra`` win when set."""
    if extra is None:
        return base.copy() if base else None
    if base is None:
        return extra.copy()

    merged = base.copy()
    for key in ('type', 'skills', 'company', 'year', 'tags'):
        values = getattr(extra, key)
        if not values:
            continue
        current = list(getattr(merged, key) or [])
        current.extend(v for v in values if v not in current)
        setattr(merged, key, current)

    if extra.title_match:
        merged.title_match = extra.title_match
    if extra.operation != 'contains':
        merged.operation = extra.operation
    if extra.show_all:
        merged.show_all = True
    return merged


def derive_filter_defaults(query: str,
                           filters: Optional[QueryFilter],
                           alias_matches: Sequence[AliasEntry],
                           intent: str = 'filter_query') -> QueryFilter:
    """
    Fill in filter dimensions the classifier left empty.

    A specific-item lookup (``title_match`` set, either supplied or taken from
    the first project/experience alias match) never gets a type or company
    inferred, so an id that belongs to another kind is not excluded.

    Args:
        query: Raw user query
        filters: Filters from the classifier or pre-router, if any
        alias_matches: Alias entries mentioned in the query
        intent: Classified intent

    Returns:
        A new filter; the input is not modified
    """
    normalized = normalize_query_text(query)
    result = filters.copy() if filters else QueryFilter()

    if SHOW_ALL_PATTERN.search(normalized) and intent != 'specific_item':
        result.show_all = True

    if not result.title_match and intent == 'specific_item':
        specific = next((m for m in alias_matches if m.kind in ('project', 'experience')), None) or \
            next(iter(alias_matches), None)
        if specific:
            result.title_match = specific.canonical_name

    if result.title_match:
        logger.debug(f'Skipping type/company inference for title_match={result.title_match!r}')
        return result

    if not result.type:
        for pattern, kind in TYPE_RULES:
            if pattern.search(normalized):
                ensure_type(result, kind)

    companies = [m.canonical_name for m in alias_matches if m.kind == 'experience']
    if companies and not result.company:
        ensure_type(result, 'experience')
        result.company = list(dict.fromkeys(companies))

    if result.type and 'skill' in result.type:
        result.show_all = True

    return result


def detect_profile_filter(query: str, subject_name: str = '') -> Optional[QueryFilter]:
    """
    Route profile questions (availability, visa, location, languages, what makes the subject special) to bio items.

    Args:
        query: Raw user query
        subject_name: Name of the person the knowledge base describes

    Returns:
        A show-all filter over the profile kinds, or None if nothing matched
    """
    normalized = normalize_query_text(query)
    kinds: List[str] = []

    if re.search(r'\bavailability\b|\bavailable\b|\bopen to\b', normalized):
        kinds.append('bio')
    if re.search(r'\bwork authorization\b|\bvisa\b|\bwork permit\b|\bcitizen(ship)?\b', normalized):
        kinds.append('bio')
    if re.search(r'\blocation\b|\bwhere\b.*\b(based|located)\b|\bwhat city\b', normalized):
        kinds.append('bio')
    if re.search(r'\blanguages?\b.*\b(speak|spoken)\b|\bspeak\b|\bfluency\b', normalized):
        kinds.append('bio')

    subject = re.escape(normalize_query_text(subject_name)) if subject_name else 'them'
    if re.search(rf'\bwhat\b.*\bmakes\b.*\b({subject}|him|her|them|you)\b.*\b(special|unique)\b', normalized) or \
            re.search(rf'\bunique\b.*\babout\b.*\b({subject}|you)\b', normalized):
        kinds.extend(['bio', 'value', 'story'])

    if not kinds:
        return None
    return QueryFilter(type=list(dict.fromkeys(kinds)), show_all=True)


def apply_temporal_hints_to_filters(filters: Optional[QueryFilter], hints: TemporalHints) -> Optional[QueryFilter]:
    """Add hinted years to the year dimension."""
    if not hints.years:
        return filters
    return merge_filters(filters, QueryFilter(year=list(hints.years)))


def _title_fields(item: KnowledgeItem) -> List[str]:
    fields = [get_display_name(item)]
    for attr in ('title', 'name', 'company', 'role', 'value', 'interest', 'school', 'short_name'):
        value = getattr(item, attr, '')
        if value:
            fields.append(value)
    if isinstance(item, Experience):
        fields.append(f'{item.role} {item.company}')
    if isinstance(item, Skill):
        fields.append(item.id.replace('_', ' '))
    fields.extend(get_aliases(item))
    return [normalize_query_text(f) for f in fields if f]


def matches_title(item: KnowledgeItem, title_match: str) -> bool:
    """Normalized substring match of a title_match against an item's names and aliases."""
    needle = normalize_query_text(title_match)
    if not needle:
        return False
    for value in _title_fields(item):
        if not value:
            continue
        if needle in value:
            return True
        # Named mentions like 'veson internship' still hit the 'veson' alias
        if len(value) >= 4 and re.search(rf'\b{re.escape(value)}\b', needle):
            return True
    return False


def _item_skill_tokens(item: KnowledgeItem) -> List[str]:
    if isinstance(item, Skill):
        return [normalize_skill_token(item.id)]
    return [normalize_skill_token(skill) for skill in get_skills(item)]


def _matches_skills(item: KnowledgeItem, wanted: Sequence[str], operation: str) -> bool:
    item_skills = _item_skill_tokens(item)
    if not item_skills:
        return False
    if operation == 'exact':
        return all(s in item_skills for s in wanted)
    if operation == 'any':
        return any(s in item_skills for s in wanted)
    return any(s == own or s in own for s in wanted for own in item_skills)


def _matches_company(item: KnowledgeItem, companies: Sequence[str]) -> bool:
    if not isinstance(item, Experience) or not item.company:
        return False
    names = [normalize_query_text(item.company)] + [normalize_query_text(a) for a in item.aliases]
    wanted = [normalize_query_text(c) for c in companies]
    return any(c and c in name for c in wanted for name in names)


def _matches_year(item: KnowledgeItem, years: Sequence[int], current_year: int) -> bool:
    dates = get_date_range(item)
    if dates:
        start_year = parse_year(dates.start)
        end_year = parse_year(dates.end) if dates.end else current_year
        if start_year is None:
            return False
        return any(start_year <= y <= (end_year or current_year) for y in years)

    term_year = parse_year(get_term(item))
    if term_year is not None:
        return term_year in years
    return False


def _matches_tags(item: KnowledgeItem, tags: Sequence[str], operation: str) -> bool:
    item_tags = [t.lower() for t in get_tags(item)]
    if not item_tags:
        return False
    wanted = [t.lower() for t in tags]
    if operation == 'exact':
        return all(t in item_tags for t in wanted)
    if operation == 'any':
        return any(t in item_tags for t in wanted)
    return any(t in own for t in wanted for own in item_tags)


def item_matches(item: KnowledgeItem,
                 filters: QueryFilter,
                 resolved_skills: Optional[Sequence[str]] = None,
                 current: Optional[date] = None) -> bool:
    """
    Check a single item against every dimension present in the filter.

    Args:
        item: Item to test
        filters: Filter to apply
        resolved_skills: Skill ids already resolved from ``filters.skills``
        current: Reference date for open-ended ranges

    Returns:
        True if the item satisfies all present dimensions
    """
    if filters.type and item.kind not in filters.type:
        return False
    if filters.title_match and item.id != filters.title_match and not matches_title(item, filters.title_match):
        return False
    if filters.skills:
        wanted = resolved_skills if resolved_skills is not None else [normalize_skill_token(s) for s in filters.skills]
        if not _matches_skills(item, wanted, filters.operation):
            return False
    if filters.company and not _matches_company(item, filters.company):
        return False
    if filters.year and not _matches_year(item, filters.year, today(current).year):
        return False
    if filters.tags and not _matches_tags(item, filters.tags, filters.operation):
        return False
    return True


def apply_filters(items: Sequence[KnowledgeItem],
                  filters: Optional[QueryFilter],
                  all_items: Optional[Sequence[KnowledgeItem]] = None,
                  current: Optional[date] = None) -> List[KnowledgeItem]:
    """
    Apply a filter to an item set.

    Order: type, title_match (an exact id match wins over substring matches),
    skills (names resolved against ``all_items`` so they stay resolvable after
    type filtering), company, year, tags.

    Args:
        items: Items to filter
        filters: Filter to apply (None returns the items unchanged)
        all_items: Unfiltered item set used for skill resolution (defaults to ``items``)
        current: Reference date for open-ended ranges

    Returns:
        Matching items in input order
    """
    if filters is None:
        return list(items)

    filtered = list(items)
    if filters.type:
        filtered = [item for item in filtered if item.kind in filters.type]

    if filters.title_match:
        by_id = [item for item in filtered if item.id == filters.title_match]
        filtered = by_id or [item for item in filtered if matches_title(item, filters.title_match)]

    resolved = None
    if filters.skills:
        resolved = [normalize_skill_token(s) for s in skill_id_candidates(filters.skills, all_items or items)]

    rest = filters.copy(type=None, title_match=None)
    return [item for item in filtered if item_matches(item, rest, resolved, current)]


def relax_filters(filters: QueryFilter, query: str) -> Iterator[Tuple[str, QueryFilter]]:
    """
    Successively looser versions of a filter that matched nothing.

    Steps are cumulative: widen years by one on each side (comparison queries
    only), drop the year, then drop the title match.

    Args:
        filters: Filter that produced no results
        query: Raw user query

    Yields:
        (step name, relaxed filter) pairs
    """
    current = filters
    if current.year and is_comparison_query(query):
        widened = sorted({y + delta for y in current.year for delta in (-1, 0, 1)})
        current = current.copy(year=widened)
        yield 'widen_year', current
    if current.year:
        current = current.copy(year=None)
        yield 'drop_year', current
    if current.title_match:
        current = current.copy(title_match=None)
        yield 'drop_title_match', current


def sort_items_for_filter(items: Sequence[KnowledgeItem], hints: Optional[TemporalHints] = None) -> List[KnowledgeItem]:
    """Order a filtered listing: newest first, then closest to a hinted year, then by label."""
    hinted_years = hints.years if hints else []

    def key(item: KnowledgeItem):
        year = extract_primary_year(item) or 0
        distance = year_distance(year, hinted_years)
        return (-year, distance if distance is not None else 0, get_display_name(item).lower())

    return sorted(items, key=key)
