"""
Alias Resolver: recover canonical item and skill ids from free-text mentions.
"""

from typing import Iterable, List, Sequence

from ..models.core import Experience, KnowledgeItem, Skill, Writing, get_aliases, get_display_name
from ..models.query import AliasEntry
from ..utils.logging_config import get_logger
from ..utils.text_utils import contains_word, is_fuzzy_match, normalize_query_text, normalize_skill_token

logger = get_logger(__name__)

MIN_TOKEN_LENGTH = 4


def _canonical_name(item: KnowledgeItem) -> str:
    if isinstance(item, Experience):
        return item.company or item.role
    name = get_display_name(item)
    return '' if name == item.id else name


def build_alias_index(items: Iterable[KnowledgeItem]) -> List[AliasEntry]:
    """Build the name/alias index once from the item set.

    Experiences are indexed by company. Skills
    also carry their id in spaced form so 'machine learning' finds
    'machine_learning'.

    Args:
        items: All knowledge items

    Returns:
        One AliasEntry per item that has a usable name
    """
    index = []
    for item in items:
        name = _canonical_name(item)
        if not name:
            continue

        aliases = list(get_aliases(item))
        if isinstance(item, Writing) and item.short_name:
            aliases.append(item.short_name)
        if isinstance(item, Skill):
            spaced_id = item.id.replace('_', ' ').replace('-', ' ')
            if normalize_query_text(spaced_id) != normalize_query_text(name):
                aliases.append(spaced_id)

        index.append(AliasEntry(id=item.id, kind=item.kind, canonical_name=name, aliases=tuple(aliases)))
    return index


def _candidate_matches(normalized_query: str, query_words: set, candidate: str) -> bool:
    normalized = normalize_query_text(candidate)
    if not normalized:
        return False

    if len(normalized) < MIN_TOKEN_LENGTH:
        # Short nicknames only count as whole words
        return contains_word(normalized_query, normalized)

    if normalized in normalized_query:
        return True

    return any(len(token) >= MIN_TOKEN_LENGTH and token in query_words for token in normalized.split())


def matches_alias(normalized_query: str, entry: AliasEntry) -> bool:
    """Check one index entry against an already-normalized query."""
    query_words = set(normalized_query.split())
    return any(_candidate_matches(normalized_query, query_words, candidate)
               for candidate in (entry.canonical_name, *entry.aliases))


def match_aliases(query: str, index: Sequence[AliasEntry]) -> List[AliasEntry]:
    """
    Find every index entry mentioned in the query.

    Args:
        query: Raw user query
        index: Alias index from build_alias_index

    Returns:
        Matching entries in index order
    """
    normalized_query = normalize_query_text(query)
    if not normalized_query:
        return []

    matches = [entry for entry in index if matches_alias(normalized_query, entry)]
    if matches:
        logger.debug(f'Alias matches for query: {[entry.id for entry in matches]}')
    return matches


def resolve_skill_names_to_ids(skill_names: Sequence[str], items: Iterable[KnowledgeItem]) -> List[str]:
    """
    Resolve free-text skill names to canonical skill ids.

    Each name is fuzzy-matched against every skill's spaced id, its name and its
    aliases, tolerating plural/singular and either-contains-other variation.

    Args:
        skill_names: Names as written by the user or classifier
        items: Item set to resolve against (should be unfiltered)

    Returns:
        Resolved skill ids without duplicates, in discovery order
    """
    skills = [item for item in items if isinstance(item, Skill)]
    resolved: List[str] = []

    for raw_name in skill_names:
        search = normalize_query_text(raw_name)
        if not search:
            continue
        for skill in skills:
            if skill.id in resolved:
                continue
            targets = [normalize_query_text(skill.id.replace('_', ' ').replace('-', ' ')), normalize_query_text(skill.name)]
            targets.extend(normalize_query_text(alias) for alias in skill.aliases)
            if any(is_fuzzy_match(search, target) for target in targets):
                resolved.append(skill.id)

    return resolved


def skill_id_candidates(skill_names: Sequence[str], items: Iterable[KnowledgeItem]) -> List[str]:
    """Resolved skill ids, falling back to normalized raw names when nothing resolves."""
    resolved = resolve_skill_names_to_ids(skill_names, items)
    if resolved:
        return resolved
    return [normalize_skill_token(name) for name in skill_names if normalize_skill_token(name)]

