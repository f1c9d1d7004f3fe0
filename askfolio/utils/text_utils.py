"""
Text normalization helpers shared by every text-matching stage.
"""

import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r'[^a-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize_query_text(value: Optional[str]) -> str:
    """Lowercase, strip diacritics and punctuation, collapse whitespace.

    Args:
        value: Raw text (None is treated as empty)

    Returns:
        Normalized text
    """
    if not value:
        return ''

    decomposed = unicodedata.normalize('NFKD', value.lower())
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = _NON_ALNUM.sub(' ', stripped)
    return _WHITESPACE.sub(' ', stripped).strip()


def normalize_skill_token(value: str) -> str:
    """Normalize a skill name into the id form (e.g. 'Sentence Transformers' -> 'sentence_transformers')."""
    return normalize_query_text(value).replace(' ', '_')


def contains_word(text: str, word: str) -> bool:
    """Check whether a normalized word or phrase occurs on word boundaries in normalized text."""
    if not word:
        return False
    return re.search(rf'\b{re.escape(word)}\b', text) is not None


def _strip_plural(value: str) -> str:
    return value[:-1] if value.endswith('s') else value


def is_fuzzy_match(search: str, target: str) -> bool:
    """Fuzzy comparison used for skill vocabulary.

    Tolerates plural/singular variation and either-contains-other substrings,
    so 'sentence transformer' matches 'sentence transformers'.

    Args:
        search: Normalized search term
        target: Normalized candidate value

    Returns:
        True if the two values should be treated as the same skill
    """
    if not search or not target:
        return False

    if search == target:
        return True

    # One- and two-letter names ('r', 'go') only match whole words
    if min(len(search), len(target)) < 3:
        return contains_word(target, search) or contains_word(search, target)

    if search in target or target in search:
        return True

    search_words = search.split()
    target_words = target.split()
    if search_words and all(
            any(sw == tw or (len(sw) >= 3 and len(tw) >= 3 and (sw in tw or tw in sw)) for tw in target_words)
            for sw in search_words):
        return True

    search_singular = _strip_plural(search)
    target_singular = _strip_plural(target)
    if search_singular == target_singular:
        return True

    if len(search_singular) >= 3 and len(target_singular) >= 3:
        return search_singular in target_singular or target_singular in search_singular

    return False


def escape_attribute(value: str) -> str:
    """Escape a value for use inside a double-quoted directive attribute."""
    return (value.replace('&', '&amp;')
            .replace('"', '&quot;')
            .replace('<', '&lt;')
            .replace('>', '&gt;'))


def truncate(value: str, limit: int) -> str:
    """Truncate text to at most limit characters, ending with an ellipsis when cut."""
    value = (value or '').strip()
    if len(value) <= limit:
        return value
    return value[:limit - 3].rstrip() + '...'
