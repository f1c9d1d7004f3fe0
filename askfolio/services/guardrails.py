"""
Guardrails for prompt-injection attempts and clearly off-topic questions.
"""

import re
from typing import Iterable, Set

from ..models.core import KnowledgeItem, get_aliases, get_skills
from ..utils.text_utils import contains_word

PROMPT_INJECTION_PATTERN = re.compile(r'(ignore|forget|bypass|override)\b[^.]*\b(instructions?|rules?|system prompt)', re.I)

OFF_TOPIC_PATTERNS = (
    re.compile(r'\bcapital of\b', re.I),
    re.compile(r'\bweather\b', re.I),
    re.compile(r'\bstocks?\b', re.I),
    re.compile(r'\bcrypto\b', re.I),
    re.compile(r'\bnews\b', re.I),
    re.compile(r'\bjoke\b', re.I),
    re.compile(r'\briddle\b', re.I),
    re.compile(r'\bpoem\b', re.I),
    re.compile(r'\bmovie\b', re.I),
    re.compile(r'\bcelebrity\b', re.I),
    re.compile(r'\b2\s*\+\s*2\b'),
    re.compile(r'\btranslate\b', re.I),
    re.compile(r'\brandom\b', re.I),
)

SHORT_ENTITY_LENGTH = 4


def detect_prompt_injection(query: str) -> bool:
    return PROMPT_INJECTION_PATTERN.search(query) is not None


def build_context_entities(items: Iterable[KnowledgeItem]) -> Set[str]:
    """
    Lowercased names that mark a query as being about the knowledge base.

    Args:
        items: All knowledge items

    Returns:
        Project, writing and story titles, companies, schools, skill ids and aliases
    """
    entities: Set[str] = set()
    for item in items:
        if item.kind in ('project', 'writing', 'story'):
            title = getattr(item, 'title', '')
            if title:
                entities.add(title.lower())
        for attr in ('company', 'school'):
            value = getattr(item, attr, '')
            if value:
                entities.add(value.lower())
        entities.update(skill.replace('_', ' ').lower() for skill in get_skills(item))
        entities.update(alias.lower() for alias in get_aliases(item) if alias)
    return entities


def is_clearly_off_topic(query: str, entities: Set[str]) -> bool:
    """
    Off-topic when an off-topic pattern hits and no known entity is mentioned.

    Args:
        query: Raw user query
        entities: Output of build_context_entities

    Returns:
        True if the query should get the guardrail reply
    """
    lower = query.lower()
    for entity in entities:
        if len(entity) < SHORT_ENTITY_LENGTH:
            if contains_word(lower, entity):
                return False
        elif entity in lower:
            return False
    return any(pattern.search(query) for pattern in OFF_TOPIC_PATTERNS)


def build_guardrail_response(subject_name: str = '') -> str:
    """Polite refusal that steers the user back to the knowledge base."""
    who = f"{subject_name}'s" if subject_name else 'this'
    return (f"I can only answer questions about {who} work, projects, experience and background. "
            'Try asking about a project, a role, or the skills used along the way.')
