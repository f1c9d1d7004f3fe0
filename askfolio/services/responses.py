"""
Canned response text: no-match, clarification, contact and fallback replies.
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from ..models.core import KnowledgeItem, extract_primary_year, get_display_name
from ..models.query import QueryFilter
from ..utils.text_utils import escape_attribute

CONTACT_DIRECTIVE_PATTERN = re.compile(r'<ui:contact\s+')
MAX_CLARIFICATION_OPTIONS = 5

KIND_LABELS = {
    'project': 'Projects',
    'experience': 'Experience',
    'class': 'Classes',
    'writing': 'Writing',
    'story': 'Stories',
    'value': 'Values',
    'interest': 'Interests',
    'education': 'Education',
    'bio': 'Bio',
    'skill': 'Skills',
}

_FILLER = re.compile(r'\b(show|list|tell me|give me|find|can you|could you|would you|please|kindly)\b', re.I)
_LEADING_PREPOSITION = re.compile(r'^(about|regarding|on)\s+', re.I)


def has_contact_directive(text: str) -> bool:
    return CONTACT_DIRECTIVE_PATTERN.search(text or '') is not None


def contact_directive(reason: str, draft: str) -> str:
    return f'<ui:contact reason="{escape_attribute(reason)}" draft="{escape_attribute(draft)}" />'


def build_contact_draft(query: str, subject_name: str = '') -> str:
    """
    Rewrite a question into a first-person message addressed to the subject.

    Args:
        query: Raw user query
        subject_name: Name of the person the knowledge base describes

    Returns:
        Draft message text
    """
    stripped = re.sub(r'["<>]', '', query)
    stripped = _FILLER.sub('', stripped)
    stripped = re.sub(r'\b(describe|explain)\s+me\b', '', stripped, flags=re.I).strip()

    if subject_name:
        name = re.escape(subject_name)
        stripped = re.sub(rf"\b{name}'?s\b", 'your', stripped, flags=re.I)
        stripped = re.sub(rf'\b{name}\b', 'you', stripped, flags=re.I)

    cleaned = _LEADING_PREPOSITION.sub('', re.sub(r'\s+', ' ', stripped)).strip(' ?.!')
    if not cleaned:
        return 'I would love to chat about opportunities to collaborate.'
    return f"I'd love to talk about {cleaned[0].lower()}{cleaned[1:]}"


def build_no_match_response(query: str, filters: Optional[QueryFilter], subject_name: str = '') -> str:
    """
    Explain which filter dimensions found nothing and suggest contact.

    Args:
        query: Raw user query
        filters: Filter that matched nothing
        subject_name: Name of the person the knowledge base describes

    Returns:
        Response text ending with a contact directive
    """
    parts = []
    if filters and filters.type:
        parts.append(f"{' or '.join(KIND_LABELS.get(kind, kind) for kind in filters.type)} work")
    if filters and filters.skills:
        parts.append(f"that uses {', '.join(filters.skills)}")
    if filters and filters.company:
        parts.append(f"for {', '.join(filters.company)}")
    if filters and filters.year:
        parts.append(f"from {', '.join(str(y) for y in filters.year)}")
    if filters and filters.title_match and not parts:
        parts.append(f'called "{filters.title_match}"')

    descriptor = ' '.join(parts) if parts else 'anything in that area'
    who = subject_name or 'The knowledge base'
    verb = "hasn't shared" if subject_name else "doesn't include"
    draft = build_contact_draft(query, subject_name)
    return (f'{who} {verb} {descriptor} yet, so I teed up contact info if you want to reach out directly.\n\n'
            f"{contact_directive('insufficient_context', draft)}")


def clarification_label(item: KnowledgeItem) -> str:
    return get_display_name(item)


def build_clarification_prompt(query: str, candidates: Sequence[KnowledgeItem]) -> str:
    """
    Ask the user to pick one of several items that matched a specific-item lookup.

    Args:
        query: Raw user query
        candidates: Matching items, best first

    Returns:
        Numbered list of up to five candidates
    """
    lines = []
    for index, item in enumerate(candidates[:MAX_CLARIFICATION_OPTIONS], start=1):
        year = extract_primary_year(item)
        year_part = f' ({year})' if year else ''
        lines.append(f'{index}. {clarification_label(item)}{year_part} - {item.kind}')

    return (f'I found multiple matches for "{query}". Which one do you want to dive into?\n'
            + '\n'.join(lines)
            + '\n\nReply with the number or title so I can focus on the right work.')


def build_no_context_response(subject_name: str = '') -> str:
    """Fallback when retrieval succeeded but no answer could be generated."""
    who = subject_name or 'The knowledge base'
    verb = "hasn't shared" if subject_name else "doesn't cover"
    return (f'{who} {verb} anything about that yet. Here are some ways to explore what is available:\n\n'
            '**Quick Actions:** Use the buttons below to see projects, experience, and more.\n\n'
            '**Search:** You can also ask a new question to explore different topics.')


def build_contact_response(query: str, subject_name: str = '') -> str:
    """Reply for contact intent: a short preface plus the contact directive."""
    who = subject_name or 'them'
    draft = build_contact_draft(query, subject_name)
    return f"Here's how to reach {who}. I drafted a message you can send.\n\n{contact_directive('contact_request', draft)}"


@dataclass
class AutoContactPlan:
    """Contact suggestion appended to a generated answer."""
    reason: str
    draft: str
    preface: str

    def render(self) -> str:
        return f'\n\n{self.preface}\n\n{contact_directive(self.reason, self.draft)}'


def plan_auto_contact(query: str, intent: str, subject_name: str = '') -> Optional[AutoContactPlan]:
    """
    Decide whether a question is better answered by the subject directly.

    Args:
        query: Raw user query
        intent: Classified intent
        subject_name: Name of the person the knowledge base describes

    Returns:
        AutoContactPlan, or None when the knowledge base should answer on its own
    """
    if intent == 'contact':
        return None

    lower = query.lower()
    draft = build_contact_draft(query, subject_name)
    who = subject_name or 'They'

    if re.search(r'\b(future|upcoming|next|later)\b.*\bplans?\b|\broadmap\b', lower):
        return AutoContactPlan('insufficient_context', draft,
                               f"{who} hasn't shared future plans publicly yet, so I teed up a note you can send directly.")
    if re.search(r'\b(thoughts?|opinion|stance|favorite|favourite)\b', lower):
        return AutoContactPlan('insufficient_context', draft,
                               f"{who} hasn't published opinions on that, so I prepared a draft if you'd like to ask.")
    if re.search(r'\b(collaborate|partner|hire|consult|speaking|speaker|panel|work with|work together)\b', lower):
        return AutoContactPlan('more_detail', draft, 'I can connect you two directly so you can discuss the opportunity.')
    if re.search(r'\bavailability\b|\bavailable\b|\bwork authorization\b|\bvisa\b|\bwhere\b.*\bbased\b', lower):
        return AutoContactPlan('more_detail', draft,
                               "If you'd like to confirm details or start a conversation, I queued up a quick message.")
    return None
