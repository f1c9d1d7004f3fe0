"""
Short display labels for quick actions and clarification lists.
"""

import re
from typing import Optional, Sequence

from ..models.core import Bio, Course, Experience, KnowledgeItem, Skill, Writing, get_display_name

ACRONYMS = {
    'nlp', 'rag', 'aws', 'api', 'ci_cd', 'ai', 'ml', 'cv', 'ui', 'ux', 'html', 'css', 'sql', 'nosql', 'rest', 'grpc',
    'json', 'xml', 'http', 'tcp', 'udp', 'ssh', 'tls', 'ssl', 'gpu', 'cpu'
}

SPECIAL_SKILL_NAMES = {
    'csharp': 'C#',
    'c_lang': 'C',
    'r_lang': 'R',
    'dotnet': '.NET',
    'nextjs': 'Next.js',
    'nodejs': 'Node.js',
    'opencv': 'OpenCV',
    'pytorch': 'PyTorch',
    'scikit_learn': 'Scikit-Learn',
    'openai_api': 'OpenAI API',
    'tailwind_css': 'Tailwind CSS',
    'power_bi': 'Power BI',
    'sentence_transformers': 'Sentence Transformers',
}

_ROLE_TYPES = (
    (re.compile(r'software.*engineer', re.I), 'SWE'),
    (re.compile(r'data.*scien', re.I), 'Data Science'),
    (re.compile(r'(ios|mobile).*dev', re.I), 'iOS Dev'),
    (re.compile(r'frontend', re.I), 'Frontend'),
    (re.compile(r'backend', re.I), 'Backend'),
    (re.compile(r'developer', re.I), 'Dev'),
    (re.compile(r'engineer', re.I), 'Engineer'),
    (re.compile(r'product', re.I), 'Product'),
    (re.compile(r'design', re.I), 'Design'),
)

_COURSE_CODE = re.compile(r'^([A-Z]{2,5}\s+\d{3,4})')
_COURSE_PREFIX = re.compile(r'^(Introduction to|Advanced Topics in|Intro to)\s+', re.I)


def format_skill_id(skill_id: str) -> str:
    """Readable name for a skill id ('machine_learning' -> 'Machine Learning', 'nlp' -> 'NLP')."""
    if skill_id in SPECIAL_SKILL_NAMES:
        return SPECIAL_SKILL_NAMES[skill_id]
    if skill_id in ACRONYMS:
        return skill_id.upper()

    parts = [part for part in skill_id.split('_') if part]
    return ' '.join(part.upper() if part in ACRONYMS else part[:1].upper() + part[1:] for part in parts)


def get_short_role_type(role: str) -> str:
    """Abbreviate a role title ('Software Engineering Intern' -> 'SWE')."""
    for pattern, label in _ROLE_TYPES:
        if pattern.search(role):
            return label
    words = [w for w in re.split(r'[\s\-()]+', role) if len(w) > 2]
    return ' '.join(words[:2])


def get_short_experience_label(company: str, role: str, aliases: Optional[Sequence[str]] = None) -> str:
    """'Company (Role Type)', preferring a short alias over a long company name."""
    short_company = company
    short_alias = next((alias for alias in aliases or () if 0 < len(alias) <= 15), None)
    if short_alias:
        short_company = short_alias
    elif len(company) > 20:
        short_company = re.split(r'[\s\-]', company)[0]
    return f'{short_company} ({get_short_role_type(role)})'


def get_short_class_name(title: str) -> str:
    """Course code when present ('COMP 646'), else the first few words up to 25 characters."""
    match = _COURSE_CODE.match(title)
    if match:
        return match.group(1)

    words = _COURSE_PREFIX.sub('', title).strip().split()
    if not words:
        return title
    short_name = words[0]
    for word in words[1:3]:
        candidate = f'{short_name} {word}'
        if len(candidate) > 25:
            break
        short_name = candidate
    return short_name


def get_short_label(item: KnowledgeItem, subject_name: str = '') -> str:
    """Concise label used on quick-action buttons."""
    if isinstance(item, Writing):
        return item.short_name or item.title or item.id
    if isinstance(item, Course):
        return get_short_class_name(item.title) if item.title else item.id
    if isinstance(item, Bio):
        return f"{subject_name}'s Profile" if subject_name else 'Profile'
    if isinstance(item, Skill):
        return item.name or format_skill_id(item.id)
    if isinstance(item, Experience) and item.role and item.company:
        return get_short_experience_label(item.company, item.role, item.aliases)
    return get_display_name(item)
