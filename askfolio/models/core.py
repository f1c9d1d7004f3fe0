"""
Core data models for the knowledge base.

Every knowledge item is a frozen dataclass whose ``kind`` class attribute is the
discriminator. Code outside this module reads kind-specific fields through the
accessor functions at the bottom of the file instead of checking types.
"""

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type

from ..utils.temporal_utils import parse_year

KINDS = ('project', 'experience', 'class', 'writing', 'story', 'value', 'interest', 'education', 'bio', 'skill')


@dataclass(frozen=True)
class DateRange:
    """Start/end dates as 'YYYY', 'YYYY-MM' or 'YYYY-MM-DD' strings."""
    start: str
    end: Optional[str] = None  # None means ongoing


@dataclass(frozen=True)
class KnowledgeItem:
    """Base class for every knowledge base record."""
    kind: ClassVar[str] = ''

    id: str


@dataclass(frozen=True)
class Project(KnowledgeItem):
    kind: ClassVar[str] = 'project'

    title: str = ''
    summary: str = ''
    specifics: Tuple[str, ...] = ()
    skills: Tuple[str, ...] = ()  # Skill ids
    tags: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    dates: Optional[DateRange] = None
    architecture: str = ''
    tech_stack: Tuple[str, ...] = ()
    links: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)  # github, demo, ...


@dataclass(frozen=True)
class Experience(KnowledgeItem):
    kind: ClassVar[str] = 'experience'

    company: str = ''
    role: str = ''
    location: str = ''
    summary: str = ''
    specifics: Tuple[str, ...] = ()
    skills: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    dates: Optional[DateRange] = None
    links: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class Course(KnowledgeItem):
    kind: ClassVar[str] = 'class'

    title: str = ''
    institution: str = ''
    term: str = ''  # e.g. 'Fall 2023'
    professor: str = ''
    summary: str = ''
    specifics: Tuple[str, ...] = ()
    skills: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    links: Dict[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class Writing(KnowledgeItem):
    kind: ClassVar[str] = 'writing'

    title: str = ''
    short_name: str = ''
    url: str = ''
    published_date: str = ''
    summary: str = ''
    tags: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()
    related_projects: Tuple[str, ...] = ()
    related_experiences: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Story(KnowledgeItem):
    kind: ClassVar[str] = 'story'

    title: str = ''
    text: str = ''
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Value(KnowledgeItem):
    kind: ClassVar[str] = 'value'

    value: str = ''
    why: str = ''


@dataclass(frozen=True)
class Interest(KnowledgeItem):
    kind: ClassVar[str] = 'interest'

    interest: str = ''
    why: str = ''


@dataclass(frozen=True)
class Education(KnowledgeItem):
    kind: ClassVar[str] = 'education'

    school: str = ''
    degree: str = ''
    gpa: str = ''
    expected_grad: str = ''


@dataclass(frozen=True)
class Bio(KnowledgeItem):
    kind: ClassVar[str] = 'bio'

    name: str = ''
    headline: str = ''
    bio: str = ''
    location: str = ''
    availability: str = ''
    work_authorization: str = ''
    languages: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Skill(KnowledgeItem):
    kind: ClassVar[str] = 'skill'

    name: str = ''
    skill_type: str = ''  # language, framework, tool, ...
    description: str = ''
    aliases: Tuple[str, ...] = ()
    evidence: Tuple[str, ...] = ()  # Ids of items that demonstrate the skill


@dataclass(frozen=True)
class ImportanceRanking:
    """Offline importance score for one item."""
    id: str
    kind: str
    score: float  # 0..100


ITEM_CLASSES: Dict[str, Type[KnowledgeItem]] = {
    cls.kind: cls for cls in (Project, Experience, Course, Writing, Story, Value, Interest, Education, Bio, Skill)
}


def item_from_dict(data: Dict[str, Any]) -> KnowledgeItem:
    """Build a knowledge item from its JSON record.

    Lists become tuples, ``dates`` becomes a DateRange and unknown keys are
    ignored. Skill evidence may be given as ids or as ``{"id": ...}`` objects.

    Args:
        data: Record with at least ``id`` and ``kind``

    Returns:
        The matching KnowledgeItem subclass instance

    Raises:
        ValueError: If the kind is unknown or the id is missing
    """
    kind = data.get('kind')
    if kind == 'blog':
        kind = 'writing'
    cls = ITEM_CLASSES.get(kind)
    if cls is None:
        raise ValueError(f'Unknown knowledge item kind: {kind!r}')
    if not data.get('id'):
        raise ValueError(f'Knowledge item of kind {kind!r} has no id')

    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in data or data[f.name] is None:
            continue
        value = data[f.name]
        if f.name == 'dates':
            value = DateRange(start=str(value.get('start', '')), end=value.get('end')) if isinstance(value, dict) else None
        elif f.name == 'evidence':
            value = tuple(e['id'] if isinstance(e, dict) else str(e) for e in value)
        elif isinstance(value, list):
            value = tuple(value)
        kwargs[f.name] = value
    return cls(**kwargs)


def get_display_name(item: KnowledgeItem) -> str:
    """Full human-readable label for an item."""
    if isinstance(item, Experience):
        if item.role and item.company:
            return f'{item.role} at {item.company}'
        return item.role or item.company or item.id
    for attr in ('title', 'name', 'school', 'value', 'interest'):
        value = getattr(item, attr, '')
        if value:
            return value
    return item.id


def get_date_range(item: KnowledgeItem) -> Optional[DateRange]:
    """Dated span of an item, if it has one."""
    if isinstance(item, (Project, Experience)):
        return item.dates
    if isinstance(item, Writing) and item.published_date:
        return DateRange(start=item.published_date, end=item.published_date)
    return None


def get_term(item: KnowledgeItem) -> str:
    return item.term if isinstance(item, Course) else ''


def get_skills(item: KnowledgeItem) -> Tuple[str, ...]:
    return getattr(item, 'skills', ())


def get_tags(item: KnowledgeItem) -> Tuple[str, ...]:
    return getattr(item, 'tags', ())


def get_aliases(item: KnowledgeItem) -> Tuple[str, ...]:
    return getattr(item, 'aliases', ())


def get_summary(item: KnowledgeItem) -> str:
    """Main descriptive text of an item."""
    for attr in ('summary', 'text', 'why', 'bio', 'description'):
        value = getattr(item, attr, '')
        if value:
            return value
    if isinstance(item, Education):
        return ' '.join(part for part in (item.degree, item.school) if part)
    return ''


def get_specifics(item: KnowledgeItem) -> Tuple[str, ...]:
    return getattr(item, 'specifics', ())


def get_links(item: KnowledgeItem) -> Dict[str, str]:
    return getattr(item, 'links', {}) or {}


def extract_primary_year(item: KnowledgeItem) -> Optional[int]:
    """Year an item is best known by: end (or start) of its dates, else its term year."""
    dates = get_date_range(item)
    if dates:
        return parse_year(dates.end or dates.start)
    term_year = parse_year(get_term(item))
    if term_year:
        return term_year
    if isinstance(item, Education):
        return parse_year(item.expected_grad)
    return None


def get_searchable_text(item: KnowledgeItem) -> str:
    """Document text used to embed an item offline."""
    parts: List[str] = [f'[{item.kind.upper()}] {get_display_name(item)}']
    summary = get_summary(item)
    if summary:
        parts.append(summary)
    parts.extend(get_specifics(item))
    architecture = getattr(item, 'architecture', '')
    if architecture:
        parts.append(architecture)
    skills = get_skills(item)
    if skills:
        parts.append('Skills: ' + ', '.join(skills))
    tags = get_tags(item)
    if tags:
        parts.append('Tags: ' + ', '.join(tags))
    aliases = get_aliases(item)
    if aliases:
        parts.append('Also known as: ' + ', '.join(aliases))
    return '\n'.join(parts)
