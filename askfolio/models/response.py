"""
Per-request models: evidence, conversation state, quick actions and the answer contract.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional

from .query import QueryFilter


@dataclass
class EvidencePack:
    """Bounded summary of one item prepared for the answer generator."""
    id: str
    kind: str
    title: str
    summary: str  # At most 300 characters
    specifics: List[str] = field(default_factory=list)  # At most 3
    dates: Optional[str] = None
    skills: List[str] = field(default_factory=list)
    metrics: List[str] = field(default_factory=list)  # At most 3
    rank: int = 0


@dataclass
class EvidenceSignals:
    """Aggregate confidence signals for an evidence set."""
    evidence_count: int
    has_metrics: bool
    freshness_months: Optional[int]
    coverage_ratio: float = 1.0
    entity_link_score: float = 1.0


@dataclass(frozen=True)
class ConversationState:
    """Caller-owned multi-turn state."""
    depth: int = 0
    previous_query: Optional[str] = None
    previous_answer: Optional[str] = None
    visited_item_ids: FrozenSet[str] = frozenset()


@dataclass
class QuickAction:
    """Base class for follow-up actions."""
    action_type: ClassVar[str] = ''

    label: str

    def referenced_ids(self) -> FrozenSet[str]:
        """Item ids this action would surface."""
        return frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.action_type, 'label': self.label}


@dataclass
class LinkAction(QuickAction):
    action_type: ClassVar[str] = 'link'

    url: str = ''
    link_type: str = 'external'  # github, linkedin, email, demo, company, external

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), 'url': self.url, 'link_type': self.link_type}


@dataclass
class QueryAction(QuickAction):
    action_type: ClassVar[str] = 'query'

    query: str = ''
    intent: str = 'general'
    filters: Optional[QueryFilter] = None

    def referenced_ids(self) -> FrozenSet[str]:
        if self.filters and self.filters.title_match:
            return frozenset([self.filters.title_match])
        return frozenset()

    def to_dict(self) -> Dict[str, Any]:
        data = {**super().to_dict(), 'query': self.query, 'intent': self.intent}
        if self.filters is not None:
            data['filters'] = self.filters.to_dict()
        return data


@dataclass
class DropdownOption:
    """One selectable entry of a dropdown, executed as a skip-mode query."""
    id: str
    label: str
    importance: float = 50.0
    query: str = ''
    intent: str = 'specific_item'
    filters: Optional[QueryFilter] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'id': self.id, 'label': self.label, 'importance': self.importance, 'query': self.query, 'intent': self.intent}
        if self.filters is not None:
            data['filters'] = self.filters.to_dict()
        return data


@dataclass
class DropdownAction(QuickAction):
    action_type: ClassVar[str] = 'dropdown'

    options: List[DropdownOption] = field(default_factory=list)

    def referenced_ids(self) -> FrozenSet[str]:
        return frozenset(option.id for option in self.options)

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), 'options': [option.to_dict() for option in self.options]}


@dataclass
class MessageAction(QuickAction):
    action_type: ClassVar[str] = 'message'

    draft: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.draft:
            data['draft'] = self.draft
        return data


@dataclass
class CustomInputAction(QuickAction):
    action_type: ClassVar[str] = 'custom_input'


@dataclass
class AnswerRequest:
    """Inbound request contract."""
    query: str
    previous_query: Optional[str] = None
    previous_answer: Optional[str] = None
    depth: int = 0
    intent: Optional[str] = None
    filters: Optional[QueryFilter] = None
    visited_item_ids: List[str] = field(default_factory=list)

    @property
    def is_skip_mode(self) -> bool:
        """A clicked quick action supplies both intent and filters."""
        return bool(self.intent) and self.filters is not None

    def conversation_state(self) -> ConversationState:
        return ConversationState(depth=max(0, self.depth),
                                 previous_query=self.previous_query,
                                 previous_answer=self.previous_answer,
                                 visited_item_ids=frozenset(self.visited_item_ids))


@dataclass
class AnswerResponse:
    """Outbound response contract."""
    text: str
    quick_actions: List[QuickAction]
    cached: bool
    intent: str
    depth: int = 1  # Depth to send with the next turn

    def to_dict(self) -> Dict[str, Any]:
        return {
            'text': self.text,
            'quick_actions': [action.to_dict() for action in self.quick_actions],
            'cached': self.cached,
            'intent': self.intent,
            'depth': self.depth,
        }
