"""
Action Planner: choose a small, non-redundant set of follow-up actions for an answer.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from ..models.core import (Course, Education, Experience, Interest, KnowledgeItem, Project, Skill, Story, Value, Writing,
                           get_display_name, get_links, get_skills)
from ..models.query import QueryFilter
from ..models.response import (ConversationState, CustomInputAction, DropdownAction, DropdownOption, LinkAction, MessageAction,
                               QueryAction, QuickAction)
from ..utils.config import PlannerConfig, config
from ..utils.display_names import format_skill_id, get_short_label
from ..utils.logging_config import get_logger
from .record_store import RecordStore
from .responses import build_contact_draft, has_contact_directive

logger = get_logger(__name__)

MAX_ITEM_ACTIONS = 3
MAX_LIST_ACTIONS = 2
MAX_DROPDOWN_OPTIONS = 8
FOLLOW_UP_LABEL = 'Ask a follow up...'


@dataclass
class ActionContext:
    """Everything the planner looks at for one answer."""
    query: str
    intent: str
    items: List[KnowledgeItem]  # Ranked result items, best first
    answer_text: str = ''
    state: ConversationState = field(default_factory=ConversationState)


def _join_skills(skill_labels: Sequence[str]) -> str:
    return ' and '.join(skill_labels)


class ActionPlanner:
    """Rule-based quick-action planner."""

    def __init__(self, store: RecordStore, planner_config: Optional[PlannerConfig] = None, subject_name: Optional[str] = None):
        """
        Initialize the action planner.

        Args:
            store: Record store used for item, importance and skill name lookups
            planner_config: PlannerConfig with depth ceilings and contact defaults
            subject_name: Person the knowledge base describes
        """
        self.store = store
        self.config = planner_config or config.planner
        self.subject_name = subject_name or config.knowledge_base.subject_name
        self._skill_names = store.skill_names()

        contact = store.load_contact()
        self.linkedin_url = contact.get('linkedin') or self.config.linkedin_url
        self.github_url = contact.get('github') or self.config.github_url
        self.email = contact.get('email') or self.config.email

        self._templates: Dict[str, Tuple[Tuple[int, Callable[[KnowledgeItem], Optional[QuickAction]]], ...]] = {
            'project': ((9, self._github_link), (9, self._demo_link), (8, self._skills_dropdown), (7, self._related_projects)),
            'experience': ((8, self._company_link), (8, self._skills_dropdown), (7, self._other_work_at_company),
                           (6, self._similar_technical_work)),
            'class': ((8, self._skills_dropdown), (7, self._work_using_class_skills), (6, self._related_classes)),
            'writing': ((10, self._article_link), (7, self._related_work)),
            'skill': ((9, self._evidence_dropdown), (7, self._work_using_skill)),
            'story': ((7, self._more_background), ),
            'value': ((7, self._related_stories), ),
            'interest': ((7, self._interest_projects), ),
            'education': ((7, self._classes_taken), ),
        }

    def plan(self, context: ActionContext) -> List[QuickAction]:
        """
        Plan quick actions for an answer.

        Rules, in order: a contact directive in the answer yields exactly the
        contact actions; below the specific-action depth ceiling a single item
        gets up to three item actions and a list gets up to two list actions;
        below the follow-up ceiling a free-text follow-up is offered. Actions
        that would surface a visited item are dropped. The result is never
        empty and never longer than ``max_actions``.

        Args:
            context: ActionContext for the answer

        Returns:
            Between one and ``max_actions`` actions
        """
        if has_contact_directive(context.answer_text):
            logger.debug('Answer carries a contact directive, planning contact actions only')
            return self._contact_actions(context.query)[:self.config.max_actions]

        depth = context.state.depth
        actions: List[QuickAction] = []
        if depth < self.config.specific_action_max_depth:
            if len(context.items) == 1:
                actions.extend(self._item_actions(context.items[0]))
            elif context.items:
                actions.extend(self._list_actions(context.items, context.state.visited_item_ids))

        actions = self._drop_visited(actions, context.state.visited_item_ids)

        follow_up = CustomInputAction(label=FOLLOW_UP_LABEL) if depth < self.config.follow_up_max_depth else None
        count = len(actions) + (1 if follow_up else 0)
        if context.intent == 'personal' or (depth >= self.config.specific_action_max_depth and count < 3) or count == 0:
            actions.append(self._message_action(context.query))

        if follow_up:
            actions = actions[:self.config.max_actions - 1] + [follow_up]
        else:
            actions = actions[:self.config.max_actions]

        logger.debug(f'Planned {len(actions)} quick actions at depth {depth}: {[a.label for a in actions]}')
        return actions

    def _contact_actions(self, query: str) -> List[QuickAction]:
        return [
            LinkAction(label='LinkedIn', url=self.linkedin_url, link_type='linkedin'),
            LinkAction(label='GitHub', url=self.github_url, link_type='github'),
            self._message_action(query),
            LinkAction(label='Email', url=f'mailto:{self.email}', link_type='email'),
        ]

    def _message_action(self, query: str) -> MessageAction:
        return MessageAction(label=f'Message {self.subject_name}', draft=build_contact_draft(query, self.subject_name))

    def _item_actions(self, item: KnowledgeItem) -> List[QuickAction]:
        """Highest-priority applicable templates for the item's kind."""
        candidates = []
        for order, (priority, build) in enumerate(self._templates.get(item.kind, ())):
            action = build(item)
            if action is not None:
                candidates.append((-priority, order, action))
        candidates.sort(key=lambda c: (c[0], c[1]))
        return [action for _, _, action in candidates[:MAX_ITEM_ACTIONS]]

    def _list_actions(self, items: Sequence[KnowledgeItem], visited: FrozenSet[str]) -> List[QuickAction]:
        actions: List[QuickAction] = []

        unvisited = [item for item in items if item.id not in visited]
        if unvisited:
            top = max(unvisited, key=lambda i: self.store.get_importance(i.id))
            actions.append(
                QueryAction(label=f'Dive into {get_short_label(top, self.subject_name)}',
                            query=f'Tell me about {get_display_name(top)}',
                            intent='specific_item',
                            filters=QueryFilter(title_match=top.id)))

        skill_filter = self._skill_filter_dropdown(items)
        if skill_filter is not None:
            actions.append(skill_filter)

        return actions[:MAX_LIST_ACTIONS]

    def _skill_filter_dropdown(self, items: Sequence[KnowledgeItem]) -> Optional[DropdownAction]:
        """Narrow a listing by one of the skills its items share."""
        if all(isinstance(item, Skill) for item in items):
            options = [self._item_option(item) for item in items]
            options.sort(key=lambda o: o.importance, reverse=True)
            return DropdownAction(label='Pick a skill', options=options[:MAX_DROPDOWN_OPTIONS])

        kinds = list(dict.fromkeys(item.kind for item in items if get_skills(item)))
        skill_ids = list(dict.fromkeys(skill for item in items for skill in get_skills(item)))
        if not skill_ids:
            return None

        options = []
        for skill_id in skill_ids:
            label = self._skill_label(skill_id)
            options.append(
                DropdownOption(id=skill_id,
                               label=label,
                               importance=self.store.get_importance(skill_id),
                               query=f'Show work that uses {label}',
                               intent='filter_query',
                               filters=QueryFilter(type=kinds, skills=[skill_id], show_all=True)))
        options.sort(key=lambda o: o.importance, reverse=True)
        return DropdownAction(label='Filter by skill', options=options[:MAX_DROPDOWN_OPTIONS])

    def _drop_visited(self, actions: Sequence[QuickAction], visited: FrozenSet[str]) -> List[QuickAction]:
        if not visited:
            return list(actions)

        kept: List[QuickAction] = []
        for action in actions:
            if isinstance(action, DropdownAction):
                options = [option for option in action.options if option.id not in visited]
                if options:
                    kept.append(DropdownAction(label=action.label, options=options))
                continue
            if action.referenced_ids() & visited:
                continue
            kept.append(action)
        return kept

    def _skill_label(self, skill_id: str) -> str:
        return self._skill_names.get(skill_id) or format_skill_id(skill_id)

    def _item_option(self, item: KnowledgeItem) -> DropdownOption:
        return DropdownOption(id=item.id,
                              label=get_short_label(item, self.subject_name),
                              importance=self.store.get_importance(item.id),
                              query=f'Tell me about {get_display_name(item)}',
                              intent='specific_item',
                              filters=QueryFilter(title_match=item.id))

    def _skill_options(self, skill_ids: Sequence[str]) -> List[DropdownOption]:
        options = []
        for skill_id in skill_ids:
            label = self._skill_label(skill_id)
            options.append(
                DropdownOption(id=skill_id,
                               label=label,
                               importance=self.store.get_importance(skill_id),
                               query=f"Tell me about {self.subject_name}'s experience with {label}",
                               intent='specific_item',
                               filters=QueryFilter(title_match=skill_id)))
        options.sort(key=lambda o: o.importance, reverse=True)
        return options[:MAX_DROPDOWN_OPTIONS]

    # Item templates

    def _github_link(self, item: KnowledgeItem) -> Optional[QuickAction]:
        url = get_links(item).get('github')
        return LinkAction(label='GitHub', url=url, link_type='github') if url else None

    def _demo_link(self, item: KnowledgeItem) -> Optional[QuickAction]:
        url = get_links(item).get('demo')
        return LinkAction(label='Live Demo', url=url, link_type='demo') if url else None

    def _company_link(self, item: KnowledgeItem) -> Optional[QuickAction]:
        url = get_links(item).get('company')
        return LinkAction(label='Company Website', url=url, link_type='company') if url else None

    def _article_link(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Writing) or not item.url:
            return None
        return LinkAction(label='Read Article', url=item.url, link_type='external')

    def _skills_dropdown(self, item: KnowledgeItem) -> Optional[QuickAction]:
        skills = get_skills(item)
        if not skills:
            return None
        return DropdownAction(label='Skills', options=self._skill_options(skills))

    def _evidence_dropdown(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Skill):
            return None
        evidence = [self.store.get_item(evidence_id) for evidence_id in item.evidence]
        options = [self._item_option(e) for e in evidence if e is not None]
        if not options:
            return None
        options.sort(key=lambda o: o.importance, reverse=True)
        return DropdownAction(label='See evidence', options=options[:MAX_DROPDOWN_OPTIONS])

    def _related_projects(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Project) or not item.skills:
            return None
        top_skills = list(item.skills[:2])
        skills_list = _join_skills([self._skill_label(s) for s in top_skills])
        return QueryAction(label='Related projects',
                           query=f'What other projects use {skills_list}?',
                           intent='filter_query',
                           filters=QueryFilter(type=['project'], skills=top_skills))

    def _other_work_at_company(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Experience) or not item.company:
            return None
        return QueryAction(label=f'Other work at {item.company}',
                           query=f'What other roles did {self.subject_name} have at {item.company}?',
                           intent='filter_query',
                           filters=QueryFilter(type=['experience'], company=[item.company]))

    def _similar_technical_work(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Experience) or not item.skills:
            return None
        top_skills = list(item.skills[:2])
        skills_list = _join_skills([self._skill_label(s) for s in top_skills])
        return QueryAction(label='Similar technical work',
                           query=f'What other work used {skills_list}?',
                           intent='filter_query',
                           filters=QueryFilter(type=['experience', 'project'], skills=top_skills))

    def _work_using_class_skills(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Course) or not item.skills:
            return None
        top_skills = list(item.skills[:3])
        skills_list = ', '.join(self._skill_label(s) for s in top_skills)
        return QueryAction(label='Work using these skills',
                           query=f'Which projects and roles used {skills_list}?',
                           intent='filter_query',
                           filters=QueryFilter(type=['project', 'experience'], skills=top_skills))

    def _related_classes(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Course) or not item.skills:
            return None
        top_skills = list(item.skills[:2])
        skills_list = _join_skills([self._skill_label(s) for s in top_skills])
        return QueryAction(label='Related classes',
                           query=f'What other classes covered {skills_list}?',
                           intent='filter_query',
                           filters=QueryFilter(type=['class'], skills=top_skills))

    def _related_work(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Writing):
            return None
        related = list(item.related_experiences) + list(item.related_projects)
        if not related:
            return None
        target = self.store.get_item(related[0])
        name = get_display_name(target) if target else related[0]
        return QueryAction(label='Related work',
                           query=f'Tell me about {name}',
                           intent='specific_item',
                           filters=QueryFilter(title_match=related[0]))

    def _work_using_skill(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Skill):
            return None
        label = item.name or format_skill_id(item.id)
        return QueryAction(label=f'Work using {label}',
                           query=f'Show work that uses {label}',
                           intent='filter_query',
                           filters=QueryFilter(type=['project', 'experience'], skills=[item.id], show_all=True))

    def _more_background(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Story):
            return None
        return QueryAction(label='More background',
                           query=f"Tell me more about {self.subject_name}'s background",
                           intent='personal',
                           filters=QueryFilter(type=['story', 'value', 'interest']))

    def _related_stories(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Value):
            return None
        return QueryAction(label='Related stories',
                           query=f'What stories show how {self.subject_name} lives this out?',
                           intent='personal',
                           filters=QueryFilter(type=['story']))

    def _interest_projects(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Interest):
            return None
        return QueryAction(label='Related projects',
                           query=f'What projects connect to {item.interest or "this interest"}?',
                           intent='filter_query',
                           filters=QueryFilter(type=['project']))

    def _classes_taken(self, item: KnowledgeItem) -> Optional[QuickAction]:
        if not isinstance(item, Education):
            return None
        school = item.school or 'school'
        return QueryAction(label='Classes taken',
                           query=f'What classes did {self.subject_name} take at {school}?',
                           intent='filter_query',
                           filters=QueryFilter(type=['class'], show_all=True))
