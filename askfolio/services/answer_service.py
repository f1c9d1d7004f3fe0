"""
Answer Service: the question-answering pipeline from raw query to streamed
answer text and follow-up actions.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Sequence

from ..models.core import KnowledgeItem
from ..models.query import AliasEntry, QueryFilter, ScoredItem
from ..models.response import AnswerRequest, AnswerResponse, ConversationState, EvidenceSignals, QuickAction
from ..utils.bedrock_llm import BedrockLLM, BedrockLLMError
from ..utils.config import config
from ..utils.logging_config import get_logger
from ..utils.temporal_utils import TemporalHints, derive_temporal_hints, today
from .action_planner import ActionContext, ActionPlanner
from .alias_resolver import build_alias_index, match_aliases
from .answer_cache import AnswerCache
from .evidence_assembler import build_evidence_packs, compute_signals, format_context, format_context_index, needs_contact_fallback
from .filter_engine import (apply_filters, apply_temporal_hints_to_filters, derive_filter_defaults, detect_profile_filter,
                            is_comparison_query, merge_filters, relax_filters, sort_items_for_filter)
from .guardrails import build_context_entities, build_guardrail_response, detect_prompt_injection, is_clearly_off_topic
from .intent_classifier import IntentClassifier, is_evaluative_query
from .record_store import RecordStore, get_record_store
from .reranker import (apply_importance_boost, apply_technical_boost, apply_temporal_boost, build_diversity_plan, diversify_by_type,
                       expand_for_comparison)
from .responses import (AutoContactPlan, build_clarification_prompt, build_contact_draft, build_contact_response,
                        build_no_context_response, build_no_match_response, has_contact_directive, plan_auto_contact)
from .vector_retriever import VectorRetriever

logger = get_logger(__name__)

FILTER_INTENTS = ('filter_query', 'specific_item')


@dataclass
class PreparedAnswer:
    """Outcome of the understanding and retrieval stages for one request."""
    intent: str
    filters: Optional[QueryFilter] = None
    results: List[ScoredItem] = field(default_factory=list)
    reply: Optional[str] = None  # Canned text that replaces generation
    items: List[KnowledgeItem] = field(default_factory=list)  # Items the planner sees when ``reply`` is set
    signals: Optional[EvidenceSignals] = None
    context: str = ''


class AnswerService:
    """Orchestrates classification, filtering, retrieval, reranking, generation and action planning."""

    def __init__(self,
                 store: Optional[RecordStore] = None,
                 classifier: Optional[IntentClassifier] = None,
                 retriever: Optional[VectorRetriever] = None,
                 llm: Optional[BedrockLLM] = None,
                 planner: Optional[ActionPlanner] = None,
                 cache: Optional[AnswerCache] = None,
                 subject_name: Optional[str] = None):
        """
        Initialize the answer service. Collaborators not supplied are built from config.

        Args:
            store: Record store (process-wide store if None)
            classifier: Intent classifier
            retriever: Vector retriever over the store's embeddings
            llm: Bedrock client for answer generation
            planner: Quick-action planner
            cache: Answer cache
            subject_name: Person the knowledge base describes
        """
        self.store = store or get_record_store()
        self.subject_name = subject_name or config.knowledge_base.subject_name
        self.retrieval_config = config.retrieval
        self.classifier = classifier or IntentClassifier(subject_name=self.subject_name)
        self.retriever = retriever or VectorRetriever(self.store.load_embeddings())
        self.llm = llm or BedrockLLM(config.bedrock_llm)
        self.planner = planner or ActionPlanner(self.store, subject_name=self.subject_name)
        self.cache = cache or AnswerCache(config.cache)

        self._items = self.store.load_items()
        self._alias_index = build_alias_index(self._items)
        self._entities = build_context_entities(self._items)
        self._skill_names = self.store.skill_names()

        logger.info(f'Initialized AnswerService over {len(self._items)} items')

    def answer(self, request: AnswerRequest, current: Optional[date] = None) -> AnswerResponse:
        """
        Answer a question and collect the streamed output.

        Args:
            request: AnswerRequest
            current: Reference date (defaults to today)

        Returns:
            AnswerResponse; unexpected failures produce the no-context fallback text
        """
        chunks: List[str] = []
        done: Dict[str, Any] = {}
        for event in self.stream(request, current):
            if event.get('done'):
                done = event
            else:
                chunks.append(event['text'])

        return AnswerResponse(text=''.join(chunks),
                              quick_actions=done.get('quick_actions', []),
                              cached=done.get('cached', False),
                              intent=done.get('intent', 'general'),
                              depth=done.get('depth', request.depth + 1))

    def stream(self, request: AnswerRequest, current: Optional[date] = None) -> Iterator[Dict[str, Any]]:
        """
        Answer a question as a stream of events.

        Yields ``{'text': chunk}`` events followed by exactly one
        ``{'done': True, 'quick_actions': [...], 'intent': ..., 'cached': ..., 'depth': ...}``
        event. Failures degrade to fallback text; nothing is raised to the caller.

        Args:
            request: AnswerRequest
            current: Reference date (defaults to today)

        Yields:
            Event dictionaries
        """
        chunks: List[str] = []
        try:
            for event in self._stream(request, today(current)):
                if not event.get('done'):
                    chunks.append(event['text'])
                yield event
        except Exception as e:
            logger.error(f'Unexpected error while answering {request.query!r}: {e}')
            text = ''.join(chunks)
            if not text:
                text = build_no_context_response(self.subject_name)
                yield {'text': text}
            yield self._done(request, request.conversation_state(), 'general', [], text, cached=False)

    def _stream(self, request: AnswerRequest, current: date) -> Iterator[Dict[str, Any]]:
        state = request.conversation_state()
        prepared = self.prepare(request, current)

        if prepared.reply is not None:
            yield {'text': prepared.reply}
            yield self._done(request, state, prepared.intent, prepared.items, prepared.reply, cached=False)
            return

        cached = self.cache.get(request.query, prepared.intent, prepared.filters)
        if cached is not None:
            items = [item for item in (self.store.get_item(i) for i in cached.item_ids) if item is not None]
            yield {'text': cached.text}
            yield self._done(request, state, prepared.intent, items, cached.text, cached=True)
            return

        chunks: List[str] = []
        generated = True
        try:
            for delta in self._generate(request, prepared, current):
                chunks.append(delta)
                yield {'text': delta}
        except BedrockLLMError as e:
            generated = False
            if chunks:
                logger.error(f'Answer stream interrupted after {len(chunks)} chunks: {e}')
            else:
                logger.warning(f'Answer generation failed, using fallback text: {e}')
                fallback = build_no_context_response(self.subject_name)
                chunks.append(fallback)
                yield {'text': fallback}

        text = ''.join(chunks)
        if generated:
            contact = self._auto_contact(request.query, prepared, text)
            if contact is not None:
                suffix = contact.render()
                chunks.append(suffix)
                text += suffix
                yield {'text': suffix}

        items = [r.item for r in prepared.results]
        if generated:
            self.cache.set(request.query, prepared.intent, prepared.filters, text, [item.id for item in items])
        yield self._done(request, state, prepared.intent, items, text, cached=False)

    def prepare(self, request: AnswerRequest, current: Optional[date] = None) -> PreparedAnswer:
        """
        Run every stage before generation: guardrails, classification, filtering,
        retrieval, reranking and evidence assembly.

        Args:
            request: AnswerRequest
            current: Reference date (defaults to today)

        Returns:
            PreparedAnswer with either a canned reply or ranked results and their context
        """
        query = request.query.strip()
        skip = request.is_skip_mode
        if not query:
            return PreparedAnswer(intent='general', reply=build_no_context_response(self.subject_name))

        if not skip and (detect_prompt_injection(query) or is_clearly_off_topic(query, self._entities)):
            logger.info(f'Guardrail triggered for query {query!r}')
            return PreparedAnswer(intent='general', reply=build_guardrail_response(self.subject_name))

        classification = self.classifier.classify(query, intent=request.intent, filters=request.filters, current=current)
        intent = classification.intent
        if not classification.about_subject:
            logger.info(f'Query is not about {self.subject_name}, replying with guardrail')
            return PreparedAnswer(intent=intent, reply=build_guardrail_response(self.subject_name))
        if intent == 'contact':
            return PreparedAnswer(intent=intent, reply=build_contact_response(query, self.subject_name))

        alias_matches = match_aliases(query, self._alias_index)
        hints = derive_temporal_hints(query, current)
        filters = classification.filters

        if not skip:
            profile = detect_profile_filter(query, self.subject_name)
            if profile and intent != 'specific_item':
                logger.debug(f'Profile question detected, adding filter {profile.to_dict()}')
                filters = merge_filters(filters, profile)
            if intent in FILTER_INTENTS:
                filters = derive_filter_defaults(query, filters, alias_matches, intent)
                filters = apply_temporal_hints_to_filters(filters, hints)

        candidates = self._apply_filters(filters, current)
        if not candidates and not skip and filters is not None:
            for step, relaxed in relax_filters(filters, query):
                candidates = self._apply_filters(relaxed, current)
                if candidates:
                    logger.info(f'Relaxed filters ({step}) to {relaxed.to_dict()}: {len(candidates)} candidates')
                    filters = relaxed
                    if step == 'drop_title_match' and intent == 'specific_item':
                        intent = 'general'
                    break

        if not candidates:
            logger.info(f'No candidates for filters {filters.to_dict() if filters else None}')
            return PreparedAnswer(intent=intent, filters=filters, reply=build_no_match_response(query, filters, self.subject_name))

        show_all = bool(filters and filters.show_all)
        if intent == 'specific_item' and len(candidates) > 1 and not show_all:
            ranked = sorted(candidates, key=lambda i: self.store.get_importance(i.id), reverse=True)
            logger.info(f'Ambiguous specific item lookup, {len(candidates)} candidates')
            return PreparedAnswer(intent=intent, filters=filters, reply=build_clarification_prompt(query, ranked), items=ranked[:5])

        results = self._retrieve(query, intent, candidates, show_all)
        if not results:
            return PreparedAnswer(intent=intent, filters=filters, reply=build_no_match_response(query, filters, self.subject_name))

        results = self._rerank(query, intent, results, candidates, alias_matches, hints, show_all)
        packs = build_evidence_packs(results, self._skill_names)
        signals = compute_signals(packs, results, current)
        context = f'{format_context_index(results)}\n\n{format_context(packs)}'

        logger.debug(f'Prepared {len(results)} results for intent {intent}: {[r.item.id for r in results]}')
        return PreparedAnswer(intent=intent, filters=filters, results=results, signals=signals, context=context)

    def _apply_filters(self, filters: Optional[QueryFilter], current: date) -> List[KnowledgeItem]:
        if filters is None or not filters.has_criteria():
            return list(self._items)
        return apply_filters(self._items, filters, self._items, current)

    def _retrieve(self, query: str, intent: str, candidates: List[KnowledgeItem], show_all: bool) -> List[ScoredItem]:
        if show_all:
            top_k = len(candidates)
        elif intent == 'general':
            top_k = self.retrieval_config.general_top_k * self.retrieval_config.pool_multiplier
        else:
            top_k = self.retrieval_config.top_k

        by_id = {item.id: item for item in candidates}
        pairs = self.retriever.retrieve(query, [item.id for item in candidates], top_k)
        return [ScoredItem(item=by_id[item_id], similarity=score) for item_id, score in pairs if item_id in by_id]

    def _rerank(self, query: str, intent: str, results: List[ScoredItem], candidates: List[KnowledgeItem],
                alias_matches: Sequence[AliasEntry], hints: TemporalHints, show_all: bool) -> List[ScoredItem]:
        results = apply_temporal_boost(results, hints)
        results = apply_technical_boost(results, query)
        results = apply_importance_boost(results,
                                         self.store.get_importance,
                                         is_evaluative_query(query),
                                         self.retrieval_config.evaluative_importance_weight,
                                         self.retrieval_config.default_importance_weight)

        if intent == 'general':
            plan = build_diversity_plan(query, self.retrieval_config)
            results = diversify_by_type(results, plan.quotas, plan.total)
        if is_comparison_query(query):
            results = expand_for_comparison(query, results, candidates, alias_matches)
        if intent == 'filter_query' and show_all:
            order = {item.id: index for index, item in enumerate(sort_items_for_filter([r.item for r in results], hints))}
            results = sorted(results, key=lambda r: order[r.item.id])
        return results

    def _generate(self, request: AnswerRequest, prepared: PreparedAnswer, current: date) -> Iterator[str]:
        messages = []
        if request.previous_query and request.previous_answer:
            messages.append({'role': 'user', 'content': [{'text': request.previous_query}]})
            messages.append({'role': 'assistant', 'content': [{'text': request.previous_answer}]})
        messages.append({'role': 'user', 'content': [{'text': request.query}]})

        return self.llm.stream_response(messages=messages, system_prompt=self._build_system_prompt(prepared, current))

    def _build_system_prompt(self, prepared: PreparedAnswer, current: date) -> str:
        name = self.subject_name
        listing = 'Cover every item in the evidence, one short paragraph each.' if prepared.filters and prepared.filters.show_all \
            else 'Lead with the strongest evidence and keep the answer under 200 words.'
        return f"""
You answer questions about {name}'s work and background for visitors of {name}'s portfolio. Today is {current.isoformat()}.

Use ONLY the evidence below. Never invent projects, employers, dates, numbers or skills.
If the evidence does not answer the question, say what is known and stop.
Refer to {name} in the third person. Mention concrete metrics when the evidence has them.
{listing}

<evidence>
{prepared.context}
</evidence>"""

    def _auto_contact(self, query: str, prepared: PreparedAnswer, text: str) -> Optional[AutoContactPlan]:
        if has_contact_directive(text):
            return None
        plan = plan_auto_contact(query, prepared.intent, self.subject_name)
        if plan is not None:
            return plan
        if is_evaluative_query(query) and prepared.signals and needs_contact_fallback(prepared.signals):
            logger.debug('Thin evidence for an evaluative question, suggesting contact')
            return AutoContactPlan('more_detail', build_contact_draft(query, self.subject_name),
                                   f'{self.subject_name} can share more detail on this directly.')
        return None

    def _done(self, request: AnswerRequest, state: ConversationState, intent: str, items: List[KnowledgeItem], text: str,
              cached: bool) -> Dict[str, Any]:
        actions: List[QuickAction] = self.planner.plan(
            ActionContext(query=request.query, intent=intent, items=items, answer_text=text, state=state))
        return {'done': True, 'quick_actions': actions, 'intent': intent, 'cached': cached, 'depth': state.depth + 1}
