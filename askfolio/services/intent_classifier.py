"""
Intent Classifier: deterministic pre-router with a Bedrock LLM fallback.
"""

import re
from datetime import date
from typing import Optional, Pattern, Sequence, Tuple

from ..models.query import INTENTS, IntentResult, QueryFilter
from ..utils.bedrock_llm import BedrockLLM, BedrockLLMError
from ..utils.config import config
from ..utils.json_utils import parse_json_object
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

LIST_PATTERN = re.compile(r'\b(list|show (me )?all|every|enumerate)\b', re.I)
EVALUATIVE_PATTERN = re.compile(
    r'\b(best|strongest|top|most|unique|what makes|why should|why .* hire|biggest|differen(t|ce)|vs\.?|versus)\b', re.I)

# Evaluated in order, first match wins
PRE_ROUTE_RULES: Tuple[Tuple[Pattern, str], ...] = (
    (LIST_PATTERN, 'filter_query'),
    (EVALUATIVE_PATTERN, 'general'),
)


def pre_route(query: str, rules: Sequence[Tuple[Pattern, str]] = PRE_ROUTE_RULES) -> Optional[str]:
    """
    Route common query shapes without calling the model.

    Args:
        query: Raw user query
        rules: Ordered (pattern, intent) rules

    Returns:
        The intent of the first matching rule, or None
    """
    for pattern, intent in rules:
        if pattern.search(query):
            return intent
    return None


def is_evaluative_query(query: str) -> bool:
    """Comparative or superlative language that calls for importance-weighted ranking."""
    return EVALUATIVE_PATTERN.search(query) is not None


class IntentClassifier:
    """Classify a query into an intent plus optional structured filters."""

    def __init__(self, llm: Optional[BedrockLLM] = None, subject_name: Optional[str] = None):
        """
        Initialize the intent classifier.

        Args:
            llm: Bedrock client for the structured call (built from config if None)
            subject_name: Person the knowledge base describes
        """
        self.llm = llm or BedrockLLM(config.bedrock_classifier)
        self.subject_name = subject_name or config.knowledge_base.subject_name

        logger.info('Initialized IntentClassifier')

    def classify(self,
                 query: str,
                 intent: Optional[str] = None,
                 filters: Optional[QueryFilter] = None,
                 current: Optional[date] = None) -> IntentResult:
        """
        Classify a query. Never raises.

        Args:
            query: Raw user query
            intent: Caller-supplied intent (skip mode when given with filters)
            filters: Caller-supplied filters
            current: Reference date for the model prompt

        Returns:
            IntentResult; failures degrade to general intent with no filters
        """
        if intent and filters is not None:
            logger.debug(f'Skip mode: using supplied intent {intent}')
            return IntentResult(intent=intent, filters=filters, about_subject=True)

        routed = pre_route(query)
        if routed:
            logger.debug(f'Pre-routed query to {routed}')
            return IntentResult(intent=routed, filters=filters, about_subject=True)

        return self._classify_with_llm(query, current)

    def _classify_with_llm(self, query: str, current: Optional[date]) -> IntentResult:
        system_prompt = self._build_system_prompt(current or date.today())
        llm_messages = [{
            'role': 'user',
            'content': [{
                'text': f'Classify this query:\n{query}'
            }]
        }, {
            'role': 'assistant',
            'content': [{
                'text': '```json'
            }]
        }]

        try:
            response, _ = self.llm.generate_response(messages=llm_messages, system_prompt=system_prompt, stop_sequences=['```'])
            data = parse_json_object(response)

            intent = str(data.get('intent', '')).strip().lower()
            if intent not in INTENTS:
                logger.warning(f'Unknown intent {intent!r} from classifier, falling back to general')
                return IntentResult(intent='general')

            raw_filters = data.get('filters')
            filters = QueryFilter.from_dict(raw_filters) if isinstance(raw_filters, dict) and raw_filters else None
        except BedrockLLMError as e:
            logger.warning(f'Intent classification failed, falling back to general: {e}')
            return IntentResult(intent='general')
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f'Malformed intent classification output, falling back to general: {e}')
            return IntentResult(intent='general')

        about_subject = str(data.get('about_subject', True)).strip().lower() != 'false'
        result = IntentResult(intent=intent, filters=filters, about_subject=about_subject)

        logger.debug(f'Classified query as {result.intent} with filters {filters.to_dict() if filters else None}')
        return result

    def _build_system_prompt(self, current: date) -> str:
        name = self.subject_name
        return f"""
You are an intent classifier for questions about {name}'s work and background. Today is {current.isoformat()}.

The knowledge base contains these item kinds:
- project: things {name} built (title, summary, skills, dates)
- experience: jobs and internships (role, company, dates, skills)
- class: academic courses (title, term, skills)
- writing: articles and blog posts (title, tags)
- story, value, interest: personal background
- education: school and degree
- bio: headline, location, availability
- skill: technologies and tools

Rules, first match wins:
1. contact: asks how to reach {name}, or about FUTURE availability ("is {name} available for", "open to", "hiring").
2. specific_item: asks about ONE named item ("tell me about X", "what is X"). ALWAYS set filters.title_match to the name as written.
3. filter_query: asks for several items matching criteria. Infer filters:
   - type from vocabulary (projects -> project; work, jobs, internships -> experience; classes, courses -> class;
     articles, posts -> writing; skills, technologies, tools -> skill)
   - "built", "created" or "developed" without an explicit kind -> type ["project", "experience"] (OR, never AND)
   - skills as written ("Python", "Sentence Transformers"); company names; explicit years
   - show_all true for "all", "list", "what/which <items>"
   - operation "exact" for "all of"/"must have", "any" for "any of"/"related to", else "contains"
4. personal: background, values, interests, education, biography.
5. general: everything else.

Set about_subject to false only when the question is unrelated to {name} (trivia, other people, off-topic requests).

Return a single JSON object with this exact format:
```json
{{
  "intent": "contact|filter_query|specific_item|personal|general",
  "about_subject": true,
  "filters": {{
    "type": ["project"],
    "skills": [],
    "company": [],
    "year": [],
    "tags": [],
    "title_match": null,
    "operation": "contains",
    "show_all": false
  }}
}}
```
Omit filters that the query does not mention."""
