"""Tests for the pre-router and the LLM-backed intent classifier."""

import pytest

from askfolio.models.query import QueryFilter
from askfolio.services.intent_classifier import IntentClassifier, is_evaluative_query, pre_route
from askfolio.utils.bedrock_llm import BedrockLLMError


@pytest.fixture
def classifier(mock_classifier_llm):
    return IntentClassifier(llm=mock_classifier_llm, subject_name='Sam')


class TestPreRoute:
    @pytest.mark.parametrize('query,expected', [
        ('list all your projects', 'filter_query'),
        ('Show me all experiences', 'filter_query'),
        ('what is your strongest project', 'general'),
        ('why should we hire Sam', 'general'),
        ('tell me about hilite', None),
    ])
    def test_routes(self, query, expected):
        assert pre_route(query) == expected

    def test_list_wins_over_evaluative(self):
        assert pre_route('list the best projects') == 'filter_query'

    def test_evaluative(self):
        assert is_evaluative_query('what is the most impressive thing Sam built')
        assert not is_evaluative_query('what did Sam build in 2023')


class TestClassify:
    def test_skip_mode_bypasses_model(self, classifier, mock_classifier_llm):
        filters = QueryFilter(title_match='proj_portfolio')
        result = classifier.classify('Tell me about Portfolio Assistant', intent='specific_item', filters=filters)

        assert result.intent == 'specific_item'
        assert result.filters is filters
        mock_classifier_llm.generate_response.assert_not_called()

    def test_pre_routed_query_bypasses_model(self, classifier, mock_classifier_llm):
        result = classifier.classify('list all projects')
        assert result.intent == 'filter_query'
        mock_classifier_llm.generate_response.assert_not_called()

    def test_model_output_is_parsed(self, classifier, mock_classifier_llm):
        mock_classifier_llm.generate_response.return_value = (
            '{"intent": "specific_item", "filters": {"title_match": "HiLiTe"}}```', None)

        result = classifier.classify('tell me about hilite')

        assert result.intent == 'specific_item'
        assert result.filters.title_match == 'HiLiTe'
        assert result.about_subject

    def test_blog_type_maps_to_writing(self, classifier, mock_classifier_llm):
        mock_classifier_llm.generate_response.return_value = (
            '{"intent": "filter_query", "filters": {"type": ["blog"], "operation": "weird"}}', None)

        result = classifier.classify('what has sam written')

        assert result.filters.type == ['writing']
        assert result.filters.operation == 'contains'

    def test_off_topic_flag(self, classifier, mock_classifier_llm):
        mock_classifier_llm.generate_response.return_value = ('{"intent": "general", "about_subject": false}', None)
        assert not classifier.classify('who won the game').about_subject

    def test_model_error_falls_back_to_general(self, classifier, mock_classifier_llm):
        mock_classifier_llm.generate_response.side_effect = BedrockLLMError('timeout')

        result = classifier.classify('tell me about hilite')

        assert result.intent == 'general'
        assert result.filters is None

    def test_malformed_output_falls_back_to_general(self, classifier, mock_classifier_llm):
        mock_classifier_llm.generate_response.return_value = ('I think this is a project question', None)
        assert classifier.classify('tell me about hilite').intent == 'general'

    @pytest.mark.parametrize('payload', [
        '{"intent": "filter_query", "filters": {"skills": 3}}',
        '{"intent": "filter_query", "filters": {"tags": true}}',
        '{"intent": "filter_query", "filters": {"type": 7}}',
    ])
    def test_odd_filter_values_do_not_raise(self, classifier, mock_classifier_llm, payload):
        mock_classifier_llm.generate_response.return_value = (payload, None)

        result = classifier.classify('which projects use python')

        assert result.intent == 'filter_query'
        assert result.filters.type is None
        assert result.filters.tags is None

    def test_about_subject_string_false(self, classifier, mock_classifier_llm):
        mock_classifier_llm.generate_response.return_value = ('{"intent": "general", "about_subject": "false"}', None)
        assert not classifier.classify('who won the game').about_subject

    def test_unknown_intent_falls_back_to_general(self, classifier, mock_classifier_llm):
        mock_classifier_llm.generate_response.return_value = ('{"intent": "gossip"}', None)
        assert classifier.classify('tell me about hilite').intent == 'general'

    def test_prompt_mentions_subject_and_date(self, classifier, mock_classifier_llm, current_date):
        classifier.classify('tell me about hilite', current=current_date)

        system_prompt = mock_classifier_llm.generate_response.call_args.kwargs['system_prompt']
        assert "Sam's work" in system_prompt
        assert '2025-03-15' in system_prompt
