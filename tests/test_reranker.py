"""Tests for score boosts, diversification and comparison expansion."""

import pytest

from askfolio.models.core import Experience, Project
from askfolio.models.query import ScoredItem
from askfolio.services.alias_resolver import build_alias_index, match_aliases
from askfolio.services.reranker import (TECHNICAL_BOOST, apply_importance_boost, apply_technical_boost, apply_temporal_boost,
                                        build_diversity_plan, diversify_by_type, expand_for_comparison, technical_score,
                                        temporal_factor)
from askfolio.utils.config import RetrievalConfig
from askfolio.utils.temporal_utils import TemporalHints


def _by_id(items):
    return {item.id: item for item in items}


def _scores(results):
    return [(r.item.id, r.score) for r in results]


@pytest.fixture
def projects(items):
    by_id = _by_id(items)
    return [
        ScoredItem(item=by_id['proj_portfolio'], similarity=0.70),
        ScoredItem(item=by_id['proj_hilite'], similarity=0.65),
        ScoredItem(item=by_id['proj_knight'], similarity=0.60),
    ]


class TestTemporalBoost:
    @pytest.mark.parametrize('distance,factor', [(None, 1.0), (0, 1.25), (1, 1.12), (2, 1.05), (5, 1.0)])
    def test_factor(self, distance, factor):
        assert temporal_factor(distance) == factor

    def test_hinted_year_moves_item_up(self, projects):
        results = apply_temporal_boost(projects, TemporalHints(years=[2023]))
        assert results[0].item.id == 'proj_hilite'
        assert results[0].score == pytest.approx(0.65 * 1.25)

    def test_reapplying_is_idempotent(self, projects):
        hints = TemporalHints(years=[2022])
        once = apply_temporal_boost(projects, hints)
        twice = apply_temporal_boost(once, hints)
        assert _scores(once) == _scores(twice)

    def test_no_years_is_a_no_op(self, projects):
        assert _scores(apply_temporal_boost(projects, TemporalHints())) == _scores(projects)


class TestImportanceBoost:
    def test_reapplying_is_idempotent(self, projects, store):
        once = apply_importance_boost(projects, store.get_importance, evaluative=True)
        twice = apply_importance_boost(once, store.get_importance, evaluative=True)
        assert _scores(once) == _scores(twice)

    def test_evaluative_queries_weight_importance(self):
        important = ScoredItem(item=Project(id='a'), similarity=0.5)
        similar = ScoredItem(item=Project(id='b'), similarity=0.7)
        importance = {'a': 90, 'b': 40}.get

        default = apply_importance_boost([important, similar], importance, evaluative=False)
        evaluative = apply_importance_boost([important, similar], importance, evaluative=True)

        assert default[0].item.id == 'b'
        assert evaluative[0].item.id == 'a'
        assert evaluative[0].score == pytest.approx(0.5 * 0.4 + 0.9 * 0.6)

    def test_boosts_compose_with_importance(self, projects, store):
        blended = apply_importance_boost(projects, store.get_importance, evaluative=False)
        boosted = apply_temporal_boost(blended, TemporalHints(years=[2022]))
        knight = next(r for r in boosted if r.item.id == 'proj_knight')
        assert knight.score == pytest.approx(0.60 * 1.25 * 0.8 + 0.4 * 0.2)


class TestTechnicalBoost:
    def test_scores_experience_keywords(self, items):
        assert technical_score(_by_id(items)['exp_veson']) == 8

    def test_technical_query_boosts_experiences_only(self, items):
        by_id = _by_id(items)
        results = [ScoredItem(item=by_id['proj_portfolio'], similarity=0.5), ScoredItem(item=by_id['exp_veson'], similarity=0.45)]

        boosted = apply_technical_boost(results, 'most technical work')

        assert boosted[0].item.id == 'exp_veson'
        assert boosted[0].score == pytest.approx(0.45 * 1.24)
        assert boosted[1].multipliers == ()

    def test_other_queries_untouched(self, items):
        results = [ScoredItem(item=_by_id(items)['exp_veson'], similarity=0.45)]
        boosted = apply_technical_boost(results, 'tell me about veson')
        assert TECHNICAL_BOOST not in dict(boosted[0].multipliers)


class TestDiversify:
    def test_quotas_then_top_up(self):
        results = [ScoredItem(item=Project(id=f'p{i}'), similarity=0.9 - i * 0.01) for i in range(5)]
        results += [ScoredItem(item=Experience(id=f'e{i}'), similarity=0.5 - i * 0.01) for i in range(2)]

        selected = diversify_by_type(results, {'project': 3, 'experience': 2}, 5)

        assert [r.item.id for r in selected] == ['p0', 'p1', 'p2', 'e0', 'e1']

    def test_tops_up_when_a_kind_is_short(self):
        results = [ScoredItem(item=Project(id=f'p{i}'), similarity=0.9 - i * 0.01) for i in range(5)]
        selected = diversify_by_type(results, {'project': 3, 'experience': 2}, 5)
        assert len(selected) == 5

    def test_classes_only_for_academic_queries(self):
        retrieval_config = RetrievalConfig(top_k=5,
                                           general_top_k=5,
                                           pool_multiplier=3,
                                           project_quota=3,
                                           experience_quota=2,
                                           class_quota=2,
                                           evaluative_importance_weight=0.6,
                                           default_importance_weight=0.2)
        assert 'class' not in build_diversity_plan('what has sam built', retrieval_config).quotas
        assert build_diversity_plan('which classes did sam take', retrieval_config).quotas['class'] == 2


class TestComparisonExpansion:
    def test_adds_previous_year_items_from_candidates(self, items):
        by_id = _by_id(items)
        query = 'what did sam build before hilite'
        results = [ScoredItem(item=by_id['proj_hilite'], similarity=0.9)]

        expanded = expand_for_comparison(query, results, items, match_aliases(query, build_alias_index(items)))

        assert [r.item.id for r in expanded] == ['proj_hilite', 'proj_knight']
        assert expanded[1].score < expanded[0].score

    def test_never_adds_items_outside_candidates(self, items):
        by_id = _by_id(items)
        query = 'what did sam build before hilite'
        candidates = [by_id['proj_hilite']]
        results = [ScoredItem(item=by_id['proj_hilite'], similarity=0.9)]

        expanded = expand_for_comparison(query, results, candidates, match_aliases(query, build_alias_index(items)))

        assert [r.item.id for r in expanded] == ['proj_hilite']

    def test_non_comparison_query_unchanged(self, projects, items):
        assert expand_for_comparison('tell me about hilite', projects, items, []) == projects
