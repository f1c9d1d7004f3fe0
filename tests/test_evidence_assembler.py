"""Tests for evidence packs, metrics extraction and confidence signals."""

from askfolio.models.core import Project
from askfolio.models.query import ScoredItem
from askfolio.models.response import EvidenceSignals
from askfolio.services.evidence_assembler import (build_evidence_packs, compute_signals, extract_metrics, format_context,
                                                  format_context_index, needs_contact_fallback)


def _scored(items, *ids):
    by_id = {item.id: item for item in items}
    return [ScoredItem(item=by_id[item_id], similarity=0.9 - index * 0.1) for index, item_id in enumerate(ids)]


class TestExtractMetrics:
    def test_finds_metrics_in_order(self):
        text = 'Served 1,200 users and cut latency 40% saving $1.2M, a 3x speedup on 600k records'
        assert extract_metrics(text) == ['1,200 users', '40%', '$1.2M']

    def test_limit_and_containment(self):
        assert extract_metrics('a 3x speedup on 600k records', limit=5) == ['3x', '600k']

    def test_no_metrics(self):
        assert extract_metrics('Highlight detection for sports video.') == []


class TestBuildEvidencePacks:
    def test_pack_fields(self, items):
        packs = build_evidence_packs(_scored(items, 'proj_portfolio', 'writing_rag', 'class_dl'), {'python': 'Python'})

        portfolio, writing, course = packs
        assert [p.rank for p in packs] == [1, 2, 3]
        assert portfolio.title == 'Portfolio Assistant'
        assert portfolio.skills == ['Python', 'RAG', 'Next.js']
        assert portfolio.dates == '2024-06 - present'
        assert portfolio.metrics == ['1,200 users', '40%']
        assert writing.dates == '2024-09-01'
        assert course.dates == 'Fall 2024'

    def test_summaries_and_specifics_are_bounded(self):
        item = Project(id='p', title='Long', summary='x' * 500, specifics=tuple(f'detail {i}' for i in range(6)))
        pack = build_evidence_packs([ScoredItem(item=item, similarity=0.5)])[0]

        assert len(pack.summary) <= 300
        assert pack.summary.endswith('...')
        assert pack.specifics == ['detail 0', 'detail 1', 'detail 2']

    def test_context_rendering(self, items):
        results = _scored(items, 'proj_portfolio')
        context = format_context(build_evidence_packs(results))

        assert context.startswith('[1] PROJECT: Portfolio Assistant')
        assert 'Metrics: 1,200 users, 40%' in context
        assert format_context_index(results) == '1. [project] Portfolio Assistant (2024) - score 0.90'


class TestSignals:
    def test_ongoing_item_is_fresh(self, items, current_date):
        results = _scored(items, 'proj_portfolio', 'proj_hilite')
        signals = compute_signals(build_evidence_packs(results), results, current_date)

        assert signals.evidence_count == 2
        assert signals.has_metrics
        assert signals.freshness_months == 0

    def test_freshness_from_end_date(self, items, current_date):
        results = _scored(items, 'proj_hilite')
        signals = compute_signals(build_evidence_packs(results), results, current_date)

        assert signals.freshness_months == 19
        assert not signals.has_metrics

    def test_undated_items_have_no_freshness(self, items, current_date):
        results = _scored(items, 'value_craft')
        assert compute_signals(build_evidence_packs(results), results, current_date).freshness_months is None

    def test_contact_fallback_for_thin_evidence(self):
        assert needs_contact_fallback(EvidenceSignals(evidence_count=1, has_metrics=False, freshness_months=None))
        assert not needs_contact_fallback(EvidenceSignals(evidence_count=2, has_metrics=False, freshness_months=None))
        assert needs_contact_fallback(
            EvidenceSignals(evidence_count=4, has_metrics=False, freshness_months=None, coverage_ratio=0.4))
