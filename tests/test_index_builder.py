"""Tests for offline importance rankings and embeddings."""

import json
from unittest.mock import MagicMock

import pytest

from askfolio.models.core import DateRange, Project
from askfolio.services.index_builder import (IndexBuilderError, build_index, compute_embeddings, compute_project_importance,
                                             compute_rankings, compute_recency)
from askfolio.services.record_store import RecordStore
from askfolio.utils.bedrock_embed import BedrockEmbed, BedrockEmbedError
from askfolio.utils.config import KnowledgeBaseConfig


@pytest.fixture
def embedder():
    embedder = MagicMock(spec=BedrockEmbed)
    embedder.embed_document.return_value = [0.1, 0.2, 0.3]
    return embedder


class TestRecency:
    @pytest.mark.parametrize('dates,expected', [
        (DateRange(start='2024-12'), 10),
        (DateRange(start='2023-01', end='2023-08'), 7),
        (DateRange(start='2019-01', end='2020-05'), 1),
        (None, 5),
    ])
    def test_recency_steps(self, dates, expected, current_date):
        assert compute_recency(dates, current_date) == expected


class TestRankings:
    def test_ranked_kinds_sorted_and_bounded(self, items, current_date):
        rankings = compute_rankings(items, current_date)

        ids = {r.id for r in rankings}
        assert 'bio_main' not in ids
        assert 'story_first' not in ids
        assert {'proj_portfolio', 'exp_veson', 'class_dl', 'writing_rag', 'python'} <= ids
        assert all(0 <= r.score <= 100 for r in rankings)
        assert [r.score for r in rankings] == sorted((r.score for r in rankings), reverse=True)

    def test_shipped_projects_rank_higher(self, current_date):
        bare = Project(id='a', summary='A script.', skills=('python', ), dates=DateRange(start='2024-06'))
        shipped = Project(id='b',
                          summary='Served 500 users.',
                          skills=('python', ),
                          dates=DateRange(start='2024-06'),
                          links={
                              'demo': 'https://demo',
                              'github': 'https://github.com/x'
                          })
        assert compute_project_importance(shipped, current_date) > compute_project_importance(bare, current_date)


class TestEmbeddings:
    def test_one_record_per_item(self, items, embedder):
        records = compute_embeddings(items, embedder)

        assert len(records) == len(items)
        assert records[0] == {'id': 'proj_portfolio', 'kind': 'project', 'vector': [0.1, 0.2, 0.3]}
        assert embedder.embed_document.call_args_list[0].args[0].startswith('[PROJECT] Portfolio Assistant')

    def test_embedding_failure(self, items, embedder):
        embedder.embed_document.side_effect = BedrockEmbedError('throttled')
        with pytest.raises(IndexBuilderError, match='proj_portfolio'):
            compute_embeddings(items, embedder)


class TestBuildIndex:
    def test_writes_files_the_store_can_read(self, tmp_path, embedder, current_date):
        (tmp_path / 'projects.json').write_text(
            json.dumps([{
                'id': 'proj_a',
                'kind': 'project',
                'title': 'A',
                'skills': ['python'],
                'dates': {
                    'start': '2024-01'
                }
            }]),
            encoding='utf-8')
        kb_config = KnowledgeBaseConfig(data_dir=str(tmp_path),
                                        embeddings_file='embeddings.json',
                                        rankings_file='rankings.json',
                                        subject_name='Sam')

        build_index(kb_config, embedder=embedder, current=current_date)

        store = RecordStore.from_directory(kb_config)
        assert store.load_embeddings() == {'proj_a': [0.1, 0.2, 0.3]}
        assert [r.id for r in store.load_rankings()] == ['proj_a']

    def test_skip_embeddings(self, tmp_path, embedder):
        (tmp_path / 'projects.json').write_text('[]', encoding='utf-8')
        kb_config = KnowledgeBaseConfig(data_dir=str(tmp_path),
                                        embeddings_file='embeddings.json',
                                        rankings_file='rankings.json',
                                        subject_name='Sam')

        build_index(kb_config, embedder=embedder, embeddings=False)

        assert (tmp_path / 'rankings.json').exists()
        assert not (tmp_path / 'embeddings.json').exists()
        embedder.embed_document.assert_not_called()

    def test_missing_knowledge_base(self, tmp_path, embedder):
        kb_config = KnowledgeBaseConfig(data_dir=str(tmp_path / 'missing'),
                                        embeddings_file='embeddings.json',
                                        rankings_file='rankings.json',
                                        subject_name='Sam')
        with pytest.raises(IndexBuilderError):
            build_index(kb_config, embedder=embedder)
