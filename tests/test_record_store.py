"""Tests for loading the knowledge base from disk."""

import json

import pytest

from askfolio.models.core import Project, Writing
from askfolio.services.record_store import RecordStore, RecordStoreError
from askfolio.utils.config import KnowledgeBaseConfig


def _write(path, data):
    path.write_text(json.dumps(data), encoding='utf-8')


@pytest.fixture
def kb_config(tmp_path):
    return KnowledgeBaseConfig(data_dir=str(tmp_path),
                               embeddings_file='embeddings.json',
                               rankings_file='rankings.json',
                               subject_name='Sam')


@pytest.fixture
def kb_dir(tmp_path):
    _write(tmp_path / 'projects.json', [{
        'id': 'proj_portfolio',
        'kind': 'project',
        'title': 'Portfolio Assistant',
        'skills': ['python', 'rag'],
        'dates': {
            'start': '2024-06',
            'end': None
        },
        'links': {
            'github': 'https://github.com/sam/portfolio'
        },
        'unused_field': 'ignored'
    }])
    _write(tmp_path / 'writing.json', [{'id': 'blog_rag', 'kind': 'blog', 'title': 'RAG notes', 'published_date': '2024-09-01'}])
    _write(tmp_path / 'skills.json', [{'id': 'python', 'kind': 'skill', 'name': 'Python', 'evidence': [{'id': 'proj_portfolio'}]}])
    _write(tmp_path / 'rankings.json', [{'id': 'proj_portfolio', 'kind': 'project', 'score': 88}])
    _write(tmp_path / 'embeddings.json', [{'id': 'proj_portfolio', 'kind': 'project', 'vector': [0.1, 0.2]}, {'id': 'python', 'vector': []}])
    _write(tmp_path / 'contact.json', {'email': 'sam@example.com'})
    return tmp_path


class TestFromDirectory:
    def test_loads_every_file(self, kb_dir, kb_config):
        store = RecordStore.from_directory(kb_config)

        project = store.get_item('proj_portfolio')
        assert isinstance(project, Project)
        assert project.skills == ('python', 'rag')
        assert project.dates.end is None
        assert isinstance(store.get_item('blog_rag'), Writing)
        assert store.get_item('python').evidence == ('proj_portfolio', )
        assert store.get_importance('proj_portfolio') == 88.0
        assert store.load_embeddings() == {'proj_portfolio': [0.1, 0.2]}
        assert store.load_contact() == {'email': 'sam@example.com'}
        assert store.skill_names() == {'python': 'Python'}

    def test_missing_derived_files_are_empty(self, tmp_path, kb_config):
        _write(tmp_path / 'projects.json', [{'id': 'p', 'kind': 'project'}])

        store = RecordStore.from_directory(kb_config)

        assert store.load_rankings() == []
        assert store.load_embeddings() == {}
        assert store.get_importance('p') == 50.0

    def test_missing_directory(self, tmp_path):
        config = KnowledgeBaseConfig(data_dir=str(tmp_path / 'nope'), embeddings_file='e.json', rankings_file='r.json', subject_name='')
        with pytest.raises(RecordStoreError):
            RecordStore.from_directory(config)

    def test_invalid_json(self, tmp_path, kb_config):
        (tmp_path / 'projects.json').write_text('[{', encoding='utf-8')
        with pytest.raises(RecordStoreError):
            RecordStore.from_directory(kb_config)

    def test_unknown_kind(self, tmp_path, kb_config):
        _write(tmp_path / 'projects.json', [{'id': 'x', 'kind': 'podcast'}])
        with pytest.raises(RecordStoreError):
            RecordStore.from_directory(kb_config)

    def test_duplicate_ids_are_rejected(self, tmp_path, kb_config):
        _write(tmp_path / 'projects.json', [{'id': 'dup', 'kind': 'project'}])
        _write(tmp_path / 'experience.json', [{'id': 'dup', 'kind': 'experience'}])
        with pytest.raises(RecordStoreError, match='dup'):
            RecordStore.from_directory(kb_config)


class TestLookups:
    def test_items_keep_load_order(self, store, items):
        assert [item.id for item in store.load_items()] == [item.id for item in items]

    def test_unknown_item(self, store):
        assert store.get_item('missing') is None

    def test_items_are_copied(self, store):
        store.load_items().clear()
        assert store.load_items()
