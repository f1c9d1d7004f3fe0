"""
Record Store Adapter: read-only access to knowledge items, importance rankings,
precomputed embeddings and contact details.
"""

import json
import os
import threading
from typing import Any, Dict, List, Optional

from ..models.core import ImportanceRanking, KnowledgeItem, Skill, item_from_dict
from ..utils.config import KnowledgeBaseConfig, config
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

# One JSON array per file; files that are missing are treated as empty
ITEM_FILES = ('projects.json', 'experience.json', 'classes.json', 'writing.json', 'stories.json', 'values.json',
              'interests.json', 'education.json', 'bio.json', 'skills.json')
CONTACT_FILE = 'contact.json'
DEFAULT_IMPORTANCE = 50.0


class RecordStoreError(Exception):
    """Custom exception for record store errors."""
    pass


class RecordStore:
    """Knowledge base loaded once and never mutated afterwards."""

    def __init__(self,
                 items: List[KnowledgeItem],
                 rankings: Optional[List[ImportanceRanking]] = None,
                 embeddings: Optional[Dict[str, List[float]]] = None,
                 contact: Optional[Dict[str, str]] = None):
        """
        Initialize the store from already-loaded records.

        Args:
            items: All knowledge items
            rankings: Importance rankings (missing items default to 50)
            embeddings: Item id to precomputed embedding vector
            contact: Contact details (linkedin, github, email)

        Raises:
            RecordStoreError: If two items share an id
        """
        seen = set()
        for item in items:
            if item.id in seen:
                raise RecordStoreError(f'Duplicate knowledge item id detected: {item.id}')
            seen.add(item.id)

        self._items = tuple(items)
        self._by_id = {item.id: item for item in items}
        self._rankings = tuple(rankings or ())
        self._importance = {ranking.id: float(ranking.score) for ranking in self._rankings}
        self._embeddings = dict(embeddings or {})
        self._contact = dict(contact or {})

    @classmethod
    def from_directory(cls, kb_config: KnowledgeBaseConfig) -> 'RecordStore':
        """
        Load the knowledge base from JSON files.

        Args:
            kb_config: KnowledgeBaseConfig with the data directory and derived file names

        Returns:
            Loaded RecordStore

        Raises:
            RecordStoreError: If a file cannot be read or a record is invalid
        """
        data_dir = kb_config.data_dir
        if not os.path.isdir(data_dir):
            raise RecordStoreError(f'Knowledge base directory not found: {data_dir}')

        items: List[KnowledgeItem] = []
        for file_name in ITEM_FILES:
            for record in _read_json(os.path.join(data_dir, file_name), default=[]):
                try:
                    items.append(item_from_dict(record))
                except (ValueError, TypeError) as e:
                    raise RecordStoreError(f'Invalid record in {file_name}: {e}')

        rankings = [
            ImportanceRanking(id=r['id'], kind=r.get('kind', ''), score=float(r.get('score', DEFAULT_IMPORTANCE)))
            for r in _read_json(os.path.join(data_dir, kb_config.rankings_file), default=[])
        ]
        embeddings = {
            e['id']: e['vector']
            for e in _read_json(os.path.join(data_dir, kb_config.embeddings_file), default=[])
            if e.get('vector')
        }
        contact = _read_json(os.path.join(data_dir, CONTACT_FILE), default={})

        logger.info(f'Loaded knowledge base from {data_dir}: {len(items)} items, '
                    f'{len(rankings)} rankings, {len(embeddings)} embeddings')
        return cls(items, rankings, embeddings, contact)

    def load_items(self) -> List[KnowledgeItem]:
        """All knowledge items in load order."""
        return list(self._items)

    def load_rankings(self) -> List[ImportanceRanking]:
        return list(self._rankings)

    def load_embeddings(self) -> Dict[str, List[float]]:
        return self._embeddings

    def load_contact(self) -> Dict[str, str]:
        return dict(self._contact)

    def get_item(self, item_id: str) -> Optional[KnowledgeItem]:
        return self._by_id.get(item_id)

    def get_importance(self, item_id: str) -> float:
        """Importance score in 0..100, 50 when the item was never ranked."""
        return self._importance.get(item_id, DEFAULT_IMPORTANCE)

    def skill_names(self) -> Dict[str, str]:
        """Skill id to display name."""
        return {item.id: item.name for item in self._items if isinstance(item, Skill) and item.name}


def _read_json(path: str, default: Any) -> Any:
    if not os.path.exists(path):
        logger.debug(f'Knowledge base file not present, using default: {path}')
        return default
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RecordStoreError(f'Failed to read {path}: {e}')


_store: Optional[RecordStore] = None
_store_lock = threading.Lock()


def get_record_store() -> RecordStore:
    """Process-wide record store, loaded on first use."""
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = RecordStore.from_directory(config.knowledge_base)
    return _store
