"""
In-process TTL cache for generated answers.
"""

import json
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..models.query import QueryFilter
from ..utils.config import CacheConfig
from ..utils.logging_config import get_logger
from ..utils.text_utils import normalize_query_text

logger = get_logger(__name__)

TIME_SENSITIVE_KEYWORDS = ('today', 'now', 'current', 'recent', 'latest', 'this week', 'this month', 'currently',
                           'right now', 'at the moment', 'these days', 'lately')
MIN_QUERY_LENGTH = 5
MAX_QUERY_LENGTH = 200


@dataclass
class CachedAnswer:
    """Generated text plus the ids of the items it was built from."""
    text: str
    intent: str
    item_ids: Tuple[str, ...] = ()


def is_time_sensitive(query: str) -> bool:
    lower = query.lower()
    return any(keyword in lower for keyword in TIME_SENSITIVE_KEYWORDS)


def should_cache(query: str) -> bool:
    return not is_time_sensitive(query) and MIN_QUERY_LENGTH <= len(query.strip()) <= MAX_QUERY_LENGTH


def build_cache_key(query: str, intent: str, filters: Optional[QueryFilter]) -> str:
    filter_part = json.dumps(filters.to_dict(), sort_keys=True) if filters else '{}'
    return f'answer:{normalize_query_text(query)}:{intent}:{filter_part}'


class AnswerCache:
    """Thread-safe TTL cache with oldest-first eviction."""

    def __init__(self, cache_config: CacheConfig):
        """
        Initialize the answer cache.

        Args:
            cache_config: CacheConfig with TTL and size limit
        """
        self.config = cache_config
        self._entries: 'OrderedDict[str, Tuple[float, CachedAnswer]]' = OrderedDict()
        self._lock = threading.Lock()
        self._stats: Dict[str, int] = {'hits': 0, 'misses': 0}

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def get(self, query: str, intent: str, filters: Optional[QueryFilter]) -> Optional[CachedAnswer]:
        """
        Look up a cached answer.

        Args:
            query: Raw user query
            intent: Classified intent
            filters: Effective filters

        Returns:
            CachedAnswer, or None on a miss, an expired entry or a disabled cache
        """
        if not self.enabled or not should_cache(query):
            return None

        key = build_cache_key(query, intent, filters)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats['misses'] += 1
                return None
            expires_at, answer = entry
            if time.time() > expires_at:
                del self._entries[key]
                self._stats['misses'] += 1
                return None
            self._stats['hits'] += 1

        logger.debug(f'Answer cache hit for {key}')
        return answer

    def set(self, query: str, intent: str, filters: Optional[QueryFilter], text: str, item_ids: List[str]) -> None:
        """Store an answer unless the cache is disabled or the query is time-sensitive."""
        if not self.enabled or not should_cache(query):
            return

        key = build_cache_key(query, intent, filters)
        with self._lock:
            self._entries[key] = (time.time() + self.config.ttl_seconds, CachedAnswer(text, intent, tuple(item_ids)))
            self._entries.move_to_end(key)
            while len(self._entries) > self.config.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, float]:
        """Hit/miss counters, current size and hit rate."""
        with self._lock:
            total = self._stats['hits'] + self._stats['misses']
            return {
                'hits': self._stats['hits'],
                'misses': self._stats['misses'],
                'size': len(self._entries),
                'hit_rate': self._stats['hits'] / total if total else 0.0,
            }
