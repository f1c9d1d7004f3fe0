"""
Vector Retriever: cosine similarity between the query and precomputed item
embeddings, restricted to a candidate id set.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..utils.bedrock_embed import BedrockEmbed, BedrockEmbedError
from ..utils.config import config
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


class VectorRetriever:
    """Score candidate items against a query embedding."""

    def __init__(self, embeddings: Dict[str, Sequence[float]], embedder: Optional[BedrockEmbed] = None):
        """
        Initialize the retriever with the precomputed embedding table.

        Args:
            embeddings: Item id to embedding vector
            embedder: Bedrock embedding client (built from config if None)
        """
        self.embedder = embedder or BedrockEmbed(config.bedrock_embed)
        self._vectors: Dict[str, np.ndarray] = {}
        for item_id, vector in embeddings.items():
            array = np.asarray(vector, dtype=np.float32)
            norm = np.linalg.norm(array)
            if norm > 0:
                self._vectors[item_id] = array / norm

        logger.info(f'Initialized VectorRetriever with {len(self._vectors)} item vectors')

    def retrieve(self, query: str, candidate_ids: Iterable[str], top_k: int) -> List[Tuple[str, float]]:
        """
        Rank candidates by cosine similarity to the query.

        Only ids in ``candidate_ids`` are ever scored. Candidates with no stored
        vector score 0.0. An empty candidate set, a non-positive ``top_k`` or an
        embedding failure yields an empty list.

        Args:
            query: Query text
            candidate_ids: Ids allowed in the result
            top_k: Maximum number of results

        Returns:
            (id, score) pairs, best first, at most ``top_k`` long
        """
        candidates = list(dict.fromkeys(candidate_ids))
        if not candidates or top_k <= 0:
            return []

        try:
            query_vector = np.asarray(self.embedder.embed_query(query), dtype=np.float32)
        except BedrockEmbedError as e:
            logger.warning(f'Query embedding failed, returning no results: {e}')
            return []

        query_norm = np.linalg.norm(query_vector)
        if query_norm == 0:
            logger.warning('Query embedding is a zero vector, returning no results')
            return []
        query_vector = query_vector / query_norm

        scored: List[Tuple[str, float]] = []
        for item_id in candidates:
            vector = self._vectors.get(item_id)
            if vector is None or vector.shape != query_vector.shape:
                scored.append((item_id, 0.0))
                continue
            scored.append((item_id, float(np.dot(vector, query_vector))))

        # Stable sort keeps candidate order for ties
        scored.sort(key=lambda pair: pair[1], reverse=True)
        results = scored[:top_k]

        logger.debug(f'Retrieved {len(results)} of {len(candidates)} candidates (top_k={top_k})')
        return results
