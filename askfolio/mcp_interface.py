"""
MCP Interface Layer using fastmcp for agent orchestration.
"""
import threading
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP

from askfolio.models.query import QueryFilter
from askfolio.models.response import AnswerRequest
from askfolio.services.answer_service import AnswerService
from askfolio.services.record_store import RecordStoreError
from askfolio.utils.config import config
from askfolio.utils.health_check import get_system_info
from askfolio.utils.logging_config import get_logger

logger = get_logger(__name__)

# Initialize FastMCP application
mcp = FastMCP('askfolio')
_answer_service: Optional[AnswerService] = None
_answer_service_lock = threading.Lock()


def get_answer_service() -> AnswerService:
    """Answer service built on first use, so importing this module never loads the knowledge base."""
    global _answer_service
    if _answer_service is None:
        with _answer_service_lock:
            if _answer_service is None:
                _answer_service = AnswerService()
    return _answer_service


@mcp.tool()
def answer_question(query: str,
                    previous_query: Optional[str] = None,
                    previous_answer: Optional[str] = None,
                    depth: int = 0,
                    intent: Optional[str] = None,
                    filters: Optional[Dict[str, Any]] = None,
                    visited_item_ids: Optional[List[str]] = None) -> Dict[str, Any]:
    """Answer a question about the knowledge base.

    Pass ``intent`` and ``filters`` together (as returned on a quick action) to
    skip classification.

    Args:
        query: Natural language question
        previous_query: Previous question in the conversation
        previous_answer: Previous answer in the conversation
        depth: Depth returned by the previous answer (0 for a new conversation)
        intent: Intent from a clicked quick action
        filters: Filters from a clicked quick action
        visited_item_ids: Item ids already shown in this conversation

    Returns:
        Dictionary with text, quick_actions, cached, intent and depth

    Raises:
        Exception: If the knowledge base cannot be loaded
    """
    try:
        request = AnswerRequest(query=query or '',
                                previous_query=previous_query,
                                previous_answer=previous_answer,
                                depth=depth,
                                intent=intent,
                                filters=QueryFilter.from_dict(filters) if isinstance(filters, dict) else None,
                                visited_item_ids=list(visited_item_ids or []))
        response = get_answer_service().answer(request)

        logger.debug(f'MCP answer for {query!r}: intent={response.intent}, {len(response.quick_actions)} actions')
        return response.to_dict()

    except RecordStoreError as e:
        logger.error(f'Knowledge base unavailable in MCP answer: {e}')
        raise Exception(f'Answer failed: {e}')


def get_service_info() -> Dict[str, Any]:
    """System info, plus answer cache statistics once the answer service is running."""
    info = get_system_info()
    if _answer_service is not None:
        info['answer_cache'] = _answer_service.cache.stats()
    return info


@mcp.tool()
def health() -> Dict[str, Any]:
    """Report configuration and the health of Bedrock and the knowledge base.

    Returns:
        Dictionary with service name, configuration, per-component health and
        answer cache statistics
    """
    return get_service_info()


if __name__ == '__main__':
    transport = config.mcp.transport
    host = config.mcp.host
    port = config.mcp.port
    mcp.run(transport=transport, host=host, port=port)
