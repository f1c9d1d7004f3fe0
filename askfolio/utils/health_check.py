"""
Health check utilities for the application.
"""

from typing import Any, Dict

from ..services.record_store import RecordStoreError, get_record_store
from .bedrock_embed import BedrockEmbed
from .bedrock_llm import BedrockLLM
from .config import config
from .logging_config import get_logger

logger = get_logger(__name__)


def get_health_status() -> Dict[str, Any]:
    """Get detailed health status of all components.

    Returns:
        Dictionary with health status of each component
    """
    health_status = {}

    # Check Bedrock LLM
    try:
        llm = BedrockLLM(config.bedrock_llm)
        health_status['bedrock_llm'] = {
            'healthy': llm.health_check(),
            'service': 'Amazon Bedrock LLM',
            'model': config.bedrock_llm.model_id
        }
    except Exception as e:
        health_status['bedrock_llm'] = {'healthy': False, 'service': 'Amazon Bedrock LLM', 'error': str(e)}

    # Check Bedrock Embed
    try:
        embed = BedrockEmbed(config.bedrock_embed)
        health_status['bedrock_embed'] = {
            'healthy': embed.health_check(),
            'service': 'Amazon Bedrock Embed',
            'model': config.bedrock_embed.model_id
        }
    except Exception as e:
        health_status['bedrock_embed'] = {'healthy': False, 'service': 'Amazon Bedrock Embed', 'error': str(e)}

    # Check knowledge base
    try:
        store = get_record_store()
        items = store.load_items()
        embeddings = store.load_embeddings()
        health_status['record_store'] = {
            'healthy': bool(items) and bool(embeddings),
            'service': 'Knowledge base',
            'items': len(items),
            'embeddings': len(embeddings),
            'data_dir': config.knowledge_base.data_dir
        }
    except RecordStoreError as e:
        health_status['record_store'] = {'healthy': False, 'service': 'Knowledge base', 'error': str(e)}

    unhealthy = [name for name, status in health_status.items() if not status.get('healthy', False)]
    if unhealthy:
        logger.warning(f'Unhealthy components: {unhealthy}')
    else:
        logger.info('All system components are healthy')

    return health_status


def get_system_info() -> Dict[str, Any]:
    """Get system information and configuration.

    Returns:
        Dictionary with system information
    """
    return {
        'service_name': 'askfolio',
        'version': '0.1.0',
        'configuration': {
            'bedrock_llm_model': config.bedrock_llm.model_id,
            'bedrock_classifier_model': config.bedrock_classifier.model_id,
            'bedrock_embed_model': config.bedrock_embed.model_id,
            'subject_name': config.knowledge_base.subject_name,
            'answer_cache_enabled': config.cache.enabled,
            'aws_region': config.bedrock_llm.region
        },
        'health_status': get_health_status()
    }
