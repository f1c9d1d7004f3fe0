"""
Configuration management for AWS services and application settings.
"""

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

load_dotenv()


@dataclass
class BedrockLLMConfig:
    """Configuration for Amazon Bedrock LLM service."""
    region: str
    model_id: str
    max_tokens: int
    temperature: float
    retry_attempts: int
    retry_delay: float
    connect_timeout: int
    read_timeout: int


@dataclass
class BedrockEmbedConfig:
    """Configuration for Amazon Bedrock Embed service."""
    region: str
    model_id: str
    dimension: int
    retry_attempts: int
    retry_delay: float
    connect_timeout: int
    read_timeout: int


@dataclass
class KnowledgeBaseConfig:
    """Configuration for the knowledge base files."""
    data_dir: str
    embeddings_file: str
    rankings_file: str
    subject_name: str  # Person the knowledge base describes


@dataclass
class RetrievalConfig:
    """Configuration for retrieval and reranking."""
    top_k: int
    general_top_k: int
    pool_multiplier: int  # Shortlist size before diversification, as a multiple of general_top_k
    project_quota: int
    experience_quota: int
    class_quota: int
    evaluative_importance_weight: float
    default_importance_weight: float


@dataclass
class PlannerConfig:
    """Configuration for the follow-up action planner."""
    specific_action_max_depth: int
    follow_up_max_depth: int
    max_actions: int
    linkedin_url: str
    github_url: str
    email: str


@dataclass
class CacheConfig:
    """Configuration for the answer cache."""
    enabled: bool
    ttl_seconds: int
    max_entries: int


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    environment: str
    log_level: str
    log_format: str
    quiet_loggers: List[str]  # Third-party loggers capped at WARNING
    bedrock_llm: BedrockLLMConfig
    bedrock_classifier: BedrockLLMConfig
    bedrock_embed: BedrockEmbedConfig
    knowledge_base: KnowledgeBaseConfig
    retrieval: RetrievalConfig
    planner: PlannerConfig
    cache: CacheConfig
    mcp: MCPConfig


def load_config() -> AppConfig:
    """Load configuration from environment variables with defaults."""
    environment = os.getenv('ENVIRONMENT', 'development')

    # Bedrock configuration for answer generation
    bedrock_llm_config = BedrockLLMConfig(region=os.getenv('BEDROCK_LLM_AWS_REGION', 'us-east-1'),
                                          model_id=os.getenv('BEDROCK_LLM_MODEL_ID', 'anthropic.claude-3-sonnet-20240229-v1:0'),
                                          max_tokens=int(os.getenv('BEDROCK_LLM_MAX_TOKENS', '1024')),
                                          temperature=float(os.getenv('BEDROCK_LLM_TEMPERATURE', '0.2')),
                                          retry_attempts=int(os.getenv('BEDROCK_LLM_RETRY_ATTEMPTS', '2')),
                                          retry_delay=float(os.getenv('BEDROCK_LLM_RETRY_DELAY', '1.0')),
                                          connect_timeout=int(os.getenv('BEDROCK_LLM_CONNECT_TIMEOUT', '10')),
                                          read_timeout=int(os.getenv('BEDROCK_LLM_READ_TIMEOUT', '60')))

    # Bedrock configuration for intent classification, kept short so a slow model degrades quickly
    bedrock_classifier_config = BedrockLLMConfig(
        region=os.getenv('BEDROCK_CLASSIFIER_AWS_REGION', 'us-east-1'),
        model_id=os.getenv('BEDROCK_CLASSIFIER_MODEL_ID', 'anthropic.claude-3-haiku-20240307-v1:0'),
        max_tokens=int(os.getenv('BEDROCK_CLASSIFIER_MAX_TOKENS', '512')),
        temperature=float(os.getenv('BEDROCK_CLASSIFIER_TEMPERATURE', '0.0')),
        retry_attempts=int(os.getenv('BEDROCK_CLASSIFIER_RETRY_ATTEMPTS', '1')),
        retry_delay=float(os.getenv('BEDROCK_CLASSIFIER_RETRY_DELAY', '0.5')),
        connect_timeout=int(os.getenv('BEDROCK_CLASSIFIER_CONNECT_TIMEOUT', '3')),
        read_timeout=int(os.getenv('BEDROCK_CLASSIFIER_READ_TIMEOUT', '8')))

    # Bedrock Embed configuration
    bedrock_embed_config = BedrockEmbedConfig(region=os.getenv('BEDROCK_EMBED_AWS_REGION', 'us-east-1'),
                                              model_id=os.getenv('BEDROCK_EMBED_MODEL_ID', 'amazon.titan-embed-text-v2:0'),
                                              dimension=int(os.getenv('BEDROCK_EMBED_DIMENSION', '1024')),
                                              retry_attempts=int(os.getenv('BEDROCK_EMBED_RETRY_ATTEMPTS', '2')),
                                              retry_delay=float(os.getenv('BEDROCK_EMBED_RETRY_DELAY', '0.5')),
                                              connect_timeout=int(os.getenv('BEDROCK_EMBED_CONNECT_TIMEOUT', '3')),
                                              read_timeout=int(os.getenv('BEDROCK_EMBED_READ_TIMEOUT', '8')))

    # Knowledge base configuration
    knowledge_base_config = KnowledgeBaseConfig(data_dir=os.getenv('KB_DATA_DIR', 'data'),
                                                embeddings_file=os.getenv('KB_EMBEDDINGS_FILE', 'embeddings.json'),
                                                rankings_file=os.getenv('KB_RANKINGS_FILE', 'rankings.json'),
                                                subject_name=os.getenv('KB_SUBJECT_NAME', 'Sam'))

    # Retrieval configuration
    retrieval_config = RetrievalConfig(top_k=int(os.getenv('RETRIEVAL_TOP_K', '5')),
                                       general_top_k=int(os.getenv('RETRIEVAL_GENERAL_TOP_K', '5')),
                                       pool_multiplier=int(os.getenv('RETRIEVAL_POOL_MULTIPLIER', '3')),
                                       project_quota=int(os.getenv('RETRIEVAL_PROJECT_QUOTA', '3')),
                                       experience_quota=int(os.getenv('RETRIEVAL_EXPERIENCE_QUOTA', '2')),
                                       class_quota=int(os.getenv('RETRIEVAL_CLASS_QUOTA', '2')),
                                       evaluative_importance_weight=float(os.getenv('RETRIEVAL_EVALUATIVE_IMPORTANCE_WEIGHT', '0.6')),
                                       default_importance_weight=float(os.getenv('RETRIEVAL_DEFAULT_IMPORTANCE_WEIGHT', '0.2')))

    # Action planner configuration
    planner_config = PlannerConfig(specific_action_max_depth=int(os.getenv('PLANNER_SPECIFIC_ACTION_MAX_DEPTH', '2')),
                                   follow_up_max_depth=int(os.getenv('PLANNER_FOLLOW_UP_MAX_DEPTH', '4')),
                                   max_actions=int(os.getenv('PLANNER_MAX_ACTIONS', '5')),
                                   linkedin_url=os.getenv('CONTACT_LINKEDIN_URL', 'https://linkedin.com/in/example'),
                                   github_url=os.getenv('CONTACT_GITHUB_URL', 'https://github.com/example'),
                                   email=os.getenv('CONTACT_EMAIL', 'hello@example.com'))

    # Answer cache configuration
    cache_config = CacheConfig(enabled=os.getenv('ANSWER_CACHE_ENABLED', 'false').lower() == 'true',
                               ttl_seconds=int(os.getenv('ANSWER_CACHE_TTL_SECONDS', '3600')),
                               max_entries=int(os.getenv('ANSWER_CACHE_MAX_ENTRIES', '1000')))

    # MCP configuration
    mcp_config = MCPConfig(transport=os.getenv('MCP_TRANSPORT', 'sse'),
                           host=os.getenv('MCP_HOST', '127.0.0.1'),
                           port=int(os.getenv('MCP_PORT', '8000')))

    return AppConfig(environment=environment,
                     log_level=os.getenv('LOG_LEVEL', 'INFO'),
                     log_format=os.getenv('LOG_FORMAT', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
                     quiet_loggers=[n.strip() for n in os.getenv('LOG_QUIET_LOGGERS', 'botocore,boto3,urllib3,httpx,mcp').split(',') if n.strip()],
                     bedrock_llm=bedrock_llm_config,
                     bedrock_classifier=bedrock_classifier_config,
                     bedrock_embed=bedrock_embed_config,
                     knowledge_base=knowledge_base_config,
                     retrieval=retrieval_config,
                     planner=planner_config,
                     cache=cache_config,
                     mcp=mcp_config)


# Global configuration instance
config = load_config()
