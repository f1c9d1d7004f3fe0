"""
Amazon Bedrock LLM client wrapper with retry logic, timeouts and streaming.
"""

import random
import time
from typing import Any, Dict, Iterator, List, Optional, Tuple

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import BedrockLLMConfig
from .logging_config import get_logger

logger = get_logger(__name__)


class BedrockLLMError(Exception):
    """Custom exception for Bedrock LLM errors."""
    pass


class BedrockLLM:
    """Amazon Bedrock LLM client with retry logic and error handling."""

    def __init__(self, config: BedrockLLMConfig):
        """
        Initialize Bedrock LLM client.

        Args:
            config: BedrockLLMConfig instance with connection parameters
        """
        self.config = config
        self.model_id = config.model_id

        # Create Bedrock runtime client with timeout configuration
        self.bedrock_runtime = boto3.client(
            'bedrock-runtime',
            region_name=config.region,
            config=BotoConfig(
                connect_timeout=config.connect_timeout,
                read_timeout=config.read_timeout,
                retries={'max_attempts': 0}  # We handle retries manually
            ))

        logger.info(f'Initialized Bedrock LLM client with model: {self.model_id}')

    def _build_request(self,
                       messages: List[Dict[str, Any]],
                       system_prompt: str,
                       max_tokens: Optional[int],
                       temperature: Optional[float],
                       stop_sequences: Optional[List[str]]) -> Dict[str, Any]:
        inf_params = {
            'maxTokens': max_tokens or self.config.max_tokens,
            'temperature': self.config.temperature if temperature is None else temperature,
            'stopSequences': stop_sequences or [],
        }
        return {
            'modelId': self.model_id,
            'messages': messages,
            'system': [{'text': system_prompt}],
            'inferenceConfig': inf_params,
        }

    def generate_response(self,
                          messages: List[Dict[str, Any]],
                          system_prompt: str,
                          max_tokens: Optional[int] = None,
                          temperature: Optional[float] = None,
                          stop_sequences: Optional[List[str]] = None) -> Tuple[str, Optional[Dict[str, Any]]]:
        """
        Generate a complete response using Bedrock LLM with retry logic.

        Args:
            messages: List of message dictionaries in Bedrock format
            system_prompt: System prompt for the conversation
            max_tokens: Maximum tokens to generate (uses config default if None)
            temperature: Temperature for generation (uses config default if None)
            stop_sequences: Stop sequences for generation

        Returns:
            Tuple of (response_text, invoke_metrics)

        Raises:
            BedrockLLMError: If all retry attempts fail
        """
        request = self._build_request(messages, system_prompt, max_tokens, temperature, stop_sequences)

        for attempt in range(self.config.retry_attempts):
            try:
                logger.debug(f'Bedrock LLM request attempt {attempt + 1}/{self.config.retry_attempts}')

                stream = self.bedrock_runtime.converse_stream(**request).get('stream')

                msg = ''
                invoke_metrics = None

                if stream:
                    for event in stream:
                        if 'contentBlockDelta' in event:
                            msg += event['contentBlockDelta']['delta']['text']
                        if 'metadata' in event:
                            invoke_metrics = {**event['metadata']['usage'], **event['metadata']['metrics']}

                logger.debug(f'Bedrock LLM response generated successfully (length: {len(msg)})')
                return msg, invoke_metrics

            except (ClientError, BotoCoreError) as e:
                logger.warning(f'Bedrock LLM attempt {attempt + 1}/{self.config.retry_attempts} failed: {e}')

                if attempt < self.config.retry_attempts - 1:
                    # Exponential backoff with jitter
                    delay = self.config.retry_delay * (2**attempt) + random.uniform(0, 1)
                    time.sleep(delay)
                else:
                    raise BedrockLLMError(f'Bedrock LLM failed after {self.config.retry_attempts} attempts: {e}')

            except Exception as e:
                logger.error(f'Unexpected error in Bedrock LLM: {e}')
                raise BedrockLLMError(f'Unexpected Bedrock LLM error: {e}')

        raise BedrockLLMError(f'Bedrock LLM failed after {self.config.retry_attempts} attempts')

    def stream_response(self,
                        messages: List[Dict[str, Any]],
                        system_prompt: str,
                        max_tokens: Optional[int] = None,
                        temperature: Optional[float] = None) -> Iterator[str]:
        """
        Stream response text deltas from Bedrock LLM.

        Retries only happen before the first delta is yielded; once text has
        reached the caller a failure is raised instead of restarting the answer.

        Args:
            messages: List of message dictionaries in Bedrock format
            system_prompt: System prompt for the conversation
            max_tokens: Maximum tokens to generate (uses config default if None)
            temperature: Temperature for generation (uses config default if None)

        Yields:
            Text deltas in arrival order

        Raises:
            BedrockLLMError: If the stream cannot be opened or breaks mid-answer
        """
        request = self._build_request(messages, system_prompt, max_tokens, temperature, None)

        for attempt in range(self.config.retry_attempts):
            emitted = False
            try:
                logger.debug(f'Bedrock LLM stream attempt {attempt + 1}/{self.config.retry_attempts}')

                stream = self.bedrock_runtime.converse_stream(**request).get('stream')
                if stream:
                    for event in stream:
                        if 'contentBlockDelta' in event:
                            text = event['contentBlockDelta']['delta'].get('text', '')
                            if text:
                                emitted = True
                                yield text
                        if 'metadata' in event:
                            logger.debug(f"Bedrock LLM stream usage: {event['metadata'].get('usage')}")
                return

            except (ClientError, BotoCoreError) as e:
                logger.warning(f'Bedrock LLM stream attempt {attempt + 1}/{self.config.retry_attempts} failed: {e}')

                if emitted:
                    raise BedrockLLMError(f'Bedrock LLM stream interrupted: {e}')
                if attempt < self.config.retry_attempts - 1:
                    delay = self.config.retry_delay * (2**attempt) + random.uniform(0, 1)
                    time.sleep(delay)
                else:
                    raise BedrockLLMError(f'Bedrock LLM stream failed after {self.config.retry_attempts} attempts: {e}')

            except Exception as e:
                logger.error(f'Unexpected error in Bedrock LLM stream: {e}')
                raise BedrockLLMError(f'Unexpected Bedrock LLM stream error: {e}')

        raise BedrockLLMError(f'Bedrock LLM stream failed after {self.config.retry_attempts} attempts')

    def health_check(self) -> bool:
        """
        Perform a health check on the Bedrock LLM service.

        Returns:
            True if service is healthy, False otherwise
        """
        try:
            test_messages = [{'role': 'user', 'content': [{'text': 'Hi'}]}]
            response, _ = self.generate_response(messages=test_messages,
                                                 system_prompt="You are a helpful assistant. Respond with just 'OK'.",
                                                 max_tokens=10,
                                                 temperature=0.0)
            return len(response.strip()) > 0

        except Exception as e:
            logger.error(f'Bedrock LLM health check failed: {e}')
            return False
