"""
JSON utilities for cleaning and parsing LLM responses.
"""

import json
from typing import Any, Dict


def clean_json_response(response: str) -> str:
    """Clean LLM response by removing code block markers.

    Args:
        response: Raw LLM response

    Returns:
        Cleaned JSON string
    """
    response = response.strip()

    # Remove ```json and ``` markers
    if response.startswith('```json'):
        response = response[7:]
    elif response.startswith('```'):
        response = response[3:]

    if response.endswith('```'):
        response = response[:-3]

    return response.strip()


def parse_json_object(response: str) -> Dict[str, Any]:
    """Parse an LLM response that must contain a single JSON object.

    Args:
        response: Raw LLM response

    Returns:
        Parsed dictionary

    Raises:
        ValueError: If the response is not valid JSON or not an object
    """
    cleaned = clean_json_response(response)

    # Models occasionally wrap the object in prose
    start, end = cleaned.find('{'), cleaned.rfind('}')
    if start == -1 or end < start:
        raise ValueError('No JSON object found in response')

    data = json.loads(cleaned[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError(f'Expected JSON object, got {type(data).__name__}')
    return data
