"""
Text-to-query generator client (OpenAI-compatible chat completions)
"""
import logging
from typing import Any, Dict

import requests

from schema_browser.core.errors import QueryGenerationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions"
COMPLETIONS_PATH = "/chat/completions"

DIALECT_INSTRUCTIONS = {
    'redis': "This is a Redis database. Return Redis CLI commands (GET, HGETALL, LRANGE, ...), not SQL.",
    'postgresql': "Use the PostgreSQL dialect (double-quoted identifiers, PostgreSQL date functions).",
    'mysql': "Use the MySQL dialect (backtick-quoted identifiers).",
}
GENERIC_INSTRUCTION = "Use standard SQL syntax."


def build_prompt(db_type: str, schema_text: str, request: str) -> str:
    """Build the single user message sent to the model"""
    instruction = DIALECT_INSTRUCTIONS.get(db_type.lower(), GENERIC_INSTRUCTION)
    return (
        "You are a database query expert. Write an accurate query from the information below.\n"
        "\n"
        f"## Target database\n{db_type}\n"
        "\n"
        f"## Instructions\n{instruction}\n"
        "\n"
        f"## Schema\n{schema_text}\n"
        "\n"
        f"## Request\n{request}\n"
        "\n"
        "## Output\n"
        "1. Return only the final query (SQL or Redis commands)\n"
        "2. No Markdown code fences and no explanations\n"
        "3. The syntax must be valid for the target database\n"
        "4. Prefer efficient queries\n"
    )


def normalize_url(api_url: str) -> str:
    """Accept a base URL and append the chat completions path when it is missing"""
    url = (api_url or '').strip() or DEFAULT_API_URL
    if url.endswith(COMPLETIONS_PATH) or url.endswith(COMPLETIONS_PATH + '/'):
        return url
    return url.rstrip('/') + COMPLETIONS_PATH


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```sql ... ``` block if the model added one"""
    cleaned = text.strip()
    for prefix in ('```sql', '```'):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):]
            break
    if cleaned.endswith('```'):
        cleaned = cleaned[:-3]
    return cleaned.strip()


class QueryGenerator:
    """Generates a query from schema text and a natural-language request"""

    def __init__(self, config: Dict[str, Any]):
        """
        Args:
            config: AI configuration dictionary (api_key, api_url, model,
                temperature, timeout_seconds)
        """
        self.api_key = (config.get('api_key') or '').strip()
        self.api_url = normalize_url(config.get('api_url', ''))
        self.model = (config.get('model') or 'qwen-turbo').strip()
        self.temperature = config.get('temperature', 0.1)
        self.timeout = config.get('timeout_seconds', 60)

    def generate(self, db_type: str, schema_text: str, request: str) -> str:
        """
        Ask the model for a query

        Args:
            db_type: Store type, selects the dialect instruction
            schema_text: Plain-text schema description
            request: What the user wants, in natural language

        Returns:
            The query text without Markdown fences

        Raises:
            QueryGenerationError: On missing API key, transport, HTTP or
                response format failure
        """
        if not self.api_key:
            raise QueryGenerationError("API key is not configured")

        payload = {
            'model': self.model,
            'messages': [{'role': 'user', 'content': build_prompt(db_type, schema_text, request)}],
            'temperature': self.temperature,
        }
        headers = {
            'Authorization': f"Bearer {self.api_key}",
            'Content-Type': 'application/json',
        }

        logger.info(f"Requesting query generation from {self.api_url} with model {self.model}")
        try:
            response = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Query generation request failed: {e}")
            raise QueryGenerationError(f"Request failed: {e}") from e

        if not response.ok:
            raise QueryGenerationError(self._error_message(response))

        try:
            data = response.json()
        except ValueError as e:
            raise QueryGenerationError(f"Response is not valid JSON: {response.text}") from e

        try:
            content = data['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError) as e:
            raise QueryGenerationError("API returned no usable content") from e

        return strip_code_fences(content or '')

    @staticmethod
    def _error_message(response) -> str:
        try:
            return f"API error: {response.json()['error']['message']}"
        except (ValueError, KeyError, TypeError):
            return f"API request failed ({response.status_code}): {response.text}"
