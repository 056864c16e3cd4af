"""Related-word sources.

A word source is the external collaborator that suggests words related to a
concept. Callers pass the full tree vocabulary so the source can avoid
duplicates, but they re-filter the result anyway: sources are not trusted to
honor the exclusion list.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Literal, Protocol, runtime_checkable

import httpx
import yaml
from loguru import logger

from ..config.defaults import (
    DEFAULT_LLM_MODELS,
    LLM_API_ENDPOINTS,
    LLM_TIMEOUT_SECONDS,
    MAX_RELATED_WORDS,
    MIN_RELATED_WORDS,
)
from .exceptions import ConfigError, WordSourceError

# Type alias for provider
LLMProvider = Literal["openai", "openrouter"]

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


@runtime_checkable
class WordSource(Protocol):
    """Narrow interface to the related-word backend."""

    async def generate_related(
        self, word: str, existing_words: Sequence[str]
    ) -> list[str]:
        """Return words related to ``word``, excluding ``existing_words``.

        Raises:
            WordSourceError: On any communication or parsing problem
        """
        ...


def filter_new_words(candidates: Iterable[str], existing: Iterable[str]) -> list[str]:
    """Case-insensitive de-duplication against ``existing`` and within itself.

    Blank entries are dropped; surrounding whitespace is stripped. Order and
    casing of the surviving candidates are preserved.

    Example:
        >>> filter_new_words(["SUN", "Moon", "Ocean", "Sky"], ["Sun", "ocean"])
        ['Moon', 'Sky']
    """
    seen = {word.strip().casefold() for word in existing}
    unique = []
    for candidate in candidates:
        word = candidate.strip()
        key = word.casefold()
        if not word or key in seen:
            continue
        seen.add(key)
        unique.append(word)
    return unique


class MappingWordSource:
    """Offline word source backed by a ``word -> related words`` mapping.

    Lookup is case-insensitive. Unknown words have no related words, which the
    expansion controller treats as an exhausted leaf.
    """

    def __init__(self, related: Mapping[str, Sequence[str]]) -> None:
        self._related = {key.casefold(): list(words) for key, words in related.items()}

    @classmethod
    def from_yaml(cls, path: Path) -> MappingWordSource:
        """Load the mapping from a YAML file of ``word: [related, ...]`` entries.

        Raises:
            ConfigError: If the file is missing or not a mapping of lists
        """
        if not path.exists():
            raise ConfigError(f"Words file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(v, list) for v in data.values()
        ):
            raise ConfigError(f"{path} must map each word to a list of words")

        return cls({str(k): [str(w) for w in v] for k, v in data.items()})

    async def generate_related(
        self, word: str, existing_words: Sequence[str]
    ) -> list[str]:
        candidates = self._related.get(word.strip().casefold(), [])
        return filter_new_words(candidates, existing_words)


class LLMWordSource:
    """Word source backed by an OpenAI-compatible chat completion API.

    Supports both OpenAI and OpenRouter:

    Provider Selection Priority:
    1. Explicit provider parameter
    2. Auto-detect: OpenAI if a key is available, otherwise OpenRouter
    """

    SYSTEM_PROMPT = """You generate vocabulary for a mind map.

Given a term, reply with a JSON object of the form {{"words": ["...", "..."]}}
containing between {min_words} and {max_words} diverse but conceptually related
single words or short phrases. Never repeat a word from the exclusion list
(case-insensitive). Return ONLY the JSON object."""

    def __init__(
        self,
        model: str | None = None,
        timeout: float = LLM_TIMEOUT_SECONDS,
        provider: LLMProvider | None = None,
        openai_api_key: str | None = None,
        openrouter_api_key: str | None = None,
        min_words: int = MIN_RELATED_WORDS,
        max_words: int = MAX_RELATED_WORDS,
    ) -> None:
        """Initialize the LLM word source.

        Args:
            model: Model to use (defaults based on provider)
            timeout: Request timeout in seconds
            provider: Explicit provider ('openai' or 'openrouter')
            openai_api_key: OpenAI API key (or use OPENAI_API_KEY env var)
            openrouter_api_key: OpenRouter API key (or use OPENROUTER_API_KEY env var)
            min_words: Lower bound requested from the model
            max_words: Upper bound requested from the model

        Raises:
            ConfigError: If no API key is found for the selected provider
        """
        self.openai_key = openai_api_key or os.environ.get("OPENAI_API_KEY")
        self.openrouter_key = openrouter_api_key or os.environ.get("OPENROUTER_API_KEY")

        if provider:
            self.provider: LLMProvider = provider
            if provider == "openai" and not self.openai_key:
                raise ConfigError(
                    "OpenAI provider specified but OPENAI_API_KEY not found. "
                    "Please set OPENAI_API_KEY environment variable."
                )
            elif provider == "openrouter" and not self.openrouter_key:
                raise ConfigError(
                    "OpenRouter provider specified but OPENROUTER_API_KEY not found. "
                    "Please set OPENROUTER_API_KEY environment variable."
                )
        elif self.openai_key:
            self.provider = "openai"
        elif self.openrouter_key:
            self.provider = "openrouter"
        else:
            raise ConfigError(
                "No API key found. Please set OPENAI_API_KEY or OPENROUTER_API_KEY "
                "environment variable, or use a words file for offline mode."
            )

        if self.provider == "openai":
            self.api_key = self.openai_key
            self.model = model or os.environ.get(
                "OPENAI_MODEL", DEFAULT_LLM_MODELS["openai"]
            )
        else:
            self.api_key = self.openrouter_key
            self.model = model or os.environ.get(
                "OPENROUTER_MODEL", DEFAULT_LLM_MODELS["openrouter"]
            )

        self.api_endpoint = LLM_API_ENDPOINTS[self.provider]
        self.timeout = timeout
        self.min_words = min_words
        self.max_words = max_words

        logger.debug(
            f"Initialized LLM word source with provider: {self.provider}, "
            f"model: {self.model}"
        )

    async def generate_related(
        self, word: str, existing_words: Sequence[str]
    ) -> list[str]:
        """Ask the model for words related to ``word``.

        Args:
            word: Concept to expand
            existing_words: Every word already in the tree

        Returns:
            Related words with case-insensitive duplicates removed

        Raises:
            WordSourceError: If the API call fails or the reply is malformed
        """
        exclusions = ", ".join(existing_words) or "(none)"
        messages = [
            {
                "role": "system",
                "content": self.SYSTEM_PROMPT.format(
                    min_words=self.min_words, max_words=self.max_words
                ),
            },
            {
                "role": "user",
                "content": f'Term: "{word}"\nExclusion list: {exclusions}',
            },
        ]

        response = await self._chat_completion(messages)
        words = self._parse_words(response)
        unique = filter_new_words(words, existing_words)

        logger.debug(
            f"Generated {len(words)} words for '{word}' "
            f"({len(words) - len(unique)} duplicates dropped)"
        )
        return unique

    async def _chat_completion(self, messages: list[dict[str, str]]) -> dict[str, Any]:
        """Make chat completion request to OpenAI or OpenRouter API.

        Raises:
            WordSourceError: If API request fails
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        # OpenRouter-specific headers
        if self.provider == "openrouter":
            headers["X-Title"] = "WordWeb"

        payload = {
            "model": self.model,
            "messages": messages,
            "response_format": {"type": "json_object"},
        }

        provider_name = self.provider.capitalize()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_endpoint,
                    headers=headers,
                    json=payload,
                )

                response.raise_for_status()
                return response.json()

        except httpx.TimeoutException as e:
            logger.error(f"{provider_name} API timeout after {self.timeout}s")
            raise WordSourceError(
                f"Word generation timed out after {self.timeout} seconds."
            ) from e

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            error_msg = self._status_message(status_code)
            logger.error(error_msg)
            raise WordSourceError(error_msg, context={"status_code": status_code}) from e

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{provider_name} API request failed: {e}")
            raise WordSourceError(f"Word generation request failed: {e}") from e

    def _status_message(self, status_code: int) -> str:
        """User-facing text for a failed HTTP status from the provider."""
        provider_name = self.provider.capitalize()
        if status_code == 401:
            key_var = f"{self.provider.upper()}_API_KEY"
            return f"Invalid {provider_name} API key. Please check {key_var} environment variable."
        if status_code == 429:
            return f"{provider_name} API rate limit exceeded. Please wait and try again."
        if status_code >= 500:
            return f"{provider_name} API server error. Please try again later."
        return f"{provider_name} API error (HTTP {status_code})"

    def _parse_words(self, response: dict[str, Any]) -> list[str]:
        """Extract the ``words`` list from a chat completion response.

        Accepts a bare JSON object or one wrapped in a fenced code block.

        Raises:
            WordSourceError: If the content is not ``{"words": [str, ...]}``
        """
        try:
            content = response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise WordSourceError("Malformed chat completion response") from e

        if not isinstance(content, str) or not content.strip():
            raise WordSourceError("Empty response from word generation model")

        text = content.strip()
        fenced = _FENCED_JSON.search(text)
        if fenced:
            text = fenced.group(1)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise WordSourceError(
                f"Could not parse JSON from response: {content[:200]}"
            ) from e

        words = data.get("words") if isinstance(data, dict) else None
        if not isinstance(words, list) or not all(isinstance(w, str) for w in words):
            raise WordSourceError(
                "Response does not match schema {\"words\": [string, ...]}"
            )

        return words


def create_word_source(
    provider: str | None = None,
    model: str | None = None,
    timeout: float = LLM_TIMEOUT_SECONDS,
    min_words: int = MIN_RELATED_WORDS,
    max_words: int = MAX_RELATED_WORDS,
    words_file: Path | None = None,
) -> WordSource:
    """Build the configured word source.

    A words file selects the offline ``MappingWordSource``; otherwise an
    ``LLMWordSource`` is created from the environment's API keys.

    Raises:
        ConfigError: If neither a words file nor an API key is available
    """
    if words_file is not None:
        logger.debug(f"Using offline word source from {words_file}")
        return MappingWordSource.from_yaml(words_file)

    return LLMWordSource(
        model=model,
        timeout=timeout,
        provider=provider,  # type: ignore[arg-type]
        min_words=min_words,
        max_words=max_words,
    )
