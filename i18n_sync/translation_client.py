"""Batch translation of catalog strings through the OpenAI chat completions API."""
import json
import logging
import re
from typing import Any, Dict, List, Optional

import jsonschema
from aiolimiter import AsyncLimiter
from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import (
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam
)

from i18n_sync.errors import ProviderError

logger = logging.getLogger(__name__)

AUTO_DETECT = 'auto'

SYSTEM_PROMPT = "You are a localization engine. Output strict JSON only."

# The provider must answer with exactly one list of strings.
TRANSLATIONS_SCHEMA = {
    "type": "object",
    "properties": {
        "translations": {
            "type": "array",
            "items": {"type": "string"}
        }
    },
    "required": ["translations"]
}


def describe_language(language_tag: Optional[str], language_codes: Dict[str, str]) -> str:
    """
    Render a language tag for the prompt, e.g. ``German (de)``.

    Unknown tags are passed through unchanged; a missing tag becomes ``auto``.
    """
    if not language_tag:
        return AUTO_DETECT
    name = language_codes.get(language_tag)
    return f"{name} ({language_tag})" if name else language_tag


def build_translation_rules(source_language: str, target_language: str) -> List[str]:
    return [
        'Return JSON only: { "translations": string[] }',
        "Keep array length and order",
        f'Translate from {source_language} to {target_language}; detect if "{AUTO_DETECT}"',
        "Preserve ICU placeholders {name}, plural blocks, printf %s %d %1$s, HTML tags, and markdown",
        "Only translate human-readable strings; keep casing; empty in → empty out",
    ]


def build_messages(texts: List[str], source_language: str, target_language: str) -> List[Any]:
    """Build the chat messages for one translation request."""
    user_payload = {
        "rules": build_translation_rules(source_language, target_language),
        "inputs": texts,
    }
    return [
        ChatCompletionSystemMessageParam(role="system", content=SYSTEM_PROMPT),
        ChatCompletionUserMessageParam(role="user", content=json.dumps(user_payload, ensure_ascii=False)),
    ]


def parse_translations_payload(content: str, expected_length: int) -> List[str]:
    """
    Extract the translated strings from a provider response.

    If the content is not pure JSON, the outermost ``{...}`` block is tried
    (models occasionally wrap the object in prose or code fences).

    Raises:
        ProviderError: If no valid payload can be extracted or its length is wrong.
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        match = re.search(r'\{[\s\S]*\}', content)
        if not match:
            raise ProviderError("Provider response does not contain a JSON object.")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as json_exc:
            raise ProviderError(f"Provider response is not valid JSON: {json_exc}") from json_exc

    try:
        jsonschema.validate(instance=parsed, schema=TRANSLATIONS_SCHEMA)
    except jsonschema.ValidationError as schema_exc:
        raise ProviderError(f"Invalid translations payload: {schema_exc.message}") from schema_exc

    translations = parsed["translations"]
    if len(translations) != expected_length:
        raise ProviderError(
            f"Invalid translations payload: expected {expected_length} items, got {len(translations)}."
        )
    return translations


class OpenAITranslationClient:
    """
    Stateless translator: ordered texts in, ordered translations out.

    Each call is a single request. Retries and timeouts are applied by the
    caller through ``RetryPolicy``.
    """

    def __init__(
            self,
            client: AsyncOpenAI,
            model_name: str,
            language_codes: Optional[Dict[str, str]] = None,
            rate_limiter: Optional[AsyncLimiter] = None,
            temperature: float = 0.0
    ):
        self._client = client
        self.model_name = model_name
        self.language_codes = language_codes or {}
        self._rate_limiter = rate_limiter or AsyncLimiter(max_rate=60, time_period=60)
        self.temperature = temperature

    async def translate(
            self,
            texts: List[str],
            source_language: Optional[str],
            target_language: str
    ) -> List[str]:
        """
        Translate ``texts`` from ``source_language`` into ``target_language``.

        Raises:
            ProviderError: If the request fails or the answer is malformed.
        """
        if not texts:
            return []

        messages = build_messages(
            texts,
            describe_language(source_language, self.language_codes),
            describe_language(target_language, self.language_codes)
        )

        try:
            async with self._rate_limiter:
                response = await self._client.chat.completions.create(
                    model=self.model_name,
                    messages=messages,
                    temperature=self.temperature,
                    response_format={"type": "json_object"},
                )
        except OpenAIError as api_exc:
            raise ProviderError(f"OpenAI request failed: {api_exc.__class__.__name__} - {api_exc}") from api_exc

        if not response.choices:
            raise ProviderError("OpenAI response contained no choices.")
        content = response.choices[0].message.content or ""
        logger.debug("Received %d characters for %d texts.", len(content), len(texts))

        return parse_translations_payload(content, len(texts))
