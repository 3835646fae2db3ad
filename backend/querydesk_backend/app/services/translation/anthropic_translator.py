"""Anthropic Messages API translator."""

from __future__ import annotations

import logging
from typing import Any, Optional

from anthropic import Anthropic, APIConnectionError, APIStatusError

from querydesk_backend.app.services.errors import (
    MalformedReplyError,
    TranslatorNotConfiguredError,
    UpstreamError,
)
from querydesk_backend.app.services.translation.base import Translator

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_MAX_TOKENS = 1000
DEFAULT_TIMEOUT_SECONDS = 30.0


class AnthropicTranslator(Translator):
    """Anthropic Claude translator.

    Requests are not retried; a failed call surfaces immediately with the
    upstream status and body attached.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        *,
        api_base: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: Any = None,
    ):
        """Initialize the translator.

        Args:
            api_key: Anthropic API key; without one every call fails as not configured
            model: Model identifier
            api_base: Override base URL
            max_tokens: Output token cap
            timeout: Request timeout in seconds
            client: Pre-built client, mainly for tests
        """
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        if client is None and api_key:
            client = Anthropic(api_key=api_key, base_url=api_base, timeout=timeout, max_retries=0)
        self.client = client

    @property
    def configured(self) -> bool:
        return self.client is not None

    def complete(self, prompt: str) -> str:
        if self.client is None:
            raise TranslatorNotConfiguredError()

        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIStatusError as e:
            body = e.response.text if e.response is not None else None
            logger.warning("Translation request failed with status %s", e.status_code)
            raise UpstreamError(
                f"API request failed with status {e.status_code}: {body}",
                status_code=e.status_code,
                body=body,
            ) from e
        except APIConnectionError as e:
            logger.warning("Translation service unreachable: %s", e)
            raise UpstreamError(f"Translation service unreachable: {e}") from e

        if not message.content:
            raise MalformedReplyError("empty response from AI")
        text = getattr(message.content[0], "text", None)
        if not isinstance(text, str):
            raise MalformedReplyError("first content block carries no text")
        return text
