"""Abstract text-in/text-out translation service."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Translator(ABC):
    """A model endpoint that answers a single user prompt with text."""

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """
        Send ``prompt`` as one user message and return the reply text.

        Raises:
            UpstreamError: If the service is unreachable or answers non-2xx
            MalformedReplyError: If the reply carries no text
        """
        pass
