"""Chat-completion client used for decision synthesis."""

from __future__ import annotations

import logging
from typing import Dict, List, Protocol, Sequence, runtime_checkable

from claimcheck.errors import ProviderError

logger = logging.getLogger(__name__)

Message = Dict[str, str]


@runtime_checkable
class TextGenerator(Protocol):
    """Capability: given role-tagged messages, return one text completion."""

    def complete(
        self,
        messages: Sequence[Message],
        *,
        temperature: float = 0.0,
        max_tokens: int = 600,
        timeout: float = 60.0,
    ) -> str: ...


class OpenAIChatClient:
    """OpenAI chat completions behind the ``TextGenerator`` interface."""

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        client: object | None = None,
    ) -> None:
        self.model = model
        if client is None:
            from openai import OpenAI

            # Transport failures surface to the caller, no silent retries
            client = OpenAI(api_key=api_key, max_retries=0)
        self._client = client

    def complete(
        self,
        messages: Sequence[Message],
        *,
        temperature: float = 0.0,
        max_tokens: int = 600,
        timeout: float = 60.0,
    ) -> str:
        payload: List[Message] = [dict(message) for message in messages]
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=payload,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=timeout,
            )
        except Exception as exc:
            logger.error("Chat completion failed: %s", exc)
            raise ProviderError(f"Chat completion failed: {exc}") from exc

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()
