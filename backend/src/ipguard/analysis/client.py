"""AI completion client.

Supports OpenAI-compatible chat APIs (Groq by default, via ``llm_base_url``)
and the Anthropic Messages API.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..config import get_settings
from ..errors import AnalysisTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Completion:
    """Text returned by the model plus total tokens billed."""

    text: str
    tokens_used: int = 0


class CompletionClient:
    """Chat completion client with a hard per-call timeout."""

    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
    ):
        """Initialize the completion client.

        Args:
            provider: LLM provider ('openai' or 'anthropic'); defaults to settings
            model: Model name; defaults to settings
            timeout_seconds: Per-call timeout; defaults to settings
        """
        settings = get_settings()
        self.provider = provider or settings.llm_provider
        self.model = model or settings.llm_model
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.llm_timeout_seconds
        )
        self._client: Any = None

    async def _get_client(self) -> Any:
        """Get or create the provider SDK client."""
        if self._client is not None:
            return self._client

        settings = get_settings()

        if self.provider == "openai":
            try:
                import openai
                self._client = openai.AsyncOpenAI(
                    api_key=settings.openai_api_key,
                    base_url=settings.llm_base_url or None,
                )
            except ImportError:
                raise RuntimeError("openai package not installed")
        elif self.provider == "anthropic":
            try:
                import anthropic
                self._client = anthropic.AsyncAnthropic(
                    api_key=settings.anthropic_api_key,
                )
            except ImportError:
                raise RuntimeError("anthropic package not installed")
        else:
            raise ValueError(f"Unknown LLM provider: {self.provider}")

        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.1,
        model: str | None = None,
    ) -> Completion:
        """Run one chat completion.

        Raises:
            AnalysisTimeoutError: If the call exceeds ``timeout_seconds``
        """
        client = await self._get_client()
        model = model or self.model

        if self.provider == "openai":
            call = self._complete_openai(
                client, model, system_prompt, user_prompt, max_tokens, temperature
            )
        else:
            call = self._complete_anthropic(
                client, model, system_prompt, user_prompt, max_tokens, temperature
            )

        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Completion with {model} timed out after {self.timeout_seconds}s")
            raise AnalysisTimeoutError(self.timeout_seconds)

    async def _complete_openai(
        self,
        client: Any,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> Completion:
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        usage = getattr(response, "usage", None)
        return Completion(
            text=response.choices[0].message.content or "",
            tokens_used=getattr(usage, "total_tokens", 0) or 0,
        )

    async def _complete_anthropic(
        self,
        client: Any,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> Completion:
        response = await client.messages.create(
            model=model,
            system=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[
                {"role": "user", "content": user_prompt},
            ],
        )

        usage = getattr(response, "usage", None)
        tokens = 0
        if usage is not None:
            tokens = (usage.input_tokens or 0) + (usage.output_tokens or 0)
        return Completion(text=response.content[0].text, tokens_used=tokens)
