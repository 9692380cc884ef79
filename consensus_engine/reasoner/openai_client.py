"""
OpenAI-Compatible Clients

OpenAI GPT models and xAI Grok (which exposes an OpenAI-compatible API).
"""

import logging
from typing import Optional, Tuple

import openai
from openai import OpenAI

from .providers import BaseProvider

logger = logging.getLogger(__name__)


class OpenAIClient(BaseProvider):
    """
    Provider capability backed by the Chat Completions API.
    """

    name = "openai"
    timeout_exceptions = (openai.APITimeoutError, TimeoutError)

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7
    ):
        self.client = OpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        super().__init__(model=model, max_tokens=max_tokens, temperature=temperature)

    def _complete(self, prompt: str, timeout: float) -> Tuple[str, Optional[int]]:
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=timeout
        )
        text = completion.choices[0].message.content if completion.choices else None
        tokens = completion.usage.total_tokens if completion.usage else None
        return text or "", tokens


class GrokClient(OpenAIClient):
    """xAI Grok through its OpenAI-compatible endpoint."""

    name = "grok"

    def __init__(
        self,
        api_key: str,
        model: str = "grok-2-latest",
        base_url: str = "https://api.x.ai/v1",
        max_tokens: int = 4096,
        temperature: float = 0.7
    ):
        super().__init__(api_key=api_key, model=model, base_url=base_url,
                         max_tokens=max_tokens, temperature=temperature)
