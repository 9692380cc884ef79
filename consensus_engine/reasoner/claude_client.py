"""
Claude Provider

Anthropic Claude answering research prompts through the Messages API.
"""

import logging
from typing import Optional, Tuple

import anthropic
from anthropic import Anthropic
from anthropic.types import Message

from .providers import BaseProvider

logger = logging.getLogger(__name__)

DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-20250514"


class ClaudeClient(BaseProvider):
    """
    Provider capability backed by Anthropic's Messages API.

    SDK retries are disabled; the collector's deadline is the only retry
    budget a query gets.
    """

    name = "claude"
    timeout_exceptions = (anthropic.APITimeoutError, TimeoutError)

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_CLAUDE_MODEL,
        max_tokens: int = 4096,
        temperature: float = 0.7
    ):
        """
        Create the Anthropic client.

        Args:
            api_key: Anthropic API key
            model: Claude model used for every research prompt
            max_tokens: Output token cap per answer
            temperature: Sampling temperature
        """
        self.client = Anthropic(api_key=api_key, max_retries=0)
        super().__init__(model=model, max_tokens=max_tokens, temperature=temperature)

    def _complete(self, prompt: str, timeout: float) -> Tuple[str, Optional[int]]:
        message = self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[{"role": "user", "content": prompt}],
            timeout=timeout
        )
        if message.stop_reason == "max_tokens":
            logger.warning(f"Claude answer truncated at {self.max_tokens} tokens")

        usage = message.usage
        return self._extract_text(message), usage.input_tokens + usage.output_tokens

    @staticmethod
    def _extract_text(message: Message) -> str:
        """Join the text blocks of a Claude answer, skipping tool and thinking blocks."""
        return "\n".join(
            block.text for block in message.content
            if getattr(block, 'type', None) == 'text'
        )

    def validate_api_key(self) -> bool:
        """
        Check the key by looking up the configured model.

        Returns:
            True if the key is accepted and the model exists
        """
        try:
            self.client.models.retrieve(self.model)
        except anthropic.APIError as e:
            logger.error(f"Claude key or model rejected: {e}")
            return False

        logger.info(f"Claude key accepted for {self.model}")
        return True
