"""
Gemini Client

Google Gemini models through the Generative Language REST API.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import requests

from .providers import BaseProvider

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient(BaseProvider):
    """
    Provider capability backed by Gemini's generateContent endpoint.
    """

    name = "gemini"
    timeout_exceptions = (requests.exceptions.Timeout, TimeoutError)

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-pro",
        api_base: str = GEMINI_API_BASE,
        max_tokens: int = 4096,
        temperature: float = 0.7
    ):
        """
        Args:
            api_key: Google AI API key
            model: Gemini model name, with or without the 'models/' prefix
            api_base: Generative Language API root
            max_tokens: Output token cap per answer
            temperature: Sampling temperature
        """
        self.api_key = api_key
        self.api_base = api_base.rstrip('/')
        super().__init__(model=model, max_tokens=max_tokens, temperature=temperature)

    def _complete(self, prompt: str, timeout: float) -> Tuple[str, Optional[int]]:
        model_path = self.model if self.model.startswith("models/") else f"models/{self.model}"
        response = requests.post(
            f"{self.api_base}/{model_path}:generateContent",
            headers={
                'x-goog-api-key': self.api_key,
                'Content-Type': 'application/json'
            },
            json={
                'contents': [{'role': 'user', 'parts': [{'text': prompt}]}],
                'generationConfig': {
                    'temperature': self.temperature,
                    'maxOutputTokens': self.max_tokens
                }
            },
            timeout=timeout
        )
        response.raise_for_status()
        data = response.json()

        usage = data.get('usageMetadata') or {}
        return self._extract_text(data), usage.get('totalTokenCount')

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        """Join the text parts of every candidate."""
        texts = []
        for candidate in data.get('candidates') or []:
            if candidate.get('finishReason') == 'MAX_TOKENS':
                logger.warning("Gemini answer truncated at the output token cap")
            for part in (candidate.get('content') or {}).get('parts') or []:
                if part.get('text'):
                    texts.append(part['text'])
        return "\n".join(texts).strip()
