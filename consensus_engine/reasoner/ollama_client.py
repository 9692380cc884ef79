"""
Ollama Client

Local models served by Ollama (default http://localhost:11434).
"""

import logging
from typing import Optional, Tuple

import requests

from .providers import BaseProvider

logger = logging.getLogger(__name__)


class OllamaClient(BaseProvider):
    """
    Provider capability backed by Ollama's /api/chat endpoint.
    """

    name = "ollama"
    timeout_exceptions = (requests.exceptions.Timeout, TimeoutError)

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        max_tokens: int = 4096,
        temperature: float = 0.7
    ):
        self.base_url = base_url.rstrip('/')
        super().__init__(model=model, max_tokens=max_tokens, temperature=temperature)

    def _complete(self, prompt: str, timeout: float) -> Tuple[str, Optional[int]]:
        response = requests.post(
            f"{self.base_url}/api/chat",
            json={
                'model': self.model,
                'messages': [{'role': 'user', 'content': prompt}],
                'stream': False,
                'options': {
                    'temperature': self.temperature,
                    'num_predict': self.max_tokens
                }
            },
            timeout=timeout
        )
        response.raise_for_status()
        data = response.json()

        text = (data.get('message') or {}).get('content', '')
        prompt_tokens = data.get('prompt_eval_count')
        output_tokens = data.get('eval_count')
        tokens = None
        if prompt_tokens is not None or output_tokens is not None:
            tokens = (prompt_tokens or 0) + (output_tokens or 0)
        return text, tokens

    def is_available(self) -> bool:
        """Check whether the Ollama server answers within 3 seconds."""
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=3)
            return response.ok
        except requests.exceptions.RequestException as e:
            logger.warning(f"Ollama not available at {self.base_url}: {e}")
            return False
