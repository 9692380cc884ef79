"""
Reasoner Module

Provider capabilities for the external language models and the collector
that queries them in parallel.
"""

from .claude_client import ClaudeClient
from .collector import ResponseCollector
from .costs import estimate_query_cost
from .gemini_client import GeminiClient
from .ollama_client import OllamaClient
from .openai_client import GrokClient, OpenAIClient
from .providers import BaseProvider

__all__ = [
    "BaseProvider",
    "ClaudeClient",
    "OpenAIClient",
    "GrokClient",
    "GeminiClient",
    "OllamaClient",
    "ResponseCollector",
    "estimate_query_cost"
]
