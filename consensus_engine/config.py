"""
Configuration

Settings come from environment variables, optionally loaded from a .env file.
"""

import logging
import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .reasoner import (
    BaseProvider,
    ClaudeClient,
    GeminiClient,
    GrokClient,
    OllamaClient,
    OpenAIClient
)

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """Runtime settings for the aggregation engine and its collaborators."""
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    xai_api_key: Optional[str] = None
    xai_model: str = "grok-2-latest"
    xai_base_url: str = "https://api.x.ai/v1"
    google_ai_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-pro"
    ollama_enabled: bool = False
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.1:8b"
    serpapi_key: Optional[str] = None
    neo4j_uri: Optional[str] = None
    neo4j_user: Optional[str] = None
    neo4j_password: Optional[str] = None
    provider_timeout_seconds: float = Field(60.0, gt=0)
    overall_timeout_seconds: float = Field(120.0, gt=0)
    patent_search_limit: int = Field(10, ge=0)
    agreement_threshold: float = Field(0.5, ge=0.0, lt=1.0)
    reuse_window_hours: float = Field(24.0, ge=0)
    results_file: str = "./data/aggregations.json"
    log_level: str = "INFO"


def _flag(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in ('1', 'true', 'yes', 'on')


def load_config(env_file: Optional[str] = None) -> EngineConfig:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional path to a .env file (defaults to searching for .env)

    Returns:
        EngineConfig populated from environment variables
    """
    load_dotenv(env_file)

    config = EngineConfig(
        anthropic_api_key=os.getenv('ANTHROPIC_API_KEY') or None,
        anthropic_model=os.getenv('ANTHROPIC_MODEL', 'claude-sonnet-4-20250514'),
        openai_api_key=os.getenv('OPENAI_API_KEY') or None,
        openai_model=os.getenv('OPENAI_MODEL', 'gpt-4o'),
        xai_api_key=os.getenv('XAI_API_KEY') or None,
        xai_model=os.getenv('XAI_MODEL', 'grok-2-latest'),
        xai_base_url=os.getenv('XAI_BASE_URL', 'https://api.x.ai/v1'),
        google_ai_api_key=os.getenv('GOOGLE_AI_API_KEY') or None,
        gemini_model=os.getenv('GEMINI_MODEL', 'gemini-1.5-pro'),
        ollama_enabled=_flag(os.getenv('OLLAMA_ENABLED')),
        ollama_base_url=os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434'),
        ollama_model=os.getenv('OLLAMA_MODEL', 'llama3.1:8b'),
        serpapi_key=os.getenv('SERPAPI_KEY') or None,
        neo4j_uri=os.getenv('NEO4J_URI') or None,
        neo4j_user=os.getenv('NEO4J_USER') or None,
        neo4j_password=os.getenv('NEO4J_PASSWORD') or None,
        provider_timeout_seconds=float(os.getenv('PROVIDER_TIMEOUT_SECONDS', '60')),
        overall_timeout_seconds=float(os.getenv('OVERALL_TIMEOUT_SECONDS', '120')),
        patent_search_limit=int(os.getenv('PATENT_SEARCH_LIMIT', '10')),
        agreement_threshold=float(os.getenv('AGREEMENT_THRESHOLD', '0.5')),
        reuse_window_hours=float(os.getenv('REUSE_WINDOW_HOURS', '24')),
        results_file=os.getenv('RESULTS_FILE', './data/aggregations.json'),
        log_level=os.getenv('LOG_LEVEL', 'INFO')
    )
    logger.debug("Configuration loaded")
    return config


def build_providers(config: EngineConfig) -> List[BaseProvider]:
    """
    Create one provider capability per configured provider.

    Providers without credentials are left out; Ollama is opt-in.

    Args:
        config: Loaded configuration

    Returns:
        List of provider capabilities
    """
    providers: List[BaseProvider] = []

    if config.anthropic_api_key:
        providers.append(ClaudeClient(api_key=config.anthropic_api_key,
                                      model=config.anthropic_model))
    if config.openai_api_key:
        providers.append(OpenAIClient(api_key=config.openai_api_key,
                                      model=config.openai_model))
    if config.xai_api_key:
        providers.append(GrokClient(api_key=config.xai_api_key, model=config.xai_model,
                                    base_url=config.xai_base_url))
    if config.google_ai_api_key:
        providers.append(GeminiClient(api_key=config.google_ai_api_key,
                                      model=config.gemini_model))
    if config.ollama_enabled:
        providers.append(OllamaClient(base_url=config.ollama_base_url,
                                      model=config.ollama_model))

    if not providers:
        logger.warning("No providers configured; set ANTHROPIC_API_KEY, OPENAI_API_KEY, "
                       "XAI_API_KEY, GOOGLE_AI_API_KEY or OLLAMA_ENABLED")
    logger.info(f"Configured providers: {', '.join(p.name for p in providers) or 'none'}")
    return providers
