"""
Query Cost Estimation

Rough pre-flight cost of dispatching a query to a set of providers.
"""

import math
from typing import Any, Dict, Iterable, Union

from ..briefcase.strategies import parse_level
from ..models import ContextLevel

# USD per million tokens
LLM_PRICING: Dict[str, Dict[str, float]] = {
    'claude': {'input': 3.00, 'output': 15.00},
    'openai': {'input': 5.00, 'output': 15.00},
    'gemini': {'input': 1.25, 'output': 5.00},
    'grok': {'input': 2.00, 'output': 10.00},
    'ollama': {'input': 0.0, 'output': 0.0}
}

CONTEXT_TOKENS: Dict[ContextLevel, int] = {
    ContextLevel.MINIMAL: 0,
    ContextLevel.STANDARD: 10000,
    ContextLevel.DEEP: 100000
}

ESTIMATED_OUTPUT_TOKENS = 2000


def estimate_query_cost(
    query_text: str,
    level: Union[str, ContextLevel],
    providers: Iterable[str]
) -> Dict[str, Any]:
    """
    Estimate the LLM cost of a query.

    Args:
        query_text: The research question
        level: Context level token
        providers: Provider names to price; unknown providers are priced at zero

    Returns:
        Dictionary with per-provider costs, the total and the token assumptions

    Raises:
        InvalidLevel: If the level is not recognized
    """
    context_level = parse_level(level)
    query_tokens = math.ceil(len(query_text) / 4)
    context_tokens = CONTEXT_TOKENS[context_level]

    costs: Dict[str, float] = {}
    for provider in providers:
        pricing = LLM_PRICING.get(provider, {'input': 0.0, 'output': 0.0})
        input_cost = (query_tokens + context_tokens) / 1_000_000 * pricing['input']
        output_cost = ESTIMATED_OUTPUT_TOKENS / 1_000_000 * pricing['output']
        costs[provider] = input_cost + output_cost

    return {
        'llm_costs': costs,
        'total_estimated_cost': sum(costs.values()),
        'query_tokens': query_tokens,
        'context_tokens': context_tokens,
        'output_tokens_per_provider': ESTIMATED_OUTPUT_TOKENS
    }
