"""
Context Strategies

Fixed, process-wide table mapping a context level to its token budget and
category whitelist.
"""

import logging
from typing import Dict, Iterable, Optional, Union

from ..errors import InvalidLevel
from ..models import ContextLevel, ContextStrategy

logger = logging.getLogger(__name__)


CONTEXT_STRATEGIES: Dict[ContextLevel, ContextStrategy] = {
    ContextLevel.MINIMAL: ContextStrategy(
        level=ContextLevel.MINIMAL,
        max_tokens=0,
        categories=(),
        description="No additional context - just the user query"
    ),
    ContextLevel.STANDARD: ContextStrategy(
        level=ContextLevel.STANDARD,
        max_tokens=10000,
        categories=('company:overview', 'company:challenges', 'people:leadership'),
        description="Company basics and leadership (~10K tokens)"
    ),
    ContextLevel.DEEP: ContextStrategy(
        level=ContextLevel.DEEP,
        max_tokens=200000,
        categories=(
            'company:overview',
            'company:challenges',
            'people:leadership',
            'research:clinical_trials',
            'competitive:tlr9_landscape',
            'competitive:ai_in_biotech'
        ),
        description="Full knowledge base with competitive intelligence (~200K tokens)"
    )
}


def parse_level(level: Union[str, ContextLevel]) -> ContextLevel:
    """
    Parse a level token.

    Raises:
        InvalidLevel: If the token is not minimal, standard or deep
    """
    try:
        return ContextLevel(level)
    except ValueError:
        raise InvalidLevel(level)


def get_strategy(level: Union[str, ContextLevel]) -> ContextStrategy:
    """
    Look up the strategy for a level.

    Args:
        level: 'minimal', 'standard' or 'deep'

    Returns:
        The matching ContextStrategy

    Raises:
        InvalidLevel: If the level is not recognized
    """
    return CONTEXT_STRATEGIES[parse_level(level)]


def build_strategy(
    level: Union[str, ContextLevel],
    categories: Optional[Iterable[str]] = None,
    max_tokens: Optional[int] = None
) -> ContextStrategy:
    """
    Apply a workflow-level override on top of the base strategy.

    The minimal level ignores overrides and always stays empty.

    Args:
        level: Base context level
        categories: Optional replacement category whitelist
        max_tokens: Optional replacement token budget

    Returns:
        A new ContextStrategy
    """
    base = get_strategy(level)
    if base.level == ContextLevel.MINIMAL:
        return base
    if categories is None and max_tokens is None:
        return base

    logger.debug(f"Overriding {base.level.value} strategy: "
                 f"categories={categories}, max_tokens={max_tokens}")
    return ContextStrategy(
        level=base.level,
        max_tokens=max_tokens if max_tokens is not None else base.max_tokens,
        categories=tuple(categories) if categories is not None else base.categories,
        description=base.description
    )
