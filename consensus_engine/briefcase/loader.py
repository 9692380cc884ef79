"""
Token-Budgeted Context Loader

Greedily fills a strategy's token budget with the most important knowledge
base entries.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ..errors import ErrorKind
from ..librarian.knowledge_base import BaseKnowledgeBase
from ..models import ContextEntry, ContextLevel, ContextSelection, ContextStrategy
from .strategies import get_strategy
from .templates import BriefcaseTemplates

logger = logging.getLogger(__name__)


def _selection_order(entry: ContextEntry):
    # importance descending, then most recent first; undated entries sort last
    recency = entry.created_at.timestamp() if entry.created_at else float('-inf')
    return (-entry.importance_score, -recency)


class ContextLoader:
    """
    Selects context entries for a strategy without exceeding its token budget.
    """

    def __init__(
        self,
        knowledge_base: BaseKnowledgeBase,
        templates: Optional[BriefcaseTemplates] = None
    ):
        """
        Initialize the loader.

        Args:
            knowledge_base: Reader for context entries
            templates: Optional template provider
        """
        self.knowledge_base = knowledge_base
        self.templates = templates or BriefcaseTemplates()
        logger.info("ContextLoader initialized")

    def load(self, strategy: ContextStrategy) -> ContextSelection:
        """
        Load context entries under the strategy's budget.

        Entries are ordered by importance (ties: most recent first) and added
        while the running total stays within max_tokens. An entry that would
        overflow is skipped and later, smaller entries are still considered.
        A knowledge base that cannot be read yields an empty selection.

        Args:
            strategy: The context strategy to apply

        Returns:
            ContextSelection with the included entries, their token total and
            the assembled context text
        """
        if strategy.max_tokens == 0 or not strategy.categories:
            logger.info(f"Strategy {strategy.level.value} has no budget, skipping knowledge base")
            return ContextSelection(level=strategy.level)

        try:
            fetched = self.knowledge_base.fetch_entries(strategy.categories)
        except Exception as e:
            logger.error(f"{ErrorKind.CONTEXT_UNAVAILABLE.value}: knowledge base read failed, "
                         f"continuing without context: {e}")
            return ContextSelection(level=strategy.level)

        candidates = sorted(fetched, key=_selection_order)

        if not candidates:
            logger.info("No knowledge base entries matched the strategy")
            return ContextSelection(level=strategy.level)

        included: List[ContextEntry] = []
        total_tokens = 0

        for entry in candidates:
            tokens = entry.estimated_tokens
            if total_tokens + tokens > strategy.max_tokens:
                logger.debug(f"Skipping {entry.id}: {tokens} tokens would exceed budget "
                             f"({total_tokens}/{strategy.max_tokens})")
                continue
            included.append(entry)
            total_tokens += tokens

        text = self._assemble_text(included, total_tokens)

        logger.info(f"Loaded {len(included)}/{len(candidates)} context entries "
                    f"({total_tokens}/{strategy.max_tokens} tokens)")
        return ContextSelection(
            level=strategy.level,
            entries=included,
            total_tokens=total_tokens,
            text=text
        )

    def _assemble_text(self, entries: List[ContextEntry], total_tokens: int) -> str:
        if not entries:
            return ''

        parts = [self.templates.context_header()]
        parts.extend(self.templates.context_entry(entry) for entry in entries)
        parts.append(self.templates.context_footer(len(entries), total_tokens))
        return ''.join(parts)


def preview_context(
    level: Union[str, ContextLevel],
    knowledge_base: BaseKnowledgeBase
) -> Dict[str, Any]:
    """
    Preview what context a level would load.

    Args:
        level: Context level token
        knowledge_base: Reader for context entries

    Returns:
        Dictionary describing the strategy and the selected entries

    Raises:
        InvalidLevel: If the level is not recognized
    """
    strategy = get_strategy(level)
    selection = ContextLoader(knowledge_base).load(strategy)

    context_preview = selection.text[:1000]
    if len(selection.text) > 1000:
        context_preview += '...'

    return {
        'level': strategy.level.value,
        'strategy': {
            'description': strategy.description,
            'max_tokens': strategy.max_tokens,
            'categories': list(strategy.categories)
        },
        'preview': {
            'entry_count': len(selection.entries),
            'total_tokens': selection.total_tokens,
            'entries': [
                {
                    'id': entry.id,
                    'title': entry.title,
                    'category': entry.category_key,
                    'importance': entry.importance_score,
                    'tokens': entry.estimated_tokens
                }
                for entry in selection.entries
            ],
            'context_preview': context_preview
        },
        'generated_at': datetime.now().isoformat()
    }
