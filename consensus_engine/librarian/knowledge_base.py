"""
Knowledge Base Readers

Read-only views over the categorized context entries. The engine only ever
calls fetch_entries(); authoring entries is an administrative concern handled
elsewhere.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..models import ContextEntry
from .graph_client import GraphClient

logger = logging.getLogger(__name__)


def split_category_tokens(categories: Iterable[str]) -> Tuple[List[str], List[str]]:
    """
    Split whitelist tokens into `category:subcategory` pairs and bare categories.

    Args:
        categories: Tokens such as 'company:overview' or 'company'

    Returns:
        Tuple of (pair tokens, bare category names)
    """
    pairs: List[str] = []
    bare: List[str] = []
    for token in categories:
        if ':' in token:
            pairs.append(token)
        else:
            bare.append(token)
    return pairs, bare


def entry_matches(entry: ContextEntry, categories: Iterable[str]) -> bool:
    """True if the entry's category pair (or bare category) is whitelisted."""
    pairs, bare = split_category_tokens(categories)
    return entry.category_key in pairs or entry.category in bare


class BaseKnowledgeBase(ABC):
    """
    Abstract knowledge base reader.

    Implementations return entries whose category pair is in the requested
    whitelist, ordered by importance (descending) then recency.
    """

    @abstractmethod
    def fetch_entries(self, categories: Iterable[str]) -> List[ContextEntry]:
        """
        Fetch entries matching the category whitelist.

        Args:
            categories: Whitelisted `category:subcategory` tokens

        Returns:
            Ordered list of ContextEntry
        """
        pass


class InMemoryKnowledgeBase(BaseKnowledgeBase):
    """Knowledge base held in a list. Used for tests and offline runs."""

    def __init__(self, entries: Optional[Iterable[ContextEntry]] = None):
        self._entries: List[ContextEntry] = list(entries or [])
        self.fetch_count = 0
        logger.info(f"InMemoryKnowledgeBase initialized with {len(self._entries)} entries")

    def fetch_entries(self, categories: Iterable[str]) -> List[ContextEntry]:
        self.fetch_count += 1
        whitelist = list(categories)
        matched = [entry for entry in self._entries if entry_matches(entry, whitelist)]
        logger.debug(f"Matched {len(matched)} of {len(self._entries)} entries")
        return matched


class GraphKnowledgeBase(BaseKnowledgeBase):
    """
    Knowledge base stored as (:ContextEntry) nodes in Neo4j.
    """

    FETCH_QUERY = """
    MATCH (e:ContextEntry)
    WHERE (e.category + ':' + coalesce(e.subcategory, '')) IN $pairs
       OR e.category IN $bare
    RETURN e
    ORDER BY e.importance_score DESC, e.created_at DESC
    """

    def __init__(self, graph_client: GraphClient):
        """
        Initialize with a connected GraphClient.

        Args:
            graph_client: Connected GraphClient instance
        """
        self.client = graph_client
        logger.info("GraphKnowledgeBase initialized")

    def fetch_entries(self, categories: Iterable[str]) -> List[ContextEntry]:
        pairs, bare = split_category_tokens(categories)
        if not pairs and not bare:
            return []

        logger.info(f"Fetching context entries for {len(pairs) + len(bare)} categories")
        results = self.client.execute_query(self.FETCH_QUERY, {'pairs': pairs, 'bare': bare})

        entries = [self._to_entry(dict(r['e'])) for r in results if r.get('e')]
        logger.info(f"Retrieved {len(entries)} context entries")
        return entries

    def _to_entry(self, node: Dict[str, Any]) -> ContextEntry:
        """
        Convert node properties to a ContextEntry.

        Neo4j temporal values are converted with to_native().
        """
        created_at = node.get('created_at')
        if hasattr(created_at, 'to_native'):
            created_at = created_at.to_native()

        return ContextEntry(
            id=str(node['id']),
            category=node.get('category', ''),
            subcategory=node.get('subcategory') or '',
            title=node.get('title') or '',
            content=node.get('content') or '',
            importance_score=node.get('importance_score', 50),
            token_count=node.get('token_count'),
            created_at=created_at
        )
