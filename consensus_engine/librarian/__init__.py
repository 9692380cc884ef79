"""
Librarian Module

Read-only access to the categorized background-context knowledge base.
Backed by Neo4j in production and by an in-memory list in tests.
"""

from .graph_client import GraphClient
from .knowledge_base import BaseKnowledgeBase, GraphKnowledgeBase, InMemoryKnowledgeBase

__all__ = ["GraphClient", "BaseKnowledgeBase", "GraphKnowledgeBase", "InMemoryKnowledgeBase"]
