"""
Evidence Module

Patent search and relevance ranking of the supplementary evidence merged into
the prompt and the response payload.
"""

from .patents import GooglePatentsSearch
from .ranker import EvidenceRanker, relevance_score

__all__ = ["GooglePatentsSearch", "EvidenceRanker", "relevance_score"]
