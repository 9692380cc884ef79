"""
Evidence Relevance Ranker

Scores supplementary search results (patents) for inclusion in the prompt.
The current time is always passed in, so ranking is a pure function of its
inputs.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..models import EvidenceItem

logger = logging.getLogger(__name__)

MAJOR_COMPETITORS = (
    'pfizer', 'moderna', 'merck', 'novartis', 'roche',
    'genentech', 'bristol-myers', 'biontech'
)

POSITION_PENALTY = 10
COMPETITOR_BONUS = 10
RECENCY_BONUS = 15
RECENCY_YEARS = 5

YEAR_PATTERN = re.compile(r'^\s*(\d{4})')
PATENT_URL_PATTERN = re.compile(r'patent/([A-Z]{2}\d+[A-Z]\d*)', re.IGNORECASE)


def publication_year(publication_date: Optional[str]) -> Optional[int]:
    """Leading four-digit year of a date string, or None if unparseable."""
    if not publication_date:
        return None
    match = YEAR_PATTERN.match(str(publication_date))
    return int(match.group(1)) if match else None


def extract_patent_number(url: Optional[str]) -> Optional[str]:
    """
    Extract the patent number from a Google Patents URL.

    Example: https://patents.google.com/patent/US1234567A/en -> US1234567A
    """
    if not url:
        return None
    match = PATENT_URL_PATTERN.search(url)
    return match.group(1) if match else None


def relevance_score(
    position_index: int,
    assignee: Optional[str],
    publication_date: Optional[str],
    current_year: int,
    competitors: Iterable[str] = MAJOR_COMPETITORS
) -> int:
    """
    Score one result.

    100 minus 10 per position, +10 for a known major competitor assignee,
    +15 if published within the last five years, clamped to [0, 100].
    """
    score = 100 - POSITION_PENALTY * position_index

    assignee_lower = (assignee or '').lower()
    if any(company in assignee_lower for company in competitors):
        score += COMPETITOR_BONUS

    year = publication_year(publication_date)
    if year is not None and year >= current_year - RECENCY_YEARS:
        score += RECENCY_BONUS

    return min(100, max(0, score))


class EvidenceRanker:
    """
    Annotates raw search results with relevance scores and orders them.
    """

    def __init__(self, competitors: Sequence[str] = MAJOR_COMPETITORS):
        self.competitors = tuple(c.lower() for c in competitors)

    def rank(
        self,
        results: Sequence[Dict[str, Any]],
        query: str,
        now: datetime
    ) -> List[EvidenceItem]:
        """
        Score and order search results.

        Args:
            results: Raw records in the search provider's own relevance order
            query: The original query string
            now: Reference time for the recency bonus

        Returns:
            EvidenceItems sorted by relevance_score descending; ties keep
            their original order
        """
        if not results:
            logger.info("No search results to rank")
            return []

        items = [self._to_item(index, record, now.year) for index, record in enumerate(results)]
        ranked = sorted(items, key=lambda item: -item.relevance_score)

        logger.info(f"Ranked {len(ranked)} results for '{query[:60]}' "
                    f"(top score {ranked[0].relevance_score})")
        return ranked

    def _to_item(self, index: int, record: Dict[str, Any], current_year: int) -> EvidenceItem:
        link = record.get('link') or record.get('url') or ''
        identifier = (record.get('patent_id') or record.get('identifier')
                      or extract_patent_number(link) or f"PATENT-{index + 1}")
        assignee = record.get('assignee') or 'Unknown'
        publication_date = record.get('publication_date') or record.get('filing_date') or 'Unknown'

        return EvidenceItem(
            identifier=str(identifier),
            title=record.get('title') or 'Untitled Patent',
            assignee=assignee,
            publication_date=str(publication_date),
            snippet=record.get('snippet') or record.get('pdf_snippet') or '',
            url=link,
            pdf_url=record.get('pdf') or None,
            position_index=index,
            relevance_score=relevance_score(index, assignee, str(publication_date),
                                            current_year, self.competitors)
        )
