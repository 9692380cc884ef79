"""
Google Patents Search

Patent search through SerpAPI's google_patents engine. Missing credentials or
an outage yield an empty result list, never an exception.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..errors import ErrorKind

logger = logging.getLogger(__name__)

SERPAPI_ENDPOINT = "https://serpapi.com/search.json"


class GooglePatentsSearch:
    """
    Search capability returning raw patent records in SerpAPI's order.
    """

    def __init__(self, api_key: Optional[str], timeout: float = 20.0):
        """
        Initialize the search client.

        Args:
            api_key: SerpAPI key; searches are skipped when it is missing
            timeout: HTTP timeout in seconds
        """
        self.api_key = api_key
        self.timeout = timeout
        logger.info(f"GooglePatentsSearch initialized (configured={bool(api_key)})")

    def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Search Google Patents.

        Args:
            query: Search query string
            limit: Number of results to request

        Returns:
            List of records with patent_id, title, assignee, publication_date,
            snippet, link and pdf keys; [] when search is unavailable
        """
        if not self.api_key:
            logger.warning(f"{ErrorKind.SEARCH_UNAVAILABLE.value}: SERPAPI_KEY not configured, "
                           f"skipping patent search")
            return []

        logger.info(f"Searching Google Patents for: '{query}'")

        try:
            response = requests.get(
                SERPAPI_ENDPOINT,
                params={
                    'engine': 'google_patents',
                    'q': query,
                    'num': limit,
                    'api_key': self.api_key
                },
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"{ErrorKind.SEARCH_UNAVAILABLE.value}: patent search failed: {e}")
            return []

        organic = data.get('organic_results') or []
        if not organic:
            logger.info("No patent results found")
            return []

        records = [self._normalize(item) for item in organic[:limit]]
        logger.info(f"Found {len(records)} patent results")
        return records

    @staticmethod
    def _normalize(item: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'patent_id': item.get('patent_id'),
            'title': item.get('title'),
            'assignee': item.get('assignee'),
            'publication_date': item.get('publication_date') or item.get('filing_date'),
            'snippet': item.get('snippet') or item.get('pdf_snippet') or '',
            'link': item.get('link') or '',
            'pdf': item.get('pdf')
        }
