"""
Tests for evidence ranking and the patent search client.
"""

import os
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

NOW = datetime(2026, 6, 1)


def test_competitor_recent_top_result_is_clamped():
    """Test that bonuses on the first result are clamped to 100."""
    from consensus_engine.evidence import relevance_score

    assert relevance_score(0, "Pfizer Inc.", f"{NOW.year - 2}-03-15", NOW.year) == 100


def test_old_unknown_assignee_has_no_bonus():
    from consensus_engine.evidence import relevance_score

    assert relevance_score(4, "Acme Labs", f"{NOW.year - 15}-01-01", NOW.year) == 60


def test_score_bonuses():
    """Test each bonus in isolation."""
    from consensus_engine.evidence import relevance_score

    assert relevance_score(3, "Moderna TX", "1999-01-01", NOW.year) == 80
    assert relevance_score(3, "University of Iowa", f"{NOW.year - 5}-12-31", NOW.year) == 85
    assert relevance_score(3, "University of Iowa", f"{NOW.year - 6}-12-31", NOW.year) == 70


def test_score_floor_and_bad_dates():
    """Test the lower clamp and that unparseable dates give no recency bonus."""
    from consensus_engine.evidence import relevance_score

    assert relevance_score(15, None, None, NOW.year) == 0
    assert relevance_score(1, "Someone", "Unknown", NOW.year) == 90
    assert relevance_score(1, "Someone", "", NOW.year) == 90


def test_rank_orders_by_score_and_keeps_ties_stable():
    """Test ordering by score with ties in original order."""
    from consensus_engine.evidence import EvidenceRanker

    results = [
        {'patent_id': 'US1', 'assignee': 'Small Co', 'publication_date': '2001-01-01'},
        {'patent_id': 'US2', 'assignee': 'Merck Sharp & Dohme', 'publication_date': '2025-01-01'},
        {'patent_id': 'US3', 'assignee': 'Other', 'publication_date': '2000-01-01'},
        {'patent_id': 'US4', 'assignee': 'Genentech', 'publication_date': '2002-01-01'},
    ]
    ranked = EvidenceRanker().rank(results, "tlr9 agonist", NOW)

    # US1: 100, US2: 90 + 25 -> 100, US3: 80, US4: 70 + 10 = 80
    assert [item.identifier for item in ranked] == ['US1', 'US2', 'US3', 'US4']
    assert [item.relevance_score for item in ranked] == [100, 100, 80, 80]
    assert [item.position_index for item in ranked] == [0, 1, 2, 3]


def test_rank_uses_injected_clock():
    """Test that the same input ranks identically for the same reference time."""
    from consensus_engine.evidence import EvidenceRanker

    results = [
        {"patent_id": "US0", "assignee": "X", "publication_date": "1990-01-01"},
        {"patent_id": "US1", "assignee": "X", "publication_date": "2020-01-01"},
    ]
    ranker = EvidenceRanker()

    recent = {item.identifier: item.relevance_score for item in ranker.rank(results, "q", datetime(2022, 1, 1))}
    later = {item.identifier: item.relevance_score for item in ranker.rank(results, "q", datetime(2040, 1, 1))}

    assert recent["US1"] == 100
    assert later["US1"] == 90
    assert ranker.rank(results, "q", NOW) == ranker.rank(results, "q", NOW)


def test_rank_identifier_fallbacks():
    from consensus_engine.evidence import EvidenceRanker

    results = [
        {'link': 'https://patents.google.com/patent/US9876543B2/en'},
        {'title': 'No identifiers at all'},
    ]
    ranked = EvidenceRanker().rank(results, "q", NOW)

    assert ranked[0].identifier == 'US9876543B2'
    assert ranked[0].assignee == 'Unknown'
    assert ranked[1].identifier == 'PATENT-2'


def test_rank_empty():
    from consensus_engine.evidence import EvidenceRanker

    assert EvidenceRanker().rank([], "q", NOW) == []


def test_extract_patent_number():
    from consensus_engine.evidence.ranker import extract_patent_number

    assert extract_patent_number('https://patents.google.com/patent/US1234567A/en') == 'US1234567A'
    assert extract_patent_number('https://example.com/doc') is None
    assert extract_patent_number(None) is None


def test_patent_search_without_key():
    """Test that a missing key skips the search."""
    from consensus_engine.evidence import GooglePatentsSearch

    with patch('consensus_engine.evidence.patents.requests.get') as mock_get:
        assert GooglePatentsSearch(api_key=None).search("tlr9") == []
        mock_get.assert_not_called()


def test_patent_search_normalizes_results():
    """Test that SerpAPI records are normalized."""
    from consensus_engine.evidence import GooglePatentsSearch

    mock_response = MagicMock()
    mock_response.json.return_value = {
        'organic_results': [
            {
                'patent_id': 'patent/US111B2/en',
                'title': 'TLR9 agonist formulation',
                'assignee': 'Dynavax Technologies',
                'filing_date': '2021-04-02',
                'pdf_snippet': 'A CpG oligonucleotide...',
                'link': 'https://patents.google.com/patent/US111B2/en',
                'pdf': 'https://patentimages.example/US111B2.pdf'
            },
            {'patent_id': 'patent/US222A1/en', 'title': 'Second'},
        ]
    }

    with patch('consensus_engine.evidence.patents.requests.get',
               return_value=mock_response) as mock_get:
        records = GooglePatentsSearch(api_key='test-key').search("tlr9 agonist", limit=1)

    assert len(records) == 1
    assert records[0]['publication_date'] == '2021-04-02'
    assert records[0]['snippet'] == 'A CpG oligonucleotide...'
    params = mock_get.call_args.kwargs['params']
    assert params['engine'] == 'google_patents'
    assert params['num'] == 1


def test_patent_search_failure_returns_empty():
    """Test that an HTTP failure yields no results instead of raising."""
    from consensus_engine.evidence import GooglePatentsSearch

    with patch('consensus_engine.evidence.patents.requests.get',
               side_effect=requests.exceptions.ConnectionError("down")):
        assert GooglePatentsSearch(api_key='test-key').search("tlr9") == []


@pytest.mark.skipif(
    not os.getenv("SERPAPI_KEY"),
    reason="SerpAPI key not configured"
)
def test_patent_search_live():
    """Test a live patent search (requires API key)."""
    from consensus_engine.evidence import GooglePatentsSearch

    records = GooglePatentsSearch(api_key=os.getenv('SERPAPI_KEY')).search("TLR9 agonist", limit=3)
    assert records
