"""
Tests for context strategies, the token-budgeted loader and prompt assembly.
"""

from datetime import datetime

import pytest


def test_strategy_table():
    """Test the fixed strategy table."""
    from consensus_engine.briefcase import get_strategy
    from consensus_engine.models import ContextLevel

    minimal = get_strategy('minimal')
    assert minimal.max_tokens == 0
    assert minimal.categories == ()

    standard = get_strategy('standard')
    assert standard.max_tokens == 10000
    assert set(standard.categories) == {
        'company:overview', 'company:challenges', 'people:leadership'
    }

    deep = get_strategy(ContextLevel.DEEP)
    assert deep.max_tokens == 200000
    assert set(standard.categories) < set(deep.categories)
    assert 'competitive:tlr9_landscape' in deep.categories


@pytest.mark.parametrize("level", ["", "Standard", "full", None])
def test_invalid_level(level):
    """Test that unknown levels raise InvalidLevel."""
    from consensus_engine.briefcase import get_strategy
    from consensus_engine.errors import ErrorKind, InvalidLevel

    with pytest.raises(InvalidLevel) as excinfo:
        get_strategy(level)

    assert excinfo.value.kind == ErrorKind.INVALID_LEVEL
    assert "minimal, standard, or deep" in str(excinfo.value)


def test_strategy_override():
    """Test workflow overrides on top of a base strategy."""
    from consensus_engine.briefcase import build_strategy, get_strategy

    override = build_strategy('standard', categories=['people:leadership'], max_tokens=500)
    assert override.max_tokens == 500
    assert override.categories == ('people:leadership',)

    # base table is untouched
    assert get_strategy('standard').max_tokens == 10000

    # minimal ignores overrides
    assert build_strategy('minimal', max_tokens=5000).max_tokens == 0

    with pytest.raises(ValueError):
        build_strategy('deep', max_tokens=-1)


def test_minimal_skips_knowledge_base(entry_factory):
    """Test that minimal returns an empty selection without reading the knowledge base."""
    from consensus_engine.briefcase import ContextLoader, get_strategy
    from consensus_engine.librarian import InMemoryKnowledgeBase

    kb = InMemoryKnowledgeBase([entry_factory('A', 90, 10)])
    selection = ContextLoader(kb).load(get_strategy('minimal'))

    assert selection.entries == []
    assert selection.total_tokens == 0
    assert selection.text == ''
    assert kb.fetch_count == 0


def test_greedy_skip_on_overflow(entry_factory):
    """Test that an overflowing entry is skipped while the budget holds."""
    from consensus_engine.briefcase import ContextLoader, get_strategy
    from consensus_engine.librarian import InMemoryKnowledgeBase

    kb = InMemoryKnowledgeBase([
        entry_factory('C', 70, 5000, subcategory='challenges'),
        entry_factory('A', 90, 3000),
        entry_factory('B', 80, 4000, category='people', subcategory='leadership'),
    ])
    selection = ContextLoader(kb).load(get_strategy('standard'))

    assert selection.entry_ids == ['A', 'B']
    assert selection.total_tokens == 7000


def test_smaller_entry_fills_after_skip(entry_factory):
    """Test that later, smaller entries are still considered after a skip."""
    from consensus_engine.briefcase import ContextLoader, build_strategy
    from consensus_engine.librarian import InMemoryKnowledgeBase

    kb = InMemoryKnowledgeBase([
        entry_factory('A', 90, 600),
        entry_factory('B', 80, 600),
        entry_factory('C', 70, 300),
    ])
    selection = ContextLoader(kb).load(build_strategy('standard', max_tokens=1000))

    assert selection.entry_ids == ['A', 'C']
    assert selection.total_tokens == 900


def test_budget_never_exceeded(entry_factory):
    """Test that the token total stays within budget and matches the entries."""
    from consensus_engine.briefcase import ContextLoader, build_strategy
    from consensus_engine.librarian import InMemoryKnowledgeBase

    entries = [entry_factory(f"E{i}", 100 - i, 137 * (i % 5 + 1)) for i in range(30)]
    kb = InMemoryKnowledgeBase(entries)

    for budget in (1, 250, 1000, 4321):
        selection = ContextLoader(kb).load(build_strategy('deep', max_tokens=budget))
        assert selection.total_tokens <= budget
        assert selection.total_tokens == sum(e.estimated_tokens for e in selection.entries)
        assert len(set(selection.entry_ids)) == len(selection.entries)


def test_only_whitelisted_categories(entry_factory):
    """Test that entries outside the whitelist are never selected."""
    from consensus_engine.briefcase import ContextLoader, get_strategy
    from consensus_engine.librarian import InMemoryKnowledgeBase

    kb = InMemoryKnowledgeBase([
        entry_factory('A', 90, 100),
        entry_factory('T', 99, 100, category='competitive', subcategory='tlr9_landscape'),
    ])

    standard = ContextLoader(kb).load(get_strategy('standard'))
    deep = ContextLoader(kb).load(get_strategy('deep'))

    assert standard.entry_ids == ['A']
    assert deep.entry_ids == ['T', 'A']


def test_recency_breaks_importance_ties(entry_factory):
    """Test that equal importance is ordered most recent first."""
    from consensus_engine.briefcase import ContextLoader, build_strategy
    from consensus_engine.librarian import InMemoryKnowledgeBase

    kb = InMemoryKnowledgeBase([
        entry_factory('old', 50, 100, created_at=datetime(2024, 1, 1)),
        entry_factory('undated', 50, 100),
        entry_factory('new', 50, 100, created_at=datetime(2025, 1, 1)),
    ])
    selection = ContextLoader(kb).load(build_strategy('standard', max_tokens=200))

    assert selection.entry_ids == ['new', 'old']


def test_token_estimate(entry_factory):
    """Test the ceil(len / 4) estimate for entries without a stored count."""
    entry = entry_factory('A', 50, None, content='x' * 10)
    assert entry.estimated_tokens == 3

    assert entry_factory('B', 50, None, content='').estimated_tokens == 0
    assert entry_factory('C', 50, 7, content='x' * 100).estimated_tokens == 7


def test_context_text_format(entry_factory):
    """Test the assembled context document."""
    from consensus_engine.briefcase import ContextLoader, get_strategy
    from consensus_engine.librarian import InMemoryKnowledgeBase

    kb = InMemoryKnowledgeBase([entry_factory('A', 90, 10, content='Founded in 2015.')])
    selection = ContextLoader(kb).load(get_strategy('standard'))

    assert selection.text.startswith('# Knowledge Base')
    assert '### Entry A' in selection.text
    assert '**Category:** company / overview' in selection.text
    assert 'Founded in 2015.\n\n---' in selection.text
    assert '**Total Context Entries:** 1' in selection.text


def test_preview_context(entry_factory):
    """Test the context preview report."""
    from consensus_engine.briefcase import preview_context
    from consensus_engine.librarian import InMemoryKnowledgeBase

    kb = InMemoryKnowledgeBase([entry_factory('A', 90, 3000, content='y' * 3000)])
    preview = preview_context('standard', kb)

    assert preview['level'] == 'standard'
    assert preview['strategy']['max_tokens'] == 10000
    assert preview['preview']['entry_count'] == 1
    assert preview['preview']['entries'][0]['category'] == 'company:overview'
    assert preview['preview']['context_preview'].endswith('...')
    assert len(preview['preview']['context_preview']) == 1003


def test_briefcase_assembly(entry_factory):
    """Test that the prompt carries the context, the question and the patents."""
    from consensus_engine.briefcase import BriefcaseAssembler, ContextLoader, get_strategy
    from consensus_engine.librarian import InMemoryKnowledgeBase
    from consensus_engine.models import EvidenceItem

    kb = InMemoryKnowledgeBase([entry_factory('A', 90, 10, content='Lead asset is a TLR9 agonist.')])
    selection = ContextLoader(kb).load(get_strategy('standard'))
    evidence = [
        EvidenceItem(identifier=f"US{i}B2", assignee='Pfizer Inc.', publication_date='2024-01-01',
                     snippet=f"Snippet {i}", position_index=i, relevance_score=100 - i)
        for i in range(12)
    ]

    prompt = BriefcaseAssembler(max_patents=10).assemble(
        "Who else develops TLR9 agonists?", selection, evidence
    )

    assert 'Lead asset is a TLR9 agonist.' in prompt
    assert '# RESEARCH QUESTION\nWho else develops TLR9 agonists?' in prompt
    assert 'RELEVANT PATENT LANDSCAPE' in prompt
    assert 'The following 10 patents are relevant' in prompt
    assert 'Patent US9B2' in prompt
    assert 'Patent US10B2' not in prompt
    assert 'confidence score' in prompt


def test_briefcase_without_context():
    """Test a bare prompt for the minimal level."""
    from consensus_engine.briefcase import BriefcaseAssembler

    prompt = BriefcaseAssembler(system_prompt="Be brief.").assemble("What is TLR9?")

    assert prompt.startswith("Be brief.")
    assert 'Knowledge Base' not in prompt
    assert 'PATENT' not in prompt


def test_patent_context_counts_shown_patents():
    from consensus_engine.briefcase import BriefcaseTemplates
    from consensus_engine.models import EvidenceItem

    items = [EvidenceItem(identifier=f"US{i}B2", position_index=i, relevance_score=50)
             for i in range(3)]

    assert 'The following 2 patents' in BriefcaseTemplates.patent_context(items, limit=2)
    assert 'The following 3 patents' in BriefcaseTemplates.patent_context(items)


def test_unreadable_knowledge_base_yields_empty_selection():
    """Test that a knowledge base read failure leaves the context empty."""
    from unittest.mock import MagicMock

    from consensus_engine.briefcase import ContextLoader, get_strategy
    from consensus_engine.models import ContextLevel

    kb = MagicMock()
    kb.fetch_entries.side_effect = RuntimeError("Knowledge base query failed: connection reset")

    selection = ContextLoader(kb).load(get_strategy('deep'))

    assert selection.level == ContextLevel.DEEP
    assert selection.entries == []
    assert selection.total_tokens == 0
    kb.fetch_entries.assert_called_once()
