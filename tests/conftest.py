"""
Shared fixtures for the consensus engine tests.
"""

import time
from typing import Optional, Tuple

import pytest

from consensus_engine.models import ContextEntry
from consensus_engine.reasoner.providers import BaseProvider


class FakeProvider(BaseProvider):
    """Provider that answers from a canned string after an optional delay."""

    def __init__(
        self,
        name: str,
        text: str = "",
        delay: float = 0.0,
        error: Optional[Exception] = None,
        tokens: Optional[int] = 42,
        model: Optional[str] = None
    ):
        self.name = name
        self.text = text
        self.delay = delay
        self.error = error
        self.tokens = tokens
        self.prompts = []
        super().__init__(model=model or f"{name}-test")

    def _complete(self, prompt: str, timeout: float) -> Tuple[str, Optional[int]]:
        self.prompts.append(prompt)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text, self.tokens


def make_entry(entry_id, importance, tokens, category='company', subcategory='overview',
               created_at=None, content=None):
    return ContextEntry(
        id=entry_id,
        category=category,
        subcategory=subcategory,
        title=f"Entry {entry_id}",
        content=content if content is not None else f"Content of {entry_id}",
        importance_score=importance,
        token_count=tokens,
        created_at=created_at
    )


@pytest.fixture
def entry_factory():
    return make_entry


# Agreeing and diverging answers about the same trial
MAJORITY_TEXTS = [
    "Drug X improves overall survival in phase 3 trials. "
    "The safety profile is acceptable with mild adverse events.",
    "Drug X improves survival in phase 3 trials. "
    "Adverse events were mild and the safety profile is acceptable.",
    "Phase 3 trials show Drug X improves survival. "
    "The safety profile is acceptable, adverse events mild.",
]

DIVERGENT_TEXT = ("Drug X does not improve survival in phase 3 trials. "
                  "Regulators remain cautious about approval.")

UNRELATED_TEXTS = [
    "Quantum processors rely on superconducting qubits cooled near absolute zero.",
    "Volcanic eruptions release sulfur dioxide that cools the global climate.",
    "Gothic cathedrals used flying buttresses to support tall stone walls.",
]
