"""
Value Objects

Typed, immutable records exchanged between the engine's components.
Serialization to and from JSON happens only at the persistence boundary
(see recorder.store).
"""

import math
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorKind


class ContextLevel(str, Enum):
    """Named context strategies."""
    MINIMAL = "minimal"
    STANDARD = "standard"
    DEEP = "deep"


class ConsensusLevel(str, Enum):
    """Four-valued agreement classification."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class ContextEntry(BaseModel):
    """A categorized background-context entry from the knowledge base."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Knowledge base entry identifier")
    category: str = Field(..., description="Top-level category (company, people, ...)")
    subcategory: str = Field("", description="Subcategory within the category")
    title: str = Field("", description="Display title used in the assembled context")
    content: str = Field("", description="Entry body text")
    importance_score: int = Field(50, ge=0, le=100, description="Importance (0-100)")
    token_count: Optional[int] = Field(None, ge=0, description="Stored token count, if known")
    created_at: Optional[datetime] = Field(None, description="Creation time, used for tie-breaks")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def category_key(self) -> str:
        """The `category:subcategory` token used by strategy whitelists."""
        return f"{self.category}:{self.subcategory}"

    @property
    def estimated_tokens(self) -> int:
        """Stored token count, or ceil(len(content) / 4) when unset."""
        if self.token_count is not None:
            return self.token_count
        return math.ceil(len(self.content) / 4)


class ContextStrategy(BaseModel):
    """Token budget and category whitelist for one context level."""
    model_config = ConfigDict(frozen=True)

    level: ContextLevel
    max_tokens: int = Field(..., ge=0)
    categories: Tuple[str, ...] = Field(default_factory=tuple)
    description: str = ""


class ContextSelection(BaseModel):
    """Output of the token-budgeted context loader."""
    model_config = ConfigDict(frozen=True)

    level: ContextLevel
    entries: List[ContextEntry] = Field(default_factory=list)
    total_tokens: int = Field(0, ge=0)
    text: str = ""

    @property
    def entry_ids(self) -> List[str]:
        return [entry.id for entry in self.entries]


class ProviderResponse(BaseModel):
    """One provider's answer (or failure) for a dispatched prompt."""
    model_config = ConfigDict(frozen=True)

    provider: str = Field(..., description="Provider identifier (claude, openai, ...)")
    model: Optional[str] = Field(None, description="Model name used by the provider")
    response_text: str = ""
    confidence_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    tokens_used: Optional[int] = Field(None, ge=0)
    response_time_ms: int = Field(0, ge=0)
    sources: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class Conflict(BaseModel):
    """A claim from a conflicting provider that contradicts the majority."""
    model_config = ConfigDict(frozen=True)

    provider: str
    claim: str
    rationale: str


class ConsensusVerdict(BaseModel):
    """Agreement classification across provider responses."""
    model_config = ConfigDict(frozen=True)

    level: ConsensusLevel
    agreeing_providers: List[str] = Field(default_factory=list)
    conflicting_providers: List[str] = Field(default_factory=list)
    conflicts: List[Conflict] = Field(default_factory=list)
    agreement_summary: str = ""


class EvidenceItem(BaseModel):
    """A supplementary search result (e.g. a patent) with its relevance score."""
    model_config = ConfigDict(frozen=True)

    identifier: str
    title: str = ""
    assignee: str = "Unknown"
    publication_date: str = "Unknown"
    snippet: str = ""
    url: str = ""
    pdf_url: Optional[str] = None
    position_index: int = Field(..., ge=0)
    relevance_score: int = Field(..., ge=0, le=100)


class AggregationResult(BaseModel):
    """Everything a single aggregation run produces."""
    model_config = ConfigDict(frozen=True)

    query_id: str
    query_text: str
    context_used: ContextSelection
    provider_responses: List[ProviderResponse] = Field(default_factory=list)
    verdict: ConsensusVerdict
    ranked_evidence: List[EvidenceItem] = Field(default_factory=list)
