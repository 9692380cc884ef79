"""
Result Store

Persists aggregation outputs keyed by query id. Typed records are converted
to and from JSON only here; the rest of the engine never touches serialized
text.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import (
    AggregationResult,
    ConsensusVerdict,
    ContextLevel,
    ContextSelection,
    EvidenceItem,
    ProviderResponse
)

logger = logging.getLogger(__name__)


class AggregationRecord(BaseModel):
    """Persisted form of one aggregation run."""
    query_id: str
    query_text: str
    context_level: ContextLevel
    knowledge_base_ids: List[str] = Field(default_factory=list)
    total_context_tokens: int = 0
    provider_responses: List[ProviderResponse] = Field(default_factory=list)
    verdict: ConsensusVerdict
    ranked_evidence: List[EvidenceItem] = Field(default_factory=list)
    context_used: Optional[ContextSelection] = None
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def from_result(
        cls,
        result: AggregationResult,
        created_at: Optional[datetime] = None
    ) -> "AggregationRecord":
        record = cls(
            query_id=result.query_id,
            query_text=result.query_text,
            context_level=result.context_used.level,
            knowledge_base_ids=result.context_used.entry_ids,
            total_context_tokens=result.context_used.total_tokens,
            provider_responses=list(result.provider_responses),
            verdict=result.verdict,
            ranked_evidence=list(result.ranked_evidence),
            context_used=result.context_used
        )
        if created_at is not None:
            record.created_at = created_at.isoformat()
        return record

    def to_result(self) -> AggregationResult:
        """
        Rebuild the aggregation result this record was saved from.

        Records written without the full context keep only its level and
        token count.
        """
        context = self.context_used or ContextSelection(
            level=self.context_level,
            total_tokens=self.total_context_tokens
        )
        return AggregationResult(
            query_id=self.query_id,
            query_text=self.query_text,
            context_used=context,
            provider_responses=self.provider_responses,
            verdict=self.verdict,
            ranked_evidence=self.ranked_evidence
        )


class StoreState(BaseModel):
    """Complete store contents."""
    last_updated: str = Field(default_factory=lambda: datetime.now().isoformat())
    records: List[AggregationRecord] = Field(default_factory=list)


def encode_record(record: AggregationRecord) -> str:
    """Serialize a record to JSON text."""
    return record.model_dump_json()


def decode_record(text: str) -> AggregationRecord:
    """Deserialize a record from JSON text."""
    return AggregationRecord.model_validate_json(text)


def _as_local_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


class BaseResultStore(ABC):
    """
    Abstract persistence boundary for aggregation results.

    The engine only hands results over; transactions and schema belong to
    the implementation.
    """

    @abstractmethod
    def save(self, result: AggregationResult, created_at: Optional[datetime] = None) -> bool:
        """
        Persist a result.

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    def get(self, query_id: str) -> Optional[AggregationRecord]:
        """Fetch a stored record by query id."""
        pass

    @abstractmethod
    def find_recent(
        self,
        query_text: str,
        within: timedelta = timedelta(hours=24),
        now: Optional[datetime] = None,
        level: Optional[ContextLevel] = None
    ) -> Optional[AggregationRecord]:
        """
        Latest record for the same query text created inside the window.

        Args:
            query_text: Exact query text to match
            within: How far back a record may have been created
            now: Reference time; the current local time when omitted
            level: Only match records run at this context level
        """
        pass


class JsonResultStore(BaseResultStore):
    """
    Result store backed by a single JSON file.
    """

    def __init__(self, results_file_path: str):
        """
        Initialize the store.

        Args:
            results_file_path: Path to the JSON file holding stored results
        """
        self.results_file = Path(results_file_path)
        logger.info(f"JsonResultStore initialized with file: {results_file_path}")

        if not self.results_file.exists() or self.results_file.stat().st_size == 0:
            self._save_state(StoreState())

    def _load_state(self) -> StoreState:
        try:
            with open(self.results_file, 'r') as f:
                data = json.load(f)
            return StoreState(**data)
        except Exception as e:
            logger.error(f"Failed to load results: {e}")
            raise

    def _save_state(self, state: StoreState) -> None:
        try:
            self.results_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.results_file, 'w') as f:
                f.write(state.model_dump_json(indent=2))
            logger.debug("Results saved successfully")
        except Exception as e:
            logger.error(f"Failed to save results: {e}")
            raise

    def save(self, result: AggregationResult, created_at: Optional[datetime] = None) -> bool:
        logger.info(f"Saving aggregation result: {result.query_id}")

        try:
            state = self._load_state()
            record = AggregationRecord.from_result(result, created_at)
            # a re-run replaces the earlier record for the same query id
            state.records = [r for r in state.records if r.query_id != result.query_id]
            state.records.append(record)
            state.last_updated = datetime.now().isoformat()
            self._save_state(state)
            return True
        except Exception as e:
            logger.error(f"Failed to save result {result.query_id}: {e}")
            return False

    def get(self, query_id: str) -> Optional[AggregationRecord]:
        for record in self._load_state().records:
            if record.query_id == query_id:
                return record
        return None

    def find_recent(
        self,
        query_text: str,
        within: timedelta = timedelta(hours=24),
        now: Optional[datetime] = None,
        level: Optional[ContextLevel] = None
    ) -> Optional[AggregationRecord]:
        cutoff = _as_local_naive(now or datetime.now()) - within
        latest: Optional[AggregationRecord] = None
        latest_at: Optional[datetime] = None
        for record in self._load_state().records:
            if record.query_text != query_text:
                continue
            if level is not None and record.context_level != level:
                continue
            created = _as_local_naive(datetime.fromisoformat(record.created_at))
            if created > cutoff and (latest_at is None or created > latest_at):
                latest, latest_at = record, created
        return latest

    def get_usage_stats(self) -> Dict[str, Any]:
        """
        Summarize stored queries.

        Returns:
            Dictionary with totals by context level and verdict level
        """
        records = self._load_state().records
        return {
            'total_queries': len(records),
            'total_context_tokens': sum(r.total_context_tokens for r in records),
            'by_context_level': dict(Counter(r.context_level.value for r in records)),
            'by_consensus_level': dict(Counter(r.verdict.level.value for r in records)),
            'provider_failures': sum(
                1 for r in records for response in r.provider_responses if not response.succeeded
            )
        }
