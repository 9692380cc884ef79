"""
Aggregation Engine

Entry point tying the pipeline together:

    level -> strategy -> context loader -> prompt assembly
          -> provider collector -> consensus classifier -> result store

with patent search results ranked independently and merged into the prompt
and the result. Every collaborator is passed in explicitly.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .arbiter import ConsensusClassifier
from .briefcase import BriefcaseAssembler, ContextLoader, build_strategy
from .errors import ErrorKind, ExecutionResult, InvalidLevel
from .evidence import EvidenceRanker
from .librarian import BaseKnowledgeBase
from .models import AggregationResult, ContextLevel, EvidenceItem
from .reasoner import ResponseCollector
from .recorder import BaseResultStore

logger = logging.getLogger(__name__)


class AggregationEngine:
    """
    Runs one research query end to end. Holds no per-query state, so a
    single instance can serve concurrent callers.
    """

    def __init__(
        self,
        knowledge_base: BaseKnowledgeBase,
        collector: Optional[ResponseCollector] = None,
        classifier: Optional[ConsensusClassifier] = None,
        ranker: Optional[EvidenceRanker] = None,
        search=None,
        store: Optional[BaseResultStore] = None,
        assembler: Optional[BriefcaseAssembler] = None,
        clock: Callable[[], datetime] = datetime.now,
        patent_limit: int = 10,
        reuse_within: Optional[timedelta] = None
    ):
        """
        Initialize the engine.

        Args:
            knowledge_base: Reader for background context entries
            collector: Concurrent provider dispatcher
            classifier: Consensus classifier
            ranker: Evidence relevance ranker
            search: Optional object exposing search(query, limit) -> list of records
            store: Optional result store; results are not persisted without one
            assembler: Prompt assembler
            clock: Source of the reference time for evidence recency
            patent_limit: Number of patents to request from the search capability
            reuse_within: Return a stored result for the same query and level
                created within this window instead of running again
        """
        self.loader = ContextLoader(knowledge_base)
        self.collector = collector or ResponseCollector()
        self.classifier = classifier or ConsensusClassifier()
        self.ranker = ranker or EvidenceRanker()
        self.search = search
        self.store = store
        self.assembler = assembler or BriefcaseAssembler()
        self.clock = clock
        self.patent_limit = patent_limit
        self.reuse_within = reuse_within
        logger.info("AggregationEngine initialized")

    def run(
        self,
        query_text: str,
        level: Union[str, ContextLevel],
        providers: Sequence,
        query_id: Optional[str] = None,
        categories: Optional[Iterable[str]] = None,
        max_tokens: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> AggregationResult:
        """
        Run a query through the full pipeline.

        Args:
            query_text: The research question
            level: Context level ('minimal', 'standard' or 'deep')
            providers: Provider capabilities to dispatch to
            query_id: Optional identifier; generated when omitted
            categories: Optional category whitelist override
            max_tokens: Optional token budget override
            cancel_event: Optional event the caller sets to abandon in-flight calls

        Returns:
            AggregationResult with the context used, provider responses,
            consensus verdict and ranked evidence
            (a stored result when a recent run of the same query is reused)

        Raises:
            InvalidLevel: If the level is not recognized (before any work)
        """
        strategy = build_strategy(level, categories=categories, max_tokens=max_tokens)
        query_id = query_id or str(uuid.uuid4())
        now = self.clock()

        cached = self._reuse(query_text, strategy.level, now)
        if cached is not None:
            return cached

        logger.info(f"Running aggregation {query_id} at level {strategy.level.value} "
                    f"with {len(providers)} providers")

        selection = self.loader.load(strategy)
        evidence = self._gather_evidence(query_text, now)
        prompt = self.assembler.assemble(query_text, selection, evidence)

        responses = self.collector.collect(prompt, providers, cancel_event)
        verdict = self.classifier.classify(responses)

        result = AggregationResult(
            query_id=query_id,
            query_text=query_text,
            context_used=selection,
            provider_responses=responses,
            verdict=verdict,
            ranked_evidence=evidence
        )

        if self.store is not None and not self.store.save(result, created_at=now):
            logger.warning(f"Aggregation {query_id} completed but was not persisted")

        logger.info(f"Aggregation {query_id} complete: consensus {verdict.level.value}")
        return result

    def execute(
        self,
        query_text: str,
        level: Union[str, ContextLevel],
        providers: Sequence,
        **kwargs
    ) -> ExecutionResult:
        """
        Run a query and return a tagged result instead of raising.

        Returns:
            ExecutionResult with success, error_kind, message and result keys
        """
        result: ExecutionResult = ExecutionResult(
            success=False,
            error_kind=None,
            message='',
            result=None
        )
        try:
            aggregation = self.run(query_text, level, providers, **kwargs)
        except InvalidLevel as e:
            logger.warning(f"Rejected query: {e}")
            result['error_kind'] = ErrorKind.INVALID_LEVEL
            result['message'] = str(e)
            return result

        result['success'] = True
        result['message'] = f"Consensus {aggregation.verdict.level.value}"
        result['result'] = aggregation
        return result

    def _reuse(
        self,
        query_text: str,
        level: ContextLevel,
        now: datetime
    ) -> Optional[AggregationResult]:
        """Latest stored result for the same query and level inside the reuse window."""
        if self.store is None or not self.reuse_within:
            return None

        record = self.store.find_recent(query_text, self.reuse_within, now=now, level=level)
        if record is None:
            return None

        logger.info(f"Reusing aggregation {record.query_id} from {record.created_at} "
                    f"for level {level.value}")
        return record.to_result()

    def _gather_evidence(self, query_text: str, now: datetime) -> List[EvidenceItem]:
        """Search for and rank patents; any search failure yields no evidence."""
        if self.search is None or self.patent_limit == 0:
            return []

        try:
            raw_results = self.search.search(query_text, self.patent_limit)
        except Exception as e:
            logger.error(f"{ErrorKind.SEARCH_UNAVAILABLE.value}: {e}")
            return []

        return self.ranker.rank(raw_results or [], query_text, now)


def run_aggregation(
    query_text: str,
    level: Union[str, ContextLevel],
    providers: Sequence,
    knowledge_base: BaseKnowledgeBase,
    **engine_options
) -> AggregationResult:
    """
    Convenience wrapper: build an engine and run a single query.

    Args:
        query_text: The research question
        level: Context level
        providers: Provider capabilities to dispatch to
        knowledge_base: Reader for background context entries
        **engine_options: Passed through to AggregationEngine

    Returns:
        AggregationResult

    Raises:
        InvalidLevel: If the level is not recognized
    """
    engine = AggregationEngine(knowledge_base, **engine_options)
    return engine.run(query_text, level, providers)
