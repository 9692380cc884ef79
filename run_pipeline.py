#!/usr/bin/env python3
"""
Consensus Engine - Main Pipeline Script

Runs one research question through the complete aggregation pipeline:
1. Select a context strategy and load budgeted knowledge-base context
2. Search and rank patent evidence
3. Query every configured provider in parallel
4. Classify provider agreement
5. Persist the result

Usage:
    python run_pipeline.py "What is the TLR9 agonist landscape?" --level standard
"""

import argparse
import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import List, Optional

from consensus_engine.briefcase import preview_context
from consensus_engine.config import EngineConfig, build_providers, load_config
from consensus_engine.engine import AggregationEngine
from consensus_engine.errors import InvalidLevel
from consensus_engine.evidence import GooglePatentsSearch
from consensus_engine.librarian import (
    BaseKnowledgeBase,
    GraphClient,
    GraphKnowledgeBase,
    InMemoryKnowledgeBase
)
from consensus_engine.models import AggregationResult, ContextEntry
from consensus_engine.reasoner import ResponseCollector, estimate_query_cost
from consensus_engine.arbiter import ConsensusClassifier
from consensus_engine.recorder import JsonResultStore

logger = logging.getLogger(__name__)


def print_separator(title: str = "") -> None:
    """Print a formatted separator line."""
    if title:
        print(f"\n{'='*70}")
        print(f"  {title}")
        print(f"{'='*70}\n")
    else:
        print(f"{'='*70}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Ask several language-model providers a research question "
                    "and report how much they agree."
    )
    parser.add_argument("query", help="Research question")
    parser.add_argument("--level", default="standard",
                        help="Context level: minimal, standard or deep (default: standard)")
    parser.add_argument("--kb-file", type=Path,
                        help="JSON file of knowledge base entries (used when Neo4j is not configured)")
    parser.add_argument("--preview", action="store_true",
                        help="Only preview the context the level would load")
    parser.add_argument("--estimate", action="store_true",
                        help="Only estimate the query cost")
    parser.add_argument("--no-patents", action="store_true",
                        help="Skip patent search")
    parser.add_argument("--fresh", action="store_true",
                        help="Always query the providers, even if a recent result is stored")
    return parser


def load_knowledge_base(
    config: EngineConfig,
    kb_file: Optional[Path]
) -> BaseKnowledgeBase:
    """
    Pick the knowledge base: Neo4j when configured, else a JSON file, else empty.
    """
    if config.neo4j_uri and config.neo4j_user and config.neo4j_password:
        graph_client = GraphClient(
            uri=config.neo4j_uri,
            user=config.neo4j_user,
            password=config.neo4j_password
        )
        if not graph_client.health_check():
            raise RuntimeError("Neo4j health check failed")
        return GraphKnowledgeBase(graph_client)

    if kb_file:
        with open(kb_file, 'r') as f:
            entries: List[ContextEntry] = [ContextEntry(**item) for item in json.load(f)]
        return InMemoryKnowledgeBase(entries)

    logger.warning("No knowledge base configured; running without background context")
    return InMemoryKnowledgeBase()


def reuse_window(config: EngineConfig, fresh: bool = False) -> Optional[timedelta]:
    """Window for reusing stored results; None disables reuse."""
    if fresh or config.reuse_window_hours <= 0:
        return None
    return timedelta(hours=config.reuse_window_hours)


def print_result(result: AggregationResult) -> None:
    print_separator("Context")
    print(f"Level: {result.context_used.level.value}")
    print(f"Entries: {len(result.context_used.entries)} "
          f"({result.context_used.total_tokens} tokens)")

    print_separator("Provider Responses")
    for response in result.provider_responses:
        if response.succeeded:
            confidence = (f"{response.confidence_score:.2f}"
                          if response.confidence_score is not None else "n/a")
            print(f"✓ {response.provider} ({response.model}) "
                  f"{response.response_time_ms}ms, confidence {confidence}")
        else:
            print(f"✗ {response.provider}: {response.error}")

    print_separator("Patent Evidence")
    for item in result.ranked_evidence:
        print(f"  [{item.relevance_score:3d}] {item.identifier} - {item.assignee} "
              f"({item.publication_date})")
    if not result.ranked_evidence:
        print("  No patent evidence")

    print_separator("Consensus")
    verdict = result.verdict
    print(f"Level: {verdict.level.value.upper()}")
    print(f"Agreeing: {', '.join(verdict.agreeing_providers) or '-'}")
    print(f"Conflicting: {', '.join(verdict.conflicting_providers) or '-'}")
    if verdict.agreement_summary:
        print(f"\n{verdict.agreement_summary}")
    for conflict in verdict.conflicts:
        print(f"\n  ! {conflict.provider}: {conflict.claim[:120]}")
        print(f"    {conflict.rationale[:160]}")


def main(argv: Optional[List[str]] = None) -> int:
    """Run the complete pipeline."""
    args = build_parser().parse_args(argv)
    config = load_config()

    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print_separator("CONSENSUS ENGINE - Multi-Provider Research")

    knowledge_base: Optional[BaseKnowledgeBase] = None
    try:
        providers = build_providers(config)

        if args.estimate:
            estimate = estimate_query_cost(args.query, args.level, [p.name for p in providers])
            print(json.dumps(estimate, indent=2))
            return 0

        knowledge_base = load_knowledge_base(config, args.kb_file)

        if args.preview:
            print(json.dumps(preview_context(args.level, knowledge_base), indent=2))
            return 0

        engine = AggregationEngine(
            knowledge_base=knowledge_base,
            collector=ResponseCollector(
                per_call_timeout=config.provider_timeout_seconds,
                overall_timeout=config.overall_timeout_seconds
            ),
            classifier=ConsensusClassifier(agreement_threshold=config.agreement_threshold),
            search=None if args.no_patents else GooglePatentsSearch(config.serpapi_key),
            store=JsonResultStore(config.results_file),
            patent_limit=config.patent_search_limit,
            reuse_within=reuse_window(config, args.fresh)
        )

        result = engine.run(args.query, args.level, providers)
        print_result(result)

        print_separator("Pipeline Complete")
        print(f"Result stored as {result.query_id} in {config.results_file}")
        return 0

    except InvalidLevel as e:
        print(f"\n❌ {e}")
        return 2
    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        print(f"\n❌ Error: {e}")
        return 1
    finally:
        if isinstance(knowledge_base, GraphKnowledgeBase):
            knowledge_base.client.close()


if __name__ == '__main__':
    sys.exit(main())
