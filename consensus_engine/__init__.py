"""
Consensus Engine - Multi-Provider Research Aggregation

Answers a research question with several independent language-model providers,
optionally augmented with knowledge-base context and patent evidence, and
reconciles the answers into a single agreement verdict.
"""

__version__ = "0.1.0"
__author__ = "Consensus Engine Team"

from .engine import AggregationEngine, run_aggregation
from .errors import EngineError, ErrorKind, InvalidLevel

__all__ = [
    "AggregationEngine",
    "run_aggregation",
    "EngineError",
    "ErrorKind",
    "InvalidLevel"
]
