"""
Arbiter Module

Reconciles parallel provider responses into a consensus verdict.
"""

from .classifier import ConsensusClassifier

__all__ = ["ConsensusClassifier"]
