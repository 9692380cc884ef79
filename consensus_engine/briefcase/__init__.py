"""
Briefcase Module

Selects and token-budgets background context, then assembles the prompt that
is dispatched to every provider.
"""

from .assembler import BriefcaseAssembler
from .loader import ContextLoader, preview_context
from .strategies import CONTEXT_STRATEGIES, build_strategy, get_strategy
from .templates import BriefcaseTemplates

__all__ = [
    "BriefcaseAssembler",
    "BriefcaseTemplates",
    "ContextLoader",
    "preview_context",
    "CONTEXT_STRATEGIES",
    "build_strategy",
    "get_strategy"
]
