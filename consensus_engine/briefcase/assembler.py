"""
Briefcase Assembler

Builds the research prompt from the user's question, the selected context and
the ranked patent evidence.
"""

import logging
from typing import List, Optional

from ..models import ContextSelection, EvidenceItem
from .templates import BriefcaseTemplates

logger = logging.getLogger(__name__)


class BriefcaseAssembler:
    """
    Assembles the prompt dispatched to every provider.
    """

    def __init__(
        self,
        system_prompt: Optional[str] = None,
        max_patents: int = 10
    ):
        """
        Initialize the briefcase assembler.

        Args:
            system_prompt: Optional workflow-specific system prompt
            max_patents: Maximum number of patents rendered into the prompt
        """
        self.templates = BriefcaseTemplates()
        self.system_prompt = system_prompt or self.templates.system_prompt()
        self.max_patents = max_patents
        logger.info("BriefcaseAssembler initialized")

    def assemble(
        self,
        query_text: str,
        selection: Optional[ContextSelection] = None,
        evidence: Optional[List[EvidenceItem]] = None
    ) -> str:
        """
        Assemble the research prompt.

        Args:
            query_text: The user's research question
            selection: Context chosen by the ContextLoader
            evidence: Ranked evidence items, best first

        Returns:
            Formatted prompt string
        """
        context = selection.text if selection and selection.text else ''
        if context and not context.endswith('\n\n'):
            context += '\n'

        patent_context = self.templates.patent_context(evidence or [], limit=self.max_patents)

        prompt = self.templates.research_prompt().format(
            system_prompt=self.system_prompt,
            context=context,
            query_text=query_text,
            patent_context=patent_context,
            instructions=self.templates.response_instructions()
        )

        logger.info(f"Briefcase assembled: {len(prompt)} chars, "
                    f"{len(selection.entries) if selection else 0} context entries, "
                    f"{min(len(evidence or []), self.max_patents)} patents")
        return prompt
