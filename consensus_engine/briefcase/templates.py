"""
Briefcase Templates

Text templates for the context document, the patent landscape block and the
research prompt sent to every provider.
"""

from typing import List

from ..models import ContextEntry, EvidenceItem


class BriefcaseTemplates:
    """
    Template strings for research prompts.
    """

    @staticmethod
    def context_header() -> str:
        return """# Knowledge Base
## Context for Research Query

This context provides background information to help answer research questions accurately.

---

"""

    @staticmethod
    def context_entry(entry: ContextEntry) -> str:
        """
        Render one entry. Each block ends with a separator so entry boundaries
        survive for citation.
        """
        title = entry.title or entry.id
        return (f"### {title}\n"
                f"**Category:** {entry.category} / {entry.subcategory}\n\n"
                f"{entry.content}\n\n---\n\n")

    @staticmethod
    def context_footer(entry_count: int, total_tokens: int) -> str:
        return (f"\n**Total Context Entries:** {entry_count}\n"
                f"**Estimated Tokens:** ~{total_tokens}\n")

    @staticmethod
    def system_prompt() -> str:
        return ("You are a biotech research assistant. Provide accurate, scientifically "
                "rigorous responses based on the provided context.")

    @staticmethod
    def response_instructions() -> str:
        return ("Provide your analysis with a confidence score (0-100) at the end. "
                "Include specific citations (PMID, NCT numbers) when referencing papers or trials.")

    @staticmethod
    def patent_context(items: List[EvidenceItem], limit: int = 10) -> str:
        """
        Render the patent landscape block appended to the prompt.

        Args:
            items: Ranked evidence items
            limit: Maximum number of items to include

        Returns:
            Patent context string, or '' when there is no evidence
        """
        if not items:
            return ''

        shown = items[:limit]
        lines = [
            f"{index + 1}. Patent {item.identifier} ({item.assignee}, {item.publication_date}):\n"
            f"   {item.snippet or item.title}"
            for index, item in enumerate(shown)
        ]

        return ("\n\n=== RELEVANT PATENT LANDSCAPE ===\n"
                f"The following {len(shown)} patents are relevant to this query:\n\n"
                + "\n\n".join(lines)
                + "\n\n=== END PATENT CONTEXT ===\n\n"
                "Please analyze the query considering this patent landscape. "
                f"Cite specific patents when relevant using format [Patent: {items[0].identifier}].")

    @staticmethod
    def research_prompt() -> str:
        """
        Template for the full research prompt.

        Placeholders: system_prompt, context, query_text, patent_context, instructions
        """
        return """{system_prompt}

{context}# RESEARCH QUESTION
{query_text}
{patent_context}

{instructions}
"""
