"""
Claim Extraction and Similarity

Breaks a response into claims, reduces text to key terms, and compares them.
Responses are compared by the overlap coefficient of their key-term sets,
discounted when same-topic claims contradict each other.
"""

import re
from typing import FrozenSet, List, Optional

WORD_PATTERN = re.compile(r"[a-z0-9][a-z0-9'\-]*")
NUMBER_PATTERN = re.compile(r"\b\d+(?:[.,]\d+)?%?")
SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")
MARKDOWN_PREFIX = re.compile(r"^\s*(?:[#>*\-+]+|\d+[.)])\s*")

NEGATIONS = frozenset({
    'not', 'no', 'never', 'none', 'neither', 'nor', 'cannot', "can't", "don't",
    "doesn't", "didn't", "isn't", "aren't", "wasn't", "weren't", "won't",
    'without', 'lacks', 'lack', 'unlikely', 'fails', 'failed', 'ineffective',
    'insufficient', 'unproven'
})

STOP_WORDS = frozenset({
    'the', 'and', 'for', 'are', 'but', 'with', 'that', 'this', 'these', 'those',
    'from', 'into', 'onto', 'over', 'under', 'than', 'then', 'there', 'their',
    'they', 'them', 'its', "it's", 'was', 'were', 'been', 'being', 'have', 'has',
    'had', 'having', 'will', 'would', 'could', 'should', 'may', 'might', 'must',
    'can', 'also', 'such', 'which', 'what', 'when', 'where', 'who', 'whom', 'why',
    'how', 'all', 'any', 'each', 'more', 'most', 'other', 'some', 'very', 'only',
    'about', 'based', 'between', 'both', 'does', 'did', 'doing', 'here', 'however',
    'while', 'our', 'your', 'you', 'his', 'her', 'she', 'him', 'one',
    'confidence', 'score', 'overall', 'analysis', 'response', 'answer', 'question',
    'provide', 'provided', 'include', 'including', 'regarding', 'generally',
    'likely', 'well', 'significant', 'significantly', 'important', 'key',
}) | NEGATIONS


def normalize_term(word: str) -> str:
    """Lowercase word with a plural 's' stripped from longer words."""
    word = word.strip("'-")
    if len(word) > 4 and word.endswith('s') and not word.endswith('ss'):
        return word[:-1]
    return word


def key_terms(text: str) -> FrozenSet[str]:
    """
    Reduce text to its content-bearing terms.

    Keeps words of three or more letters that are not stop words, plus any
    token containing a digit (doses, years, trial identifiers).
    """
    terms = set()
    for raw in WORD_PATTERN.findall(text.lower()):
        word = normalize_term(raw)
        if not word:
            continue
        if any(ch.isdigit() for ch in word):
            terms.add(word)
        elif len(word) >= 3 and word not in STOP_WORDS:
            terms.add(word)
    return frozenset(terms)


def similarity(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    """Overlap coefficient |a & b| / min(|a|, |b|); 0.0 when either set is empty."""
    if not a or not b:
        return 0.0
    return len(a & b) / min(len(a), len(b))


def split_claims(text: str, min_terms: int = 3) -> List[str]:
    """
    Split a response into claim sentences.

    Markdown bullets and headings are stripped; fragments with fewer than
    min_terms key terms (headings, sign-offs, confidence lines) are dropped.
    """
    claims = []
    for fragment in SENTENCE_SPLIT.split(text):
        sentence = MARKDOWN_PREFIX.sub('', fragment).strip().strip('*_ ')
        if not sentence:
            continue
        if len(key_terms(sentence)) < min_terms:
            continue
        claims.append(sentence)
    return claims


def is_negated(claim: str) -> bool:
    """True if the claim contains a negation marker."""
    words = {w.strip("'-") for w in WORD_PATTERN.findall(claim.lower())}
    return bool(words & NEGATIONS)


def numbers_in(claim: str) -> FrozenSet[str]:
    return frozenset(n.replace(',', '.') for n in NUMBER_PATTERN.findall(claim))


def topic_terms(claim: str) -> FrozenSet[str]:
    """Key terms of a claim without numeric tokens."""
    return frozenset(t for t in key_terms(claim) if not any(c.isdigit() for c in t))


def contradiction(claim: str, majority_claim: str, topic_threshold: float = 0.5) -> Optional[str]:
    """
    Describe how a claim contradicts a majority claim on the same topic.

    Two claims share a topic when the similarity of their key terms (numbers
    excluded) reaches topic_threshold. On a shared topic, a claim contradicts
    when exactly one side is negated or when both cite figures and none match.

    Returns:
        A short rationale, or None if the claims do not contradict
    """
    if similarity(topic_terms(claim), topic_terms(majority_claim)) < topic_threshold:
        return None

    if is_negated(claim) != is_negated(majority_claim):
        return f'Opposite polarity to majority claim: "{majority_claim}"'

    claim_numbers = numbers_in(claim)
    majority_numbers = numbers_in(majority_claim)
    if claim_numbers and majority_numbers and not claim_numbers & majority_numbers:
        return (f"Reports {', '.join(sorted(claim_numbers))} where the majority reports "
                f"{', '.join(sorted(majority_numbers))}: \"{majority_claim}\"")

    return None


class ResponseProfile:
    """Key terms and claims of one response, computed once per classification."""

    def __init__(self, text: str):
        self.terms = key_terms(text)
        self.claims = split_claims(text)
        self.claim_topics = [topic_terms(claim) for claim in self.claims]


def response_similarity(a: ResponseProfile, b: ResponseProfile, topic_threshold: float = 0.5) -> float:
    """
    Agreement between two responses in [0, 1].

    Key-term overlap, discounted by the share of same-topic claim pairs that
    contradict each other, so two responses on the same topic reaching
    opposite conclusions do not count as agreeing. Symmetric in a and b.
    """
    base = similarity(a.terms, b.terms)
    if base == 0.0:
        return 0.0

    matched = 0
    contradicted = 0
    for claim_a, topic_a in zip(a.claims, a.claim_topics):
        for claim_b, topic_b in zip(b.claims, b.claim_topics):
            if similarity(topic_a, topic_b) < topic_threshold:
                continue
            matched += 1
            if contradiction(claim_a, claim_b, topic_threshold):
                contradicted += 1

    if matched == 0:
        return base
    return base * (1.0 - contradicted / matched)
