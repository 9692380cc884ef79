"""
Consensus Classifier

Turns a set of provider responses into a ConsensusVerdict: which providers
form the majority position, which diverge, and how strongly they agree.
"""

import logging
from itertools import combinations
from typing import List, Sequence, Tuple

from ..errors import ErrorKind
from ..models import Conflict, ConsensusLevel, ConsensusVerdict, ProviderResponse
from ..reasoner.providers import unique_provider_ids
from .claims import ResponseProfile, contradiction, key_terms, response_similarity, similarity, split_claims

logger = logging.getLogger(__name__)

HIGH_FRACTION = 0.8
MEDIUM_FRACTION = 0.5


class ConsensusClassifier:
    """
    Classifies agreement among provider responses.

    Responses are compared pairwise by key-term overlap, discounted where
    their claims contradict. The majority cluster is the largest group whose
    members all pairwise exceed the agreement threshold; its share of the
    successful responses sets the level:

        fraction >= 0.8          -> high
        0.5 <= fraction < 0.8    -> medium
        cluster >= 2, < 0.5      -> low
        no cluster of size >= 2  -> none

    Classification is a pure function of the responses, so re-running it on
    the same input yields an identical verdict.
    """

    def __init__(
        self,
        agreement_threshold: float = 0.5,
        topic_threshold: float = 0.5,
        max_conflicts_per_provider: int = 3,
        summary_length: int = 200
    ):
        """
        Initialize the classifier.

        Args:
            agreement_threshold: Pairwise similarity a cluster member must exceed
            topic_threshold: Claim similarity at which two claims share a topic
            max_conflicts_per_provider: Cap on reported conflicts per provider
            summary_length: Maximum characters of the majority claim in the summary
        """
        if not 0.0 <= agreement_threshold < 1.0:
            raise ValueError("agreement_threshold must be in [0, 1)")
        self.agreement_threshold = agreement_threshold
        self.topic_threshold = topic_threshold
        self.max_conflicts_per_provider = max_conflicts_per_provider
        self.summary_length = summary_length
        logger.info(f"ConsensusClassifier initialized: threshold={agreement_threshold}")

    def classify(self, responses: Sequence[ProviderResponse]) -> ConsensusVerdict:
        """
        Classify agreement across responses.

        Args:
            responses: All collected responses, including failed ones

        Returns:
            ConsensusVerdict
        """
        successful = [r for r in responses if r.succeeded]
        ids = unique_provider_ids([(r.provider, r.model) for r in successful])

        if len(successful) < 2:
            logger.warning(f"{ErrorKind.INSUFFICIENT_RESPONSES.value}: only "
                           f"{len(successful)} of {len(responses)} providers succeeded")
            return ConsensusVerdict(
                level=ConsensusLevel.NONE,
                agreeing_providers=ids
            )

        profiles = [ResponseProfile(r.response_text) for r in successful]
        matrix = self.similarity_matrix(profiles)
        cluster = self.majority_cluster(matrix)

        if len(cluster) < 2:
            logger.info("No two providers agree; consensus level none")
            return ConsensusVerdict(
                level=ConsensusLevel.NONE,
                conflicting_providers=ids
            )

        fraction = len(cluster) / len(successful)
        level = self.level_for(fraction)

        medoid = self._medoid(cluster, matrix)
        representative = successful[medoid]
        members = set(cluster)
        outsiders = [i for i in range(len(successful)) if i not in members]

        conflicts: List[Conflict] = []
        majority_claims = split_claims(representative.response_text)
        for i in outsiders:
            conflicts.extend(self._find_conflicts(successful[i], ids[i], ids[medoid], majority_claims))

        verdict = ConsensusVerdict(
            level=level,
            agreeing_providers=[ids[i] for i in cluster],
            conflicting_providers=[ids[i] for i in outsiders],
            conflicts=conflicts,
            agreement_summary=self._summarize(representative, ids[medoid], len(cluster),
                                              len(successful), majority_claims)
        )

        logger.info(f"Consensus {level.value}: {len(cluster)}/{len(successful)} agree "
                    f"({fraction:.2f}), {len(conflicts)} conflicts")
        return verdict

    @staticmethod
    def level_for(fraction: float) -> ConsensusLevel:
        """Map a majority-cluster fraction (cluster size >= 2) to a level."""
        if fraction >= HIGH_FRACTION:
            return ConsensusLevel.HIGH
        if fraction >= MEDIUM_FRACTION:
            return ConsensusLevel.MEDIUM
        return ConsensusLevel.LOW

    def similarity_matrix(self, profiles: Sequence[ResponseProfile]) -> List[List[float]]:
        """Symmetric pairwise similarity matrix with 1.0 on the diagonal."""
        n = len(profiles)
        matrix = [[1.0] * n for _ in range(n)]
        for i, j in combinations(range(n), 2):
            score = response_similarity(profiles[i], profiles[j], self.topic_threshold)
            matrix[i][j] = matrix[j][i] = score
        return matrix

    def majority_cluster(self, matrix: List[List[float]]) -> List[int]:
        """
        Find the largest group of mutually agreeing responses.

        Exhaustive search from the largest size down; provider counts are
        small. Ties go to the higher mean internal similarity, then to the
        earliest providers.

        Returns:
            Sorted member indices, or [] when no pair agrees
        """
        n = len(matrix)
        for size in range(n, 1, -1):
            best: Tuple[float, Tuple[int, ...]] = (-1.0, ())
            pair_count = size * (size - 1) // 2
            for group in combinations(range(n), size):
                if not all(matrix[i][j] > self.agreement_threshold
                           for i, j in combinations(group, 2)):
                    continue
                mean = sum(matrix[i][j] for i, j in combinations(group, 2)) / pair_count
                if mean > best[0]:
                    best = (mean, group)
            if best[1]:
                return list(best[1])
        return []

    @staticmethod
    def _medoid(cluster: List[int], matrix: List[List[float]]) -> int:
        """Cluster member most similar to the rest of the cluster."""
        return max(
            cluster,
            key=lambda i: (sum(matrix[i][j] for j in cluster if j != i), -i)
        )

    def _find_conflicts(
        self,
        response: ProviderResponse,
        provider_id: str,
        majority_provider: str,
        majority_claims: List[str]
    ) -> List[Conflict]:
        """
        Collect the claims of a conflicting response that contradict the majority.

        When no claim contradicts outright, the claim least supported by the
        majority is reported instead so every conflicting provider is explained.
        """
        claims = split_claims(response.response_text)
        if not claims:
            return [Conflict(
                provider=provider_id,
                claim=response.response_text.strip()[:self.summary_length],
                rationale="Response shares no key claims with the majority position"
            )]

        conflicts: List[Conflict] = []
        for claim in claims:
            for majority_claim in majority_claims:
                rationale = contradiction(claim, majority_claim, self.topic_threshold)
                if rationale:
                    conflicts.append(Conflict(
                        provider=provider_id,
                        claim=claim,
                        rationale=f"{rationale} ({majority_provider})"
                    ))
                    break
            if len(conflicts) >= self.max_conflicts_per_provider:
                break

        if conflicts:
            return conflicts

        majority_terms = [key_terms(c) for c in majority_claims]

        def support(claim: str) -> float:
            terms = key_terms(claim)
            return max((similarity(terms, other) for other in majority_terms), default=0.0)

        weakest = min(claims, key=support)
        return [Conflict(
            provider=provider_id,
            claim=weakest,
            rationale=f"Not supported by the majority position "
                      f"(best overlap {support(weakest):.2f} with {majority_provider})"
        )]

    def _summarize(
        self,
        representative: ProviderResponse,
        representative_id: str,
        cluster_size: int,
        total: int,
        majority_claims: List[str]
    ) -> str:
        lead = majority_claims[0] if majority_claims else representative.response_text.strip()
        if len(lead) > self.summary_length:
            lead = lead[:self.summary_length].rstrip() + '...'
        return (f"{cluster_size} of {total} providers agree "
                f"(represented by {representative_id}): {lead}")
