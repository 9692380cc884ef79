"""
Provider Capabilities

Common base for the language-model providers the collector fans out to.
A provider never raises from invoke(): timeouts and failures come back as a
ProviderResponse with error set.
"""

import logging
import re
import time
from abc import ABC, abstractmethod
from collections import Counter
from typing import List, Optional, Sequence, Tuple, Type

from ..errors import ErrorKind
from ..models import ProviderResponse

logger = logging.getLogger(__name__)

CONFIDENCE_PATTERN = re.compile(r'confidence[:\s]+(\d+(?:\.\d+)?)\s*%?', re.IGNORECASE)
PMID_PATTERN = re.compile(r'PMID[:\s]+(\d+)', re.IGNORECASE)
NCT_PATTERN = re.compile(r'NCT(\d+)', re.IGNORECASE)


def extract_confidence(text: str) -> Optional[float]:
    """
    Extract a trailing 'Confidence: NN%' score and normalise it to 0-1.

    Returns:
        Confidence in [0, 1], or None if absent or out of range
    """
    match = CONFIDENCE_PATTERN.search(text)
    if not match:
        return None
    value = float(match.group(1))
    if value > 100:
        return None
    return value / 100.0


def extract_sources(text: str) -> List[str]:
    """Extract deduplicated PMID and NCT citations in order of appearance."""
    sources: List[str] = []
    for match in PMID_PATTERN.finditer(text):
        sources.append(f"PMID:{match.group(1)}")
    for match in NCT_PATTERN.finditer(text):
        sources.append(f"NCT{match.group(1)}")
    return list(dict.fromkeys(sources))


def unique_provider_ids(identities: Sequence[Tuple[str, Optional[str]]]) -> List[str]:
    """
    Give every provider a distinct id.

    Names used once stay as they are. Repeated names become `name:model`,
    and any id still repeated gets a `#2`, `#3`, ... suffix in order.

    Args:
        identities: (name, model) pairs in provider order

    Returns:
        Ids in the same order
    """
    name_counts = Counter(name for name, _ in identities)
    ids = [
        f"{name}:{model}" if name_counts[name] > 1 and model else name
        for name, model in identities
    ]

    seen: Counter = Counter()
    unique: List[str] = []
    for provider_id in ids:
        seen[provider_id] += 1
        unique.append(provider_id if seen[provider_id] == 1 else f"{provider_id}#{seen[provider_id]}")
    return unique


class BaseProvider(ABC):
    """
    Abstract provider capability.

    Subclasses implement _complete(); invoke() wraps it with timing, citation
    extraction and error capture.
    """

    name: str = "provider"
    # exception types that should be recorded as timeouts rather than failures
    timeout_exceptions: Tuple[Type[BaseException], ...] = (TimeoutError,)

    def __init__(self, model: str, max_tokens: int = 4096, temperature: float = 0.7):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        logger.info(f"{self.__class__.__name__} initialized with model: {model}")

    @abstractmethod
    def _complete(self, prompt: str, timeout: float) -> Tuple[str, Optional[int]]:
        """
        Send the prompt to the provider.

        Args:
            prompt: Assembled research prompt
            timeout: Per-call timeout in seconds

        Returns:
            Tuple of (response text, tokens used or None)
        """
        pass

    def invoke(self, prompt: str, timeout: float) -> ProviderResponse:
        """
        Invoke the provider and capture the outcome as a ProviderResponse.

        Args:
            prompt: Assembled research prompt
            timeout: Per-call timeout in seconds

        Returns:
            ProviderResponse, with error set on timeout or failure
        """
        start = time.monotonic()
        try:
            text, tokens_used = self._complete(prompt, timeout)
        except self.timeout_exceptions as e:
            logger.warning(f"{self.name} timed out after {timeout}s: {e}")
            return self.error_response(f"Timed out after {timeout}s", ErrorKind.PROVIDER_TIMEOUT,
                                       self._elapsed_ms(start))
        except Exception as e:
            logger.error(f"{self.name} request failed: {e}")
            return self.error_response(str(e) or e.__class__.__name__,
                                       ErrorKind.PROVIDER_FAILURE, self._elapsed_ms(start))

        response = ProviderResponse(
            provider=self.name,
            model=self.model,
            response_text=text,
            confidence_score=extract_confidence(text),
            tokens_used=tokens_used,
            response_time_ms=self._elapsed_ms(start),
            sources=extract_sources(text)
        )
        logger.info(f"{self.name} responded in {response.response_time_ms}ms")
        return response

    def error_response(
        self,
        message: str,
        kind: ErrorKind,
        response_time_ms: int = 0
    ) -> ProviderResponse:
        return ProviderResponse(
            provider=self.name,
            model=self.model,
            response_text="",
            response_time_ms=response_time_ms,
            error=message,
            error_kind=kind
        )

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
