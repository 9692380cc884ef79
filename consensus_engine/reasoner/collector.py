"""
Provider Response Collector

Fans one prompt out to every provider concurrently and waits until each call
has settled (succeeded, failed or timed out), the overall ceiling elapses, or
the caller cancels.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import List, Optional, Sequence

from ..errors import ErrorKind
from ..models import ProviderResponse
from .providers import unique_provider_ids

logger = logging.getLogger(__name__)


class ResponseCollector:
    """
    Concurrent dispatcher for provider capabilities.

    Each provider writes only its own slot in the result list, so no locking
    is needed. Responses arriving after the deadline or a cancellation are
    discarded. Providers sharing a name are told apart by model, then by
    position, so every response carries a distinct provider id.
    """

    def __init__(
        self,
        per_call_timeout: float = 60.0,
        overall_timeout: float = 120.0,
        poll_interval: float = 0.1
    ):
        """
        Initialize the collector.

        Args:
            per_call_timeout: Timeout handed to each provider call, in seconds
            overall_timeout: Ceiling on the total wait, in seconds
            poll_interval: How often to check the cancel event, in seconds
        """
        if per_call_timeout <= 0 or overall_timeout <= 0:
            raise ValueError("Timeouts must be positive")
        self.per_call_timeout = per_call_timeout
        self.overall_timeout = overall_timeout
        self.poll_interval = poll_interval
        logger.info(f"ResponseCollector initialized: per_call={per_call_timeout}s, "
                    f"overall={overall_timeout}s")

    def collect(
        self,
        prompt: str,
        providers: Sequence,
        cancel_event: Optional[threading.Event] = None
    ) -> List[ProviderResponse]:
        """
        Dispatch the prompt to all providers and collect their responses.

        Args:
            prompt: Assembled research prompt
            providers: Objects exposing invoke(prompt, timeout) -> ProviderResponse
            cancel_event: Optional event the caller sets to abandon the query

        Returns:
            One ProviderResponse per provider, in provider order
        """
        if not providers:
            logger.warning("No providers supplied, nothing to collect")
            return []

        logger.info(f"Dispatching prompt to {len(providers)} providers")
        start = time.monotonic()
        deadline = start + min(self.per_call_timeout, self.overall_timeout)
        slots: List[Optional[ProviderResponse]] = [None] * len(providers)
        ids = unique_provider_ids([
            (getattr(provider, "name", None) or f"provider_{index}", getattr(provider, "model", None))
            for index, provider in enumerate(providers)
        ])

        executor = ThreadPoolExecutor(max_workers=len(providers), thread_name_prefix="provider")
        futures = {
            executor.submit(provider.invoke, prompt, self.per_call_timeout): index
            for index, provider in enumerate(providers)
        }
        pending = set(futures)

        try:
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    logger.warning(f"Query cancelled with {len(pending)} providers in flight")
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                if cancel_event is not None:
                    remaining = min(remaining, self.poll_interval)

                done, pending = wait(pending, timeout=remaining, return_when=FIRST_COMPLETED)
                for future in done:
                    index = futures[future]
                    slots[index] = self._settle(providers[index], ids[index], future, start)
        finally:
            # in-flight calls are abandoned; their late results are never read
            executor.shutdown(wait=False, cancel_futures=True)

        cancelled = cancel_event is not None and cancel_event.is_set()
        for future in pending:
            future.cancel()
            index = futures[future]
            if cancelled:
                slots[index] = self._error(providers[index], ids[index], "Cancelled by caller",
                                           ErrorKind.PROVIDER_CANCELLED, start)
            else:
                logger.warning(f"{ids[index]} did not respond "
                               f"within {min(self.per_call_timeout, self.overall_timeout)}s")
                slots[index] = self._error(providers[index], ids[index], "Timed out waiting for response",
                                           ErrorKind.PROVIDER_TIMEOUT, start)

        responses = [slot for slot in slots if slot is not None]
        succeeded = sum(1 for r in responses if r.succeeded)
        logger.info(f"Collection complete: {succeeded}/{len(responses)} providers succeeded "
                    f"in {int((time.monotonic() - start) * 1000)}ms")
        return responses

    def _settle(self, provider, provider_id: str, future: Future, start: float) -> ProviderResponse:
        """Turn a finished future into a ProviderResponse labelled with the provider's id."""
        try:
            response = future.result()
        except Exception as e:
            logger.error(f"{provider_id} raised during invoke: {e}")
            return self._error(provider, provider_id, str(e) or e.__class__.__name__,
                               ErrorKind.PROVIDER_FAILURE, start)

        if not isinstance(response, ProviderResponse):
            return self._error(provider, provider_id,
                               f"Unexpected response type: {type(response).__name__}",
                               ErrorKind.PROVIDER_FAILURE, start)
        if response.provider != provider_id:
            response = response.model_copy(update={'provider': provider_id})
        return response

    @staticmethod
    def _error(
        provider,
        provider_id: str,
        message: str,
        kind: ErrorKind,
        start: float
    ) -> ProviderResponse:
        return ProviderResponse(
            provider=provider_id,
            model=getattr(provider, 'model', None),
            response_text="",
            response_time_ms=int((time.monotonic() - start) * 1000),
            error=message,
            error_kind=kind
        )
