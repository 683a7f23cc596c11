"""
Inference engine base class and retry mixin

Defines the abstract engine contract the orchestrator drives
and the RetryMixin that consolidates shared retry logic.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Iterator

from route_bench.domain.value_objects import StreamChunk


class RetryMixin:
    """Exponential backoff retry. Subclasses set self.max_retries."""

    max_retries: int = 3

    def _with_retry(self, fn, retryable_exceptions=(Exception,)):
        """
        Execute with exponential backoff retry.

        Args:
            fn: The function to retry (a callable with no arguments)
            retryable_exceptions: Tuple of exception types eligible for retry

        Returns:
            The return value of fn()

        Raises:
            ValueError: If max_retries is less than 1
            Exception: The last exception if max retries are exceeded
        """
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1.")

        last_exception: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                return fn()
            except retryable_exceptions as e:
                last_exception = e
                if attempt < self.max_retries - 1:
                    time.sleep(2 ** attempt)

        assert last_exception is not None
        raise last_exception


class InferenceEngine(ABC):
    """
    Abstract base class for inference engines

    An engine holds at most one loaded model. ``reload`` replaces any
    previously loaded model, ``unload`` is idempotent.
    """

    @abstractmethod
    def reload(self, model_path: str, model_lib: str) -> None:
        """Load a model, replacing any loaded one. Raises ModelLoadError on failure."""
        pass

    @abstractmethod
    def unload(self) -> None:
        """Release the loaded model (safe when nothing is loaded)"""
        pass

    @abstractmethod
    def stream_completion(
        self,
        messages: list[dict],
        max_tokens: int,
        temperature: float,
        top_p: float | None = None,
    ) -> Iterator[StreamChunk]:
        """Start a chat completion and lazily yield its chunks"""
        pass
