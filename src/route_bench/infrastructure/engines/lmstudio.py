"""
LMStudio (OpenAI-compatible API) inference engine
"""

import os
from collections.abc import Iterator

import openai
from openai import OpenAI

from route_bench.domain.errors import GenerationError, ModelLoadError
from route_bench.domain.value_objects import StreamChunk, TokenUsage
from route_bench.infrastructure.engines.base import InferenceEngine, RetryMixin


class LMStudioEngine(RetryMixin, InferenceEngine):
    """Engine backed by a local LMStudio server (OpenAI-compatible API)"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: int = 120,
        max_retries: int = 3,
    ):
        """
        Args:
            base_url: LMStudio API endpoint (falls back to LMSTUDIO_BASE_URL env var if not specified)
            api_key: API key (falls back to LMSTUDIO_API_KEY env var if not specified; usually not required for LMStudio)
            timeout_seconds: HTTP timeout per request (default: 120)
            max_retries: Maximum number of load attempts (default: 3)
        """
        self.max_retries = max_retries

        # Configuration priority: argument > environment variable > default value
        base_url = base_url or os.environ.get("LMSTUDIO_BASE_URL", "http://localhost:1234/v1")
        api_key = api_key or os.environ.get("LMSTUDIO_API_KEY", "lm-studio")

        self.base_url = base_url
        self.client = OpenAI(base_url=base_url, api_key=api_key, timeout=timeout_seconds)
        self.loaded_model: str | None = None

    def reload(self, model_path: str, model_lib: str) -> None:
        """
        Select the served model for subsequent completions

        The server owns the weights; ``model_path`` is the identifier it
        serves the model under and ``model_lib`` is not used.

        Raises:
            ModelLoadError: If the server does not serve the model
        """
        # Replaces any previously loaded model
        self.loaded_model = None

        def _call():
            return self.client.models.retrieve(model_path)

        try:
            self._with_retry(
                _call,
                retryable_exceptions=(
                    openai.APIConnectionError,
                    openai.RateLimitError,
                ),
            )
        except openai.OpenAIError as e:
            raise ModelLoadError(f"Failed to load {model_path}: {e}") from e

        self.loaded_model = model_path

    def unload(self) -> None:
        self.loaded_model = None

    def stream_completion(
        self,
        messages: list[dict],
        max_tokens: int,
        temperature: float,
        top_p: float | None = None,
    ) -> Iterator[StreamChunk]:
        """
        Stream a chat completion

        Yields:
            StreamChunk: Incremental text; the final chunk carries usage when reported

        Raises:
            GenerationError: If no model is loaded or the server fails mid-stream
        """
        if self.loaded_model is None:
            raise GenerationError("No model is loaded")

        kwargs = {
            "model": self.loaded_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if top_p is not None:
            kwargs["top_p"] = top_p

        try:
            stream = self.client.chat.completions.create(**kwargs)
            for event in stream:
                text = None
                for choice in event.choices:
                    if choice.delta and choice.delta.content is not None:
                        text = (text or "") + choice.delta.content

                usage = None
                if getattr(event, "usage", None):
                    usage = TokenUsage(
                        prompt_tokens=event.usage.prompt_tokens or 0,
                        completion_tokens=event.usage.completion_tokens or 0,
                    )
                yield StreamChunk(text=text, usage=usage)
        except openai.OpenAIError as e:
            raise GenerationError(f"Streaming from {self.loaded_model} failed: {e}") from e
