"""
Stream Consumption

Consumes a completion stream and extracts time-to-first-token, generation
time, completion text and approximate token counts.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Callable

from route_bench.domain.value_objects import StreamChunk, StreamOutcome, TokenUsage
from route_bench.metrics import estimate_tokens, tokens_per_second


def consume_stream(
    chunks: Iterable[StreamChunk],
    prompt_text: str,
    clock: Callable[[], float],
    started_at: float,
    on_chunk: Callable[[], object] | None = None,
) -> StreamOutcome:
    """
    Drain a completion stream and measure it.

    The first chunk with non-empty text marks the first token; the end of the
    stream marks the end of generation. When no text ever arrives both the
    TTFT and the generation time span the whole request.

    Args:
        chunks: Lazily produced chunks (iterated exactly once)
        prompt_text: Prompt sent to the engine (for the prompt token estimate)
        clock: Monotonic clock in seconds
        started_at: Clock value when the request was submitted
        on_chunk: Called after every chunk (e.g. to sample memory)

    Returns:
        StreamOutcome
    """
    first_token_at: float | None = None
    parts: list[str] = []
    usage: TokenUsage | None = None

    for chunk in chunks:
        if first_token_at is None and chunk.has_text:
            first_token_at = clock()
        if chunk.text:
            parts.append(chunk.text)
        if chunk.usage is not None:
            usage = chunk.usage
        if on_chunk is not None:
            on_chunk()

    finished_at = clock()
    ttft_ms = int(((first_token_at if first_token_at is not None else finished_at) - started_at) * 1000)
    gen_ms = int((finished_at - (first_token_at if first_token_at is not None else started_at)) * 1000)

    completion = "".join(parts)
    prompt_tokens = estimate_tokens(prompt_text)
    completion_tokens = estimate_tokens(completion)

    return StreamOutcome(
        completion=completion,
        ttft_ms=ttft_ms,
        gen_ms=gen_ms,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        tps=tokens_per_second(completion_tokens, gen_ms),
        usage=usage,
    )
