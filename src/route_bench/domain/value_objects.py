"""
Domain Value Objects

Defines immutable data structures exchanged with the inference engine:
stream chunks, token usage, generation settings, and stream outcomes.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenUsage:
    """Engine-reported token usage (final chunk only)"""
    prompt_tokens: int = 0
    completion_tokens: int = 0


@dataclass(frozen=True)
class StreamChunk:
    """One element of a streamed completion"""
    text: str | None = None
    usage: TokenUsage | None = None

    @property
    def has_text(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True)
class GenerationSettings:
    """Sampling settings for a completion request"""
    max_tokens: int
    temperature: float
    top_p: float | None = None

    def __post_init__(self):
        if self.max_tokens < 1:
            raise ValueError("max_tokens must be at least 1")
        if self.temperature < 0:
            raise ValueError("temperature must be non-negative")
        if self.top_p is not None and not 0.0 < self.top_p <= 1.0:
            raise ValueError("top_p must be in (0, 1]")


@dataclass(frozen=True)
class StreamOutcome:
    """Measurements extracted from one consumed stream"""
    completion: str
    ttft_ms: int
    gen_ms: int
    prompt_tokens: int
    completion_tokens: int
    tps: float
    usage: TokenUsage | None = None
