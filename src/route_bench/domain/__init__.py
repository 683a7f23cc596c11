"""
Domain Layer

Defines constants, entities, value objects, and errors that form the core of the benchmark.
Has no dependencies on external libraries.
"""

from route_bench.domain.constants import (
    CATEGORIES,
    CategoryLabel,
    DEFAULT_DIRECT_MODEL,
    DEFAULT_QUANTIZED_MODEL,
    DEFAULT_REFERENCE_MODEL,
    DEFAULT_ROUTER_MODEL,
    MODE_DIRECT,
    MODE_QUANTIZATION,
    MODE_ROUTED,
    THERMAL_MULTIPLIERS,
)
from route_bench.domain.entities import (
    EnergySample,
    ModelDescriptor,
    PromptItem,
    PromptResult,
    RunSnapshot,
    RunSummary,
)
from route_bench.domain.errors import (
    BenchmarkError,
    ConfigurationMismatchError,
    EngineError,
    GenerationError,
    ModelLoadError,
    ProbeError,
    ResourceLoadError,
    RoutingMissError,
    RunInProgressError,
)
from route_bench.domain.value_objects import (
    GenerationSettings,
    StreamChunk,
    StreamOutcome,
    TokenUsage,
)

__all__ = [
    # constants
    "CATEGORIES",
    "CategoryLabel",
    "DEFAULT_DIRECT_MODEL",
    "DEFAULT_QUANTIZED_MODEL",
    "DEFAULT_REFERENCE_MODEL",
    "DEFAULT_ROUTER_MODEL",
    "MODE_DIRECT",
    "MODE_QUANTIZATION",
    "MODE_ROUTED",
    "THERMAL_MULTIPLIERS",
    # entities
    "EnergySample",
    "ModelDescriptor",
    "PromptItem",
    "PromptResult",
    "RunSnapshot",
    "RunSummary",
    # errors
    "BenchmarkError",
    "ConfigurationMismatchError",
    "EngineError",
    "GenerationError",
    "ModelLoadError",
    "ProbeError",
    "ResourceLoadError",
    "RoutingMissError",
    "RunInProgressError",
    # value objects
    "GenerationSettings",
    "StreamChunk",
    "StreamOutcome",
    "TokenUsage",
]
