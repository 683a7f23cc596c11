"""
Inference engine package

Provides the engine contract and its OpenAI-compatible implementation.
"""

from route_bench.infrastructure.engines.base import InferenceEngine
from route_bench.infrastructure.engines.factory import create_engine
from route_bench.domain.value_objects import StreamChunk

__all__ = ["InferenceEngine", "StreamChunk", "create_engine"]
