"""
Inference engine factory

Creates the engine instance for the configured backend.
"""

from __future__ import annotations

from route_bench.bench_config import BenchConfig, load_config
from route_bench.infrastructure.engines.base import InferenceEngine
from route_bench.infrastructure.engines.lmstudio import LMStudioEngine


def create_engine(config: BenchConfig | None = None) -> InferenceEngine:
    """
    Create an inference engine

    Args:
        config: BenchConfig (loads from env if not provided)

    Returns:
        InferenceEngine: A fresh engine with no model loaded
    """
    if config is None:
        config = load_config()

    return LMStudioEngine(
        base_url=config.engine.base_url,
        api_key=config.engine.api_key,
        timeout_seconds=config.engine.timeout_seconds,
        max_retries=config.engine.max_retries,
    )
