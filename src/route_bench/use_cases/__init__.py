"""
Use Cases Layer

Aggregates business logic and provides use cases called from the runner.
"""

from route_bench.use_cases.benchmark import BenchmarkOrchestrator
from route_bench.use_cases.preflight import (
    check_routing_targets,
    require_model,
)

__all__ = [
    # benchmark
    "BenchmarkOrchestrator",
    # preflight
    "check_routing_targets",
    "require_model",
]
