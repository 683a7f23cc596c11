"""
Domain Entities

Defines the primary records produced and consumed during a benchmark run.
"""

from dataclasses import dataclass

from route_bench.domain.constants import CategoryLabel


@dataclass(frozen=True)
class PromptItem:
    """A prompt from the catalog with its ground-truth category"""
    id: int
    category: CategoryLabel
    prompt: str


@dataclass(frozen=True)
class ModelDescriptor:
    """An installed model as known to the model registry"""
    model_id: str
    local_path: str
    model_lib: str
    estimated_memory_bytes: int = 0


@dataclass(frozen=True)
class PromptResult:
    """Result of one processed prompt"""
    id: int
    category: str
    model_id: str
    ttft_ms: int
    gen_ms: int
    prompt_tokens: int
    completion_tokens: int
    tps: float
    completion: str
    expected_category: str
    classification_accuracy: bool


@dataclass(frozen=True)
class EnergySample:
    """Cumulative energy estimate at a point in the run"""
    timestamp: float  # Seconds since run start
    energy_mj: float  # Cumulative estimate (mJ)
    thermal_state: str


@dataclass(frozen=True)
class RunSummary:
    """Aggregate statistics of a finished (or cancelled) run"""
    mode: str
    total_prompts: int
    total_latency_ms: int
    total_gen_ms: int
    avg_ttft_ms: float
    p50_ttft_ms: int
    p95_ttft_ms: int
    avg_gen_ms: float
    p50_gen_ms: int
    p95_gen_ms: int
    total_prompt_tokens: int
    total_completion_tokens: int
    overall_tps: float
    max_resident_memory_bytes: int
    cpu_time_seconds: float
    energy_mj: float
    energy_note: str
    classification_accuracy: float
    correct_classifications: int
    cancelled: bool = False


@dataclass(frozen=True)
class RunSnapshot:
    """Read-only view of the run context for observers"""
    running: bool
    progress: float
    results: tuple[PromptResult, ...] = ()
    log: tuple[str, ...] = ()
    energy_samples: tuple[EnergySample, ...] = ()
    summary: RunSummary | None = None
    mode: str | None = None
