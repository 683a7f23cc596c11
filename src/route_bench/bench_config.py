"""
Benchmark Harness Configuration

Manages loading from environment variables and default values.
"""

import os
from dataclasses import dataclass, field, asdict

from route_bench.domain.constants import (
    BASE_ENERGY_MJ_PER_CPU_SECOND,
    DEFAULT_DIRECT_MODEL,
    DEFAULT_QUANTIZED_MODEL,
    DEFAULT_REFERENCE_MODEL,
    DEFAULT_ROUTER_MODEL,
)
from route_bench.domain.value_objects import GenerationSettings


def _env_bool(key: str, default: bool) -> bool:
    """Convert an environment variable to bool"""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


@dataclass
class RunConfig:
    """Run scope configuration"""
    limit_prompts: bool = True
    prompt_limit: int = 20
    resources_dir: str = "resources"


@dataclass
class ModelSelectionConfig:
    """Model identifiers used by each run mode"""
    router_model: str = DEFAULT_ROUTER_MODEL
    direct_model: str = DEFAULT_DIRECT_MODEL
    quantized_model: str = DEFAULT_QUANTIZED_MODEL
    reference_model: str = DEFAULT_REFERENCE_MODEL


@dataclass
class GenerationConfig:
    """Sampling settings for benchmark completions"""
    max_tokens: int = 150
    temperature: float = 0.1
    top_p: float = 0.9

    def to_settings(self) -> GenerationSettings:
        return GenerationSettings(
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
        )


@dataclass
class ClassifierConfig:
    """Zero-shot classifier settings"""
    max_tokens: int = 15
    temperature: float = 0.1

    def to_settings(self) -> GenerationSettings:
        return GenerationSettings(max_tokens=self.max_tokens, temperature=self.temperature)


@dataclass
class EnergyConfig:
    """Energy estimation settings"""
    base_rate_mj_per_cpu_second: float = BASE_ENERGY_MJ_PER_CPU_SECOND


@dataclass
class EngineConfig:
    """OpenAI-compatible local engine (LMStudio) configuration"""
    base_url: str = "http://localhost:1234/v1"
    api_key: str = "lm-studio"
    timeout_seconds: int = 120
    max_retries: int = 3


@dataclass
class BenchConfig:
    """Overall benchmark harness configuration"""
    run: RunConfig = field(default_factory=RunConfig)
    models: ModelSelectionConfig = field(default_factory=ModelSelectionConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"bench_config": asdict(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "BenchConfig":
        """Create from dictionary (handles presence/absence of bench_config key)"""
        config_data = data.get("bench_config", data)
        return cls(
            run=RunConfig(**config_data.get("run", {})),
            models=ModelSelectionConfig(**config_data.get("models", {})),
            generation=GenerationConfig(**config_data.get("generation", {})),
            classifier=ClassifierConfig(**config_data.get("classifier", {})),
            energy=EnergyConfig(**config_data.get("energy", {})),
            engine=EngineConfig(**config_data.get("engine", {})),
        )


def load_config() -> BenchConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Returns:
        BenchConfig
    """
    run = RunConfig(
        limit_prompts=_env_bool("BENCH_LIMIT_PROMPTS", True),
        prompt_limit=_env_int("BENCH_PROMPT_LIMIT", 20),
        resources_dir=_env_str("BENCH_RESOURCES_DIR", "resources"),
    )
    models = ModelSelectionConfig(
        router_model=_env_str("BENCH_ROUTER_MODEL", DEFAULT_ROUTER_MODEL),
        direct_model=_env_str("BENCH_DIRECT_MODEL", DEFAULT_DIRECT_MODEL),
        quantized_model=_env_str("BENCH_QUANTIZED_MODEL", DEFAULT_QUANTIZED_MODEL),
        reference_model=_env_str("BENCH_REFERENCE_MODEL", DEFAULT_REFERENCE_MODEL),
    )
    generation = GenerationConfig(
        max_tokens=_env_int("BENCH_MAX_TOKENS", 150),
        temperature=_env_float("BENCH_TEMPERATURE", 0.1),
        top_p=_env_float("BENCH_TOP_P", 0.9),
    )
    classifier = ClassifierConfig(
        max_tokens=_env_int("BENCH_CLASSIFIER_MAX_TOKENS", 15),
        temperature=_env_float("BENCH_CLASSIFIER_TEMPERATURE", 0.1),
    )
    energy = EnergyConfig(
        base_rate_mj_per_cpu_second=_env_float("BENCH_ENERGY_BASE_RATE", BASE_ENERGY_MJ_PER_CPU_SECOND),
    )
    engine = EngineConfig(
        base_url=_env_str("LMSTUDIO_BASE_URL", "http://localhost:1234/v1"),
        api_key=_env_str("LMSTUDIO_API_KEY", "lm-studio"),
        timeout_seconds=_env_int("BENCH_ENGINE_TIMEOUT_SECONDS", 120),
        max_retries=_env_int("BENCH_ENGINE_MAX_RETRIES", 3),
    )
    return BenchConfig(
        run=run,
        models=models,
        generation=generation,
        classifier=classifier,
        energy=energy,
        engine=engine,
    )
