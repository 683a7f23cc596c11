"""
Domain Constants

Centrally manages constants shared across the benchmark harness.
"""

from enum import Enum


class CategoryLabel(str, Enum):
    """Closed set of prompt task categories."""
    FACTUAL = "Factual"
    REASONING = "Reasoning"
    CREATIVE = "Creative"
    INSTRUCTION_HEAVY = "Instruction-heavy"
    ROLE_BASED = "Role-based"

    @classmethod
    def parse(cls, value: str) -> "CategoryLabel":
        """Resolve a label from its display name (case-insensitive)."""
        for label in cls:
            if label.value.lower() == value.strip().lower():
                return label
        raise ValueError(f"Unknown category: {value!r}. Valid values: {[c.value for c in cls]}")


# Canonical ordering used by classifier matching
CATEGORIES = list(CategoryLabel)

# Run modes
MODE_ROUTED = "routed"
MODE_DIRECT = "direct"
MODE_QUANTIZATION = "quantization_comparison"

# Default model identifiers
DEFAULT_ROUTER_MODEL = "TinyLlama-1.1B-Chat-v1.0-q4f16_1-MLC"
DEFAULT_DIRECT_MODEL = "Qwen3-0.6B-q0f32-MLC"
DEFAULT_QUANTIZED_MODEL = "Qwen3-0.6B-q4f32_1-MLC"
DEFAULT_REFERENCE_MODEL = "Qwen3-0.6B-q0f32-MLC"

# Quantization comparison result ids: original_id * 1000 + variant index
QUANT_ID_MULTIPLIER = 1000
QUANT_VARIANT_QUANTIZED = 1
QUANT_VARIANT_REFERENCE = 2

# Thermal state -> power multiplier (higher draw under throttling)
THERMAL_MULTIPLIERS = {
    "nominal": 0.5,
    "fair": 1.0,
    "serious": 1.5,
    "critical": 2.0,
}
UNKNOWN_THERMAL_STATE = "unknown"

# Estimated energy per CPU-second at multiplier 1.0 (mJ)
BASE_ENERGY_MJ_PER_CPU_SECOND = 5000.0
