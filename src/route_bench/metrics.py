"""
Benchmark Metrics Calculation

Computes latency quantiles, throughput, classification accuracy, and the
run summary from collected per-prompt results.

Token counts are whitespace word counts, so token-derived figures
(throughput, token totals) are approximations.
"""

import math
from typing import Sequence

import pandas as pd

from route_bench.domain.constants import MODE_QUANTIZATION
from route_bench.domain.entities import PromptResult, RunSummary


def estimate_tokens(text: str) -> int:
    """
    Approximate token count by whitespace word counting

    Args:
        text: Prompt or completion text

    Returns:
        Word count, at least 1
    """
    return max(1, len(text.split()))


def tokens_per_second(completion_tokens: int, gen_ms: int) -> float:
    """
    Throughput of a single completion

    Returns:
        Tokens per second, or 0 when there was no generation time
    """
    if completion_tokens <= 0 or gen_ms <= 0:
        return 0.0
    return completion_tokens / (gen_ms / 1000)


def _round_half_away(value: float) -> int:
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def percentile(sorted_values: Sequence[int], p: float) -> int:
    """
    Percentile by linear interpolation between order statistics

    The rank is ``(n - 1) * p``; the interpolated value is rounded to the
    nearest integer.

    Args:
        sorted_values: Values in ascending order
        p: Fraction in [0, 1]

    Returns:
        Interpolated percentile (0 for empty input)
    """
    if not sorted_values:
        return 0
    rank = (len(sorted_values) - 1) * p
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return sorted_values[lower]
    weight = rank - lower
    value = sorted_values[lower] * (1.0 - weight) + sorted_values[upper] * weight
    return _round_half_away(value)


def quantiles(values: Sequence[int]) -> tuple[float, int, int]:
    """
    Average, p50, and p95

    Args:
        values: Integer measurements (any order)

    Returns:
        (average, p50, p95); all zero for empty input
    """
    if not values:
        return 0.0, 0, 0
    sorted_values = sorted(values)
    avg = sum(sorted_values) / len(sorted_values)
    return avg, percentile(sorted_values, 0.5), percentile(sorted_values, 0.95)


def overall_tps(total_completion_tokens: int, total_gen_ms: int) -> float:
    """
    Run-level throughput

    Total tokens over total generation seconds, so short completions are
    not over-weighted as they would be in a mean of per-prompt rates.
    """
    if total_gen_ms <= 0:
        return 0.0
    return total_completion_tokens / (total_gen_ms / 1000)


def classification_accuracy(results: Sequence[PromptResult]) -> tuple[float, int]:
    """
    Share of prompts whose produced label matches the ground truth

    Returns:
        (accuracy, number of correct classifications); (0.0, 0) for empty input
    """
    correct = sum(1 for r in results if r.classification_accuracy)
    if not results:
        return 0.0, 0
    return correct / len(results), correct


def speedup(quantized_gen_ms: int, reference_gen_ms: int) -> float:
    """Ratio of quantized to reference generation time (0 when undefined)"""
    if reference_gen_ms <= 0:
        return 0.0
    return quantized_gen_ms / reference_gen_ms


def build_energy_note(
    label: str,
    wall_seconds: float,
    cpu_seconds: float,
    energy_mj: float,
) -> str:
    """Human-readable note describing how the energy figure was derived"""
    cpu_share = cpu_seconds / wall_seconds if wall_seconds > 0 else 0.0
    return (
        f"{label}. Estimated from CPU time and thermal state. "
        f"Wall={wall_seconds:.1f}s, CPU={cpu_seconds:.1f}s ({cpu_share * 100:.0f}%), "
        f"Energy={energy_mj:.1f} mJ"
    )


def build_summary(
    results: Sequence[PromptResult],
    *,
    mode: str,
    total_latency_ms: int,
    max_resident_memory_bytes: int,
    cpu_time_seconds: float,
    energy_mj: float,
    energy_note: str,
    cancelled: bool = False,
) -> RunSummary:
    """
    Assemble the run summary from all recorded results

    Args:
        results: Recorded results in insertion order
        mode: Run mode name
        total_latency_ms: Wall-clock duration of the prompt loop
        max_resident_memory_bytes: Peak RSS observed
        cpu_time_seconds: CPU time consumed during the run
        energy_mj: Cumulative energy estimate
        energy_note: Description of the energy estimate
        cancelled: Whether the run stopped early

    Returns:
        RunSummary
    """
    avg_ttft, p50_ttft, p95_ttft = quantiles([r.ttft_ms for r in results])
    avg_gen, p50_gen, p95_gen = quantiles([r.gen_ms for r in results])

    total_gen_ms = sum(max(0, r.gen_ms) for r in results)
    total_prompt_tokens = sum(r.prompt_tokens for r in results)
    total_completion_tokens = sum(r.completion_tokens for r in results)

    if mode == MODE_QUANTIZATION:
        accuracy, correct = 1.0, len(results)
    else:
        accuracy, correct = classification_accuracy(results)

    return RunSummary(
        mode=mode,
        total_prompts=len(results),
        total_latency_ms=total_latency_ms,
        total_gen_ms=total_gen_ms,
        avg_ttft_ms=avg_ttft,
        p50_ttft_ms=p50_ttft,
        p95_ttft_ms=p95_ttft,
        avg_gen_ms=avg_gen,
        p50_gen_ms=p50_gen,
        p95_gen_ms=p95_gen,
        total_prompt_tokens=total_prompt_tokens,
        total_completion_tokens=total_completion_tokens,
        overall_tps=overall_tps(total_completion_tokens, total_gen_ms),
        max_resident_memory_bytes=max_resident_memory_bytes,
        cpu_time_seconds=max(0.0, cpu_time_seconds),
        energy_mj=energy_mj,
        energy_note=energy_note,
        classification_accuracy=accuracy,
        correct_classifications=correct,
        cancelled=cancelled,
    )


# --- Per-model breakdown ---


def summarize_by_model(results: Sequence[PromptResult]) -> pd.DataFrame:
    """
    Latency and throughput per model

    Args:
        results: Recorded results

    Returns:
        DataFrame with one row per model_id (empty DataFrame for empty input)
    """
    columns = [
        "model_id", "prompts", "avg_ttft_ms", "p50_ttft_ms", "p95_ttft_ms",
        "avg_gen_ms", "p50_gen_ms", "p95_gen_ms",
        "total_completion_tokens", "total_gen_ms", "overall_tps", "accuracy",
    ]
    if not results:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([
        {
            "model_id": r.model_id,
            "ttft_ms": r.ttft_ms,
            "gen_ms": r.gen_ms,
            "completion_tokens": r.completion_tokens,
            "correct": r.classification_accuracy,
        }
        for r in results
    ])

    rows = []
    for model_id, group in df.groupby("model_id", sort=False):
        avg_ttft, p50_ttft, p95_ttft = quantiles(group["ttft_ms"].astype(int).tolist())
        avg_gen, p50_gen, p95_gen = quantiles(group["gen_ms"].astype(int).tolist())
        total_tokens = int(group["completion_tokens"].sum())
        total_gen = int(group["gen_ms"].clip(lower=0).sum())
        rows.append({
            "model_id": model_id,
            "prompts": len(group),
            "avg_ttft_ms": avg_ttft,
            "p50_ttft_ms": p50_ttft,
            "p95_ttft_ms": p95_ttft,
            "avg_gen_ms": avg_gen,
            "p50_gen_ms": p50_gen,
            "p95_gen_ms": p95_gen,
            "total_completion_tokens": total_tokens,
            "total_gen_ms": total_gen,
            "overall_tps": overall_tps(total_tokens, total_gen),
            "accuracy": float(group["correct"].mean()),
        })
    return pd.DataFrame(rows, columns=columns)
