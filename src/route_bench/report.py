"""
Report Export

Serializes a finished run to JSON (``{createdAt, summary, results}``) and to a
flat CSV with a ``summary_*`` preamble, an energy-sample section, and the
per-prompt result table.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

import pandas as pd

from route_bench.domain.entities import EnergySample, PromptResult, RunSummary

REPORT_PREFIX = "route-bench"
RESULT_COLUMNS = [
    "id", "category", "modelID", "ttftMs", "genMs", "promptTokens", "completionTokens", "tps",
    "expectedCategory", "classificationAccuracy", "completion",
]
RESULT_HEADER = ",".join(RESULT_COLUMNS)
ENERGY_HEADER = "timestamp_seconds,thermalState,energy_mJ"


def summary_to_dict(summary: RunSummary) -> dict:
    """Summary with the exported (camelCase) key names"""
    return {
        "mode": summary.mode,
        "totalPrompts": summary.total_prompts,
        "totalLatencyMs": summary.total_latency_ms,
        "totalGenMs": summary.total_gen_ms,
        "avgTtftMs": summary.avg_ttft_ms,
        "p50TtftMs": summary.p50_ttft_ms,
        "p95TtftMs": summary.p95_ttft_ms,
        "avgGenMs": summary.avg_gen_ms,
        "p50GenMs": summary.p50_gen_ms,
        "p95GenMs": summary.p95_gen_ms,
        "totalPromptTokens": summary.total_prompt_tokens,
        "totalCompletionTokens": summary.total_completion_tokens,
        "overallTPS": summary.overall_tps,
        "maxResidentMemoryBytes": summary.max_resident_memory_bytes,
        "cpuTimeSeconds": summary.cpu_time_seconds,
        "energyMilliJoules": summary.energy_mj,
        "energyNote": summary.energy_note,
        "classificationAccuracy": summary.classification_accuracy,
        "correctClassifications": summary.correct_classifications,
        "cancelled": summary.cancelled,
    }


def result_to_dict(result: PromptResult) -> dict:
    return {
        "id": result.id,
        "category": result.category,
        "modelID": result.model_id,
        "ttftMs": result.ttft_ms,
        "genMs": result.gen_ms,
        "promptTokens": result.prompt_tokens,
        "completionTokens": result.completion_tokens,
        "tps": result.tps,
        "completion": result.completion,
        "expectedCategory": result.expected_category,
        "classificationAccuracy": result.classification_accuracy,
    }


def build_json_report(
    summary: RunSummary | None,
    results: Sequence[PromptResult],
    energy_samples: Sequence[EnergySample] = (),
    created_at: datetime | None = None,
) -> dict:
    """
    JSON report payload

    Args:
        summary: Run summary (None for an aborted run)
        results: Recorded results
        energy_samples: Energy samples of the run
        created_at: Report timestamp (defaults to now, UTC)

    Returns:
        dict ready for json.dump
    """
    created_at = created_at or datetime.now(timezone.utc)
    return {
        "createdAt": created_at.isoformat(timespec="seconds"),
        "summary": summary_to_dict(summary) if summary is not None else None,
        "results": [result_to_dict(r) for r in results],
        "energySamples": [
            {"timestamp": s.timestamp, "thermalState": s.thermal_state, "energyMilliJoules": s.energy_mj}
            for s in energy_samples
        ],
    }


def _result_rows(results: Sequence[PromptResult]) -> list[str]:
    """Result table rows; integer columns bare, every other field quoted with doubled quotes"""
    df = pd.DataFrame([result_to_dict(r) for r in results], columns=RESULT_COLUMNS)
    df["tps"] = df["tps"].map(lambda v: f"{v:.2f}")
    df["classificationAccuracy"] = df["classificationAccuracy"].map(lambda v: str(v).lower())

    buf = io.StringIO()
    df.to_csv(buf, index=False, header=False, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    # Split on "\n" only so multi-line completions rejoin unchanged
    return buf.getvalue().rstrip("\n").split("\n")


def build_csv_lines(
    summary: RunSummary | None,
    results: Sequence[PromptResult],
    energy_samples: Sequence[EnergySample] = (),
) -> list[str]:
    """
    CSV report lines

    Args:
        summary: Run summary (preamble and energy section are omitted when None)
        results: Recorded results
        energy_samples: Energy samples of the run

    Returns:
        Lines without trailing newlines
    """
    lines: list[str] = []
    if summary is not None:
        lines.extend([
            f"summary_totalPrompts,{summary.total_prompts}",
            f"summary_totalLatencyMs,{summary.total_latency_ms}",
            f"summary_totalGenMs,{summary.total_gen_ms}",
            f"summary_avgTtftMs,{summary.avg_ttft_ms:.0f}",
            f"summary_p50TtftMs,{summary.p50_ttft_ms}",
            f"summary_p95TtftMs,{summary.p95_ttft_ms}",
            f"summary_avgGenMs,{summary.avg_gen_ms:.0f}",
            f"summary_p50GenMs,{summary.p50_gen_ms}",
            f"summary_p95GenMs,{summary.p95_gen_ms}",
            f"summary_totalPromptTokens,{summary.total_prompt_tokens}",
            f"summary_totalCompletionTokens,{summary.total_completion_tokens}",
            f"summary_overallTPS,{summary.overall_tps:.2f}",
            f"summary_maxResidentMemoryBytes,{summary.max_resident_memory_bytes}",
            f"summary_cpuTimeSeconds,{summary.cpu_time_seconds:.2f}",
            f"summary_energyMilliJoules,{summary.energy_mj:.2f}",
            f"summary_classificationAccuracy,{summary.classification_accuracy:.3f}",
            f"summary_correctClassifications,{summary.correct_classifications}",
            "",
        ])

        if energy_samples:
            lines.append("# Energy samples (estimated from CPU time and thermal state)")
            lines.append(ENERGY_HEADER)
            for sample in energy_samples:
                lines.append(f"{sample.timestamp:.3f},{sample.thermal_state},{sample.energy_mj:.2f}")
            lines.append("")

    lines.append(RESULT_HEADER)
    if results:
        lines.extend(_result_rows(results))
    return lines


def _timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%d_%H-%M-%S")


def save_json_report(
    summary: RunSummary | None,
    results: Sequence[PromptResult],
    energy_samples: Sequence[EnergySample],
    output_dir: str | Path,
) -> Path:
    """Write the JSON report and return its path"""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{REPORT_PREFIX}_{_timestamp()}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(build_json_report(summary, results, energy_samples), f, ensure_ascii=False, indent=2)
    return path


def save_csv_report(
    summary: RunSummary | None,
    results: Sequence[PromptResult],
    energy_samples: Sequence[EnergySample],
    output_dir: str | Path,
) -> Path:
    """Write the CSV report and return its path"""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{REPORT_PREFIX}_{_timestamp()}.csv"
    path.write_text("\n".join(build_csv_lines(summary, results, energy_samples)), encoding="utf-8")
    return path


def load_json_report(path: str | Path) -> dict:
    """Read a JSON report written by save_json_report"""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
