"""
route-bench CLI Runner

Runs one benchmark mode against a local OpenAI-compatible server and exports
the results.

Usage:
    python -m route_bench.runner routed
    python -m route_bench.runner direct --model Qwen3-0.6B-q0f32-MLC
    python -m route_bench.runner quant --quantized Qwen3-0.6B-q4f32_1-MLC --reference Qwen3-0.6B-q0f32-MLC

Press Ctrl+C once to stop after the current prompt.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from route_bench.bench_config import load_config
from route_bench.domain.entities import RunSnapshot, RunSummary
from route_bench.infrastructure.engines import create_engine
from route_bench.metrics import summarize_by_model
from route_bench.report import save_csv_report, save_json_report
from route_bench.resource_loader import ResourceLoader
from route_bench.use_cases.benchmark import BenchmarkOrchestrator

POLL_INTERVAL_SECONDS = 0.5


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="route-bench: Benchmark routed and direct on-device LLM inference",
    )
    parser.add_argument(
        "mode",
        choices=["routed", "direct", "quant"],
        help="Run mode: routed (classify + route), direct (one model), quant (quantized vs reference)",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Target model for direct mode (default: BENCH_DIRECT_MODEL)",
    )
    parser.add_argument(
        "--quantized",
        default=None,
        help="Quantized model for quant mode (default: BENCH_QUANTIZED_MODEL)",
    )
    parser.add_argument(
        "--reference",
        default=None,
        help="Reference model for quant mode (default: BENCH_REFERENCE_MODEL)",
    )
    parser.add_argument(
        "--resources-dir",
        default=None,
        help="Directory holding prompts.json, model-mapping.json and package-config.json "
             "(default: BENCH_RESOURCES_DIR or resources)",
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        help="Directory for exported JSON/CSV reports (default: results)",
    )
    parser.add_argument(
        "--all-prompts",
        action="store_true",
        help="Run every prompt instead of the first BENCH_PROMPT_LIMIT",
    )
    parser.add_argument(
        "--dedicated-router",
        action="store_true",
        help="Keep the router model on its own engine for the whole routed run",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable INFO logging",
    )
    return parser.parse_args(argv)


def _print_new_log_lines(snapshot: RunSnapshot, printed: int) -> int:
    for line in snapshot.log[printed:]:
        print(f"  {line}")
    return len(snapshot.log)


def _print_summary(summary: RunSummary) -> None:
    print("=== Summary ===\n")
    print(f"  Mode:                 {summary.mode}")
    print(f"  Prompts:              {summary.total_prompts}{' (cancelled)' if summary.cancelled else ''}")
    print(f"  Total latency:        {summary.total_latency_ms}ms")
    print(f"  TTFT avg/p50/p95:     {summary.avg_ttft_ms:.0f} / {summary.p50_ttft_ms} / {summary.p95_ttft_ms} ms")
    print(f"  Gen avg/p50/p95:      {summary.avg_gen_ms:.0f} / {summary.p50_gen_ms} / {summary.p95_gen_ms} ms")
    print(f"  Tokens (prompt/comp): {summary.total_prompt_tokens} / {summary.total_completion_tokens}")
    print(f"  Overall TPS:          {summary.overall_tps:.2f}")
    print(f"  Peak RSS:             {summary.max_resident_memory_bytes / (1024 * 1024):.1f} MB")
    print(f"  CPU time:             {summary.cpu_time_seconds:.2f}s")
    print(f"  Energy (estimated):   {summary.energy_mj:.1f} mJ")
    print(
        f"  Classification:       {summary.classification_accuracy:.3f} "
        f"({summary.correct_classifications}/{summary.total_prompts})"
    )
    print()


def _print_model_table(snapshot: RunSnapshot) -> None:
    df = summarize_by_model(snapshot.results)
    if df.empty:
        return
    print("=== Per-model Metrics ===\n")
    print(f"  {'Model':<40} {'prompts':>8} {'p50 TTFT':>9} {'p95 TTFT':>9} {'p50 gen':>8} {'TPS':>7} {'acc':>6}")
    print(f"  {'-'*40} {'-'*8} {'-'*9} {'-'*9} {'-'*8} {'-'*7} {'-'*6}")
    for _, row in df.iterrows():
        print(
            f"  {row['model_id']:<40} "
            f"{row['prompts']:>8} "
            f"{row['p50_ttft_ms']:>9} "
            f"{row['p95_ttft_ms']:>9} "
            f"{row['p50_gen_ms']:>8} "
            f"{row['overall_tps']:>7.2f} "
            f"{row['accuracy']:>6.3f}"
        )
    print()


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load config
    config = load_config()
    if args.resources_dir:
        config.run = replace(config.run, resources_dir=args.resources_dir)
    if args.all_prompts:
        config.run = replace(config.run, limit_prompts=False)

    loader = ResourceLoader(config.run.resources_dir)
    engine = create_engine(config)
    router_engine = create_engine(config) if args.dedicated_router and args.mode == "routed" else None
    orchestrator = BenchmarkOrchestrator(engine, loader, config=config, router_engine=router_engine)

    if args.mode == "routed":
        run = orchestrator.run_routed
    elif args.mode == "direct":
        run = lambda: orchestrator.run_direct(args.model)  # noqa: E731
    else:
        run = lambda: orchestrator.run_quantization_comparison(args.quantized, args.reference)  # noqa: E731

    print(f"\n=== route-bench: {args.mode} ===\n")
    print(f"  Resources: {config.run.resources_dir}")
    print(f"  Server:    {config.engine.base_url}")
    limit = "all" if not config.run.limit_prompts else str(config.run.prompt_limit)
    print(f"  Prompts:   {limit}")
    print()

    def _request_stop(signum, frame):
        print("\n  Stop requested, finishing current prompt...")
        orchestrator.cancel()

    previous_handler = signal.signal(signal.SIGINT, _request_stop)

    outcome: dict = {}

    def _worker():
        outcome["summary"] = run()

    worker = threading.Thread(target=_worker, name="route-bench-run", daemon=True)
    worker.start()

    printed = 0
    try:
        while worker.is_alive():
            worker.join(POLL_INTERVAL_SECONDS)
            printed = _print_new_log_lines(orchestrator.snapshot(), printed)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    snapshot = orchestrator.snapshot()
    _print_new_log_lines(snapshot, printed)
    print()

    summary = outcome.get("summary")
    if summary is None:
        print("ERROR: Benchmark run aborted. See log above.")
        return 1

    _print_summary(summary)
    _print_model_table(snapshot)

    # Export
    output_dir = Path(args.output_dir)
    json_path = save_json_report(summary, snapshot.results, snapshot.energy_samples, output_dir)
    csv_path = save_csv_report(summary, snapshot.results, snapshot.energy_samples, output_dir)

    print("=== Output ===\n")
    print(f"  JSON: {json_path}")
    print(f"  CSV:  {csv_path}")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
