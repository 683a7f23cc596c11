"""
Benchmark Execution

Drives the three run modes (routed, direct, quantization comparison) over a
single exclusively owned inference engine and builds the run summary.

Per prompt: classify (routed only) -> route (routed only) -> load model ->
stream -> unload -> record. Prompts are processed strictly one at a time;
a model is always unloaded before the next one is loaded.
"""

from __future__ import annotations

import logging
import threading
import time
from functools import partial
from typing import Callable

from route_bench.bench_config import BenchConfig, load_config
from route_bench.classifier import PromptClassifier, fallback_label
from route_bench.domain.constants import (
    CategoryLabel,
    MODE_DIRECT,
    MODE_QUANTIZATION,
    MODE_ROUTED,
    QUANT_ID_MULTIPLIER,
    QUANT_VARIANT_QUANTIZED,
    QUANT_VARIANT_REFERENCE,
)
from route_bench.domain.entities import (
    ModelDescriptor,
    PromptItem,
    PromptResult,
    RunSnapshot,
    RunSummary,
)
from route_bench.domain.errors import (
    BenchmarkError,
    EngineError,
    RoutingMissError,
    RunInProgressError,
)
from route_bench.domain.value_objects import StreamOutcome
from route_bench.energy import EnergyEstimator, ResourceProbe
from route_bench.infrastructure.engines.base import InferenceEngine
from route_bench.metrics import build_energy_note, build_summary, speedup
from route_bench.resource_loader import ResourceLoader
from route_bench.routing import resolve
from route_bench.streaming import consume_stream
from route_bench.use_cases.preflight import check_routing_targets, require_model

logger = logging.getLogger(__name__)


class BenchmarkOrchestrator:
    """
    Runs benchmarks and owns the run context

    Observers read the run state through ``snapshot()``; only the run loop
    mutates it. ``cancel()`` may be called from another thread and takes
    effect at the next prompt boundary.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        loader: ResourceLoader,
        config: BenchConfig | None = None,
        router_engine: InferenceEngine | None = None,
        probe: ResourceProbe | None = None,
        classifier: PromptClassifier | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Args:
            engine: Engine used for generation (one model loaded at a time)
            loader: Source of prompts, routing table and installed models
            config: BenchConfig (loads from env if not provided)
            router_engine: Dedicated engine for the router model. When omitted the
                router model is loaded into ``engine`` per prompt and unloaded
                before the target model is loaded.
            probe: OS resource readings (defaults to a psutil SystemProbe)
            classifier: Prompt classifier (built from config if not provided)
            clock: Monotonic clock in seconds used for latency measurement
        """
        if config is None:
            config = load_config()
        if probe is None:
            from route_bench.infrastructure.system_probe import SystemProbe
            probe = SystemProbe()

        self._engine = engine
        self._router_engine = router_engine
        self._loader = loader
        self._config = config
        self._classifier = classifier or PromptClassifier(config.classifier.to_settings())
        self._clock = clock
        self._generation = config.generation.to_settings()
        self._estimator = EnergyEstimator(
            probe,
            base_rate_mj_per_cpu_second=config.energy.base_rate_mj_per_cpu_second,
        )

        self._lock = threading.Lock()
        self._cancel_requested = threading.Event()
        self._running = False
        self._mode: str | None = None
        self._progress = 0.0
        self._results: list[PromptResult] = []
        self._log: list[str] = []
        self._summary: RunSummary | None = None

    # -- Observer surface --

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def snapshot(self) -> RunSnapshot:
        """Consistent read-only copy of the run state"""
        with self._lock:
            return RunSnapshot(
                running=self._running,
                progress=self._progress,
                results=tuple(self._results),
                log=tuple(self._log),
                energy_samples=tuple(self._estimator.samples()),
                summary=self._summary,
                mode=self._mode,
            )

    def cancel(self) -> None:
        """Request that the current run stop at the next prompt boundary"""
        self._cancel_requested.set()

    # -- Entry points --

    def run_routed(self) -> RunSummary | None:
        """
        Classify each prompt, route it to its category's model, and benchmark it.

        Returns:
            RunSummary, or None if the run was aborted before processing prompts
        """
        self._begin(MODE_ROUTED)
        self._append_log("Starting routed benchmark run...")
        try:
            prompts = self._load_prompts()
            table = self._loader.load_routing_table()
            registry = self._loader.load_model_registry()
            installed = set(registry)
            self._append_log(
                f"Mapping has {len(table)} entries, {len(installed)} models installed"
            )

            router = require_model(self._config.models.router_model, registry, role="Router")
            routes = check_routing_targets(table, registry)
            self._append_log(f"Valid mapping has {len(routes)} entries")

            if self._router_engine is not None:
                self._append_log(f"Loading router model {router.model_id}...")
                self._router_engine.reload(router.local_path, router.model_lib)
                self._append_log("Router model loaded successfully")

            process = partial(
                self._process_routed,
                table=table,
                installed=installed,
                registry=registry,
                router=router,
            )
            return self._run_loop(prompts, process, note_label="Routed run")
        except BenchmarkError as e:
            self._abort(e)
            return None
        finally:
            self._finish()

    def run_direct(self, model_id: str | None = None) -> RunSummary | None:
        """
        Benchmark every prompt on one fixed model, without classification.

        Args:
            model_id: Target model (defaults to config.models.direct_model)

        Returns:
            RunSummary, or None if the run was aborted
        """
        model_id = model_id or self._config.models.direct_model
        self._begin(MODE_DIRECT)
        self._append_log(f"Starting direct benchmark run on {model_id}...")
        try:
            prompts = self._load_prompts()
            registry = self._loader.load_model_registry()
            target = require_model(model_id, registry)

            process = partial(self._process_direct, target=target)
            return self._run_loop(prompts, process, note_label="Direct (no classification)")
        except BenchmarkError as e:
            self._abort(e)
            return None
        finally:
            self._finish()

    def run_quantization_comparison(
        self,
        quantized_id: str | None = None,
        reference_id: str | None = None,
    ) -> RunSummary | None:
        """
        Benchmark every prompt on a quantized model and on its reference variant.

        Results carry ids ``id * 1000 + 1`` (quantized) and ``id * 1000 + 2`` (reference).

        Args:
            quantized_id: Quantized model (defaults to config.models.quantized_model)
            reference_id: Reference model (defaults to config.models.reference_model)

        Returns:
            RunSummary, or None if the run was aborted
        """
        quantized_id = quantized_id or self._config.models.quantized_model
        reference_id = reference_id or self._config.models.reference_model
        self._begin(MODE_QUANTIZATION)
        self._append_log("Starting quantization comparison benchmark...")
        try:
            prompts = self._load_prompts()
            registry = self._loader.load_model_registry()
            quantized = require_model(quantized_id, registry, role="Quantized")
            reference = require_model(reference_id, registry, role="Reference")
            self._append_log(f"Running quantization comparison: {quantized_id} vs {reference_id}")

            process = partial(self._process_quantization, quantized=quantized, reference=reference)
            return self._run_loop(prompts, process, note_label="Quantization comparison")
        except BenchmarkError as e:
            self._abort(e)
            return None
        finally:
            self._finish()

    # -- Run lifecycle --

    def _begin(self, mode: str) -> None:
        with self._lock:
            if self._running:
                raise RunInProgressError("A benchmark run is already in progress")
            self._running = True
            self._mode = mode
            self._progress = 0.0
            self._results = []
            self._log = []
            self._summary = None
        self._cancel_requested.clear()
        try:
            self._estimator.start()
        except Exception:
            with self._lock:
                self._running = False
            raise
        self._append_log("Energy monitoring started")

    def _load_prompts(self) -> list[PromptItem]:
        all_prompts = self._loader.load_prompts()
        run_config = self._config.run
        if run_config.limit_prompts and len(all_prompts) > run_config.prompt_limit:
            prompts = all_prompts[:run_config.prompt_limit]
            self._append_log(f"Loaded {len(prompts)} prompts (limited from {len(all_prompts)})")
        else:
            prompts = list(all_prompts)
            self._append_log(f"Loaded {len(prompts)} prompts")
        return prompts

    def _run_loop(
        self,
        prompts: list[PromptItem],
        process_prompt: Callable[[PromptItem], bool],
        note_label: str,
    ) -> RunSummary:
        total = len(prompts)
        started_at = self._clock()
        cancelled = False

        for idx, item in enumerate(prompts):
            if self._cancel_requested.is_set():
                self._append_log("Benchmark stopped by user")
                cancelled = True
                break

            if self._process_safely(item, process_prompt):
                self._estimator.record_sample()

            with self._lock:
                self._progress = (idx + 1) / total

        total_latency_ms = int((self._clock() - started_at) * 1000)
        self._estimator.stop()

        with self._lock:
            results = list(self._results)
            mode = self._mode

        energy_mj = self._estimator.total_energy_mj()
        cpu_seconds = self._estimator.cpu_time_seconds()
        summary = build_summary(
            results,
            mode=mode,
            total_latency_ms=total_latency_ms,
            max_resident_memory_bytes=self._estimator.peak_memory_bytes(),
            cpu_time_seconds=cpu_seconds,
            energy_mj=energy_mj,
            energy_note=build_energy_note(note_label, total_latency_ms / 1000, cpu_seconds, energy_mj),
            cancelled=cancelled,
        )
        with self._lock:
            self._summary = summary

        self._append_log(
            f"✓ Run complete: total={total_latency_ms}ms, prompts={summary.total_prompts}, "
            f"overallTPS={summary.overall_tps:.2f}"
        )
        self._append_log(f"Energy consumed: {energy_mj:.1f} mJ ({energy_mj / 1000:.2f} J)")
        return summary

    def _process_safely(self, item: PromptItem, process_prompt: Callable[[PromptItem], bool]) -> bool:
        """Run one prompt; per-prompt faults skip the prompt and never end the run"""
        try:
            return process_prompt(item)
        except (RoutingMissError, EngineError) as e:
            self._append_log(f"Skip prompt #{item.id}: {e}")
        except Exception as e:
            logger.exception("Unexpected error on prompt #%s", item.id)
            self._append_log(f"ERROR on prompt #{item.id}: {e}")
        return False

    def _abort(self, error: BenchmarkError) -> None:
        logger.error("Benchmark run aborted: %s", error)
        self._append_log(f"ERROR: {error}")
        self._estimator.stop()

    def _finish(self) -> None:
        try:
            self._engine.unload()
            if self._router_engine is not None:
                self._router_engine.unload()
        finally:
            with self._lock:
                self._running = False

    def _append_log(self, message: str) -> None:
        logger.info(message)
        with self._lock:
            self._log.append(message)

    def _record(self, result: PromptResult) -> None:
        with self._lock:
            self._results.append(result)

    # -- Per-prompt pipeline --

    def _classify(self, item: PromptItem, router: ModelDescriptor) -> CategoryLabel:
        if self._router_engine is not None:
            return self._classifier.classify(self._router_engine, item.prompt)

        # Shared engine: router model is resident only while classifying
        try:
            self._engine.reload(router.local_path, router.model_lib)
            return self._classifier.classify(self._engine, item.prompt)
        except EngineError as e:
            self._append_log(f"Router load failed for prompt #{item.id}, using keyword fallback: {e}")
            return fallback_label(item.prompt)
        finally:
            self._engine.unload()

    def _generate(self, item: PromptItem, target: ModelDescriptor) -> StreamOutcome:
        """Load the target model, stream one completion, and always unload"""
        try:
            self._engine.reload(target.local_path, target.model_lib)
            started_at = self._clock()
            stream = self._engine.stream_completion(
                [{"role": "user", "content": item.prompt}],
                max_tokens=self._generation.max_tokens,
                temperature=self._generation.temperature,
                top_p=self._generation.top_p,
            )
            return consume_stream(
                stream,
                item.prompt,
                clock=self._clock,
                started_at=started_at,
                on_chunk=self._estimator.observe_memory,
            )
        except EngineError as e:
            raise type(e)(f"{target.model_id}: {e}") from e
        finally:
            self._engine.unload()

    def _process_routed(
        self,
        item: PromptItem,
        *,
        table: dict[CategoryLabel, str],
        installed: set[str],
        registry: dict[str, ModelDescriptor],
        router: ModelDescriptor,
    ) -> bool:
        category = self._classify(item, router)
        target_id = resolve(category, table, installed)
        if target_id is None:
            raise RoutingMissError(f"no target model for category {category.value}")

        self._append_log(f"Processing prompt #{item.id} [{category.value}] → {target_id}")
        outcome = self._generate(item, registry[target_id])

        is_correct = category == item.category
        self._record(self._make_result(item.id, category.value, target_id, outcome, item, is_correct))
        mark = "✓" if is_correct else "✗"
        self._append_log(
            f"{mark} #{item.id} [{category.value}] → {target_id} "
            f"ttft={outcome.ttft_ms}ms gen={outcome.gen_ms}ms (expected: {item.category.value})"
        )
        return True

    def _process_direct(self, item: PromptItem, *, target: ModelDescriptor) -> bool:
        self._append_log(f"Processing prompt #{item.id} [{item.category.value}] → {target.model_id}")
        outcome = self._generate(item, target)

        self._record(self._make_result(item.id, item.category.value, target.model_id, outcome, item, True))
        self._append_log(
            f"✓ #{item.id} [{item.category.value}] → {target.model_id} "
            f"ttft={outcome.ttft_ms}ms gen={outcome.gen_ms}ms"
        )
        return True

    def _process_quantization(
        self,
        item: PromptItem,
        *,
        quantized: ModelDescriptor,
        reference: ModelDescriptor,
    ) -> bool:
        self._append_log(f"Processing prompt #{item.id} on {quantized.model_id}...")
        quantized_outcome = self._generate(item, quantized)
        self._append_log(f"Processing prompt #{item.id} on {reference.model_id}...")
        reference_outcome = self._generate(item, reference)

        base_id = item.id * QUANT_ID_MULTIPLIER
        self._record(self._make_result(
            base_id + QUANT_VARIANT_QUANTIZED, item.category.value, quantized.model_id,
            quantized_outcome, item, True,
        ))
        self._record(self._make_result(
            base_id + QUANT_VARIANT_REFERENCE, item.category.value, reference.model_id,
            reference_outcome, item, True,
        ))

        ratio = speedup(quantized_outcome.gen_ms, reference_outcome.gen_ms)
        self._append_log(
            f"✓ #{item.id} Quantized: {quantized_outcome.gen_ms}ms, "
            f"Full: {reference_outcome.gen_ms}ms, Speedup: {ratio:.2f}x"
        )
        return True

    @staticmethod
    def _make_result(
        result_id: int,
        category: str,
        model_id: str,
        outcome: StreamOutcome,
        item: PromptItem,
        is_correct: bool,
    ) -> PromptResult:
        return PromptResult(
            id=result_id,
            category=category,
            model_id=model_id,
            ttft_ms=outcome.ttft_ms,
            gen_ms=outcome.gen_ms,
            prompt_tokens=outcome.prompt_tokens,
            completion_tokens=outcome.completion_tokens,
            tps=outcome.tps,
            completion=outcome.completion,
            expected_category=item.category.value,
            classification_accuracy=is_correct,
        )
