"""
Tests for benchmark metrics calculation
"""

import pytest

from route_bench.domain.constants import MODE_DIRECT, MODE_QUANTIZATION, MODE_ROUTED
from route_bench.domain.entities import PromptResult
from route_bench.metrics import (
    build_energy_note,
    build_summary,
    classification_accuracy,
    estimate_tokens,
    overall_tps,
    percentile,
    quantiles,
    speedup,
    summarize_by_model,
    tokens_per_second,
)


def _result(id=1, model_id="M1", ttft_ms=100, gen_ms=1000, prompt_tokens=5,
            completion_tokens=20, correct=True, category="Factual"):
    return PromptResult(
        id=id,
        category=category,
        model_id=model_id,
        ttft_ms=ttft_ms,
        gen_ms=gen_ms,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        tps=tokens_per_second(completion_tokens, gen_ms),
        completion="x " * completion_tokens,
        expected_category="Factual",
        classification_accuracy=correct,
    )


def _summary(results, mode=MODE_ROUTED):
    return build_summary(
        results,
        mode=mode,
        total_latency_ms=5000,
        max_resident_memory_bytes=1024,
        cpu_time_seconds=2.5,
        energy_mj=1234.5,
        energy_note="note",
    )


class TestTokenEstimates:
    def test_word_count(self):
        assert estimate_tokens("The capital of France is Paris.") == 6

    def test_minimum_one(self):
        assert estimate_tokens("") == 1
        assert estimate_tokens("   \n ") == 1

    def test_tokens_per_second(self):
        assert tokens_per_second(50, 2000) == 25.0

    def test_tokens_per_second_zero_time(self):
        assert tokens_per_second(50, 0) == 0.0


class TestPercentile:
    def test_interpolation(self):
        values = [100, 200, 300, 400]
        assert percentile(values, 0.5) == 250
        assert percentile(values, 0.95) == 385

    def test_rounds_half_away_from_zero(self):
        assert percentile([1, 2], 0.5) == 2

    def test_exact_rank(self):
        assert percentile([10, 20, 30], 0.5) == 20

    def test_empty(self):
        assert percentile([], 0.5) == 0


class TestQuantiles:
    def test_empty(self):
        assert quantiles([]) == (0.0, 0, 0)

    def test_single_value(self):
        assert quantiles([42]) == (42.0, 42, 42)

    def test_unsorted_input(self):
        avg, p50, p95 = quantiles([400, 100, 300, 200])
        assert avg == 250.0
        assert p50 == 250
        assert p95 == 385

    @pytest.mark.parametrize("values", [
        [5, 1, 9, 3],
        [1000, 1, 1, 1, 1],
        [7, 7, 7],
        list(range(0, 2000, 37)),
    ])
    def test_p50_not_above_p95(self, values):
        _, p50, p95 = quantiles(values)
        assert min(values) <= p50 <= p95 <= max(values)


class TestRates:
    def test_overall_tps(self):
        assert overall_tps(300, 6000) == 50.0

    def test_overall_tps_zero_time(self):
        assert overall_tps(300, 0) == 0.0

    def test_speedup(self):
        assert speedup(500, 1000) == 0.5
        assert speedup(500, 0) == 0.0


class TestClassificationAccuracy:
    def test_share_correct(self):
        results = [_result(id=1), _result(id=2, correct=False), _result(id=3), _result(id=4)]
        assert classification_accuracy(results) == (0.75, 3)

    def test_empty(self):
        assert classification_accuracy([]) == (0.0, 0)


class TestBuildSummary:
    def test_aggregates(self):
        results = [
            _result(id=1, ttft_ms=100, gen_ms=1000, prompt_tokens=4, completion_tokens=10),
            _result(id=2, ttft_ms=300, gen_ms=3000, prompt_tokens=6, completion_tokens=30, correct=False),
        ]
        summary = _summary(results)

        assert summary.mode == MODE_ROUTED
        assert summary.total_prompts == 2
        assert summary.total_latency_ms == 5000
        assert summary.total_gen_ms == 4000
        assert summary.avg_ttft_ms == 200.0
        assert summary.p50_ttft_ms == 200
        assert summary.total_prompt_tokens == 10
        assert summary.total_completion_tokens == 40
        assert summary.overall_tps == 10.0
        assert summary.classification_accuracy == 0.5
        assert summary.correct_classifications == 1
        assert summary.max_resident_memory_bytes == 1024
        assert summary.energy_mj == 1234.5
        assert summary.cancelled is False

    def test_quantization_mode_accuracy_is_one(self):
        results = [_result(id=1001, correct=True), _result(id=1002, correct=True)]
        summary = _summary(results, mode=MODE_QUANTIZATION)
        assert summary.classification_accuracy == 1.0
        assert summary.correct_classifications == 2

    def test_direct_mode(self):
        summary = _summary([_result()], mode=MODE_DIRECT)
        assert summary.classification_accuracy == 1.0

    def test_empty_results(self):
        summary = _summary([])
        assert summary.total_prompts == 0
        assert summary.avg_ttft_ms == 0.0
        assert summary.overall_tps == 0.0
        assert summary.classification_accuracy == 0.0

    def test_idempotent(self):
        results = [_result(id=1), _result(id=2, ttft_ms=250)]
        assert _summary(results) == _summary(results)


class TestEnergyNote:
    def test_contents(self):
        note = build_energy_note("Routed run", 10.0, 2.5, 12500.0)
        assert note.startswith("Routed run.")
        assert "Wall=10.0s" in note
        assert "CPU=2.5s (25%)" in note
        assert "Energy=12500.0 mJ" in note


class TestSummarizeByModel:
    def test_one_row_per_model(self):
        results = [
            _result(id=1, model_id="M1", ttft_ms=100, gen_ms=1000, completion_tokens=10),
            _result(id=2, model_id="M2", ttft_ms=50, gen_ms=500, completion_tokens=25, correct=False),
            _result(id=3, model_id="M1", ttft_ms=300, gen_ms=1000, completion_tokens=30),
        ]
        df = summarize_by_model(results)

        assert list(df["model_id"]) == ["M1", "M2"]
        m1 = df[df["model_id"] == "M1"].iloc[0]
        assert m1["prompts"] == 2
        assert m1["p50_ttft_ms"] == 200
        assert m1["total_gen_ms"] == 2000
        assert m1["overall_tps"] == 20.0
        assert m1["accuracy"] == 1.0

        m2 = df[df["model_id"] == "M2"].iloc[0]
        assert m2["overall_tps"] == 50.0
        assert m2["accuracy"] == 0.0

    def test_empty(self):
        df = summarize_by_model([])
        assert df.empty
        assert "overall_tps" in df.columns
