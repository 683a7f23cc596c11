"""
Tests for the zero-shot prompt classifier
"""

from unittest.mock import MagicMock

import pytest

from route_bench.classifier import (
    CLASSIFIER_INSTRUCTION,
    PromptClassifier,
    fallback_label,
    match_label,
    normalize_output,
)
from route_bench.domain.constants import CategoryLabel
from route_bench.domain.errors import GenerationError
from route_bench.domain.value_objects import GenerationSettings, StreamChunk


def _engine_streaming(*texts):
    engine = MagicMock()
    engine.stream_completion.return_value = iter([StreamChunk(text=t) for t in texts])
    return engine


class TestNormalizeOutput:
    def test_collapses_newlines_and_case(self):
        assert normalize_output("  Creative\nWriting \n") == "creative writing"


class TestMatchLabel:
    @pytest.mark.parametrize("output,expected", [
        ("Factual", CategoryLabel.FACTUAL),
        ("  reasoning\n", CategoryLabel.REASONING),
        ("Creative.", CategoryLabel.CREATIVE),
        ("Instruction-heavy: step by step", CategoryLabel.INSTRUCTION_HEAVY),
        ("The category is Role-based", CategoryLabel.ROLE_BASED),
        ("I think this is reasoning", CategoryLabel.REASONING),
    ])
    def test_matches(self, output, expected):
        assert match_label(output) is expected

    @pytest.mark.parametrize("output", ["", "   \n", "no idea", "instruction heavy"])
    def test_no_match(self, output):
        assert match_label(output) is None

    def test_exact_beats_substring(self):
        # "factual" also appears later, but the output starts with Reasoning
        assert match_label("Reasoning, not factual") is CategoryLabel.REASONING


class TestFallbackLabel:
    @pytest.mark.parametrize("prompt,expected", [
        ("You are a pirate. Greet me.", CategoryLabel.ROLE_BASED),
        ("Pretend to be a tour guide", CategoryLabel.ROLE_BASED),
        ("Imagine you are a detective", CategoryLabel.ROLE_BASED),
        ("Give step-by-step instructions to bake bread", CategoryLabel.INSTRUCTION_HEAVY),
        ("How to tie a tie?", CategoryLabel.INSTRUCTION_HEAVY),
        ("Tell me a story about dragons", CategoryLabel.CREATIVE),
        ("Write a haiku about rain", CategoryLabel.CREATIVE),
        ("Imagine a world without cars", CategoryLabel.CREATIVE),
        ("Solve 3x + 2 = 11", CategoryLabel.REASONING),
        ("Why is the sky blue?", CategoryLabel.REASONING),
        ("What is the capital of Peru?", CategoryLabel.FACTUAL),
    ])
    def test_heuristic(self, prompt, expected):
        assert fallback_label(prompt) is expected

    def test_write_code_is_not_creative(self):
        assert fallback_label("Write code to reverse a list") is not CategoryLabel.CREATIVE

    def test_role_cues_take_precedence(self):
        assert fallback_label("Act as a poet and write a story") is CategoryLabel.ROLE_BASED


class TestPromptClassifier:
    def test_build_messages(self):
        messages = PromptClassifier().build_messages("What is 2+2?")
        assert messages[0] == {"role": "system", "content": CLASSIFIER_INSTRUCTION}
        assert messages[1] == {"role": "user", "content": "What is 2+2?"}

    def test_classify_uses_router_output(self):
        engine = _engine_streaming("  reas", "oning\n")
        label = PromptClassifier().classify(engine, "Tell me a story")
        assert label is CategoryLabel.REASONING

    def test_classify_passes_settings(self):
        engine = _engine_streaming("Factual")
        settings = GenerationSettings(max_tokens=15, temperature=0.1)
        PromptClassifier(settings).classify(engine, "q")

        kwargs = engine.stream_completion.call_args.kwargs
        assert kwargs["max_tokens"] == 15
        assert kwargs["temperature"] == 0.1
        assert kwargs["top_p"] is None

    def test_unmatched_output_falls_back(self):
        engine = _engine_streaming("banana")
        assert PromptClassifier().classify(engine, "Write a poem") is CategoryLabel.CREATIVE

    def test_engine_failure_falls_back(self):
        engine = MagicMock()
        engine.stream_completion.side_effect = GenerationError("No model is loaded")
        assert PromptClassifier().classify(engine, "You are a chef") is CategoryLabel.ROLE_BASED

    def test_failure_mid_stream_falls_back(self):
        def _stream(*args, **kwargs):
            yield StreamChunk(text="Fa")
            raise GenerationError("disconnected")

        engine = MagicMock()
        engine.stream_completion.side_effect = _stream
        assert PromptClassifier().classify(engine, "Capital of Chile?") is CategoryLabel.FACTUAL

    @pytest.mark.parametrize("output", ["", "???", "Category: unknown", "42", "\n\n"])
    def test_always_returns_a_label(self, output):
        engine = _engine_streaming(output)
        assert PromptClassifier().classify(engine, "anything at all") in set(CategoryLabel)

    def test_empty_prompt_returns_a_label(self):
        engine = _engine_streaming("")
        assert PromptClassifier().classify(engine, "") in set(CategoryLabel)
        assert fallback_label("") in set(CategoryLabel)
