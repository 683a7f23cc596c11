"""
Zero-shot prompt classifier

Asks the router model to name exactly one category for a prompt and maps
its output onto the closed label set, falling back to a keyword heuristic
when the output does not name a category or the engine fails.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from route_bench.domain.constants import CATEGORIES, CategoryLabel
from route_bench.domain.value_objects import GenerationSettings

if TYPE_CHECKING:
    from route_bench.infrastructure.engines.base import InferenceEngine

logger = logging.getLogger(__name__)


CLASSIFIER_INSTRUCTION = """\
You are a text classifier. Classify the input into exactly ONE category:

Factual: Facts, information, explanations, definitions, informational queries
Reasoning: Logic puzzles, mathematics, problem-solving, analytical questions
Creative: Storytelling, poetry, fiction, creative writing, imaginative content
Instruction-heavy: Tutorials, guides, step-by-step instructions, procedural content
Role-based: Character acting, personas, role-playing scenarios, identity-based prompts

Output ONLY the exact category name. Nothing else."""

DEFAULT_CLASSIFIER_SETTINGS = GenerationSettings(max_tokens=15, temperature=0.1)

# Checked in this order: structural cues before generic ones
ROLE_CUES = (
    "you are", "act as", "acting as", "pretend", "role play",
    "imagine you are", "as a", "assume",
)
INSTRUCTION_CUES = ("step", "how to", "instructions", "guide", "tutorial", "create a")
CREATIVE_CUES = ("story", "poem", "fiction", "compose")
REASONING_CUES = (
    "solve", "calculate", "logic", "reasoning", "analyze", "why",
    "puzzle", "riddle", "math", "proof", "algorithm",
)


def normalize_output(text: str) -> str:
    """Collapse newlines, trim, and lowercase classifier output"""
    return text.replace("\n", " ").strip().lower()


def match_label(output: str) -> CategoryLabel | None:
    """
    Map raw classifier output to a label

    Tries exact equality, then label-as-prefix, then label-as-substring.

    Args:
        output: Streamed text from the router model

    Returns:
        The matched label, or None
    """
    normalized = normalize_output(output)
    if not normalized:
        return None

    for label in CATEGORIES:
        if normalized == label.value.lower():
            return label
    for label in CATEGORIES:
        if normalized.startswith(label.value.lower()):
            return label
    for label in CATEGORIES:
        if label.value.lower() in normalized:
            return label
    return None


def _contains_any(text: str, cues: tuple[str, ...]) -> bool:
    return any(cue in text for cue in cues)


def fallback_label(prompt_text: str) -> CategoryLabel:
    """
    Keyword heuristic over the original prompt text

    Args:
        prompt_text: The user prompt

    Returns:
        A label; Factual when no cue matches
    """
    text = prompt_text.lower()

    if _contains_any(text, ROLE_CUES):
        return CategoryLabel.ROLE_BASED

    if _contains_any(text, INSTRUCTION_CUES):
        return CategoryLabel.INSTRUCTION_HEAVY

    if (
        _contains_any(text, CREATIVE_CUES)
        or ("write" in text and "code" not in text)
        or ("imagine" in text and "imagine you are" not in text)
    ):
        return CategoryLabel.CREATIVE

    if _contains_any(text, REASONING_CUES):
        return CategoryLabel.REASONING

    return CategoryLabel.FACTUAL


class PromptClassifier:
    """
    Classifier that uses the router model for zero-shot labeling

    ``classify`` is total: it always returns one of the five labels.
    """

    def __init__(self, settings: GenerationSettings | None = None) -> None:
        self._settings = settings or DEFAULT_CLASSIFIER_SETTINGS

    def build_messages(self, prompt_text: str) -> list[dict]:
        return [
            {"role": "system", "content": CLASSIFIER_INSTRUCTION},
            {"role": "user", "content": prompt_text},
        ]

    def classify(self, engine: InferenceEngine, prompt_text: str) -> CategoryLabel:
        """
        Classify a prompt into one category

        Args:
            engine: Engine with the router model loaded
            prompt_text: The user prompt

        Returns:
            CategoryLabel
        """
        try:
            output = self._complete(engine, prompt_text)
        except Exception as e:
            logger.warning("Classifier completion failed, using keyword fallback: %s", e)
            return fallback_label(prompt_text)

        label = match_label(output)
        if label is None:
            logger.debug("Classifier output %r matched no category, using keyword fallback", output)
            return fallback_label(prompt_text)
        return label

    def _complete(self, engine: InferenceEngine, prompt_text: str) -> str:
        parts: list[str] = []
        for chunk in engine.stream_completion(
            self.build_messages(prompt_text),
            max_tokens=self._settings.max_tokens,
            temperature=self._settings.temperature,
            top_p=self._settings.top_p,
        ):
            if chunk.text:
                parts.append(chunk.text)
        return "".join(parts)
