"""
Resource Loader

Loads the prompt catalog, the category-to-model routing table, and the
installed-model package config from JSON files in a resources directory.
"""

import json
from pathlib import Path

from route_bench.domain.constants import CategoryLabel
from route_bench.domain.entities import ModelDescriptor, PromptItem
from route_bench.domain.errors import ResourceLoadError

PROMPTS_FILE = "prompts.json"
MAPPING_FILE = "model-mapping.json"
PACKAGE_CONFIG_FILE = "package-config.json"


def _read_json(path: Path):
    """
    Read a JSON resource

    Raises:
        ResourceLoadError: kind "missing" if absent, "decode" if malformed
    """
    if not path.is_file():
        raise ResourceLoadError(path.name, "missing", str(path))
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ResourceLoadError(path.name, "decode", str(e)) from e


def _parse_prompt(data: dict) -> PromptItem:
    """
    Create a PromptItem from dictionary data

    Args:
        data: Prompt data dictionary

    Returns:
        PromptItem
    """
    return PromptItem(
        id=int(data["id"]),
        category=CategoryLabel.parse(data["category"]),
        prompt=str(data["prompt"]),
    )


def _parse_descriptor(data: dict) -> ModelDescriptor:
    model_id = data["model_id"]
    return ModelDescriptor(
        model_id=model_id,
        # Servers that address models by id need no separate path
        local_path=data.get("model_path", model_id),
        model_lib=data.get("model_lib", ""),
        estimated_memory_bytes=int(data.get("estimated_vram_bytes", 0)),
    )


class ResourceLoader:
    """Loads benchmark resources from a directory"""

    def __init__(self, resources_dir: str | Path = "resources"):
        self.resources_dir = Path(resources_dir)

    def load_prompts(self) -> list[PromptItem]:
        """
        Load the prompt catalog in file order

        Returns:
            list[PromptItem]

        Raises:
            ResourceLoadError: If the file is missing or malformed
        """
        data = _read_json(self.resources_dir / PROMPTS_FILE)
        try:
            prompts = [_parse_prompt(item) for item in data["prompts"]]
        except (KeyError, TypeError, ValueError) as e:
            raise ResourceLoadError(PROMPTS_FILE, "decode", str(e)) from e

        ids = [p.id for p in prompts]
        if len(ids) != len(set(ids)):
            raise ResourceLoadError(PROMPTS_FILE, "decode", "prompt ids must be unique")
        return prompts

    def load_routing_table(self) -> dict[CategoryLabel, str]:
        """
        Load the category -> model identifier mapping

        Raises:
            ResourceLoadError: If the file is missing, malformed, or names an unknown category
        """
        data = _read_json(self.resources_dir / MAPPING_FILE)
        if not isinstance(data, dict):
            raise ResourceLoadError(MAPPING_FILE, "decode", "expected an object")
        try:
            return {CategoryLabel.parse(category): str(model_id) for category, model_id in data.items()}
        except ValueError as e:
            raise ResourceLoadError(MAPPING_FILE, "decode", str(e)) from e

    def load_model_registry(self) -> dict[str, ModelDescriptor]:
        """
        Load installed model descriptors keyed by model_id

        Raises:
            ResourceLoadError: If the file is missing or malformed
        """
        data = _read_json(self.resources_dir / PACKAGE_CONFIG_FILE)
        try:
            descriptors = [_parse_descriptor(item) for item in data["model_list"]]
        except (KeyError, TypeError, ValueError) as e:
            raise ResourceLoadError(PACKAGE_CONFIG_FILE, "decode", str(e)) from e
        return {d.model_id: d for d in descriptors}

    def load_installed_models(self) -> set[str]:
        """
        Set of installed model identifiers

        Raises:
            ResourceLoadError: If the file is missing or malformed
        """
        return set(self.load_model_registry())
