"""
Tests for resource_loader.py
"""

import json

import pytest

from route_bench.domain.constants import CategoryLabel
from route_bench.domain.errors import ResourceLoadError
from route_bench.resource_loader import (
    MAPPING_FILE,
    PACKAGE_CONFIG_FILE,
    PROMPTS_FILE,
    ResourceLoader,
)


def _write(directory, name, data):
    path = directory / name
    path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
    return path


@pytest.fixture
def resources(tmp_path):
    _write(tmp_path, PROMPTS_FILE, {"prompts": [
        {"id": 2, "category": "Reasoning", "prompt": "Solve 2x = 4"},
        {"id": 1, "category": "factual", "prompt": "Capital of France?"},
    ]})
    _write(tmp_path, MAPPING_FILE, {"Factual": "M1", "Reasoning": "M2"})
    _write(tmp_path, PACKAGE_CONFIG_FILE, {"model_list": [
        {"model_id": "M1", "model_path": "m1-path", "model_lib": "lib1", "estimated_vram_bytes": 1024},
        {"model_id": "ROUTER"},
    ]})
    return tmp_path


class TestLoadPrompts:
    def test_file_order_preserved(self, resources):
        prompts = ResourceLoader(resources).load_prompts()
        assert [p.id for p in prompts] == [2, 1]
        assert prompts[0].category is CategoryLabel.REASONING
        assert prompts[1].category is CategoryLabel.FACTUAL

    def test_missing_file(self, tmp_path):
        with pytest.raises(ResourceLoadError) as exc_info:
            ResourceLoader(tmp_path).load_prompts()
        assert exc_info.value.kind == "missing"
        assert exc_info.value.resource == PROMPTS_FILE

    def test_malformed_json(self, tmp_path):
        _write(tmp_path, PROMPTS_FILE, "{not json")
        with pytest.raises(ResourceLoadError) as exc_info:
            ResourceLoader(tmp_path).load_prompts()
        assert exc_info.value.kind == "decode"

    def test_missing_field(self, tmp_path):
        _write(tmp_path, PROMPTS_FILE, {"prompts": [{"id": 1, "prompt": "no category"}]})
        with pytest.raises(ResourceLoadError, match="decode"):
            ResourceLoader(tmp_path).load_prompts()

    def test_unknown_category(self, tmp_path):
        _write(tmp_path, PROMPTS_FILE, {"prompts": [{"id": 1, "category": "Poetry", "prompt": "x"}]})
        with pytest.raises(ResourceLoadError, match="Poetry"):
            ResourceLoader(tmp_path).load_prompts()

    def test_duplicate_ids_rejected(self, tmp_path):
        _write(tmp_path, PROMPTS_FILE, {"prompts": [
            {"id": 1, "category": "Factual", "prompt": "a"},
            {"id": 1, "category": "Creative", "prompt": "b"},
        ]})
        with pytest.raises(ResourceLoadError, match="unique"):
            ResourceLoader(tmp_path).load_prompts()


class TestLoadRoutingTable:
    def test_keys_parsed_to_labels(self, resources):
        table = ResourceLoader(resources).load_routing_table()
        assert table == {CategoryLabel.FACTUAL: "M1", CategoryLabel.REASONING: "M2"}

    def test_not_an_object(self, tmp_path):
        _write(tmp_path, MAPPING_FILE, ["Factual", "M1"])
        with pytest.raises(ResourceLoadError) as exc_info:
            ResourceLoader(tmp_path).load_routing_table()
        assert exc_info.value.kind == "decode"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ResourceLoadError) as exc_info:
            ResourceLoader(tmp_path).load_routing_table()
        assert exc_info.value.kind == "missing"


class TestLoadModelRegistry:
    def test_descriptors(self, resources):
        registry = ResourceLoader(resources).load_model_registry()
        assert set(registry) == {"M1", "ROUTER"}
        assert registry["M1"].local_path == "m1-path"
        assert registry["M1"].model_lib == "lib1"
        assert registry["M1"].estimated_memory_bytes == 1024

    def test_path_defaults_to_model_id(self, resources):
        router = ResourceLoader(resources).load_model_registry()["ROUTER"]
        assert router.local_path == "ROUTER"
        assert router.model_lib == ""
        assert router.estimated_memory_bytes == 0

    def test_installed_models(self, resources):
        assert ResourceLoader(resources).load_installed_models() == {"M1", "ROUTER"}

    def test_missing_model_list(self, tmp_path):
        _write(tmp_path, PACKAGE_CONFIG_FILE, {"models": []})
        with pytest.raises(ResourceLoadError) as exc_info:
            ResourceLoader(tmp_path).load_installed_models()
        assert exc_info.value.kind == "decode"


def test_bundled_resources_are_consistent():
    """The sample resources shipped with the repo load and route to installed models"""
    from pathlib import Path

    loader = ResourceLoader(Path(__file__).resolve().parent.parent / "resources")
    prompts = loader.load_prompts()
    table = loader.load_routing_table()
    installed = loader.load_installed_models()

    assert len(prompts) > 20
    assert set(table) == set(CategoryLabel)
    assert set(table.values()) <= installed
