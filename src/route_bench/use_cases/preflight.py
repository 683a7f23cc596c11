"""
Pre-flight Validation

Whole-run preconditions checked before any prompt is processed: the router
model and the models each run mode needs must be installed, and the routing
table must have at least one installed target.
"""

from collections.abc import Mapping

from route_bench.domain.constants import CategoryLabel
from route_bench.domain.entities import ModelDescriptor
from route_bench.domain.errors import ConfigurationMismatchError
from route_bench.routing import usable_routes


def require_model(model_id: str, registry: Mapping[str, ModelDescriptor], role: str = "Target") -> ModelDescriptor:
    """
    Look up a model that a run cannot proceed without.

    Args:
        model_id: Model identifier
        registry: Installed model descriptors keyed by model_id
        role: Role name used in the error message (e.g. "Router")

    Returns:
        ModelDescriptor

    Raises:
        ConfigurationMismatchError: If the model is not installed
    """
    descriptor = registry.get(model_id)
    if descriptor is None:
        available = ", ".join(sorted(registry)) or "(none)"
        raise ConfigurationMismatchError(
            f"{role} model not installed: {model_id}. Available models: {available}"
        )
    return descriptor


def check_routing_targets(
    table: Mapping[CategoryLabel, str],
    registry: Mapping[str, ModelDescriptor],
) -> dict[CategoryLabel, str]:
    """
    Verify that at least one routing entry targets an installed model.

    Args:
        table: Category -> model identifier
        registry: Installed model descriptors keyed by model_id

    Returns:
        The usable subset of the routing table

    Raises:
        ConfigurationMismatchError: If no entry targets an installed model
    """
    routes = usable_routes(table, set(registry))
    if not routes:
        mapping_keys = ", ".join(c.value for c in table) or "(none)"
        installed = ", ".join(sorted(registry)) or "(none)"
        raise ConfigurationMismatchError(
            "No valid mapping entries match installed models. "
            f"Mapping keys: {mapping_keys}. Installed models: {installed}"
        )
    return routes
