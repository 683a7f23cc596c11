"""
Routing Table Resolver

Maps a category to its target model, considering only targets that are installed.
"""

from __future__ import annotations

from collections.abc import Mapping, Set

from route_bench.domain.constants import CategoryLabel


def usable_routes(
    table: Mapping[CategoryLabel, str],
    installed: Set[str],
) -> dict[CategoryLabel, str]:
    """
    Routing entries whose target model is installed

    Args:
        table: Category -> model identifier
        installed: Installed model identifiers

    Returns:
        Filtered copy of the table
    """
    return {category: model_id for category, model_id in table.items() if model_id in installed}


def resolve(
    category: CategoryLabel,
    table: Mapping[CategoryLabel, str],
    installed: Set[str],
) -> str | None:
    """
    Target model for a category

    Args:
        category: Label produced by the classifier
        table: Category -> model identifier
        installed: Installed model identifiers

    Returns:
        The model identifier, or None when the category has no installed target
    """
    return usable_routes(table, installed).get(category)
