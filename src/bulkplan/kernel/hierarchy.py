"""Validate a batch and return it in a safe creation order."""

from typing import List, Sequence

import structlog

from .errors import CycleDetectedError
from .graph import DependencyGraph
from .models import ImportItem
from .validation import validate_batch

log = structlog.get_logger()


class HierarchyResolver:
    """Composition root of validation, graph building and sorting.

    Output is two-tiered: items without a legacy ID first, in input order,
    then every legacy-bearing item sorted so that parents and dependencies
    come strictly before the items that reference them. Any failure raises;
    no partial order is ever returned.
    """

    def validate_and_sort(self, items: Sequence[ImportItem]) -> List[ImportItem]:
        items = list(items)
        if not items:
            return []

        validate_batch(items)

        unconstrained = [item for item in items if not item.has_legacy_id]
        for item in unconstrained:
            if item.references():
                # Nothing can reference these items, so they are not ordered
                # after what they reference.
                log.warning(
                    "hierarchy.unordered_reference",
                    item=item.display_name,
                    references=item.references(),
                )

        graph = DependencyGraph(items)
        try:
            ordered_keys = graph.topological_order()
        except CycleDetectedError as exc:
            log.error("hierarchy.cycle_detected", cycle=exc.cycle, members=exc.members)
            raise

        ordered = unconstrained + [graph.items[key] for key in ordered_keys]
        log.debug(
            "hierarchy.sorted",
            items=len(ordered),
            legacy_items=len(ordered_keys),
            unconstrained=len(unconstrained),
        )
        return ordered


def validate_and_sort(items: Sequence[ImportItem]) -> List[ImportItem]:
    """Shortcut for ``HierarchyResolver().validate_and_sort(items)``."""
    return HierarchyResolver().validate_and_sort(items)
