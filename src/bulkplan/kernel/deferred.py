"""Caller side of deferred resolution.

After the batch is sorted the caller walks it in order. For each item it
finishes the deferred properties, creates the entity, then registers the new
ID so later items can reference it:

    for item in validate_and_sort(items):
        parent_id, _ = resolve_legacy_parent(item, run.legacy_ids)
        values = {**item.properties, **resolve_deferred_properties(item, registry, run.legacy_ids)}
        entity_id = create(item, parent_id, values)
        register_created(item, entity_id, run)
"""

from typing import Any, Dict, Optional, Tuple

import structlog

from .errors import ResolverError
from .key_cache import KeyCache
from .models import ImportItem
from .resolvers import ResolverRegistry
from .run_context import ImportRunContext

log = structlog.get_logger()


def resolve_deferred_properties(
    item: ImportItem,
    registry: ResolverRegistry,
    legacy_cache: KeyCache,
) -> Dict[str, Any]:
    """Finish every deferred property of ``item`` against the legacy-ID cache.

    References missing from the cache are omitted by the resolvers, never
    raised. An alias that is unknown or not deferred is a registry
    misconfiguration and raises ResolverError.
    """
    resolved: Dict[str, Any] = {}
    for column, prop in item.deferred_properties.items():
        binding = registry.get(prop.resolver_spec)
        if binding is None:
            raise ResolverError(
                f"Unknown resolver '{prop.resolver_alias}' for deferred property '{column}'"
            )
        resolved[column] = binding.resolve_deferred(prop.raw_value, legacy_cache)
    return resolved


def register_created(item: ImportItem, entity_id: Any, run: ImportRunContext) -> bool:
    """Record the entity created for ``item`` under its legacy ID.

    Returns False when the item has no legacy ID or the ID was already
    registered; the first registration is kept.
    """
    if not item.has_legacy_id:
        return False
    added = run.legacy_ids.add(item.legacy_id, entity_id)
    if not added:
        existing, _ = run.legacy_ids.get(item.legacy_id)
        log.warning(
            "deferred.legacy_id_already_registered",
            legacy_id=item.legacy_id,
            existing=str(existing),
            ignored=str(entity_id),
        )
    return added


def resolve_legacy_parent(item: ImportItem, legacy_cache: KeyCache) -> Tuple[Optional[Any], bool]:
    """Created entity ID of the item's legacy parent, as ``(id, found)``."""
    if not item.legacy_parent_id:
        return None, False
    return legacy_cache.get(item.legacy_parent_id)
