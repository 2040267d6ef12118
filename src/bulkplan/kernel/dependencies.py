"""Extract the legacy IDs a property depends on."""

from typing import Iterable, List

from .key_cache import normalize_key
from .models import PropertyCell
from .resolvers import ResolverRegistry


def extract_dependencies(cell: PropertyCell, registry: ResolverRegistry) -> List[str]:
    """Legacy IDs one property depends on.

    Empty when the resolver is unknown or immediate. Pure: the deferred
    resolver's extraction must not touch any cache.
    """
    binding = registry.get(cell.resolver_spec)
    if binding is None or not binding.resolver.is_deferred:
        return []
    return binding.extract_dependencies(cell.raw_value)


def collect_item_dependencies(cells: Iterable[PropertyCell], registry: ResolverRegistry) -> List[str]:
    """Aggregate dependencies across all properties of one row.

    Duplicates (case-insensitive) are dropped, first occurrence wins.
    """
    seen = set()
    result = []
    for cell in cells:
        for dep in extract_dependencies(cell, registry):
            key = normalize_key(dep)
            if not key or key in seen:
                continue
            seen.add(key)
            result.append(dep.strip())
    return result
