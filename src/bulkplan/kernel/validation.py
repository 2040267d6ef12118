"""Batch validation: duplicate legacy IDs and dangling references.

Both checks run before any graph is built and stop at the first violation.
"""

from typing import Dict, List, Sequence, Set

from .errors import DanglingReferenceError, DuplicateLegacyIdError
from .key_cache import normalize_key
from .models import ImportItem


def legacy_id_set(items: Sequence[ImportItem]) -> Set[str]:
    """Normalized legacy IDs present in the batch."""
    return {normalize_key(item.legacy_id) for item in items if item.has_legacy_id}


def validate_unique_legacy_ids(items: Sequence[ImportItem]) -> None:
    """Raise DuplicateLegacyIdError for the first legacy ID declared more than once.

    Groups are checked in the declaration order of their first member, so the
    reported ID is stable for a given input.
    """
    groups: Dict[str, List[ImportItem]] = {}
    for item in items:
        if not item.has_legacy_id:
            continue
        groups.setdefault(normalize_key(item.legacy_id), []).append(item)

    for members in groups.values():
        if len(members) > 1:
            raise DuplicateLegacyIdError(
                members[0].legacy_id,
                [member.display_name for member in members],
            )


def validate_references(items: Sequence[ImportItem]) -> None:
    """Raise DanglingReferenceError for the first reference outside the batch.

    Items without a legacy ID are checked too: they cannot be referenced, but
    whatever they reference must still exist.
    """
    present = legacy_id_set(items)
    for item in items:
        if item.legacy_parent_id and normalize_key(item.legacy_parent_id) not in present:
            raise DanglingReferenceError(
                item.display_name, item.legacy_id, item.legacy_parent_id, relation="parent"
            )
        for dep in item.dependencies:
            if normalize_key(dep) not in present:
                raise DanglingReferenceError(
                    item.display_name, item.legacy_id, dep, relation="dependency"
                )


def validate_batch(items: Sequence[ImportItem]) -> None:
    """Run every batch check; raises on the first failure."""
    validate_unique_legacy_ids(items)
    validate_references(items)
