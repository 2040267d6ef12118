"""Batch-level errors raised by the ordering kernel.

Every error here is fatal to the batch: no ordering is returned alongside
it and nothing is retried.
"""

from typing import List, Optional

from bulkplan.codes import ValidationCode


class HierarchyError(Exception):
    """Base exception for batch validation and ordering errors."""

    code: ValidationCode = ValidationCode.INVALID_STRUCTURE


class DuplicateLegacyIdError(HierarchyError):
    """Raised when two or more items declare the same legacy ID."""

    code = ValidationCode.DUPLICATE_LEGACY_ID

    def __init__(self, legacy_id: str, item_names: List[str]):
        self.legacy_id = legacy_id
        self.item_names = list(item_names)
        names = ", ".join(f"'{name}'" for name in self.item_names)
        super().__init__(
            f"Duplicate legacy ID found: '{legacy_id}' appears in multiple items: {names}. "
            "Each legacy ID must be unique."
        )


class DanglingReferenceError(HierarchyError):
    """Raised when a parent or dependency legacy ID is not present in the batch."""

    code = ValidationCode.DANGLING_REFERENCE

    def __init__(
        self,
        item_name: str,
        legacy_id: Optional[str],
        missing_id: str,
        relation: str = "parent",
    ):
        self.item_name = item_name
        self.legacy_id = legacy_id
        self.missing_id = missing_id
        self.relation = relation
        label = "Legacy parent ID" if relation == "parent" else "Legacy dependency ID"
        own_id = f"'{legacy_id}'" if legacy_id else "none"
        super().__init__(
            f"{label} '{missing_id}' referenced by item '{item_name}' "
            f"(legacy ID: {own_id}) was not found in the import data. "
            "All legacy references must point to items within the same import."
        )


class CycleDetectedError(HierarchyError):
    """Raised when parent and dependency edges form a cycle."""

    code = ValidationCode.CYCLE_DETECTED

    def __init__(
        self,
        cycle: List[str],
        members: Optional[List[str]] = None,
        edge_kinds: Optional[List[str]] = None,
    ):
        # Stored without the closing repeat of the first node
        if len(cycle) > 1 and cycle[0] == cycle[-1]:
            cycle = cycle[:-1]
        self.cycle = list(cycle)
        self.members = list(members) if members is not None else list(self.cycle)
        self.edge_kinds = list(edge_kinds or [])

        cycle_str = " -> ".join(self.cycle + self.cycle[:1])
        msg = f"Circular reference detected in legacy hierarchy: {cycle_str}"
        if self.edge_kinds:
            msg += f"\n  Edge types: {', '.join(sorted(set(self.edge_kinds)))}"
        if set(self.members) != set(self.cycle):
            msg += f"\n  Items involved: {', '.join(self.members)}"
        msg += "\nPlease check your legacy parent ID and content picker references."
        super().__init__(msg)


class ResolverError(ValueError):
    """Raised when a resolver or the resolver registry is misconfigured."""
    pass
