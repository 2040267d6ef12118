"""Public API for the bulkplan package.

High-level functions that return complete, structured results.
Callers should use these instead of importing from bulkplan.kernel.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from bulkplan.codes import ValidationCode
from bulkplan.config import Settings
from bulkplan.kernel.builtin_resolvers import default_registry
from bulkplan.kernel.errors import CycleDetectedError, DanglingReferenceError, DuplicateLegacyIdError
from bulkplan.kernel.graph import DependencyGraph
from bulkplan.kernel.hierarchy import HierarchyResolver
from bulkplan.kernel.models import ImportItem
from bulkplan.kernel.preparation import prepare_batch
from bulkplan.kernel.resolvers import ResolverRegistry
from bulkplan.kernel.run_context import ImportRunContext
from bulkplan.kernel.validation import validate_references, validate_unique_legacy_ids

ItemsInput = Union[str, os.PathLike, Path, Iterable[Union[ImportItem, Mapping[str, Any]]]]


class ValidationIssue(BaseModel):
    """A single validation issue (error or warning)."""
    code: str
    message: str
    element_id: Optional[str] = None  # legacy ID, or display name when the item has none
    missing_id: Optional[str] = None  # For DANGLING_REFERENCE errors
    cycle_path: Optional[List[str]] = None  # For CYCLE_DETECTED errors
    item_names: Optional[List[str]] = None  # For DUPLICATE_LEGACY_ID errors


class ValidationResult(BaseModel):
    """Result of validation/preflight check."""
    ok: bool  # True if no errors (warnings don't block)
    errors: List[ValidationIssue]
    warnings: List[ValidationIssue]


class ImportPlan(BaseModel):
    """A batch in creation order."""
    items: List[ImportItem]
    counts: Dict[str, int] = Field(default_factory=dict)

    @property
    def names(self) -> List[str]:
        return [item.display_name for item in self.items]


def _normalize_path(path: Union[str, os.PathLike, Path]) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


def _load_items_from_path(path: Path) -> List[ImportItem]:
    """Load items from a JSON file holding a list or {"items": [...]}."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        if "items" not in data:
            raise ValueError(f"{path}: expected a list of items or an object with an 'items' key")
        data = data["items"]
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of items, got {type(data).__name__}")
    return _load_items(data)


def _load_items(items: Iterable[Union[ImportItem, Mapping[str, Any]]]) -> List[ImportItem]:
    loaded = []
    for index, item in enumerate(items):
        if isinstance(item, ImportItem):
            loaded.append(item)
        elif isinstance(item, Mapping):
            loaded.append(ImportItem(**item))
        else:
            raise ValueError(f"Item {index} must be an object, got {type(item).__name__}")
    return loaded


def load_items(items: ItemsInput) -> List[ImportItem]:
    """Accept ImportItems, dicts, or a path to a JSON file of items."""
    if isinstance(items, (str, os.PathLike)):
        return _load_items_from_path(_normalize_path(items))
    return _load_items(items)


def validate(items: ItemsInput) -> ValidationResult:
    """
    Preflight check for a batch.

    Runs duplicate, reference and cycle detection without raising for batch
    problems. Does NOT create, write or register anything.

    Returns:
        ValidationResult with errors and warnings.
    """
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []

    # 1. Structure Validation (ERROR)
    try:
        batch = load_items(items)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        errors.append(ValidationIssue(
            code=ValidationCode.INVALID_STRUCTURE.value,
            message=f"Failed to parse items: {str(e)}",
        ))
        return ValidationResult(ok=False, errors=errors, warnings=warnings)

    # 2. Duplicate legacy IDs (ERROR)
    try:
        validate_unique_legacy_ids(batch)
    except DuplicateLegacyIdError as e:
        errors.append(ValidationIssue(
            code=e.code.value,
            message=str(e),
            element_id=e.legacy_id,
            item_names=e.item_names,
        ))

    # 3. Dangling references (ERROR)
    try:
        validate_references(batch)
    except DanglingReferenceError as e:
        errors.append(ValidationIssue(
            code=e.code.value,
            message=str(e),
            element_id=e.legacy_id or e.item_name,
            missing_id=e.missing_id,
        ))

    # 4. Cycles (ERROR); only meaningful over unique IDs
    if not any(issue.code == ValidationCode.DUPLICATE_LEGACY_ID.value for issue in errors):
        try:
            DependencyGraph(batch).topological_order()
        except CycleDetectedError as e:
            errors.append(ValidationIssue(
                code=e.code.value,
                message=str(e),
                element_id=e.cycle[0] if e.cycle else None,
                cycle_path=e.cycle,
            ))

    # 5. References from items nobody can reference (WARNING)
    for item in batch:
        if not item.has_legacy_id and item.references():
            warnings.append(ValidationIssue(
                code=ValidationCode.UNORDERED_REFERENCE.value,
                message=(
                    f"Item '{item.display_name}' has no legacy ID but references "
                    f"{', '.join(item.references())}; it is placed before all legacy items"
                ),
                element_id=item.display_name,
            ))

    return ValidationResult(ok=not errors, errors=errors, warnings=warnings)


def plan(items: ItemsInput) -> ImportPlan:
    """Validate and order a batch.

    Raises:
        HierarchyError: On duplicate IDs, dangling references or cycles.
    """
    batch = load_items(items)
    ordered = HierarchyResolver().validate_and_sort(batch)
    legacy = sum(1 for item in ordered if item.has_legacy_id)
    return ImportPlan(
        items=ordered,
        counts={
            "total": len(ordered),
            "legacy": legacy,
            "unconstrained": len(ordered) - legacy,
            "deferred": sum(1 for item in ordered if item.deferred_properties),
        },
    )


def _load_rows_from_path(path: Path) -> List[Dict[str, Any]]:
    """Load raw rows from a JSON file holding a list or {"rows": [...]}."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("rows")
    if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
        raise ValueError(f"{path}: expected a list of row objects or an object with a 'rows' key")
    return data


def prepare(
    rows: Union[str, os.PathLike, Path, Iterable[Mapping[str, Any]]],
    registry: Optional[ResolverRegistry] = None,
    run: Optional[ImportRunContext] = None,
    source_name: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> List[ImportItem]:
    """Turn raw tabular rows (``column|resolver`` headers) into ImportItems.

    Media columns only resolve for sources already preprocessed into
    ``run.media_items``; pass the run used for media preprocessing.
    """
    settings = settings or Settings()
    if isinstance(rows, (str, os.PathLike)):
        path = _normalize_path(rows)
        source_name = source_name or path.name
        rows = _load_rows_from_path(path)
    return prepare_batch(
        rows,
        registry or default_registry(),
        run or ImportRunContext(),
        source_name=source_name,
        default_alias=settings.default_resolver_alias,
    )
