"""bulkplan: dependency ordering and deferred reference resolution for bulk imports."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("bulkplan")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from bulkplan.api import validate, plan, ImportPlan, ValidationIssue, ValidationResult
from bulkplan.codes import ValidationCode
from bulkplan.kernel.errors import (
    CycleDetectedError,
    DanglingReferenceError,
    DuplicateLegacyIdError,
    HierarchyError,
)
from bulkplan.kernel.hierarchy import HierarchyResolver, validate_and_sort
from bulkplan.kernel.key_cache import KeyCache
from bulkplan.kernel.models import ImportItem
from bulkplan.kernel.run_context import ImportRunContext

__all__ = [
    "__version__",
    "validate",
    "plan",
    "ImportPlan",
    "ValidationIssue",
    "ValidationResult",
    "ValidationCode",
    "HierarchyError",
    "DuplicateLegacyIdError",
    "DanglingReferenceError",
    "CycleDetectedError",
    "HierarchyResolver",
    "validate_and_sort",
    "KeyCache",
    "ImportItem",
    "ImportRunContext",
]
