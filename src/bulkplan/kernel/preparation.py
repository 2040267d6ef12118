"""Turn raw tabular rows into ImportItems.

Column headers carry the resolver to use: ``columnName|resolverAlias[:parameter]``.
A header without ``|`` uses the default resolver (``text``). Standard and
reserved columns feed the item's own fields and never become properties.
"""

from typing import Any, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

import structlog

from .dependencies import collect_item_dependencies
from .models import DeferredProperty, ImportItem, PropertyCell
from .resolvers import ResolverRegistry, parse_resolver_alias
from .run_context import ImportRunContext

log = structlog.get_logger()

DEFAULT_RESOLVER_ALIAS = "text"


class ReservedColumns:
    """Import metadata columns; matched case-insensitively."""

    LEGACY_ID = "bulkUploadLegacyId"
    LEGACY_PARENT_ID = "bulkUploadLegacyParentId"
    SHOULD_PUBLISH = "bulkUploadShouldPublish"
    CONTENT_GUID = "bulkUploadContentGuid"
    PARENT_GUID = "bulkUploadParentGuid"

    ALL = frozenset(
        c.casefold() for c in (LEGACY_ID, LEGACY_PARENT_ID, SHOULD_PUBLISH, CONTENT_GUID, PARENT_GUID)
    )

    @classmethod
    def is_reserved(cls, column_name: str) -> bool:
        return column_name.strip().casefold() in cls.ALL


STANDARD_COLUMNS = frozenset({"name", "parent", "parentid", "doctypealias"})


def parse_column_header(header: str, default_alias: str = DEFAULT_RESOLVER_ALIAS) -> Tuple[str, str, Optional[str]]:
    """Split a header into (column name, resolver alias, alias parameter).

    The column name is everything before the first '|', the resolver spec is
    everything after the last '|'.
    """
    parts = header.split("|")
    column_name = parts[0].strip()
    alias, parameter = (None, None)
    if len(parts) > 1:
        alias, parameter = parse_resolver_alias(parts[-1])
    return column_name, (alias or default_alias), parameter


def _is_property_column(column_name: str) -> bool:
    key = column_name.casefold()
    return key not in STANDARD_COLUMNS and not ReservedColumns.is_reserved(column_name)


def split_row(row: Mapping[str, Any], default_alias: str = DEFAULT_RESOLVER_ALIAS) -> List[PropertyCell]:
    """Property cells of a row in column order, standard/reserved columns excluded."""
    cells = []
    for header, raw_value in row.items():
        column_name, alias, parameter = parse_column_header(header, default_alias)
        if not column_name or not _is_property_column(column_name):
            continue
        cells.append(PropertyCell(
            column_name=column_name,
            resolver_alias=alias,
            alias_parameter=parameter,
            raw_value=raw_value,
        ))
    return cells


def _column_value(row: Mapping[str, Any], column_name: str) -> Tuple[Any, bool]:
    """Case-insensitive lookup on the column-name part of each header."""
    wanted = column_name.casefold()
    for header, value in row.items():
        if header.split("|")[0].strip().casefold() == wanted:
            return value, True
    return None, False


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _parse_guid(value: Any) -> Optional[UUID]:
    """GUID cell -> UUID; blank or unparseable cells mean "no GUID"."""
    text = _text(value)
    if not text:
        return None
    try:
        return UUID(text)
    except ValueError:
        return None


def prepare_item(
    row: Mapping[str, Any],
    registry: ResolverRegistry,
    run: ImportRunContext,
    source_name: Optional[str] = None,
    default_alias: str = DEFAULT_RESOLVER_ALIAS,
) -> ImportItem:
    """Build one ImportItem from a raw row.

    Immediate properties are resolved now. Deferred properties are stored
    raw together with their resolver, and the legacy IDs they reference are
    aggregated into ``dependencies`` for sorting.
    """
    name, _ = _column_value(row, "name")
    doc_type, _ = _column_value(row, "docTypeAlias")
    parent, has_parent = _column_value(row, "parent")
    if not has_parent:
        # older sheets use parentId
        parent, _ = _column_value(row, "parentId")
    legacy_id, _ = _column_value(row, ReservedColumns.LEGACY_ID)
    legacy_parent_id, _ = _column_value(row, ReservedColumns.LEGACY_PARENT_ID)
    publish, _ = _column_value(row, ReservedColumns.SHOULD_PUBLISH)
    content_guid, _ = _column_value(row, ReservedColumns.CONTENT_GUID)
    parent_guid, _ = _column_value(row, ReservedColumns.PARENT_GUID)

    properties = {}
    deferred = {}
    deferred_cells: List[PropertyCell] = []

    for cell in split_row(row, default_alias):
        binding = registry.get(cell.resolver_spec)
        if binding is None:
            log.warning(
                "preparation.unknown_resolver",
                column=cell.column_name,
                alias=cell.resolver_alias,
                item=_text(name) or _text(legacy_id),
            )
            continue

        if binding.resolver.is_deferred:
            deferred_cells.append(cell)
            deferred[cell.column_name] = DeferredProperty(
                raw_value=cell.raw_value,
                resolver_alias=cell.resolver_alias,
                alias_parameter=cell.alias_parameter,
            )
            continue

        value = binding.resolve(cell.raw_value, run)
        if value is not None:
            properties[cell.column_name] = value

    return ImportItem(
        name=_text(name),
        content_type_alias=_text(doc_type),
        parent=_text(parent) or None,
        legacy_id=legacy_id,
        legacy_parent_id=legacy_parent_id,
        properties=properties,
        deferred_properties=deferred,
        dependencies=collect_item_dependencies(deferred_cells, registry),
        source_name=source_name,
        should_publish=_text(publish).lower() in ("true", "yes", "1"),
        content_guid=_parse_guid(content_guid),
        parent_guid=_parse_guid(parent_guid),
    )


def prepare_batch(
    rows: Iterable[Mapping[str, Any]],
    registry: ResolverRegistry,
    run: ImportRunContext,
    source_name: Optional[str] = None,
    default_alias: str = DEFAULT_RESOLVER_ALIAS,
) -> List[ImportItem]:
    """Prepare every row of one source, keeping row order."""
    items = [
        prepare_item(row, registry, run, source_name=source_name, default_alias=default_alias)
        for row in rows
    ]
    log.debug(
        "preparation.batch_prepared",
        items=len(items),
        deferred=sum(1 for i in items if i.deferred_properties),
        source=source_name,
    )
    return items
