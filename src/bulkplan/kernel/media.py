"""Media preprocessing: find every distinct media source once, create it once.

Rows are scanned before preparation. Each distinct URL or file path used by a
media column is handed to the caller's ``create_media`` collaborator a single
time and its ID stored in the run's media cache, where the ``urlToMedia`` and
``pathToMedia`` resolvers later find it.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import structlog

from .builtin_resolvers import MEDIA_RESOLVER_ALIASES
from .key_cache import normalize_key
from .preparation import DEFAULT_RESOLVER_ALIAS, STANDARD_COLUMNS, parse_column_header
from .resolvers import split_value_parameter
from .run_context import ImportRunContext

log = structlog.get_logger()


@dataclass(frozen=True)
class MediaReference:
    source: str
    resolver_alias: str
    parent: Optional[str] = None
    source_name: Optional[str] = None


@dataclass(frozen=True)
class MediaResult:
    source: str
    media_id: Any = None
    success: bool = False
    created: bool = False
    error: Optional[str] = None
    source_name: Optional[str] = None


CreateMedia = Callable[[MediaReference], Optional[Any]]


def collect_media_sources(
    rows: Iterable[Mapping[str, Any]],
    source_name: Optional[str] = None,
    default_alias: str = DEFAULT_RESOLVER_ALIAS,
) -> List[MediaReference]:
    """Distinct media sources of the rows, in first-seen order.

    Sources are compared case-insensitively. A ``value|parent`` parameter in
    the cell wins over the ``alias:parent`` parameter in the header.
    """
    found: Dict[str, MediaReference] = {}
    for row in rows:
        for header, raw_value in row.items():
            column_name, alias, alias_parameter = parse_column_header(header, default_alias)
            if column_name.casefold() in STANDARD_COLUMNS:
                continue
            if alias.casefold() not in MEDIA_RESOLVER_ALIASES:
                continue
            if raw_value is None or not str(raw_value).strip():
                continue

            source, value_parameter = split_value_parameter(str(raw_value))
            key = normalize_key(source)
            if not key or key in found:
                continue
            found[key] = MediaReference(
                source=source,
                resolver_alias=alias,
                parent=value_parameter or alias_parameter,
                source_name=source_name,
            )
    return list(found.values())


def preprocess_media(
    references: Iterable[MediaReference],
    run: ImportRunContext,
    create_media: CreateMedia,
) -> List[MediaResult]:
    """Create each referenced media source at most once per run.

    Sources already in the run's media cache are reused without calling
    ``create_media``. A collaborator that returns None or raises marks only
    that source as failed; the rest of the batch proceeds.
    """
    results = []
    for ref in references:
        calls = []

        def create(ref=ref):
            calls.append(ref.source)
            return create_media(ref)

        try:
            media_id, found = run.media_items.get_or_add(ref.source, create)
        except Exception as exc:
            log.error("media.create_failed", source=ref.source, error=str(exc))
            results.append(MediaResult(ref.source, error=str(exc), source_name=ref.source_name))
            continue

        if not found:
            log.warning("media.not_created", source=ref.source)
            results.append(MediaResult(
                ref.source, error="Failed to create media item", source_name=ref.source_name
            ))
            continue

        results.append(MediaResult(
            ref.source,
            media_id=media_id,
            success=True,
            created=bool(calls),
            source_name=ref.source_name,
        ))

    log.info(
        "media.preprocessed",
        sources=len(results),
        created=sum(1 for r in results if r.created),
        failed=sum(1 for r in results if not r.success),
    )
    return results
