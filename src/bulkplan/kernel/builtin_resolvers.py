"""Built-in resolvers and the default registry.

None of these touch the network or the file system. Media resolvers only
look up sources the caller already created during media preprocessing;
legacy pickers only look up items the caller already created and
registered in the legacy-ID cache.
"""

import json
import uuid
from datetime import date, datetime
from typing import Any, List, Optional

import structlog

from .key_cache import KeyCache
from .resolvers import ParameterizedValue, Resolver, ResolverKind, ResolverRegistry

log = structlog.get_logger()

DOCUMENT = "document"
MEDIA = "media"

# Non-ISO layouts accepted by dateTime, month first as in the invariant culture
DATE_TIME_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
)


def format_udi(entity_type: str, identifier: Any) -> str:
    """Format an identifier as a content UDI, e.g. ``umb://document/<32 hex>``."""
    if isinstance(identifier, uuid.UUID):
        return f"umb://{entity_type}/{identifier.hex}"
    return f"umb://{entity_type}/{identifier}"


def _text_of(value: Any) -> Optional[str]:
    value, _ = ParameterizedValue.unwrap(value)
    if value is None:
        return None
    return str(value)


def resolve_text(value: Any, run=None) -> Optional[str]:
    return _text_of(value)


def resolve_boolean(value: Any, run=None) -> bool:
    """Only "true"/"false" (any case, trimmed) parse; anything else is False."""
    value, _ = ParameterizedValue.unwrap(value)
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return False
    return value.strip().lower() == "true"


def _parse_date_time(text: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in DATE_TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def resolve_date_time(value: Any, run=None) -> str:
    """Date text -> ISO 8601 (``2025-09-12T14:30:00``), or "" when unparseable."""
    value, _ = ParameterizedValue.unwrap(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).isoformat()
    if not isinstance(value, str) or not value.strip():
        return ""
    parsed = _parse_date_time(value.strip())
    return parsed.isoformat() if parsed is not None else ""


def resolve_object_to_json(value: Any, run=None) -> Optional[str]:
    """Serialize any non-None cell value as JSON; None stays None."""
    value, _ = ParameterizedValue.unwrap(value)
    if value is None:
        return None
    return json.dumps(value, default=str)


def resolve_string_array(value: Any, run=None) -> str:
    """Comma-separated text -> JSON array of trimmed, non-empty strings."""
    text = _text_of(value)
    if not text:
        return "[]"
    return json.dumps([part.strip() for part in text.split(",") if part.strip()])


def resolve_text_to_link(value: Any, run=None) -> Optional[str]:
    """Text -> JSON list holding one external link. Blank -> None."""
    text = _text_of(value)
    if text is None or not text.strip():
        return None
    url = text.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return json.dumps([{"name": url, "url": url, "type": "external"}])


def _resolve_media(value: Any, run) -> str:
    source, _parent = ParameterizedValue.unwrap(value)
    if source is None or not str(source).strip():
        return ""
    media_id, found = run.media_items.get(str(source))
    if not found:
        log.warning("resolver.media_not_preprocessed", source=str(source))
        return ""
    return format_udi(MEDIA, media_id)


def extract_many_legacy_ids(value: Any) -> List[str]:
    text = _text_of(value)
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def extract_single_legacy_id(value: Any) -> List[str]:
    text = _text_of(value)
    if text is None or not text.strip():
        return []
    return [text.strip()]


def resolve_single_legacy_id(value: Any, cache: KeyCache) -> str:
    """One legacy ID -> document UDI, or "" when it was never created."""
    ids = extract_single_legacy_id(value)
    if not ids:
        return ""
    entity_id, found = cache.get(ids[0])
    if not found:
        return ""
    return format_udi(DOCUMENT, entity_id)


def resolve_many_legacy_ids(value: Any, cache: KeyCache) -> str:
    """Comma-separated legacy IDs -> comma-joined document UDIs.

    IDs missing from the cache are left out; the rest still resolve.
    """
    udis = []
    for legacy_id in extract_many_legacy_ids(value):
        entity_id, found = cache.get(legacy_id)
        if found:
            udis.append(format_udi(DOCUMENT, entity_id))
    return ",".join(udis)


TEXT = Resolver("text", ResolverKind.IMMEDIATE, resolve=resolve_text)
BOOLEAN = Resolver("boolean", ResolverKind.IMMEDIATE, resolve=resolve_boolean)
DATE_TIME = Resolver("dateTime", ResolverKind.IMMEDIATE, resolve=resolve_date_time)
OBJECT_TO_JSON = Resolver("objectToJson", ResolverKind.IMMEDIATE, resolve=resolve_object_to_json)
STRING_ARRAY = Resolver("stringArray", ResolverKind.IMMEDIATE, resolve=resolve_string_array)
TEXT_TO_LINK = Resolver("textToLink", ResolverKind.IMMEDIATE, resolve=resolve_text_to_link)
URL_TO_MEDIA = Resolver(
    "urlToMedia", ResolverKind.IMMEDIATE, resolve=_resolve_media, accepts_value_parameter=True
)
PATH_TO_MEDIA = Resolver(
    "pathToMedia", ResolverKind.IMMEDIATE, resolve=_resolve_media, accepts_value_parameter=True
)
LEGACY_CONTENT_PICKER = Resolver(
    "legacyContentPicker",
    ResolverKind.DEFERRED,
    extract_dependencies=extract_single_legacy_id,
    resolve_deferred=resolve_single_legacy_id,
)
LEGACY_CONTENT_PICKERS = Resolver(
    "legacyContentPickers",
    ResolverKind.DEFERRED,
    extract_dependencies=extract_many_legacy_ids,
    resolve_deferred=resolve_many_legacy_ids,
)

BUILTIN_RESOLVERS = (
    TEXT,
    BOOLEAN,
    DATE_TIME,
    OBJECT_TO_JSON,
    STRING_ARRAY,
    TEXT_TO_LINK,
    URL_TO_MEDIA,
    PATH_TO_MEDIA,
    LEGACY_CONTENT_PICKER,
    LEGACY_CONTENT_PICKERS,
)

MEDIA_RESOLVER_ALIASES = frozenset({URL_TO_MEDIA.alias.casefold(), PATH_TO_MEDIA.alias.casefold()})


def default_registry() -> ResolverRegistry:
    """Registry holding every built-in resolver."""
    return ResolverRegistry(BUILTIN_RESOLVERS)
