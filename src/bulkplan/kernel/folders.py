"""Folder-path lookup backed by the run's folder-path cache."""

from typing import Any, Callable, List, Optional, Tuple

import structlog

from .key_cache import KeyCache, normalize_folder_path

log = structlog.get_logger()

FindOrCreateFolder = Callable[[Any, str], Optional[Any]]


def split_folder_path(path: Optional[str]) -> List[str]:
    """Non-blank path segments, original spelling kept."""
    if path is None:
        return []
    return [segment.strip() for segment in path.split("/") if segment.strip()]


def resolve_folder_path(
    path: Optional[str],
    cache: KeyCache,
    find_or_create: FindOrCreateFolder,
    root_id: Any = None,
) -> Tuple[Optional[Any], bool]:
    """Resolve ``/a/b/c`` to a folder ID, creating missing folders once.

    Each cumulative sub-path (``a``, ``a/b``, ``a/b/c``) is cached, so sibling
    rows reuse folders resolved by earlier rows. ``find_or_create(parent_id,
    name)`` is the external collaborator; returning None stops the walk.

    Returns:
        (folder_id, found). A blank path resolves to ``(root_id, True)``.
    """
    segments = split_folder_path(path)
    if not segments:
        return root_id, True

    cached, found = cache.get(normalize_folder_path(path))
    if found:
        return cached, True

    parent_id = root_id
    for depth in range(1, len(segments) + 1):
        sub_path = "/".join(segments[:depth])
        name = segments[depth - 1]
        current = parent_id
        folder_id, found = cache.get_or_add(sub_path, lambda: find_or_create(current, name))
        if not found:
            log.warning("folders.unresolved", path=path, segment=name, depth=depth)
            return None, False
        parent_id = folder_id

    return parent_id, True
