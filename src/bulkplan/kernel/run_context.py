"""Per-import-job state: the three memoization caches."""

from dataclasses import dataclass, field
from typing import Any

import structlog

from .key_cache import KeyCache, normalize_folder_path, normalize_key

log = structlog.get_logger()


@dataclass
class ImportRunContext:
    """Owns the caches shared by every component of one import job.

    Constructed once per job and passed by reference to whatever needs a
    cache. ``begin_run`` empties all three caches and must only be called
    when no resolution is in flight.
    """

    legacy_ids: KeyCache[Any] = field(
        default_factory=lambda: KeyCache("legacy_ids", normalize_key)
    )
    media_items: KeyCache[Any] = field(
        default_factory=lambda: KeyCache("media_items", normalize_key)
    )
    folder_paths: KeyCache[Any] = field(
        default_factory=lambda: KeyCache("folder_paths", normalize_folder_path)
    )
    runs_started: int = 0

    def begin_run(self) -> None:
        """Clear the caches left over from the previous run."""
        previous = self.counts()
        self.legacy_ids.clear()
        self.media_items.clear()
        self.folder_paths.clear()
        self.runs_started += 1
        log.info("import_run.started", run=self.runs_started, cleared=previous)

    def counts(self) -> dict[str, int]:
        return {
            "legacy_ids": self.legacy_ids.count(),
            "media_items": self.media_items.count(),
            "folder_paths": self.folder_paths.count(),
        }
