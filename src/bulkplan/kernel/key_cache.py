"""Case-insensitive, thread-safe memoization of external keys to identifiers.

One design, three instances per import run:

- legacy ID -> created entity ID
- media source (URL or file path) -> created media ID
- folder path -> folder ID

Entries are first-writer-wins. A second ``add`` for an existing key is a
successful no-op that returns ``False``; it is how duplicate source values
collapse onto a single created entity.
"""

import threading
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

V = TypeVar("V")


def normalize_key(key: Optional[str]) -> str:
    """Trim and case-fold a cache key. Blank keys normalize to ""."""
    if key is None:
        return ""
    return key.strip().casefold()


def normalize_folder_path(path: Optional[str]) -> str:
    """Normalize a folder path: trim, drop leading/trailing '/', case-fold.

    "/Blog/Header Images/" and "blog/header images" share one key.
    """
    if path is None:
        return ""
    return path.strip().strip("/").strip().casefold()


class KeyCache(Generic[V]):
    """Thread-safe string -> identifier table with insert-if-absent semantics."""

    def __init__(self, name: str = "cache", normalizer: Callable[[Optional[str]], str] = normalize_key):
        self.name = name
        self._normalize = normalizer
        self._entries: Dict[str, V] = {}
        self._lock = threading.Lock()
        # normalized key -> lock held while its factory runs
        self._creating: Dict[str, threading.Lock] = {}

    def add(self, key: Optional[str], identifier: V) -> bool:
        """Add a mapping if the normalized key is not present yet.

        Returns:
            True if the mapping was added; False for blank keys or when the key
            already exists (the existing mapping is left untouched).
        """
        normalized = self._normalize(key)
        if not normalized:
            return False
        with self._lock:
            if normalized in self._entries:
                return False
            self._entries[normalized] = identifier
            return True

    def get(self, key: Optional[str]) -> Tuple[Optional[V], bool]:
        """Look up a key. Returns (identifier, True) or (None, False)."""
        normalized = self._normalize(key)
        if not normalized:
            return None, False
        with self._lock:
            if normalized in self._entries:
                return self._entries[normalized], True
        return None, False

    def get_or_add(self, key: Optional[str], factory: Callable[[], Optional[V]]) -> Tuple[Optional[V], bool]:
        """Return the cached identifier, or create one with ``factory`` and cache it.

        ``factory`` runs outside the table lock so it may do slow work, but
        under a per-key lock: concurrent callers for the same key wait for the
        first one and never call ``factory`` themselves once it succeeded.
        Callers for other keys are not blocked. If a plain ``add`` registers
        the key while ``factory`` runs, that writer wins and its identifier is
        returned. A factory returning None is not cached, so the next caller
        retries.

        Returns:
            (identifier, found) where found is False only when nothing could be
            resolved or created.
        """
        normalized = self._normalize(key)
        if not normalized:
            return None, False
        with self._lock:
            if normalized in self._entries:
                return self._entries[normalized], True
            key_lock = self._creating.setdefault(normalized, threading.Lock())

        with key_lock:
            with self._lock:
                if normalized in self._entries:
                    return self._entries[normalized], True
            created = factory()
            if created is None:
                return None, False
            with self._lock:
                # the entry is visible before the key lock is dropped
                self._creating.pop(normalized, None)
                return self._entries.setdefault(normalized, created), True

    def clear(self) -> None:
        """Drop all entries. Only call when no resolution is in flight."""
        with self._lock:
            self._entries.clear()
            self._creating.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        _, found = self.get(key)
        return found

    def __repr__(self) -> str:
        return f"KeyCache(name={self.name!r}, count={self.count()})"
