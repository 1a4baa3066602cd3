"""Group catalog: the last-known grouping of the source directory."""

import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ordermanager.scanner.filesystem import FileEntry

logger = logging.getLogger(__name__)

CatalogListener = Callable[["GroupCatalog"], None]


@dataclass(frozen=True)
class GroupCatalog:
    """Read-only mapping from group key to the files in Source sharing that key.

    Built wholesale by each scan with ``from_entries``.
    """

    groups: Mapping[str, tuple["FileEntry", ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_entries(cls, entries: Iterable["FileEntry"]) -> "GroupCatalog":
        grouped: dict[str, list["FileEntry"]] = {}
        for entry in entries:
            grouped.setdefault(entry.group_key, []).append(entry)
        return cls(MappingProxyType({key: tuple(files) for key, files in grouped.items()}))

    def keys(self) -> list[str]:
        return sorted(self.groups)

    def files(self, key: str) -> list["FileEntry"]:
        return list(self.groups.get(key, []))

    def counts(self) -> dict[str, int]:
        return {key: len(self.groups[key]) for key in self.keys()}

    @property
    def file_count(self) -> int:
        return sum(len(entries) for entries in self.groups.values())

    def __contains__(self, key: object) -> bool:
        return key in self.groups

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.groups)


class CatalogState:
    """Process-wide holder of the current GroupCatalog.

    Replacement is atomic with respect to readers. Listeners are called
    after each replacement, on the thread that performed it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._catalog = GroupCatalog()
        self._listeners: list[CatalogListener] = []

    def snapshot(self) -> GroupCatalog:
        with self._lock:
            return self._catalog

    def keys(self) -> list[str]:
        return self.snapshot().keys()

    def replace(self, catalog: GroupCatalog) -> None:
        with self._lock:
            self._catalog = catalog
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(catalog)
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Catalog listener %r failed", listener)

    def add_listener(self, listener: CatalogListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: CatalogListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def clear(self) -> None:
        with self._lock:
            self._catalog = GroupCatalog()
