"""Per-region pool of cities explicitly removed from a zone."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from ...models.domain import display_sort_key


class LeftoverPool:
    """Immutable multimap ``city_key -> frozenset(source zone codes)``.

    Sources record which zone(s) freed a city. They are informational only and
    never decide ownership; every mutator returns a new pool.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, Iterable[str]] | None = None) -> None:
        self._entries = MappingProxyType(
            {key: frozenset(sources) for key, sources in (entries or {}).items() if sources}
        )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LeftoverPool):
            return NotImplemented
        return dict(self._entries) == dict(other._entries)

    def __repr__(self) -> str:
        return f"LeftoverPool({dict(self._entries)!r})"

    def keys(self) -> frozenset[str]:
        return frozenset(self._entries)

    def sources(self, key: str) -> frozenset[str]:
        return self._entries.get(key, frozenset())

    def add(self, key: str, source: str) -> "LeftoverPool":
        entries = dict(self._entries)
        entries[key] = entries.get(key, frozenset()) | {source}
        return LeftoverPool(entries)

    def add_many(self, keys: Iterable[str], source: str) -> "LeftoverPool":
        entries = dict(self._entries)
        for key in keys:
            entries[key] = entries.get(key, frozenset()) | {source}
        return LeftoverPool(entries)

    def discard_many(self, keys: Iterable[str]) -> "LeftoverPool":
        drop = set(keys)
        if not drop & self._entries.keys():
            return self
        return LeftoverPool({key: sources for key, sources in self._entries.items() if key not in drop})

    def to_dict(self) -> dict[str, dict[str, list[str]]]:
        return {
            key: {"sources": sorted(self._entries[key])}
            for key in sorted(self._entries, key=display_sort_key)
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Iterable[str]]] | None) -> "LeftoverPool":
        return cls({key: (value or {}).get("sources", ()) for key, value in (data or {}).items()})


EMPTY_POOL = LeftoverPool()
