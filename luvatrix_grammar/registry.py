"""Shared-dataset registry.

Plots serialize their datasets as opaque references rather than inlining them.
A registry maps each reference to the live dataset object so that a document
can be turned back into a plot that shares the very same dataset objects.

Entries are reference counted: every attachment of a dataset to a plot or layer
acquires a reference, and :meth:`DataRegistry.release` (called by
``Plot.close``) drops it. An entry is evicted when its count reaches zero.
Registries are sessions; :func:`use_registry` scopes a fresh one.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
import secrets
from typing import Any, Iterator

from luvatrix_grammar.errors import RegistryLookupError


LOGGER = logging.getLogger(__name__)


@dataclass
class _Entry:
    dataset: Any
    refcount: int


class DataRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._keys_by_identity: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def register(self, dataset: Any) -> str:
        """Acquire a reference to ``dataset`` and return its stable key."""
        if dataset is None:
            raise ValueError("cannot register a missing dataset")
        key = self._keys_by_identity.get(id(dataset))
        if key is not None:
            self._entries[key].refcount += 1
            return key
        key = secrets.token_hex(8)
        while key in self._entries:
            key = secrets.token_hex(8)
        self._entries[key] = _Entry(dataset=dataset, refcount=1)
        self._keys_by_identity[id(dataset)] = key
        return key

    def acquire(self, key: str) -> Any:
        """Take another reference on an existing entry and return its dataset."""
        entry = self._entries.get(key)
        if entry is None:
            raise RegistryLookupError(key)
        entry.refcount += 1
        return entry.dataset

    def key_for(self, dataset: Any) -> str | None:
        return self._keys_by_identity.get(id(dataset))

    def lookup(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            raise RegistryLookupError(key)
        return entry.dataset

    def refcount(self, key: str) -> int:
        entry = self._entries.get(key)
        return 0 if entry is None else entry.refcount

    def release(self, key: str) -> None:
        entry = self._entries.get(key)
        if entry is None:
            raise RegistryLookupError(key)
        entry.refcount -= 1
        if entry.refcount <= 0:
            del self._entries[key]
            del self._keys_by_identity[id(entry.dataset)]
            LOGGER.debug("evicted dataset reference %s", key)

    def clear(self) -> None:
        self._entries.clear()
        self._keys_by_identity.clear()


_SESSIONS: list[DataRegistry] = [DataRegistry()]


def default_registry() -> DataRegistry:
    """The process-wide session used when no other registry is active."""
    return _SESSIONS[0]


def active_registry() -> DataRegistry:
    return _SESSIONS[-1]


@contextmanager
def use_registry(registry: DataRegistry | None = None) -> Iterator[DataRegistry]:
    """Make ``registry`` (or a fresh one) the active session for the block."""
    session = registry if registry is not None else DataRegistry()
    _SESSIONS.append(session)
    try:
        yield session
    finally:
        _SESSIONS.remove(session)
