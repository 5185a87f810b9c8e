import asyncio
from collections.abc import Iterator, MutableMapping
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")


class InMemoryKeyValueDatabase(Generic[K, V]):
    """
    Simple in-memory key/value database with one asyncio lock per key.

    Callers hold `lock(key)` across read-decide-write sequences so two
    concurrent requests cannot both act on the same stale aggregate.
    """

    def __init__(self) -> None:
        self._store: MutableMapping[K, V] = {}
        self._locks: dict[K, asyncio.Lock] = {}

    def put(self, key: K, value: V) -> None:
        self._store[key] = value

    def get(self, key: K) -> V | None:
        return self._store.get(key)

    def delete(self, key: K) -> None:
        self._store.pop(key, None)

    def all(self) -> list[V]:
        return list(self._store.values())

    def of_type(self, kind: type[T]) -> list[T]:
        return [v for v in self._store.values() if isinstance(v, kind)]

    def clear(self) -> None:
        self._store.clear()
        self._locks.clear()

    def lock(self, key: K) -> asyncio.Lock:
        # no await between lookup and insert, so this is atomic on the loop
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def __iter__(self) -> Iterator[V]:
        return iter(self._store.values())

    def __len__(self) -> int:
        return len(self._store)
