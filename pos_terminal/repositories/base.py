# ==============================================================================
# BASE REPOSITORY - Shared in-memory storage
# ==============================================================================
# Data lives in process memory for the lifetime of the terminal.
# Every repository guards its collection with a re-entrant lock so services
# can hold it across a read-validate-write sequence.
# ==============================================================================

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar
from contextlib import contextmanager

T = TypeVar('T')


class BaseRepository(ABC):
    """
    Abstract base for all repositories.

    Replacing the in-memory store with a database only means replacing the
    subclasses: _data becomes tables and the lock becomes a DB transaction.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._data = self._empty_data()

    @abstractmethod
    def _empty_data(self) -> Any:
        """
        Returns the empty structure for this repository.

        Returns:
            Empty dict or list
        """

    @contextmanager
    def locked(self) -> Iterator[None]:
        """
        Holds the repository lock for a block of operations.

        Usage:
            with repo.locked():
                item = repo.get_by_id(pid)
                ...
                repo.update(pid, item)
        """
        with self._lock:
            yield

    def clear(self) -> None:
        """Drops every record (used by tests and demo reseeding)."""
        with self._lock:
            self._data = self._empty_data()


class DictRepository(BaseRepository, Generic[T]):
    """
    Repository for records keyed by id.
    Preserves insertion order.
    """

    def _empty_data(self) -> Dict[str, T]:
        return {}

    def get_all(self) -> List[T]:
        with self._lock:
            return list(self._data.values())

    def get_by_id(self, record_id: str) -> Optional[T]:
        with self._lock:
            return self._data.get(record_id)

    def exists(self, record_id: str) -> bool:
        with self._lock:
            return record_id in self._data

    def add(self, record_id: str, record: T) -> None:
        with self._lock:
            self._data[record_id] = record

    def update(self, record_id: str, record: T) -> None:
        """
        Replaces a record.

        Args:
            record_id: Record id
            record: New record value
        """
        with self._lock:
            self._data[record_id] = record

    def delete(self, record_id: str) -> Optional[T]:
        """
        Removes a record.

        Returns:
            The removed record or None if it did not exist
        """
        with self._lock:
            return self._data.pop(record_id, None)

    def find_all(self, predicate: Callable[[T], bool]) -> List[T]:
        with self._lock:
            return [r for r in self._data.values() if predicate(r)]

    def find_first(self, predicate: Callable[[T], bool]) -> Optional[T]:
        with self._lock:
            for record in self._data.values():
                if predicate(record):
                    return record
            return None

    def count(self) -> int:
        with self._lock:
            return len(self._data)


class ListRepository(BaseRepository, Generic[T]):
    """
    Repository for ordered records, most recent first.

    Example: transactions, inventory logs
    """

    def _empty_data(self) -> List[T]:
        return []

    def get_all(self) -> List[T]:
        with self._lock:
            return list(self._data)

    def prepend(self, record: T) -> None:
        """Inserts at the start (most recent first)."""
        with self._lock:
            self._data.insert(0, record)

    def find_all(self, predicate: Callable[[T], bool]) -> List[T]:
        with self._lock:
            return [r for r in self._data if predicate(r)]

    def find_first(self, predicate: Callable[[T], bool]) -> Optional[T]:
        with self._lock:
            for record in self._data:
                if predicate(record):
                    return record
            return None

    def count(self) -> int:
        with self._lock:
            return len(self._data)
