from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Changes(Generic[T]):
    """Snapshot of what changed since the last persistence flush."""

    new: list[T] = field(default_factory=list)
    dirty: list[T] = field(default_factory=list)
    deleted: list[T] = field(default_factory=list)


class ChangeTracker(Generic[T]):
    """
    Collects new, modified and removed entities of one kind.

    Entries are appended as they are registered: an entity mutated several
    times before a flush appears several times, possibly in more than one list.
    Persistence adapters must apply the changes idempotently and call
    ``clear_changes`` only after the write succeeded.
    """

    def __init__(self):
        self._new: list[T] = []
        self._dirty: list[T] = []
        self._deleted: list[T] = []

    def register_new(self, entity: T):
        self._new.append(entity)

    def register_dirty(self, entity: T):
        self._dirty.append(entity)

    def register_deleted(self, entity: T):
        self._deleted.append(entity)

    def get_changes(self) -> Changes[T]:
        return Changes(
            new=list(self._new),
            dirty=list(self._dirty),
            deleted=list(self._deleted),
        )

    @property
    def has_changes(self) -> bool:
        return bool(self._new or self._dirty or self._deleted)

    def clear_changes(self):
        self._new = []
        self._dirty = []
        self._deleted = []
