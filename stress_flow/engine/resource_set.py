"""
Resource Set - Registry of live resources belonging to one logical target instance
"""
import threading
from typing import Iterator, List
from ..exceptions import ResourceNotFound


class ResourceSet:
    """Ordered, duplicate-free collection of resource handles.

    No locking is done here. States sharing one set race on it on purpose.
    """

    def __init__(self):
        self._resources: List = []

    @property
    def resources(self) -> List:
        return list(self._resources)

    def add(self, resource) -> None:
        self._resources.append(resource)

    def delete(self, resource) -> None:
        try:
            self._resources.remove(resource)
        except ValueError:
            raise ResourceNotFound(resource) from None

    def is_empty(self) -> bool:
        return not self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator:
        return iter(self.resources)

    def __contains__(self, resource) -> bool:
        return resource in self._resources


class LockedResourceSet(ResourceSet):
    """Resource set whose individual operations are serialized by a lock.

    Only the list itself is protected. Choosing a resource and later removing
    or using it are separate steps, so states sharing a locked set still see
    resources vanish under them and fail with ResourceNotFound or TargetError.
    """

    def __init__(self):
        super().__init__()
        self._lock = threading.Lock()

    @property
    def resources(self) -> List:
        with self._lock:
            return list(self._resources)

    def add(self, resource) -> None:
        with self._lock:
            super().add(resource)

    def delete(self, resource) -> None:
        with self._lock:
            super().delete(resource)

    def is_empty(self) -> bool:
        with self._lock:
            return super().is_empty()

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)

    def __contains__(self, resource) -> bool:
        with self._lock:
            return resource in self._resources
