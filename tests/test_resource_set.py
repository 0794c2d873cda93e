"""
Tests for resource sets
"""
import threading
import pytest
from stress_flow.engine import ResourceSet, LockedResourceSet
from stress_flow.exceptions import ResourceNotFound


class TestResourceSet:
    """Test ResourceSet bookkeeping"""

    def test_new_set_is_empty(self):
        """Test new set is empty"""
        resource_set = ResourceSet()

        assert resource_set.is_empty()
        assert len(resource_set) == 0

    def test_add_and_delete(self):
        """Test resources can be added and removed again"""
        resource_set = ResourceSet()
        first, second = object(), object()

        resource_set.add(first)
        resource_set.add(second)

        assert not resource_set.is_empty()
        assert resource_set.resources == [first, second]
        assert second in resource_set

        resource_set.delete(first)

        assert resource_set.resources == [second]
        assert first not in resource_set

    def test_delete_missing_resource_raises(self):
        """Test deleting an unregistered resource is a bookkeeping violation"""
        resource_set = ResourceSet()
        resource = object()

        with pytest.raises(ResourceNotFound) as exc_info:
            resource_set.delete(resource)

        assert exc_info.value.resource is resource

    def test_delete_twice_raises(self):
        """Test delete twice raises"""
        resource_set = ResourceSet()
        resource = object()
        resource_set.add(resource)
        resource_set.delete(resource)

        with pytest.raises(ResourceNotFound):
            resource_set.delete(resource)

        assert resource_set.is_empty()

    def test_resources_is_a_copy(self):
        """Test callers cannot mutate the set through the resources list"""
        resource_set = ResourceSet()
        resource_set.add("a")

        resource_set.resources.append("b")

        assert len(resource_set) == 1
        assert list(resource_set) == ["a"]


class TestLockedResourceSet:
    """Test the lock-protected resource set"""

    def test_behaves_like_resource_set(self):
        """Test behaves like resource set"""
        resource_set = LockedResourceSet()
        resource_set.add("a")

        assert "a" in resource_set
        assert len(resource_set) == 1

        resource_set.delete("a")

        assert resource_set.is_empty()
        with pytest.raises(ResourceNotFound):
            resource_set.delete("a")

    def test_concurrent_adds_and_deletes(self):
        """Test bookkeeping stays consistent across threads"""
        resource_set = LockedResourceSet()
        per_thread = 500

        def churn(thread_index):
            owned = [(thread_index, i) for i in range(per_thread)]
            for resource in owned:
                resource_set.add(resource)
            for resource in owned[::2]:
                resource_set.delete(resource)

        threads = [threading.Thread(target=churn, args=(i,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(resource_set) == 4 * per_thread // 2
