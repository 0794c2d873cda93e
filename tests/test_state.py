"""
Tests for states, resources and state groups
"""
import random
import pytest
from stress_flow.engine import Action, ActionRegistry, LockedResourceSet, Resource, ResourceSet, State, StateGroup
from stress_flow.exceptions import ResourceNotFound, UnknownActionError


class TestResourceLifecycle:
    """Test resources created and removed through a state"""

    def test_create_resource(self, counter_state, counter_class):
        """Test create resource"""
        counter = counter_class("c1")

        returned = counter_state.create_resource(counter)

        assert returned is counter
        assert counter.create_calls == 1
        assert counter.state_id == "s0"
        assert counter in counter_state.resource_set
        assert not counter_state.no_resource_opened()

    def test_remove_resource(self, counter_state, counter_class):
        """Test remove resource"""
        counter = counter_state.create_resource(counter_class("c1"))

        counter_state.remove_resource(counter)

        assert counter.remove_calls == 1
        assert counter_state.no_resource_opened()

    def test_second_remove_raises_without_touching_target(self, counter_state, counter_class):
        """Test removing an unregistered resource fails before the target is called"""
        counter = counter_state.create_resource(counter_class("c1"))
        counter_state.remove_resource(counter)

        with pytest.raises(ResourceNotFound):
            counter_state.remove_resource(counter)

        assert counter.remove_calls == 1

    def test_resource_open_until_removed(self, counter_state, counter_class):
        """Test resource open until removed"""
        counters = [counter_state.create_resource(counter_class(f"c{i}")) for i in range(3)]

        for counter in counters:
            assert not counter_state.no_resource_opened()
            counter_state.remove_resource(counter)

        assert counter_state.no_resource_opened()

    def test_non_resources_are_refused(self, counter_state):
        """Test non resources are refused"""
        with pytest.raises(TypeError):
            counter_state.create_resource("not a resource")
        with pytest.raises(TypeError):
            counter_state.remove_resource(42)

    def test_default_resource_hooks_do_nothing(self, counter_state):
        """Test default resource hooks do nothing"""
        resource = counter_state.create_resource(Resource())
        counter_state.remove_resource(resource)

        assert counter_state.no_resource_opened()


class TestState:
    """Test state construction and dispatch"""

    def test_initial_values(self, counter_state):
        """Test initial values"""
        assert counter_state.current_node is None
        assert counter_state.initialized is False
        assert isinstance(counter_state.resource_set, ResourceSet)

    def test_mark_initialized(self, counter_state):
        """Test mark initialized"""
        counter_state.mark_initialized()

        assert counter_state.initialized is True

    def test_actions_bound_per_state(self, counter_actions):
        """Test every state gets its own action instances"""
        first = State(counter_actions)
        second = State(counter_actions)

        assert set(first.actions) == {"create", "remove"}
        assert first.action("create") is not second.action("create")
        assert first.action("create").state is first
        assert second.action("create").state is second

    def test_dispatch_applies_action(self, counter_state):
        """Test dispatch applies action"""
        counter = counter_state.dispatch("create", "c1")

        assert counter.name == "c1"
        assert counter in counter_state.resource_set

    def test_dispatch_unknown_action(self, counter_state):
        """Test dispatch unknown action"""
        with pytest.raises(UnknownActionError):
            counter_state.dispatch("explode")

    def test_next_name_is_unique(self, counter_state):
        """Test next name is unique"""
        names = {counter_state.next_name("table") for _ in range(100)}

        assert len(names) == 100
        assert all(name.startswith("table_s0_") for name in names)

    def test_on_initialize_hook(self, counter_actions):
        """Test on initialize hook"""
        class HookedState(State):
            def on_initialize(self):
                self.hooked = True

        state = HookedState(counter_actions)

        assert state.hooked is True

    def test_generated_state_ids_differ(self, counter_actions):
        """Test generated state ids differ"""
        assert State(counter_actions).state_id != State(counter_actions).state_id


class TestActionRegistry:
    """Test action registration"""

    def test_duplicate_action_refused(self, counter_actions):
        """Test duplicate action refused"""
        registry = ActionRegistry().define_action("noop", Action)

        with pytest.raises(ValueError):
            registry.define_action("noop", Action)

    def test_lookup(self, counter_actions):
        """Test lookup"""
        assert "create" in counter_actions
        assert len(counter_actions) == 2
        assert counter_actions.names() == ["create", "remove"]

        with pytest.raises(UnknownActionError):
            counter_actions.get("missing")


class TestStateGroup:
    """Test StateGroup resource sharing and hooks"""

    def test_independent_resource_sets(self, counter_actions):
        """Test independent resource sets"""
        group = StateGroup(State, counter_actions)

        first = group.create_state()
        second = group.create_state()

        assert group.resource_set is None
        assert first.resource_set is not second.resource_set
        assert group.states == [first, second]
        assert [first.state_id, second.state_id] == ["s0", "s1"]

    def test_shared_resource_set(self, counter_actions, counter_class):
        """Test shared resource set"""
        group = StateGroup(State, counter_actions, share_resources=True)

        first = group.create_state()
        second = group.create_state()
        counter = first.create_resource(counter_class("c1"))

        assert first.resource_set is second.resource_set is group.resource_set
        assert not second.no_resource_opened()

        second.remove_resource(counter)

        assert first.no_resource_opened()

    def test_resource_set_factory(self, counter_actions):
        """Test resource set factory"""
        group = StateGroup(State, counter_actions, share_resources=True, resource_set_factory=LockedResourceSet)

        assert isinstance(group.create_state().resource_set, LockedResourceSet)

    def test_hooks_called(self, counter_actions):
        """Test on_initialize runs once and on_create_state once per state"""
        class RecordingGroup(StateGroup):
            def on_initialize(self):
                self.initialized_count = getattr(self, 'initialized_count', 0) + 1
                self.created = []

            def on_create_state(self, state):
                self.created.append(state.state_id)

        group = RecordingGroup(State, counter_actions)
        group.create_state()
        group.create_state()

        assert group.initialized_count == 1
        assert group.created == ["s0", "s1"]

    def test_seeded_states_get_derived_rngs(self, counter_actions):
        """Test seeded groups give every state its own repeatable stream"""
        first = StateGroup(State, counter_actions, seed=5).create_state()
        again = StateGroup(State, counter_actions, seed=5).create_state()
        second = StateGroup(State, counter_actions, seed=5)
        second.create_state()
        second = second.create_state()

        first_draws = [first.rng.random() for _ in range(5)]

        assert first_draws == [again.rng.random() for _ in range(5)]
        assert first_draws != [second.rng.random() for _ in range(5)]

    def test_state_stream_differs_from_flow_stream(self, counter_actions):
        """Test a state's operand choices do not mirror its runner's route choices"""
        group = StateGroup(State, counter_actions, seed=5)

        for index in range(3):
            state = group.create_state()
            flow_rng = random.Random(5 + index)

            assert [state.rng.random() for _ in range(5)] != [flow_rng.random() for _ in range(5)]

    def test_id_prefix(self, counter_actions):
        """Test an id prefix scopes state ids and the names they generate"""
        group = StateGroup(State, counter_actions, id_prefix="ab12cd")

        state = group.create_state()

        assert state.state_id == "ab12cd-s0"
        assert state.next_name("Table") == "Table_ab12cd-s0_1"
