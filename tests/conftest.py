"""
Shared fixtures: a minimal counter target with create and remove actions
"""
import random
import pytest
from stress_flow.models import Profile
from stress_flow.engine import Action, ActionRegistry, FlowBuilder, Resource, State


class Counter(Resource):
    """Resource recording the lifecycle calls it received"""

    def __init__(self, name):
        self.name = name
        self.create_calls = 0
        self.remove_calls = 0

    def create(self):
        self.create_calls += 1

    def remove(self):
        self.remove_calls += 1


class CreateCounter(Action):
    def arguments(self):
        return self.accept(self.state.next_name("counter"))

    def apply(self, name):
        return self.state.create_resource(Counter(name))

    def is_vetoed(self, route, profile):
        return profile == Profile.TERMINATING


class RemoveCounter(Action):
    def arguments(self):
        counters = self.state.resource_set.resources
        if not counters:
            return self.reject("no counter")
        return self.accept(self.state.rng.choice(counters))

    def apply(self, counter):
        self.state.remove_resource(counter)


COUNTER_ACTIONS = (
    ActionRegistry()
    .define_action("create", CreateCounter)
    .define_action("remove", RemoveCounter)
)

COUNTER_FLOW = (
    FlowBuilder()
    .initial_action("create")
    .route("create", from_node="default", to_node="default")
    .route("remove", from_node="default", to_node="default")
    .build()
)


@pytest.fixture
def counter_actions():
    return COUNTER_ACTIONS


@pytest.fixture
def counter_flow():
    return COUNTER_FLOW


@pytest.fixture
def counter_state():
    return State(COUNTER_ACTIONS, state_id="s0", rng=random.Random(7))


@pytest.fixture
def counter_class():
    return Counter
