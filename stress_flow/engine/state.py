"""
State - One independently driven instance of the target, its resources and the groups owning states
"""
import logging
import random
import uuid
from typing import Any, Callable, Dict, List, Optional, Type
from ..interfaces import IResource
from ..exceptions import UnknownActionError
from .action import Action, ActionRegistry
from .resource_set import ResourceSet

logger = logging.getLogger(__name__)


class Resource(IResource):
    """Handle to one stateful object under test.

    The owning state is recorded by id only.
    """

    state_id: Optional[str] = None

    def create(self) -> None:
        pass

    def remove(self) -> None:
        pass


class State:
    """One instance of the target driven by a single runner"""

    def __init__(
        self,
        actions: ActionRegistry,
        resource_set: Optional[ResourceSet] = None,
        state_id: Optional[str] = None,
        rng: Optional[random.Random] = None
    ):
        self.state_id = state_id or uuid.uuid4().hex[:8]
        self.resource_set = resource_set if resource_set is not None else ResourceSet()
        self.rng = rng or random.Random()
        self.current_node: Optional[str] = None
        self._initialized = False
        self._name_counter = 0
        self.actions: Dict[str, Action] = actions.bind(self)
        self.on_initialize()

    def on_initialize(self) -> None:
        """Adapter hook called once at the end of construction"""
        pass

    @property
    def initialized(self) -> bool:
        return self._initialized

    def mark_initialized(self) -> None:
        self._initialized = True

    def action(self, name: str) -> Action:
        try:
            return self.actions[name]
        except KeyError:
            raise UnknownActionError(f"Unknown action: {name}") from None

    def dispatch(self, action_name: str, *arguments: Any) -> Any:
        return self.action(action_name).apply(*arguments)

    def create_resource(self, resource: Resource) -> Resource:
        if not isinstance(resource, Resource):
            raise TypeError(f"Not a resource: {type(resource).__name__}")
        resource.state_id = self.state_id
        resource.create()
        self.resource_set.add(resource)
        return resource

    def remove_resource(self, resource: Resource) -> None:
        if not isinstance(resource, Resource):
            raise TypeError(f"Not a resource: {type(resource).__name__}")
        self.resource_set.delete(resource)
        resource.remove()

    def no_resource_opened(self) -> bool:
        return self.resource_set.is_empty()

    def next_name(self, prefix: str) -> str:
        """Name unique across every state of a run"""
        self._name_counter += 1
        return f"{prefix}_{self.state_id}_{self._name_counter}"

    def __repr__(self):
        return f"<{type(self).__name__} {self.state_id} node={self.current_node!r} resources={len(self.resource_set)}>"


class StateGroup:
    """Creates states of one type, optionally sharing a single resource set"""

    def __init__(
        self,
        state_class: Type[State],
        actions: ActionRegistry,
        share_resources: bool = False,
        resource_set_factory: Callable[[], ResourceSet] = ResourceSet,
        seed: Optional[int] = None,
        id_prefix: Optional[str] = None
    ):
        self.state_class = state_class
        self.actions = actions
        self.share_resources = share_resources
        self.resource_set_factory = resource_set_factory
        self.seed = seed
        self.id_prefix = id_prefix
        self.states: List[State] = []
        self.resource_set: Optional[ResourceSet] = resource_set_factory() if share_resources else None
        self.on_initialize()

    def create_state(self) -> State:
        index = len(self.states)
        resource_set = self.resource_set if self.share_resources else self.resource_set_factory()
        # Flows are seeded with seed + index; states draw from a separate stream
        rng = random.Random(f"state-{self.seed}-{index}") if self.seed is not None else random.Random()
        state_id = f"{self.id_prefix}-s{index}" if self.id_prefix else f"s{index}"
        state = self.state_class(self.actions, resource_set, state_id=state_id, rng=rng)
        self.on_create_state(state)
        self.states.append(state)
        logger.debug(f"Created state {state.state_id} (shared resources: {self.share_resources})")
        return state

    def on_initialize(self) -> None:
        """Adapter hook called once when the group is created"""
        pass

    def on_create_state(self, state: State) -> None:
        """Adapter hook called for every created state"""
        pass

    def close(self) -> None:
        """Adapter hook releasing target connections"""
        pass
