"""
Flow - Routing graph definition and the random walk over it

A FlowDefinition maps every action name to the route it travels and names one
initial action. A Flow walks that graph for a state: the first step always
takes the initial action, every later step picks a route leaving the state's
current node uniformly at random, skipping routes whose action is vetoed under
the current profile or rejects its arguments. Selection has no memory of
earlier rejections within a step, so a node whose actions are all rejected
keeps the walk retrying forever unless max_route_attempts is set.
"""
import logging
import random
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple
from ..models import Profile, Rejected, Route, Transition
from ..exceptions import (
    FlowDefinitionError, NoEligibleEdge, RouteSelectionError, RouteSelectionExhausted
)

logger = logging.getLogger(__name__)


class FlowDefinition:
    """Read-only routing table shared by every flow of one type"""

    def __init__(self, routes: Mapping[str, Route], initial_action: str):
        if not routes:
            raise FlowDefinitionError("A flow needs at least one route")
        if initial_action not in routes:
            raise FlowDefinitionError(f"Initial action has no route: {initial_action}")
        self.routes: Mapping[str, Route] = MappingProxyType(dict(routes))
        self.initial_action = initial_action

    def routes_from(self, node: Optional[str]) -> List[Tuple[str, Route]]:
        return [(action, route) for action, route in self.routes.items() if route.from_node == node]

    @property
    def nodes(self) -> List[str]:
        nodes = []
        for route in self.routes.values():
            for node in (route.from_node, route.to_node):
                if node not in nodes:
                    nodes.append(node)
        return nodes

    def __eq__(self, other):
        if not isinstance(other, FlowDefinition):
            return NotImplemented
        return dict(self.routes) == dict(other.routes) and self.initial_action == other.initial_action

    def __repr__(self):
        return f"<FlowDefinition initial={self.initial_action!r} routes={len(self.routes)}>"


class FlowBuilder:
    """Collects routes for a FlowDefinition"""

    def __init__(self):
        self._routes: Dict[str, Route] = {}
        self._initial_action: Optional[str] = None

    def initial_action(self, action: str) -> "FlowBuilder":
        self._initial_action = action
        return self

    def route(self, action: str, from_node: str = "default", to_node: str = "default") -> "FlowBuilder":
        if action in self._routes:
            raise FlowDefinitionError(f"Route already defined for action: {action}")
        self._routes[action] = Route(from_node=from_node, to_node=to_node)
        return self

    def build(self) -> FlowDefinition:
        if self._initial_action is None:
            raise FlowDefinitionError("No initial action defined")
        return FlowDefinition(self._routes, self._initial_action)


class Flow:
    """Random walk over a FlowDefinition with a one-way termination profile"""

    def __init__(
        self,
        definition: FlowDefinition,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        max_route_attempts: Optional[int] = None
    ):
        self.definition = definition
        self.rng = rng or random.Random(seed)  # Dedicated RNG for reproducible walks
        self.max_route_attempts = max_route_attempts
        self.rejections = 0
        self._profile = Profile.NORMAL

    @property
    def profile(self) -> Profile:
        return self._profile

    @property
    def is_terminating(self) -> bool:
        return self._profile == Profile.TERMINATING

    def begin_termination(self) -> None:
        if not self.is_terminating:
            logger.info("Flow entering termination profile")
        self._profile = Profile.TERMINATING

    def next_transition(self, state) -> Transition:
        if not state.initialized:
            return self.initial_transition(state)
        return self._random_transition(state)

    def initial_transition(self, state) -> Transition:
        action = self.definition.initial_action
        result = state.action(action).arguments()
        if isinstance(result, Rejected):
            raise RouteSelectionError(f"Initial action {action} rejected its arguments: {result.reason}")
        return Transition(action=action, arguments=result.arguments, route=self.definition.routes[action])

    def transit_state(self, state, transition: Transition) -> None:
        if not state.initialized:
            state.mark_initialized()
        state.dispatch(transition.action, *transition.arguments)
        state.current_node = transition.route.to_node

    def _random_transition(self, state) -> Transition:
        node = state.current_node
        candidates = self.definition.routes_from(node)
        if not candidates:
            raise NoEligibleEdge(node)

        attempts = 0
        while True:
            if self.max_route_attempts is not None and attempts >= self.max_route_attempts:
                raise RouteSelectionExhausted(node, attempts)
            attempts += 1

            action, route = self.rng.choice(candidates)
            bound_action = state.action(action)
            if bound_action.is_vetoed(route, self._profile):
                logger.debug(f"Route {action} vetoed under {self._profile.value} profile")
                self.rejections += 1
                continue

            result = bound_action.arguments()
            if isinstance(result, Rejected):
                logger.debug(f"Route {action} rejected: {result.reason}")
                self.rejections += 1
                continue

            return Transition(action=action, arguments=result.arguments, route=route)
