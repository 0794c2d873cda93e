"""
Actions - Operation descriptors bound to a state, and the registry that binds them
"""
from typing import Any, Dict, List, Type
from ..interfaces import IAction
from ..models import Accepted, ArgumentsResult, Profile, Rejected, Route
from ..exceptions import UnknownActionError


class Action(IAction):
    """Base implementation for actions.

    One instance exists per state and action name. Subclasses implement
    arguments() and apply(); is_vetoed() allows every route by default.
    """

    def __init__(self, state):
        self.state = state

    def arguments(self) -> ArgumentsResult:
        return self.accept()

    def apply(self, *arguments: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not implement apply()")

    def is_vetoed(self, route: Route, profile: Profile) -> bool:
        return False

    @staticmethod
    def accept(*arguments: Any) -> Accepted:
        return Accepted(tuple(arguments))

    @staticmethod
    def reject(reason: str = "") -> Rejected:
        return Rejected(reason)


class ActionRegistry:
    """Static name -> action class table for one state type"""

    def __init__(self):
        self._actions: Dict[str, Type[Action]] = {}

    def define_action(self, name: str, action_class: Type[Action]) -> "ActionRegistry":
        if name in self._actions:
            raise ValueError(f"Action already defined: {name}")
        self._actions[name] = action_class
        return self

    def names(self) -> List[str]:
        return list(self._actions)

    def get(self, name: str) -> Type[Action]:
        if name not in self._actions:
            raise UnknownActionError(f"Unknown action: {name}")
        return self._actions[name]

    def bind(self, state) -> Dict[str, Action]:
        """Instantiate every registered action for the given state"""
        return {name: action_class(state) for name, action_class in self._actions.items()}

    def __contains__(self, name: str) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)
