"""
Capability interfaces an adapter implements to plug a target into the engine
"""
from abc import ABC, abstractmethod
from typing import Any
from .models import ArgumentsResult, Profile, Route, RunConfig, RunnerResult, RunPhase


class IResource(ABC):
    """Handle to one stateful object in the target"""

    @abstractmethod
    def create(self) -> None:
        """Create the object in the target"""
        pass

    @abstractmethod
    def remove(self) -> None:
        """Remove the object from the target"""
        pass


class IAction(ABC):
    """Named operation an adapter can perform against the target"""

    @abstractmethod
    def arguments(self) -> ArgumentsResult:
        """Produce operands for one invocation, or reject the route"""
        pass

    @abstractmethod
    def apply(self, *arguments: Any) -> Any:
        """Perform the operation against the target"""
        pass

    @abstractmethod
    def is_vetoed(self, route: Route, profile: Profile) -> bool:
        """Whether this action must never be chosen under the profile"""
        pass


class IRunLogger(ABC):
    """Interface for run logging and reporting"""

    @abstractmethod
    def log_run_start(self, run_id: str, run_config: RunConfig) -> None:
        """Log the start of a stress run"""
        pass

    @abstractmethod
    def log_transition(self, runner_id: str, phase: RunPhase, action: str, node: str) -> None:
        """Log one applied transition"""
        pass

    @abstractmethod
    def log_phase_change(self, runner_id: str, phase: RunPhase) -> None:
        """Log a runner entering a new phase"""
        pass

    @abstractmethod
    def log_runner_completion(self, result: RunnerResult) -> None:
        """Log a finished runner"""
        pass

    @abstractmethod
    def log_run_completion(self, success: bool) -> None:
        """Log the end of the stress run"""
        pass
