"""
Core data models for the stress test engine
"""
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Tuple, Union
from enum import Enum


class Profile(Enum):
    """Flow-wide mode filtering which actions may be selected"""
    NORMAL = "normal"
    TERMINATING = "terminating"


class RunPhase(Enum):
    """Phases of a runner's two-phase loop"""
    STEADY = "steady"
    DRAIN = "drain"


class TargetKind(Enum):
    """Targets bundled with the engine"""
    MEMORY = "memory"
    VALKEY = "valkey"


@dataclass(frozen=True)
class Route:
    """Directed edge of the routing graph"""
    from_node: str
    to_node: str


@dataclass(frozen=True)
class Accepted:
    """Arguments an action produced for one invocation"""
    arguments: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Rejected:
    """The action cannot be applied right now"""
    reason: str = ""


ArgumentsResult = Union[Accepted, Rejected]


@dataclass
class Transition:
    """One fully resolved step about to be applied"""
    action: str
    arguments: Tuple[Any, ...]
    route: Route


@dataclass
class RunConfig:
    """Execution parameters for a stress run"""
    run_count: int = 10
    sleep_second: float = 1.0
    thread_count: int = 1
    share_resources: bool = False
    lock_resources: bool = False
    seed: Optional[int] = None
    max_route_attempts: Optional[int] = None
    max_drain_steps: Optional[int] = None
    monitor_interval: float = 0.0
    log_dir: Optional[str] = None


@dataclass
class TargetConfig:
    """Connection and sizing settings for the target under test"""
    kind: TargetKind = TargetKind.MEMORY
    host: str = "127.0.0.1"
    port: int = 6379
    key_prefix: str = "stress"
    socket_timeout: float = 5.0
    max_table_count: int = 1_000_000


@dataclass
class RunnerResult:
    """Outcome of one runner"""
    runner_id: str
    success: bool
    start_time: float
    end_time: float
    steady_steps: int = 0
    drain_steps: int = 0
    steady_actions: Dict[str, int] = field(default_factory=dict)
    drain_actions: Dict[str, int] = field(default_factory=dict)
    resources_left: int = 0
    error_message: Optional[str] = None
    seed: Optional[int] = None

    @property
    def total_steps(self) -> int:
        return self.steady_steps + self.drain_steps


@dataclass
class RunSummary:
    """Outcome of a complete stress run across all runners"""
    run_id: str
    start_time: float
    end_time: float
    runner_results: List[RunnerResult]
    seed: Optional[int] = None

    @property
    def success(self) -> bool:
        return all(result.success for result in self.runner_results)

    @property
    def total_steps(self) -> int:
        return sum(result.total_steps for result in self.runner_results)
