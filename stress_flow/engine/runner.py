"""
Runner - Drives one state through a steady phase and then drains its resources
"""
import time
import logging
from collections import Counter
from typing import Optional
from ..interfaces import IRunLogger
from ..models import RunnerResult, RunPhase
from ..exceptions import DrainIncomplete
from .flow import Flow
from .state import State

logger = logging.getLogger(__name__)


class Runner:
    """
    Two-phase loop bound to one flow and one state.

    The steady phase takes exactly run_count random steps. The drain phase
    switches the flow to its termination profile and keeps stepping until the
    state holds no resources. Nothing bounds the drain unless max_drain_steps
    is given; a graph with no way back to an empty resource set never ends.
    """

    DEFAULT_RUN_COUNT = 10
    DEFAULT_SLEEP_SECOND = 1.0

    def __init__(
        self,
        flow: Flow,
        state: State,
        run_count: Optional[int] = None,
        sleep_second: Optional[float] = None,
        max_drain_steps: Optional[int] = None,
        runner_id: Optional[str] = None,
        run_logger: Optional[IRunLogger] = None,
        seed: Optional[int] = None
    ):
        self.flow = flow
        self.state = state
        self.run_count = self.DEFAULT_RUN_COUNT if run_count is None else run_count
        self.sleep_second = self.DEFAULT_SLEEP_SECOND if sleep_second is None else sleep_second
        self.max_drain_steps = max_drain_steps
        self.runner_id = runner_id or f"runner-{state.state_id}"
        self.run_logger = run_logger
        self.phase = RunPhase.STEADY
        self.action_counts = {RunPhase.STEADY: Counter(), RunPhase.DRAIN: Counter()}
        self.result = RunnerResult(
            runner_id=self.runner_id,
            success=False,
            start_time=0.0,
            end_time=0.0,
            seed=seed
        )

    def run(self) -> RunnerResult:
        """Run both phases. Fatal errors propagate after the result is updated."""
        self.result.start_time = time.time()
        logger.info(f"[{self.runner_id}] Starting steady phase: {self.run_count} steps")

        try:
            for _ in range(self.run_count):
                self.run_once()

            self._enter_drain_phase()

            drain_steps = 0
            while not self.state.no_resource_opened():
                if self.max_drain_steps is not None and drain_steps >= self.max_drain_steps:
                    raise DrainIncomplete(drain_steps, len(self.state.resource_set))
                self.run_once()
                drain_steps += 1

            self.result.success = True
            logger.info(f"[{self.runner_id}] All resources closed after {drain_steps} drain steps")
        except Exception as e:
            self.result.error_message = f"{type(e).__name__}: {e}"
            logger.error(f"[{self.runner_id}] Runner stopped in {self.phase.value} phase: {self.result.error_message}")
            raise
        finally:
            self._finalize_result()

        return self.result

    def run_once(self) -> None:
        transition = self.flow.next_transition(self.state)
        self.flow.transit_state(self.state, transition)

        self.action_counts[self.phase][transition.action] += 1
        if self.phase == RunPhase.STEADY:
            self.result.steady_steps += 1
        else:
            self.result.drain_steps += 1

        if self.run_logger:
            self.run_logger.log_transition(self.runner_id, self.phase, transition.action, self.state.current_node)

        self._sleep()

    def _enter_drain_phase(self) -> None:
        logger.info(f"[{self.runner_id}] Begin termination with {len(self.state.resource_set)} resources open")
        self.flow.begin_termination()
        self.phase = RunPhase.DRAIN
        if self.run_logger:
            self.run_logger.log_phase_change(self.runner_id, self.phase)

    def _finalize_result(self) -> None:
        self.result.end_time = time.time()
        self.result.steady_actions = dict(self.action_counts[RunPhase.STEADY])
        self.result.drain_actions = dict(self.action_counts[RunPhase.DRAIN])
        self.result.resources_left = len(self.state.resource_set)

    def _sleep(self) -> None:
        if self.sleep_second:
            time.sleep(self.sleep_second)
