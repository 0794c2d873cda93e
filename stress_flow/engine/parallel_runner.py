"""
Parallel Runner - Drives several states concurrently, one runner thread each
"""
import gc
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional
from ..models import RunConfig, RunnerResult
from .error_handler import ErrorHandler
from .flow import Flow, FlowDefinition
from .run_logger import RunLogger
from .runner import Runner
from .state import State, StateGroup

logger = logging.getLogger(__name__)


class ResourceMonitor:
    """Background thread reporting open resources per state"""

    def __init__(self, states: List[State], interval: float):
        self.states = states
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.samples = 0

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="resource-monitor", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval + 1)

    def report(self) -> None:
        self.samples += 1
        counts = ", ".join(f"{state.state_id}={len(state.resource_set)}" for state in self.states)
        logger.info(f"Open resources: {counts} | gc counts: {gc.get_count()}")

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            self.report()


class ParallelRunner:
    """Runs one runner per state on its own thread; a failed runner does not stop the others"""

    def __init__(
        self,
        definition: FlowDefinition,
        state_group: StateGroup,
        run_config: RunConfig,
        run_logger: Optional[RunLogger] = None,
        error_handler: Optional[ErrorHandler] = None
    ):
        self.definition = definition
        self.state_group = state_group
        self.run_config = run_config
        self.run_logger = run_logger
        self.error_handler = error_handler or ErrorHandler()
        self.runners: List[Runner] = []

    def build_runners(self) -> List[Runner]:
        """Create one fresh state, flow and runner per configured thread"""
        config = self.run_config
        if config.thread_count < 1:
            raise ValueError(f"thread_count must be at least 1, got {config.thread_count}")
        runners = []
        for index in range(config.thread_count):
            state = self.state_group.create_state()
            seed = config.seed + index if config.seed is not None else None
            flow = Flow(self.definition, seed=seed, max_route_attempts=config.max_route_attempts)
            runners.append(Runner(
                flow,
                state,
                run_count=config.run_count,
                sleep_second=config.sleep_second,
                max_drain_steps=config.max_drain_steps,
                runner_id=f"runner-{index}",
                run_logger=self.run_logger,
                seed=seed
            ))
        self.runners = runners
        return runners

    def run(self) -> List[RunnerResult]:
        if not self.runners:
            self.build_runners()

        logger.info(f"Starting {len(self.runners)} runners (shared resources: {self.state_group.share_resources})")

        monitor = None
        if self.run_config.monitor_interval > 0:
            monitor = ResourceMonitor([runner.state for runner in self.runners], self.run_config.monitor_interval)
            monitor.start()

        results: List[Optional[RunnerResult]] = [None] * len(self.runners)
        try:
            with ThreadPoolExecutor(max_workers=len(self.runners)) as executor:
                futures = {
                    executor.submit(self._run_runner, runner): index
                    for index, runner in enumerate(self.runners)
                }
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
        finally:
            if monitor:
                monitor.stop()

        succeeded = sum(1 for result in results if result.success)
        logger.info(f"Parallel run complete: {succeeded}/{len(results)} runners succeeded")
        return results

    def _run_runner(self, runner: Runner) -> RunnerResult:
        try:
            runner.run()
        except Exception as e:
            error_context = self.error_handler.classify(e, runner_id=runner.runner_id, state_id=runner.state.state_id)
            self.error_handler.handle_error(error_context)
            if self.run_logger:
                self.run_logger.log_error(
                    error_context.message,
                    runner_id=runner.runner_id,
                    error_details={
                        'category': error_context.category.value,
                        'severity': error_context.severity.value,
                        'phase': runner.phase.value
                    }
                )

        if self.run_logger:
            self.run_logger.log_runner_completion(runner.result)
        return runner.result
