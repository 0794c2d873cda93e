"""
Run Logger - JSON run logs for stress runs
"""
import json
import time
import logging
import threading
from collections import deque
from dataclasses import asdict
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional
from datetime import datetime
from ..interfaces import IRunLogger
from ..models import RunConfig, RunnerResult, RunPhase


logger = logging.getLogger(__name__)


class RunLogger(IRunLogger):
    """
    Thread-safe run logging shared by every runner of a stress run.

    Transitions are kept in memory only as a bounded tail per runner; the log
    file is rewritten on run start, phase changes, runner completion and errors.
    """

    def __init__(self, log_dir: str = "/tmp/stress-flow/logs", transitions_per_runner: int = 200):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.transitions_per_runner = transitions_per_runner

        self.current_run_id: Optional[str] = None
        self.run_log: Dict[str, Any] = {}
        self._recent_transitions: Dict[str, Deque[Dict[str, Any]]] = {}
        self._transition_counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def log_file(self) -> Optional[Path]:
        if not self.current_run_id:
            return None
        return self.log_dir / f"{self.current_run_id}.json"

    def log_run_start(self, run_id: str, run_config: RunConfig) -> None:
        """Log the start of a stress run with its configuration."""
        with self._lock:
            self.current_run_id = run_id
            self._recent_transitions = {}
            self._transition_counts = {}
            self.run_log = {
                'run_id': run_id,
                'seed': run_config.seed,
                'start_time': time.time(),
                'start_timestamp': datetime.now().isoformat(),
                'run_config': asdict(run_config),
                'runners': {},
                'errors': [],
                'status': 'running'
            }

            logger.info(
                f"Run {run_id}: {run_config.thread_count} runners, {run_config.run_count} steady steps each, "
                f"shared resources: {run_config.share_resources}, seed: {run_config.seed}"
            )
            self._write_log_to_disk()

    def log_transition(self, runner_id: str, phase: RunPhase, action: str, node: str) -> None:
        with self._lock:
            if not self.current_run_id:
                return

            if runner_id not in self._recent_transitions:
                self._recent_transitions[runner_id] = deque(maxlen=self.transitions_per_runner)
                self._transition_counts[runner_id] = 0

            self._transition_counts[runner_id] += 1
            self._recent_transitions[runner_id].append({
                'step': self._transition_counts[runner_id],
                'timestamp': time.time(),
                'phase': phase.value,
                'action': action,
                'node': node
            })

    def log_phase_change(self, runner_id: str, phase: RunPhase) -> None:
        with self._lock:
            if not self.current_run_id:
                logger.warning("No active run to log phase change to")
                return

            runner_log = self._runner_log(runner_id)
            runner_log['phase'] = phase.value
            runner_log['phase_changes'].append({
                'phase': phase.value,
                'timestamp': time.time(),
                'step': self._transition_counts.get(runner_id, 0)
            })
            self._write_log_to_disk()

    def log_runner_completion(self, result: RunnerResult) -> None:
        with self._lock:
            if not self.current_run_id:
                logger.warning("No active run to log runner completion to")
                return

            runner_log = self._runner_log(result.runner_id)
            runner_log['result'] = asdict(result)
            runner_log['duration'] = result.end_time - result.start_time

            status = "SUCCESS" if result.success else "FAILED"
            logger.info(
                f"Runner {result.runner_id} finished - {status}: "
                f"{result.steady_steps} steady steps, {result.drain_steps} drain steps"
            )
            self._write_log_to_disk()

    def log_error(self, error_message: str, runner_id: Optional[str] = None, error_details: Optional[Dict[str, Any]] = None) -> None:
        """Log an error that stopped a runner."""
        with self._lock:
            if not self.current_run_id:
                logger.warning("No active run to log error to")
                return

            self.run_log['errors'].append({
                'timestamp': time.time(),
                'datetime': datetime.now().isoformat(),
                'runner_id': runner_id,
                'message': error_message,
                'details': error_details or {}
            })
            self._write_log_to_disk()

    def log_run_completion(self, success: bool) -> None:
        with self._lock:
            if not self.current_run_id:
                logger.warning("No active run to complete")
                return

            end_time = time.time()
            self.run_log['status'] = 'completed' if success else 'failed'
            self.run_log['end_time'] = end_time
            self.run_log['end_timestamp'] = datetime.now().isoformat()
            self.run_log['duration'] = end_time - self.run_log['start_time']

            logger.info(f"Run {self.current_run_id} {'completed' if success else 'failed'} in {self.run_log['duration']:.2f}s")
            self._write_log_to_disk()

    def get_recent_transitions(self, runner_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._recent_transitions.get(runner_id, []))

    def _runner_log(self, runner_id: str) -> Dict[str, Any]:
        runners = self.run_log['runners']
        if runner_id not in runners:
            runners[runner_id] = {'phase': RunPhase.STEADY.value, 'phase_changes': []}
        return runners[runner_id]

    def _write_log_to_disk(self) -> None:
        """Write the current run log. Caller holds the lock."""
        log_file = self.log_file
        if log_file is None:
            return

        snapshot = dict(self.run_log)
        snapshot['transition_counts'] = dict(self._transition_counts)
        snapshot['recent_transitions'] = {
            runner_id: list(transitions)
            for runner_id, transitions in self._recent_transitions.items()
        }

        try:
            with open(log_file, 'w') as f:
                json.dump(snapshot, f, indent=2, default=str)
        except OSError as e:
            logger.error(f"Failed to write run log {log_file}: {e}")
