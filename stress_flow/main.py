"""
Main entry point for the stress test engine
"""
import time
import uuid
import logging
from typing import Optional
from .models import RunConfig, RunSummary, TargetConfig, TargetKind
from .engine import (
    ErrorHandler, FlowDefinition, LockedResourceSet, ParallelRunner, ResourceSet, RunLogger
)
from .targets import MemoryBackend, TableStateGroup, TABLE_FLOW, ValkeyBackend

logger = logging.getLogger(__name__)


class StressTest:
    """Runs the table workload against a configured target"""

    def __init__(self):
        self.error_handler = ErrorHandler()
        self.last_summary: Optional[RunSummary] = None

    def build_group(
        self,
        target_config: TargetConfig,
        run_config: RunConfig,
        id_prefix: Optional[str] = None
    ) -> TableStateGroup:
        """Table states for one run. id_prefix keeps table names of different runs apart."""
        if target_config.kind == TargetKind.VALKEY:
            backend_factory = lambda: ValkeyBackend(target_config, error_handler=self.error_handler)
        else:
            backend_factory = MemoryBackend

        return TableStateGroup(
            backend_factory,
            share_resources=run_config.share_resources,
            resource_set_factory=LockedResourceSet if run_config.lock_resources else ResourceSet,
            seed=run_config.seed,
            max_table_count=target_config.max_table_count,
            id_prefix=id_prefix
        )

    def run(
        self,
        run_config: RunConfig,
        target_config: Optional[TargetConfig] = None,
        flow_definition: Optional[FlowDefinition] = None
    ) -> RunSummary:
        target_config = target_config or TargetConfig()
        definition = flow_definition or TABLE_FLOW
        run_id = f"run-{run_config.seed}" if run_config.seed is not None else f"run-{uuid.uuid4().hex[:8]}"

        run_logger = RunLogger(run_config.log_dir) if run_config.log_dir else None
        if run_logger:
            run_logger.log_run_start(run_id, run_config)

        logger.info(f"Starting stress run {run_id} against {target_config.kind.value} target")
        start_time = time.time()

        # Seeded runs repeat their walk, not their table names
        group = self.build_group(target_config, run_config, id_prefix=uuid.uuid4().hex[:6])
        try:
            parallel_runner = ParallelRunner(
                definition,
                group,
                run_config,
                run_logger=run_logger,
                error_handler=self.error_handler
            )
            results = parallel_runner.run()
        finally:
            group.close()

        summary = RunSummary(
            run_id=run_id,
            start_time=start_time,
            end_time=time.time(),
            runner_results=results,
            seed=run_config.seed
        )
        if run_logger:
            run_logger.log_run_completion(summary.success)

        self.last_summary = summary
        return summary
