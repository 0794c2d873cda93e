#!/usr/bin/env python3
"""
Command-line interface for stress-flow
Provides commands for running stress tests and validating flow files.
"""
import sys
import argparse
import json
import yaml
import traceback
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Dict, Any
from datetime import datetime
from .main import StressTest
from .models import RunConfig, RunSummary, RunnerResult, TargetConfig, TargetKind
from .engine import FlowLoader, FlowValidator
from .targets import TABLE_ACTIONS


class StressCLI:
    """Command-line interface for stress-flow"""

    def __init__(self):
        self.stress_test = StressTest()
        self.config = {}

    def load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file"""
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config format: {path.suffix}")

    def build_configs(self, args) -> tuple[RunConfig, TargetConfig]:
        """Merge config file values with command-line overrides"""
        run_values = dict(self.config.get('run') or {})
        target_values = dict(self.config.get('target') or {})

        overrides = {
            'run_count': args.run_count,
            'sleep_second': args.sleep,
            'thread_count': args.threads,
            'seed': args.seed,
            'max_route_attempts': args.max_route_attempts,
            'max_drain_steps': args.max_drain_steps,
            'monitor_interval': args.monitor_interval,
            'log_dir': args.log_dir,
        }
        run_values.update({key: value for key, value in overrides.items() if value is not None})
        if args.shared:
            run_values['share_resources'] = True
        if args.locked:
            run_values['lock_resources'] = True

        target_overrides = {
            'kind': args.target,
            'host': args.host,
            'port': args.port,
            'key_prefix': args.key_prefix,
        }
        target_values.update({key: value for key, value in target_overrides.items() if value is not None})
        if 'kind' in target_values:
            target_values['kind'] = TargetKind(target_values['kind'])

        self._check_keys(run_values, RunConfig, 'run')
        self._check_keys(target_values, TargetConfig, 'target')
        run_config = RunConfig(**run_values)
        self._check_ranges(run_config)
        return run_config, TargetConfig(**target_values)

    def run_stress_test(self, args) -> int:
        """Execute a stress run"""
        self._print_header("Stress Run")

        if args.config:
            try:
                self.config = self.load_config_file(args.config)
                print(f"Loaded configuration from {args.config}")
            except Exception as e:
                print(f"Error: Failed to load config file: {e}")
                print(f"\nConfig file must be YAML (.yaml, .yml) or JSON (.json)")
                return 1

        try:
            run_config, target_config = self.build_configs(args)
        except (TypeError, ValueError) as e:
            print(f"Error: Invalid configuration: {e}")
            return 1

        flow_definition = None
        if args.flow:
            try:
                flow_definition = FlowLoader.load_from_file(args.flow, TABLE_ACTIONS)
                print(f"Loaded flow from {args.flow}")
            except Exception as e:
                print(f"Error: Failed to load flow: {e}")
                print(f"\nTry validating your flow file first: stress-flow validate {args.flow}")
                return 1

        print(f"Target: {target_config.kind.value}")
        print(f"Seed: {run_config.seed} (reproducible)" if run_config.seed is not None else "Seed: Random")
        print(f"Runners: {run_config.thread_count} (shared resources: {run_config.share_resources})")
        print(f"Steady steps per runner: {run_config.run_count}")
        print()

        try:
            summary = self.stress_test.run(run_config, target_config, flow_definition)
        except Exception as e:
            print(f"Stress run failed with exception: {e}")
            if args.verbose:
                traceback.print_exc()
            return 1

        if args.verbose:
            self._print_detailed_summary(summary)
        else:
            self._print_summary(summary)

        if args.output:
            self._save_summary(summary, args.output, args.format)

        return 0 if summary.success else 1

    def validate_flow(self, args) -> int:
        """Validate a flow definition file"""
        self._print_header(f"Validating Flow: {args.file}")

        flow_path = Path(args.file)
        if not flow_path.exists():
            print(f"Error: Flow file not found: {args.file}")
            return 1

        try:
            definition = FlowLoader.load_from_file(str(flow_path), TABLE_ACTIONS)
            print("Flow parsed successfully")

            print(f"\nInitial action: {definition.initial_action}")
            print(f"Routes: {len(definition.routes)}")
            print(f"Nodes: {', '.join(definition.nodes)}")

            dead_ends = FlowValidator.find_dead_ends(definition)
            if dead_ends:
                print(f"\nWarning: walks reaching these nodes cannot continue: {', '.join(dead_ends)}")

            if args.verbose:
                print("\nRoutes:")
                for action, route in definition.routes.items():
                    print(f"  {action}: {route.from_node} -> {route.to_node}")

            print("\nFlow definition is valid!")
            return 0

        except Exception as e:
            print(f"\nError: Validation failed: {e}")
            if args.verbose:
                traceback.print_exc()
            return 1

    def _check_keys(self, values: Dict[str, Any], config_class, section: str):
        known = {f.name for f in fields(config_class)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown {section} settings: {', '.join(unknown)}")

    def _check_ranges(self, run_config: RunConfig):
        if run_config.thread_count < 1:
            raise ValueError(f"thread_count must be at least 1, got {run_config.thread_count}")
        if run_config.run_count < 0:
            raise ValueError(f"run_count must not be negative, got {run_config.run_count}")
        if run_config.sleep_second < 0:
            raise ValueError(f"sleep_second must not be negative, got {run_config.sleep_second}")

    def _print_header(self, title: str):
        """Print formatted header"""
        print()
        print("=" * 80)
        print(title)
        print("=" * 80)
        print()

    def _print_summary(self, summary: RunSummary):
        """Print summary of a stress run"""
        status = "PASSED" if summary.success else "FAILED"
        duration = summary.end_time - summary.start_time

        print(f"\nRun: {summary.run_id}")
        print(f"Status: {status}")
        print(f"Duration: {duration:.2f}s")
        print(f"Total Steps: {summary.total_steps}")

        if summary.seed is not None:
            print(f"Seed: {summary.seed} (use to reproduce)")

        for result in summary.runner_results:
            if result.error_message:
                print(f"Error ({result.runner_id}): {result.error_message}")

    def _print_detailed_summary(self, summary: RunSummary):
        """Print per-runner details when --verbose flag is specified"""
        self._print_summary(summary)

        print("\nRunners:")
        for result in summary.runner_results:
            status = "[PASS]" if result.success else "[FAIL]"
            print(f"  {status} {result.runner_id}: {result.steady_steps} steady, "
                  f"{result.drain_steps} drain, {result.resources_left} resources left")
            for phase, actions in (("steady", result.steady_actions), ("drain", result.drain_actions)):
                if actions:
                    counts = ", ".join(f"{name}={count}" for name, count in sorted(actions.items()))
                    print(f"    {phase}: {counts}")

        error_summary = self.stress_test.error_handler.get_error_summary()
        if error_summary['total_errors']:
            print(f"\nErrors: {error_summary['total_errors']}")
            for category, count in error_summary['by_category'].items():
                print(f"  {category}: {count}")

    def _save_summary(self, summary: RunSummary, output_path: str, format: str):
        """Save run summary to file"""
        try:
            output = Path(output_path)
            output.parent.mkdir(parents=True, exist_ok=True)

            data = self._summary_to_dict(summary)

            with open(output, 'w') as f:
                if format == 'json':
                    json.dump(data, f, indent=2)
                elif format == 'yaml':
                    yaml.dump(data, f, default_flow_style=False)

            print(f"\nResults saved to {output_path}")

        except Exception as e:
            print(f"\nFailed to save results: {e}")

    def _summary_to_dict(self, summary: RunSummary) -> Dict[str, Any]:
        """Convert RunSummary to dictionary"""
        return {
            'timestamp': datetime.now().isoformat(),
            'run_id': summary.run_id,
            'seed': summary.seed,
            'success': summary.success,
            'duration': summary.end_time - summary.start_time,
            'total_steps': summary.total_steps,
            'runners': [self._runner_to_dict(result) for result in summary.runner_results]
        }

    def _runner_to_dict(self, result: RunnerResult) -> Dict[str, Any]:
        data = asdict(result)
        data['duration'] = result.end_time - result.start_time
        return data


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog='stress-flow',
        description='stress-flow - Stress test stateful targets with randomized resource lifecycles',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Quick run against the in-memory target
  stress-flow run --seed 42 --sleep 0

  # Long haul run with four runners sharing one resource set
  stress-flow run --target valkey --port 6379 --run-count 100000 --sleep 0 --threads 4 --shared

  # Run with configuration file and save results
  stress-flow run --config stress.yaml --output results.json

  # Validate a flow file
  stress-flow validate flows/tables.yaml
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version='stress-flow 0.1.0'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    run_parser = subparsers.add_parser(
        'run',
        help='Run a stress test'
    )
    run_parser.add_argument(
        '--target',
        choices=[kind.value for kind in TargetKind],
        help='Target to stress (default: memory)'
    )
    run_parser.add_argument(
        '--seed',
        type=int,
        help='Seed for reproducibility'
    )
    run_parser.add_argument(
        '--run-count',
        type=int,
        help='Steady phase steps per runner (default: 10)'
    )
    run_parser.add_argument(
        '--sleep',
        type=float,
        help='Seconds to sleep after every step, 0 for full speed (default: 1)'
    )
    run_parser.add_argument(
        '--threads',
        type=int,
        help='Number of concurrent runners (default: 1)'
    )
    run_parser.add_argument(
        '--shared',
        action='store_true',
        help='Let all runners share one resource set'
    )
    run_parser.add_argument(
        '--locked',
        action='store_true',
        help='Lock individual resource set operations (runners sharing resources can still fail on removed resources)'
    )
    run_parser.add_argument(
        '--max-route-attempts',
        type=int,
        help='Give up a step after this many rejected routes (default: unbounded)'
    )
    run_parser.add_argument(
        '--max-drain-steps',
        type=int,
        help='Fail a runner whose drain phase exceeds this many steps (default: unbounded)'
    )
    run_parser.add_argument(
        '--monitor-interval',
        type=float,
        help='Seconds between open resource reports (default: off)'
    )
    run_parser.add_argument(
        '--flow',
        type=str,
        metavar='FILE',
        help='Path to flow YAML file'
    )
    run_parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration file (YAML or JSON)'
    )
    run_parser.add_argument(
        '--host',
        type=str,
        help='Valkey host'
    )
    run_parser.add_argument(
        '--port',
        type=int,
        help='Valkey port'
    )
    run_parser.add_argument(
        '--key-prefix',
        type=str,
        help='Prefix for keys written to valkey'
    )
    run_parser.add_argument(
        '--log-dir',
        type=str,
        help='Directory for JSON run logs'
    )
    run_parser.add_argument(
        '--output',
        type=str,
        help='Path to save run results'
    )
    run_parser.add_argument(
        '--format',
        choices=['json', 'yaml'],
        default='json',
        help='Output format for results (default: json)'
    )
    run_parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    validate_parser = subparsers.add_parser(
        'validate',
        help='Validate a flow definition file'
    )
    validate_parser.add_argument(
        'file',
        help='Path to flow YAML file'
    )
    validate_parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    return parser


def main(argv=None):
    """Main entry point for CLI"""

    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)-5s | %(filename)s:%(lineno)-3d | %(message)s',
        handlers=[logging.StreamHandler()]
    )

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        print("Error: No command specified\n")
        parser.print_help()
        print("\nCommon commands:")
        print("  stress-flow run --seed 42 --sleep 0      # Quick in-memory run")
        print("  stress-flow validate <flow.yaml>         # Validate flow file")
        return 1

    cli = StressCLI()

    try:
        if args.command == 'run':
            return cli.run_stress_test(args)
        elif args.command == 'validate':
            return cli.validate_flow(args)
    except KeyboardInterrupt:
        print("\n\nstress-flow was interrupted by user")
        return 130
    except Exception as e:
        print(f"\nUnexpected error: {e}")
        if hasattr(args, 'verbose') and args.verbose:
            traceback.print_exc()
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
