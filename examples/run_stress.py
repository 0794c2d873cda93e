#!/usr/bin/env python3
"""
Example script demonstrating how to use stress-flow

Runs the bundled table workload and a small custom target built from the
engine primitives.
"""
import sys
import argparse
import logging
import random

from stress_flow import RunConfig, StressTest, TargetConfig, TargetKind
from stress_flow.engine import (
    Action, ActionRegistry, Flow, FlowBuilder, FlowLoader, Resource, Runner, State
)
from stress_flow.models import Profile


class Session(Resource):
    """A session object in an imaginary server"""

    def __init__(self, name):
        self.name = name
        self.open = False

    def create(self):
        self.open = True

    def remove(self):
        self.open = False


class Login(Action):
    def arguments(self):
        return self.accept(self.state.next_name("session"))

    def apply(self, name):
        return self.state.create_resource(Session(name))

    def is_vetoed(self, route, profile):
        return profile == Profile.TERMINATING


class Logout(Action):
    def arguments(self):
        sessions = self.state.resource_set.resources
        if not sessions:
            return self.reject("nobody logged in")
        return self.accept(self.state.rng.choice(sessions))

    def apply(self, session):
        self.state.remove_resource(session)


class Ping(Action):
    def apply(self):
        pass


SESSION_ACTIONS = (
    ActionRegistry()
    .define_action("login", Login)
    .define_action("logout", Logout)
    .define_action("ping", Ping)
)

SESSION_FLOW = (
    FlowBuilder()
    .initial_action("login")
    .route("login", from_node="idle", to_node="active")
    .route("ping", from_node="active", to_node="active")
    .route("logout", from_node="active", to_node="idle")
    .build()
)


def run_table_workload(seed=None, flow_file=None):
    """Run the table workload against the in-memory target"""
    print("=" * 80)
    print("Running Table Workload")
    print("=" * 80)

    flow_definition = FlowLoader.load_from_file(flow_file) if flow_file else None
    run_config = RunConfig(run_count=500, sleep_second=0, thread_count=2, seed=seed)

    summary = StressTest().run(run_config, TargetConfig(kind=TargetKind.MEMORY), flow_definition)

    print(f"Run ID: {summary.run_id}")
    print(f"Success: {summary.success}")
    print(f"Total Steps: {summary.total_steps}")
    for result in summary.runner_results:
        print(f"  {result.runner_id}: {result.steady_steps} steady, {result.drain_steps} drain")

    return summary.success


def run_session_workload(seed=None):
    """Drive the custom session target with a single runner"""
    print("=" * 80)
    print("Running Session Workload")
    print("=" * 80)

    state = State(SESSION_ACTIONS, rng=random.Random(seed))
    runner = Runner(Flow(SESSION_FLOW, seed=seed), state, run_count=200, sleep_second=0)
    result = runner.run()

    print(f"Success: {result.success}")
    print(f"Steady actions: {result.steady_actions}")
    print(f"Drain actions: {result.drain_actions}")

    return result.success


def main():
    parser = argparse.ArgumentParser(description='stress-flow Examples')
    parser.add_argument('--seed', type=int, help='Random seed for reproducibility')
    parser.add_argument('--flow', type=str, help='Flow YAML for the table workload')
    parser.add_argument('--example', choices=['tables', 'sessions', 'all'], default='all')

    args = parser.parse_args()

    logging.basicConfig(format='%(levelname)-5s | %(filename)s:%(lineno)-3d | %(message)s', level=logging.INFO)

    success = True
    if args.example in ('tables', 'all'):
        success = run_table_workload(seed=args.seed, flow_file=args.flow) and success
    if args.example in ('sessions', 'all'):
        success = run_session_workload(seed=args.seed) and success

    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
