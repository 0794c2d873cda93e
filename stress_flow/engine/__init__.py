"""
Stress Engine - Routing graph, resource tracking and run loops
"""
from .resource_set import ResourceSet, LockedResourceSet
from .action import Action, ActionRegistry
from .state import Resource, State, StateGroup
from .flow import Flow, FlowBuilder, FlowDefinition
from .runner import Runner
from .parallel_runner import ParallelRunner, ResourceMonitor
from .run_logger import RunLogger
from .error_handler import ErrorHandler
from .flow_loader import FlowLoader, FlowValidator

__all__ = [
    'ResourceSet',
    'LockedResourceSet',
    'Action',
    'ActionRegistry',
    'Resource',
    'State',
    'StateGroup',
    'Flow',
    'FlowBuilder',
    'FlowDefinition',
    'Runner',
    'ParallelRunner',
    'ResourceMonitor',
    'RunLogger',
    'ErrorHandler',
    'FlowLoader',
    'FlowValidator',
]
