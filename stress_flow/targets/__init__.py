"""
Targets - Table workload and the backends it can be run against
"""
from .tables import (
    Table, TableBackend, TableState, TableStateGroup, TABLE_ACTIONS, TABLE_FLOW
)
from .memory import MemoryBackend
from .valkey_backend import ValkeyBackend

__all__ = [
    'Table',
    'TableBackend',
    'TableState',
    'TableStateGroup',
    'TABLE_ACTIONS',
    'TABLE_FLOW',
    'MemoryBackend',
    'ValkeyBackend',
]
