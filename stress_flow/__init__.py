"""
stress-flow - Model-based stress testing through random walks over resource lifecycles
"""
from .main import StressTest
from .models import RunConfig, TargetConfig, TargetKind, RunSummary, RunnerResult

__version__ = "0.1.0"

__all__ = [
    'StressTest',
    'RunConfig',
    'TargetConfig',
    'TargetKind',
    'RunSummary',
    'RunnerResult',
]
