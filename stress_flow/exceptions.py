"""
Exceptions raised by the stress test engine and its bundled targets
"""


class StressTestError(Exception):
    """Base class for all engine errors"""


class ResourceNotFound(StressTestError, KeyError):
    """A resource was removed that is not registered in the resource set.

    The engine's bookkeeping no longer matches reality, so this always stops
    the runner that hit it.
    """

    def __init__(self, resource):
        super().__init__(f"Resource is not registered: {resource!r}")
        self.resource = resource

    def __str__(self):
        return self.args[0]


class NoEligibleEdge(StressTestError):
    """The current node has no outgoing route"""

    def __init__(self, node):
        super().__init__(f"No route leaves node {node!r}")
        self.node = node


class RouteSelectionError(StressTestError):
    """The initial action refused to produce arguments"""


class RouteSelectionExhausted(StressTestError):
    """Random route selection hit its configured attempt limit"""

    def __init__(self, node, attempts: int):
        super().__init__(f"No applicable route from node {node!r} after {attempts} attempts")
        self.node = node
        self.attempts = attempts


class DrainIncomplete(StressTestError):
    """Resources were still open after the configured number of drain steps"""

    def __init__(self, steps: int, remaining: int):
        super().__init__(f"{remaining} resources still open after {steps} drain steps")
        self.steps = steps
        self.remaining = remaining


class UnknownActionError(StressTestError, ValueError):
    """An action name is not registered"""


class FlowDefinitionError(StressTestError, ValueError):
    """A flow definition is malformed"""


class TargetError(StressTestError):
    """The target system refused an operation"""
