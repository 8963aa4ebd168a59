"""
Error kinds.

Extraction and import resolution never raise on bad input; only the
conditions below are surfaced as exceptions, and all but
EngineNotInitialized are absorbed by the engine.
"""


class ImpactGraphError(Exception):
    """Base class for impactgraph errors"""


class UnreadableFile(ImpactGraphError):
    """A candidate file could not be read, decoded, or was too large"""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class MalformedArchitectureModel(ImpactGraphError, ValueError):
    """Architecture file exists but does not describe layers/boundaries"""


class GitUnavailable(ImpactGraphError):
    """git is missing, the root is not a repository, or a ref is invalid"""


class EngineNotInitialized(ImpactGraphError, RuntimeError):
    """Graph, symbol or impact query issued before index() completed"""
