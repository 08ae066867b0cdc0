"""
Worker registry module.
Contains the registry contract and its in-memory implementation.
"""

from jobdispatch.registry.base import WorkerRegistry
from jobdispatch.registry.memory import InMemoryWorkerRegistry

__all__ = ["WorkerRegistry", "InMemoryWorkerRegistry"]
