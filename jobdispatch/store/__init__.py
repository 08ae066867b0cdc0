"""
Job store module.
Contains the job store contract and its in-memory implementation.
"""

from jobdispatch.store.base import JobStore
from jobdispatch.store.memory import InMemoryJobStore

__all__ = ["JobStore", "InMemoryJobStore"]
