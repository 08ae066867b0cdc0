"""
Dispatch module.
Contains the HTTP client that pushes jobs to workers.
"""

from jobdispatch.dispatcher.client import DispatchClient

__all__ = ["DispatchClient"]
