"""
Monitor module.
Contains the worker liveness monitor.
"""

from jobdispatch.monitor.main import LivenessMonitor

__all__ = ["LivenessMonitor"]
