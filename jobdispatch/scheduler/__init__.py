"""
Scheduler module.
Contains the periodic task executor and the job scheduling loop.
"""

from jobdispatch.scheduler.executor import ScheduledTask, TaskExecutor
from jobdispatch.scheduler.main import JobScheduler

__all__ = ["JobScheduler", "ScheduledTask", "TaskExecutor"]
