"""
Distributed Job Dispatcher

Holds a queue of submitted jobs, matches each pending job against a pool of
registered workers by capability, pushes it over HTTP and tracks
retry/terminal state until the job is delivered or fails.
"""

__version__ = "1.0.0"
