"""Waiting on long-running platform tasks"""

from .poller import DEFAULT_MESSAGES, SUCCEEDED, TaskPoller

__all__ = [
    "DEFAULT_MESSAGES",
    "SUCCEEDED",
    "TaskPoller",
]
