"""Exceptions raised by task adapters and caught by the run coordinator."""


class TaskExecutionError(Exception):
    """A task adapter could not complete its unit of work."""


class TaskTimeoutError(TaskExecutionError):
    """A task adapter's ``execute`` exceeded the configured timeout."""
