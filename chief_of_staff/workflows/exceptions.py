"""
Workflow exceptions.

Raised while loading definitions or running actions. The engine turns
them into skipped workflows or failed action results; none escape
evaluate_and_run.
"""


class WorkflowError(Exception):
    """Base exception for workflow errors."""
    pass


class WorkflowParseError(WorkflowError):
    """Malformed conditions or actions in a workflow definition."""
    pass


class ActionError(WorkflowError):
    """An action could not run: missing task, parameters or bad values."""
    pass
