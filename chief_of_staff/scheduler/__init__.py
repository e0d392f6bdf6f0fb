"""Scheduled jobs for the task automation engine."""

from .jobs import SchedulerManager

__all__ = ["SchedulerManager"]
