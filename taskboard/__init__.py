"""taskboard: users and tasks with pending-task bookkeeping."""

__version__ = "0.1.0"
