"""taskcore: recurring-task instance engine and batch reconciliation core."""

__version__ = "0.1.0"
