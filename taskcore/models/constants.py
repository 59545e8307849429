"""Constants for taskcore.

This module centralizes all magic numbers and default values used throughout the application.
"""

# Recurrence expansion
RECURRENCE_HORIZON_YEARS = 1
MAX_GENERATION_ITERATIONS = 1000  # Termination guard against malformed rules

# Task defaults
DEFAULT_IS_ALL_DAY = True

# Owner-scoped defaults resolved on demand
INBOX_TITLE = "Inbox"
DEFAULT_CATEGORY_NAME = "Others"
DEFAULT_CATEGORY_COLOR = "#94a3b8"
