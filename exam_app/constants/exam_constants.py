"""Exam rules shared by the core services."""

GRACE_PERIOD_MINUTES: int = 2
ACCESS_CODE_LENGTH: int = 6
MAX_ACCESS_CODE_ATTEMPTS: int = 100
MIN_OPTIONS_PER_QUESTION: int = 2
