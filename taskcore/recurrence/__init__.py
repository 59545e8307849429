"""Recurrence rule codec and occurrence date generation."""

from taskcore.recurrence.codec import encode, decode
from taskcore.recurrence.generator import generate_dates, occurrence_dates, default_horizon

__all__ = [
    "encode",
    "decode",
    "generate_dates",
    "occurrence_dates",
    "default_horizon",
]
