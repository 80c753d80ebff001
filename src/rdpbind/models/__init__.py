"""Outcome, error and result models."""

from rdpbind.models.binding import BindingResult
from rdpbind.models.errors import (
    ApplyError,
    BindingError,
    BindingOutcome,
    NotFoundError,
    StoreError,
    TargetAbsent,
    ValidationError,
)
from rdpbind.models.targets import ConfigurationTarget

__all__ = [
    "ApplyError",
    "BindingError",
    "BindingOutcome",
    "BindingResult",
    "ConfigurationTarget",
    "NotFoundError",
    "StoreError",
    "TargetAbsent",
    "ValidationError",
]
