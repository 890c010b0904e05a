"""Utils package - Utility modules."""
from .errors import (
    HostError,
    ImportFlowError,
    InputMissing,
    PaginationError,
    StructuralPrecondition,
    UserCancelled,
)
from .progress import ProgressTracker
from .validator import OutputValidator

__all__ = [
    "HostError",
    "ImportFlowError",
    "InputMissing",
    "PaginationError",
    "StructuralPrecondition",
    "UserCancelled",
    "ProgressTracker",
    "OutputValidator",
]
