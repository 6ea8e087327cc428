"""Launch pipeline steps, in execution order."""

from .base import Step
from .load import LoadStep
from .validate import ValidateStep
from .temp_url import TempURLStep
from .saved_url import SavedURLStep
from .organic import OrganicStep
from .fetch import FetchStep
from .resolve import ResolveStep

__all__ = [
    "Step",
    "LoadStep",
    "ValidateStep",
    "TempURLStep",
    "SavedURLStep",
    "OrganicStep",
    "FetchStep",
    "ResolveStep",
]
