"""Launch resolution pipeline: context, outcome, steps and engine."""

from .context import PipelineContext, OutcomeAlreadySet
from .outcome import Outcome, OutcomeKind
from .merge import merge_deeplink
from .engine import PipelineEngine, build_default_steps

__all__ = [
    "PipelineContext",
    "OutcomeAlreadySet",
    "Outcome",
    "OutcomeKind",
    "merge_deeplink",
    "PipelineEngine",
    "build_default_steps",
]
