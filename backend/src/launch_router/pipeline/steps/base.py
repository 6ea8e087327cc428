"""Step interface for the launch pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..context import PipelineContext


class Step(ABC):
    """One stage of the launch pipeline.

    A step reads and updates the context. It halts the run by setting a
    terminal outcome; otherwise the engine moves on to the next step.
    """

    name: str = "step"

    @abstractmethod
    async def execute(self, context: PipelineContext) -> None:
        """Run the step against the shared context."""
        ...
