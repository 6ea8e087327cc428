"""Pipeline context: mutable state for a single launch resolution run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .outcome import Outcome

PERMISSION_COOLDOWN = timedelta(days=3)
ORGANIC_STATUS = "Organic"


class OutcomeAlreadySet(RuntimeError):
    """A step tried to overwrite a terminal outcome."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineContext:
    """State shared by the steps of one run. Never reused across runs."""

    attribution: dict[str, str] = field(default_factory=dict)
    deeplink: dict[str, str] = field(default_factory=dict)
    resolved_url: str | None = None
    resolved_mode: str | None = None
    is_first_run: bool = True
    perm_granted: bool = False
    perm_blocked: bool = False
    perm_date: datetime | None = None
    outcome: Outcome = field(default_factory=Outcome.pending)

    @property
    def has_attribution(self) -> bool:
        return bool(self.attribution)

    @property
    def is_organic(self) -> bool:
        return self.attribution.get("af_status") == ORGANIC_STATUS

    def can_ask_permission(self, now: datetime | None = None) -> bool:
        if self.perm_granted or self.perm_blocked:
            return False
        if self.perm_date is None:
            return True
        return (now or _utcnow()) - self.perm_date >= PERMISSION_COOLDOWN

    @property
    def is_resolved(self) -> bool:
        return self.outcome.is_terminal

    def set_outcome(self, outcome: Outcome) -> None:
        if self.outcome.is_terminal:
            raise OutcomeAlreadySet(
                f"Outcome already {self.outcome.kind.value}; refusing {outcome.kind.value}"
            )
        self.outcome = outcome

    def open_url(self, url: str) -> None:
        """Terminate towards `url`, through the permission prompt when it may still be shown."""
        if self.can_ask_permission():
            self.set_outcome(Outcome.show_permission(url))
        else:
            self.set_outcome(Outcome.go_to_web(url))
