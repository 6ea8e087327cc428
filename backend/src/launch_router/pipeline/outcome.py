"""Launch outcome - the single terminal decision of a pipeline run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class OutcomeKind(str, Enum):
    PENDING = "pending"
    GO_TO_WEB = "go_to_web"
    GO_TO_MAIN = "go_to_main"
    SHOW_PERMISSION = "show_permission"
    OFFLINE = "offline"


@dataclass(frozen=True)
class Outcome:
    """Navigation decision. `url` is set only for GO_TO_WEB and SHOW_PERMISSION."""

    kind: OutcomeKind
    url: str | None = None

    @classmethod
    def pending(cls) -> Outcome:
        return cls(OutcomeKind.PENDING)

    @classmethod
    def go_to_main(cls) -> Outcome:
        return cls(OutcomeKind.GO_TO_MAIN)

    @classmethod
    def go_to_web(cls, url: str) -> Outcome:
        return cls(OutcomeKind.GO_TO_WEB, url)

    @classmethod
    def show_permission(cls, url: str) -> Outcome:
        return cls(OutcomeKind.SHOW_PERMISSION, url)

    @classmethod
    def offline(cls) -> Outcome:
        return cls(OutcomeKind.OFFLINE)

    @property
    def is_terminal(self) -> bool:
        return self.kind is not OutcomeKind.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {"outcome": self.kind.value, "url": self.url}
