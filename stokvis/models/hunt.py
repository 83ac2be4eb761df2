"""Records exchanged between the hunt store and the answer/hint flows."""
from dataclasses import dataclass, field
from typing import Optional

from stokvis.models.credential import Credential


@dataclass
class StopCredential:
    stop_id: str
    credential: Optional[Credential]
    hint_text: Optional[str] = None
    hint_penalty: int = 0


@dataclass
class Progress:
    team_id: str
    stop_id: str
    solved_at: Optional[str] = None
    used_hint: bool = False


@dataclass
class ThrottleDecision:
    permitted: bool
    # None when the counter store could not be consulted
    attempts: Optional[int] = None

    @classmethod
    def allow(cls, attempts: Optional[int] = None) -> "ThrottleDecision":
        return cls(permitted=True, attempts=attempts)

    @classmethod
    def deny(cls, attempts: Optional[int] = None) -> "ThrottleDecision":
        return cls(permitted=False, attempts=attempts)


@dataclass
class AnswerResult:
    correct: bool


@dataclass
class HintResult:
    hint: Optional[str]
    penalty: int


@dataclass
class RouteView:
    id: str
    title: str
    city: Optional[str]
    stops: list[dict] = field(default_factory=list)
