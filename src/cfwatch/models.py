"""Data models for the Codeforces dashboard."""

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Optional

from cfwatch.exceptions import ConfigError


PROBLEM_URL = "https://codeforces.com/problemset/problem/{contest_id}/{index}"


class Verdict(str, Enum):
    """Verdict kinds reported by Codeforces.

    Submissions keep the raw verdict string, so values missing here still
    load; this enum only names the kinds the dashboard treats specially.
    """

    OK = "OK"
    WRONG_ANSWER = "WRONG_ANSWER"
    TIME_LIMIT_EXCEEDED = "TIME_LIMIT_EXCEEDED"
    MEMORY_LIMIT_EXCEEDED = "MEMORY_LIMIT_EXCEEDED"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    COMPILATION_ERROR = "COMPILATION_ERROR"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class Profile:
    """Snapshot of a user's public profile."""

    handle: str
    rating: Optional[int] = None
    max_rating: Optional[int] = None
    rank: Optional[str] = None
    max_rank: Optional[str] = None
    avatar: Optional[str] = None


@dataclass(frozen=True)
class Problem:
    """A problem referenced by a submission."""

    contest_id: Optional[int]
    index: str
    name: str
    rating: Optional[int] = None
    tags: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[Optional[int], str]:
        """Dedup key: many submissions can target the same problem."""
        return (self.contest_id, self.index)

    @property
    def label(self) -> str:
        return f"{self.contest_id if self.contest_id is not None else ''}{self.index}"

    @property
    def url(self) -> Optional[str]:
        if self.contest_id is None:
            return None
        return PROBLEM_URL.format(contest_id=self.contest_id, index=self.index)


@dataclass(frozen=True)
class Submission:
    """A single judged (or still judging) submission."""

    id: int
    creation_time: int
    verdict: Optional[str]
    problem: Problem
    language: str = ""

    @property
    def accepted(self) -> bool:
        return self.verdict == Verdict.OK.value


@dataclass(frozen=True)
class RatingChange:
    """Rating update after a rated contest."""

    contest_id: int
    contest_name: str
    update_time: int
    old_rating: int
    new_rating: int

    @property
    def delta(self) -> int:
        return self.new_rating - self.old_rating


@dataclass(frozen=True)
class RatingPoint:
    """One point of the rating trend line."""

    label: str
    rating: int
    contest_name: str


@dataclass(frozen=True)
class DerivedView:
    """Display-ready statistics computed from one refresh cycle.

    ``total_unique_solved`` only covers the last ``window_size`` submissions,
    so it is a lower bound on the user's lifetime solve count.
    """

    total_unique_solved: int
    solved_today: int
    solved_problems: tuple[Problem, ...] = ()
    recent_submissions: tuple[Submission, ...] = ()
    rating_trend: tuple[RatingPoint, ...] = ()
    last_rating_delta: Optional[int] = None
    window_size: int = 0


@dataclass(frozen=True)
class Config:
    """Runtime configuration for the dashboard."""

    handle: str = "saksy999"
    refresh_interval: float = 60.0
    submission_window: int = 100
    solved_cap: int = 50
    recent_cap: int = 20
    api_base_url: str = "https://codeforces.com/api"
    timeout: float = 15.0

    def __post_init__(self) -> None:
        if not self.handle or not self.handle.strip():
            raise ConfigError("Handle must not be empty")
        if self.refresh_interval <= 0:
            raise ConfigError("Refresh interval must be positive")
        if self.timeout <= 0:
            raise ConfigError("Timeout must be positive")
        for name in ("submission_window", "solved_cap", "recent_cap"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1")

    def with_overrides(self, **values: object) -> "Config":
        """Return a copy with every non-None value applied."""
        known = {f.name for f in fields(self)}
        unknown = set(values) - known
        if unknown:
            raise ConfigError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
        changes = {name: value for name, value in values.items() if value is not None}
        return replace(self, **changes)


DEFAULT_CONFIG = Config()
