"""Derived statistics for the dashboard.

Everything here is a pure function of its arguments. ``build_view`` is
recomputed from scratch on every refresh cycle; nothing is carried over
between calls.
"""

from collections.abc import Sequence
from datetime import date, datetime, tzinfo
from typing import Optional

from cfwatch.models import DerivedView, Problem, Profile, RatingChange, RatingPoint, Submission, Verdict


SOLVED_CAP = 50
RECENT_CAP = 20

FALLBACK_RANK_COLOR = "#888888"

RANK_COLORS = {
    "newbie": "#808080",
    "pupil": "#008000",
    "specialist": "#03a89e",
    "expert": "#0000ff",
    "candidate master": "#aa00aa",
    "master": "#ff8c00",
    "international master": "#ff8c00",
    "grandmaster": "#ff0000",
    "international grandmaster": "#ff0000",
    "legendary grandmaster": "#ff0000",
}

VERDICT_LABELS = {
    Verdict.OK.value: "AC",
    Verdict.WRONG_ANSWER.value: "WA",
    Verdict.TIME_LIMIT_EXCEEDED.value: "TLE",
    Verdict.MEMORY_LIMIT_EXCEEDED.value: "MLE",
    Verdict.RUNTIME_ERROR.value: "RTE",
    Verdict.COMPILATION_ERROR.value: "CE",
    Verdict.SKIPPED.value: "SK",
}

PENDING_LABEL = "..."


def rank_color(rank: Optional[str]) -> str:
    """Map a rank tier to its color, falling back to grey for unknown tiers."""
    if not rank:
        return FALLBACK_RANK_COLOR
    return RANK_COLORS.get(rank.strip().lower(), FALLBACK_RANK_COLOR)


def verdict_label(verdict: Optional[str]) -> str:
    """Short badge text for a verdict; unknown verdicts are truncated."""
    if not verdict:
        return PENDING_LABEL
    return VERDICT_LABELS.get(verdict, verdict[:3])


def verdict_style(verdict: Optional[str]) -> str:
    if verdict == Verdict.OK.value:
        return "green"
    if verdict == Verdict.WRONG_ANSWER.value:
        return "red"
    return "yellow"


def local_date(timestamp: int, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of an epoch timestamp in ``tz`` (the local zone if None)."""
    return datetime.fromtimestamp(timestamp, tz).date()


def format_date(timestamp: int, tz: Optional[tzinfo] = None) -> str:
    """Format a timestamp like ``Mar 5, 2024``."""
    moment = datetime.fromtimestamp(timestamp, tz)
    return f"{moment:%b} {moment.day}, {moment.year}"


def dedupe_accepted(submissions: Sequence[Submission]) -> dict[tuple[Optional[int], str], Problem]:
    """Distinct accepted problems keyed by ``(contest_id, index)``.

    Keys keep the position of their first occurrence, which is the most
    recent one since the API returns newest first. Values are overwritten by
    later occurrences, so the metadata shown comes from the oldest accepted
    submission in the window.
    """
    solved: dict[tuple[Optional[int], str], Problem] = {}
    for submission in submissions:
        if submission.accepted:
            solved[submission.problem.key] = submission.problem
    return solved


def count_solved_on(
    submissions: Sequence[Submission],
    day: date,
    tz: Optional[tzinfo] = None,
) -> int:
    """Number of distinct problems with an accepted submission on ``day``."""
    keys = {
        submission.problem.key
        for submission in submissions
        if submission.accepted and local_date(submission.creation_time, tz) == day
    }
    return len(keys)


def build_rating_trend(history: Sequence[RatingChange], tz: Optional[tzinfo] = None) -> list[RatingPoint]:
    ordered = sorted(history, key=lambda change: change.update_time)
    return [
        RatingPoint(
            label=format_date(change.update_time, tz),
            rating=change.new_rating,
            contest_name=change.contest_name,
        )
        for change in ordered
    ]


def build_view(
    profile: Optional[Profile],
    submissions: Sequence[Submission],
    rating_history: Sequence[RatingChange],
    *,
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
    solved_cap: int = SOLVED_CAP,
    recent_cap: int = RECENT_CAP,
) -> DerivedView:
    """Derive the dashboard view from one cycle's raw collections.

    ``submissions`` must be in API order (newest first). ``today`` defaults
    to the current date in ``tz``, evaluated at call time. ``profile`` is
    published alongside the view unchanged and none of the counts read it.
    """
    if today is None:
        today = datetime.now(tz).date()

    solved = dedupe_accepted(submissions)
    trend = build_rating_trend(rating_history, tz)
    last_delta = None
    if rating_history:
        last_delta = max(rating_history, key=lambda change: change.update_time).delta

    return DerivedView(
        total_unique_solved=len(solved),
        solved_today=count_solved_on(submissions, today, tz),
        solved_problems=tuple(solved.values())[:solved_cap],
        recent_submissions=tuple(submissions[:recent_cap]),
        rating_trend=tuple(trend),
        last_rating_delta=last_delta,
        window_size=len(submissions),
    )
