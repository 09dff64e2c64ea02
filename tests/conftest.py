"""Shared pytest fixtures for the cfwatch test suite."""

import asyncio
from typing import Any, Callable, Optional

import pytest

from cfwatch.models import Config, Problem, Profile, RatingChange, Submission


class FakeGateway:
    """In-memory stand-in for CodeforcesClient.

    ``errors`` maps a call name to the exception it raises; ``gates`` maps a
    call name to an ``asyncio.Event`` the call waits on before answering.
    """

    def __init__(
        self,
        profile: Profile,
        submissions: list[Submission],
        rating_history: list[RatingChange],
    ) -> None:
        self.profile = profile
        self.submissions = submissions
        self.rating_history = rating_history
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[str, Any]] = []
        self.cancelled: list[str] = []
        self.closed = False

    async def _respond(self, name: str, arg: Any, value: Any) -> Any:
        self.calls.append((name, arg))
        gate = self.gates.get(name)
        if gate is not None:
            try:
                await gate.wait()
            except asyncio.CancelledError:
                self.cancelled.append(name)
                raise
        if name in self.errors:
            raise self.errors[name]
        return value

    async def fetch_profile(self, handle: str) -> Profile:
        return await self._respond("profile", handle, self.profile)

    async def fetch_submissions(self, handle: str, count: int = 100) -> list[Submission]:
        return await self._respond("submissions", count, list(self.submissions))

    async def fetch_rating_history(self, handle: str) -> list[RatingChange]:
        return await self._respond("rating", handle, list(self.rating_history))

    async def __aenter__(self) -> "FakeGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True


@pytest.fixture
def make_submission() -> Callable[..., Submission]:
    """Returns a factory for Submission objects with sensible defaults."""
    counter = iter(range(1, 1_000_000))

    def factory(
        contest_id: Optional[int] = 1,
        index: str = "A",
        verdict: Optional[str] = "OK",
        creation_time: int = 1_700_000_000,
        name: Optional[str] = None,
        rating: Optional[int] = 800,
        language: str = "Python 3",
    ) -> Submission:
        return Submission(
            id=next(counter),
            creation_time=creation_time,
            verdict=verdict,
            problem=Problem(
                contest_id=contest_id,
                index=index,
                name=name or f"Problem {contest_id}{index}",
                rating=rating,
                tags=("implementation",),
            ),
            language=language,
        )

    return factory


@pytest.fixture
def sample_profile() -> Profile:
    """Returns a rated Profile for testing."""
    return Profile(
        handle="tourist",
        rating=3500,
        max_rating=3979,
        rank="legendary grandmaster",
        max_rank="legendary grandmaster",
        avatar="https://userpic.codeforces.org/422/title/50a270ed4a722867.jpg",
    )


@pytest.fixture
def sample_rating_history() -> list[RatingChange]:
    """Returns two rating changes in time order."""
    return [
        RatingChange(
            contest_id=1,
            contest_name="Codeforces Beta Round #1",
            update_time=1_266_588_000,
            old_rating=0,
            new_rating=1602,
        ),
        RatingChange(
            contest_id=2,
            contest_name="Codeforces Beta Round #2",
            update_time=1_267_032_600,
            old_rating=1602,
            new_rating=1764,
        ),
    ]


@pytest.fixture
def sample_config() -> Config:
    """Returns a Config with a short interval for scheduler tests."""
    return Config(handle="tourist", refresh_interval=0.01)


@pytest.fixture
def fake_gateway(sample_profile, sample_rating_history, make_submission) -> FakeGateway:
    """Returns a FakeGateway answering with one accepted and one rejected submission."""
    submissions = [
        make_submission(contest_id=4, index="A", creation_time=1_700_000_200),
        make_submission(contest_id=4, index="B", verdict="WRONG_ANSWER", creation_time=1_700_000_100),
    ]
    return FakeGateway(sample_profile, submissions, sample_rating_history)
