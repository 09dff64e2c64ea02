"""Refresh scheduler driving the fetch-aggregate cycle."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol

from cfwatch.aggregation import build_view
from cfwatch.exceptions import CodeforcesError
from cfwatch.models import DEFAULT_CONFIG, Config, DerivedView, Profile, RatingChange, Submission


logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong"


class Gateway(Protocol):
    async def fetch_profile(self, handle: str) -> Profile: ...

    async def fetch_submissions(self, handle: str, count: int = ...) -> list[Submission]: ...

    async def fetch_rating_history(self, handle: str) -> list[RatingChange]: ...


class RefreshState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class DashboardSnapshot:
    """Read-only state handed to the presentation layer.

    ``profile`` and ``view`` always come from the same successful cycle and
    survive later failures, so stale data stays on screen next to ``error``.
    """

    state: RefreshState = RefreshState.IDLE
    profile: Optional[Profile] = None
    view: Optional[DerivedView] = None
    error: Optional[str] = None
    updated_at: Optional[datetime] = None


Listener = Callable[[DashboardSnapshot], None]


async def gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Await every awaitable concurrently; the first failure cancels the rest."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class RefreshScheduler:
    """Owns the dashboard state and refreshes it on a fixed interval.

    Lifecycle is construct, ``start()``, ``stop()``. At most one cycle is in
    flight at a time; triggers that arrive meanwhile are dropped. After
    ``stop()`` no result, late or otherwise, touches the state.
    """

    def __init__(
        self,
        gateway: Gateway,
        config: Config = DEFAULT_CONFIG,
        aggregate: Callable[..., DerivedView] = build_view,
    ) -> None:
        self._gateway = gateway
        self._config = config
        self._aggregate = aggregate
        self._snapshot = DashboardSnapshot()
        self._listeners: list[Listener] = []
        self._in_flight = False
        self._closed = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def snapshot(self) -> DashboardSnapshot:
        return self._snapshot

    @property
    def state(self) -> RefreshState:
        return self._snapshot.state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for new snapshots. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: DashboardSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener %r failed", listener)

    async def refresh(self) -> bool:
        """Run one fetch-aggregate cycle.

        Returns False when the trigger was dropped (a cycle is already in
        flight or the scheduler is closed) or when the result arrived after
        teardown.
        """
        if self._closed:
            return False
        if self._in_flight:
            logger.debug("Refresh skipped: a cycle is already in flight")
            return False

        self._in_flight = True
        handle = self._config.handle
        logger.debug("Refreshing %s", handle)

        try:
            self._publish(replace(self._snapshot, state=RefreshState.LOADING))
            profile, submissions, rating_history = await gather_all(
                self._gateway.fetch_profile(handle),
                self._gateway.fetch_submissions(handle, self._config.submission_window),
                self._gateway.fetch_rating_history(handle),
            )
            view = self._aggregate(
                profile,
                submissions,
                rating_history,
                solved_cap=self._config.solved_cap,
                recent_cap=self._config.recent_cap,
            )
        except CodeforcesError as e:
            return self._fail(e.message)
        except Exception:
            if self._closed:
                return False
            logger.exception("Refresh of %s failed unexpectedly", handle)
            return self._fail(GENERIC_ERROR_MESSAGE)
        finally:
            self._in_flight = False

        if self._closed:
            logger.debug("Dropping refresh result that arrived after teardown")
            return False

        self._publish(
            DashboardSnapshot(
                state=RefreshState.READY,
                profile=profile,
                view=view,
                error=None,
                updated_at=datetime.now().astimezone(),
            )
        )
        logger.debug("Refreshed %s: %s unique solved", handle, view.total_unique_solved)
        return True

    def _fail(self, message: str) -> bool:
        if self._closed:
            logger.debug("Dropping refresh error that arrived after teardown")
            return False
        logger.warning("Refresh failed: %s", message)
        self._publish(replace(self._snapshot, state=RefreshState.ERROR, error=message))
        return False

    async def _run(self) -> None:
        while not self._closed:
            await self.refresh()
            await asyncio.sleep(self._config.refresh_interval)

    def start(self) -> None:
        """Refresh now and then every ``refresh_interval`` seconds."""
        if self._closed:
            raise RuntimeError("Scheduler has been stopped")
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop polling and discard any cycle still in flight. Idempotent."""
        self._closed = True
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._listeners.clear()

    async def __aenter__(self) -> "RefreshScheduler":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
