"""Codeforces API client for fetching a user's profile, submissions and rating history."""

import logging
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from cfwatch.exceptions import RemoteApiError, TransportError, ValidationError
from cfwatch.models import Problem, Profile, RatingChange, Submission


logger = logging.getLogger(__name__)

BASE_URL = "https://codeforces.com/api"
DEFAULT_TIMEOUT = 15.0
DEFAULT_SUBMISSION_COUNT = 100

USER_INFO_FALLBACK = "Failed to fetch user"
USER_STATUS_FALLBACK = "Failed to fetch submissions"
USER_RATING_FALLBACK = "Failed to fetch rating"


class CodeforcesClient:
    """Async client for the public Codeforces API.

    Each fetch issues exactly one request and holds no state between calls.
    Retrying is left to the caller.
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Accept": "application/json", "User-Agent": "cfwatch"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CodeforcesClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_profile(self, handle: str) -> Profile:
        """Fetch the profile snapshot for ``handle``."""
        result = await self._call("user.info", {"handles": handle}, USER_INFO_FALLBACK)

        if not isinstance(result, list) or not result or not isinstance(result[0], Mapping):
            raise ValidationError("user.info returned no user", field="result")

        return self._parse_profile(result[0], handle)

    async def fetch_submissions(self, handle: str, count: int = DEFAULT_SUBMISSION_COUNT) -> list[Submission]:
        """Fetch the most recent ``count`` submissions, newest first."""
        params = {"handle": handle, "from": 1, "count": count}
        result = await self._call("user.status", params, USER_STATUS_FALLBACK)

        if not isinstance(result, list):
            raise ValidationError("user.status result is not a list", field="result")

        submissions: list[Submission] = []
        for item in result:
            submission = self._parse_submission(item)
            if submission is not None:
                submissions.append(submission)
        return submissions

    async def fetch_rating_history(self, handle: str) -> list[RatingChange]:
        """Fetch rating changes ordered by update time, oldest first."""
        result = await self._call("user.rating", {"handle": handle}, USER_RATING_FALLBACK)

        if not isinstance(result, list):
            raise ValidationError("user.rating result is not a list", field="result")

        changes = [change for change in map(self._parse_rating_change, result) if change is not None]
        changes.sort(key=lambda change: change.update_time)
        return changes

    async def _call(self, method: str, params: dict[str, Any], fallback: str) -> Any:
        """Issue one GET and unwrap the ``{status, comment, result}`` envelope."""
        logger.debug("GET %s %s", method, params)
        try:
            response = await self._client.get(f"/{method}", params=params)
        except httpx.HTTPError as e:
            logger.warning("%s request failed: %s", method, e)
            raise TransportError(f"Could not reach Codeforces: {e.__class__.__name__}") from e

        # Codeforces reports failures inside the envelope, often with HTTP 400,
        # so the body is inspected before the status code.
        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("%s returned an undecodable body (HTTP %s)", method, response.status_code)
            raise TransportError(
                f"Could not reach Codeforces: malformed response (HTTP {response.status_code})"
            ) from e

        if not isinstance(payload, Mapping):
            raise TransportError(f"Could not reach Codeforces: malformed response (HTTP {response.status_code})")

        if payload.get("status") != "OK":
            comment = payload.get("comment")
            if not isinstance(comment, str) or not comment:
                comment = None
            logger.warning("%s failed: %s", method, comment or fallback)
            raise RemoteApiError(comment, method=method, fallback=fallback)

        if "result" not in payload:
            raise ValidationError(f"{method} response has no result", field="result")

        return payload["result"]

    def _parse_profile(self, data: Mapping[str, Any], requested_handle: str) -> Profile:
        handle = _str_or_none(data.get("handle")) or requested_handle
        return Profile(
            handle=handle,
            rating=_int_or_none(data.get("rating")),
            max_rating=_int_or_none(data.get("maxRating")),
            rank=_str_or_none(data.get("rank")),
            max_rank=_str_or_none(data.get("maxRank")),
            avatar=_str_or_none(data.get("titlePhoto")) or _str_or_none(data.get("avatar")),
        )

    def _parse_submission(self, data: Any) -> Optional[Submission]:
        if not isinstance(data, Mapping):
            logger.warning("Skipping submission that is not an object")
            return None

        submission_id = _int_or_none(data.get("id"))
        created = _int_or_none(data.get("creationTimeSeconds"))
        problem = self._parse_problem(data.get("problem"))

        if submission_id is None or created is None or problem is None:
            logger.warning("Skipping malformed submission %r", data.get("id"))
            return None

        return Submission(
            id=submission_id,
            creation_time=created,
            verdict=_str_or_none(data.get("verdict")),
            problem=problem,
            language=_str_or_none(data.get("programmingLanguage")) or "",
        )

    def _parse_problem(self, data: Any) -> Optional[Problem]:
        if not isinstance(data, Mapping):
            return None

        index = _str_or_none(data.get("index"))
        if index is None:
            return None

        raw_tags = data.get("tags")
        tags = tuple(tag for tag in raw_tags if isinstance(tag, str)) if isinstance(raw_tags, list) else ()

        return Problem(
            contest_id=_int_or_none(data.get("contestId")),
            index=index,
            name=_str_or_none(data.get("name")) or index,
            rating=_int_or_none(data.get("rating")),
            tags=tags,
        )

    def _parse_rating_change(self, data: Any) -> Optional[RatingChange]:
        if not isinstance(data, Mapping):
            logger.warning("Skipping rating change that is not an object")
            return None

        contest_id = _int_or_none(data.get("contestId"))
        updated = _int_or_none(data.get("ratingUpdateTimeSeconds"))
        old_rating = _int_or_none(data.get("oldRating"))
        new_rating = _int_or_none(data.get("newRating"))

        if contest_id is None or updated is None or old_rating is None or new_rating is None:
            logger.warning("Skipping malformed rating change for contest %r", data.get("contestId"))
            return None

        return RatingChange(
            contest_id=contest_id,
            contest_name=_str_or_none(data.get("contestName")) or f"Contest {contest_id}",
            update_time=updated,
            old_rating=old_rating,
            new_rating=new_rating,
        )


def _int_or_none(value: Any) -> Optional[int]:
    # bool is an int subclass; JSON true/false is never a valid number here
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _str_or_none(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value:
        return None
    return value
