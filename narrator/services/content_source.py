"""Reddit listing client feeding candidate posts into the pipeline."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from narrator.config.settings import ContentSourceConfig, settings
from narrator.pipelines.narration.types import CandidateItem
from narrator.services.errors import ContentSourceError, ErrorKind

logger = logging.getLogger(__name__)


def candidate_from_listing(data: dict[str, Any]) -> CandidateItem:
    """Map one ``t3`` listing child onto a :class:`CandidateItem`."""

    return CandidateItem(
        source_id=str(data["id"]),
        collection=str(data.get("subreddit") or ""),
        title=str(data.get("title") or ""),
        body=str(data.get("selftext") or ""),
        primary_signal=int(data.get("score") or 0),
        secondary_signal=int(data.get("num_comments") or 0),
        author=str(data.get("author") or "[deleted]"),
        created_utc=float(data.get("created_utc") or 0.0),
    )


class RedditContentSource:
    """Fetch the hot listing of a subreddit."""

    def __init__(
        self,
        *,
        config: ContentSourceConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or settings.reddit
        self._client = client or httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout_seconds,
            headers={"User-Agent": self._config.user_agent},
        )

    async def fetch_candidates(self, collection: str, limit: int | None = None) -> list[CandidateItem]:
        """Return up to ``limit`` non-stickied posts from ``collection``."""

        name = collection.strip().removeprefix("r/")
        if not name:
            raise ContentSourceError("Collection name is required", kind=ErrorKind.NOT_FOUND)
        requested = limit if limit is not None else self._config.default_limit
        bounded_limit = max(1, min(requested, self._config.max_limit))

        try:
            response = await self._client.get(
                f"/r/{name}/hot.json",
                params={"limit": bounded_limit, "raw_json": 1},
            )
        except httpx.RequestError as exc:
            raise ContentSourceError(f"Unable to reach Reddit: {exc}") from exc

        if response.status_code == 404:
            raise ContentSourceError(
                f"Subreddit r/{name} not found",
                kind=ErrorKind.NOT_FOUND,
                status_code=404,
            )
        if response.status_code == 429:
            raise ContentSourceError(
                "Reddit rate limit exceeded",
                kind=ErrorKind.RATE_LIMITED,
                status_code=429,
            )
        try:
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise ContentSourceError(
                f"Reddit returned an error: {exc}",
                status_code=exc.response.status_code,
            ) from exc
        except ValueError as exc:
            raise ContentSourceError(f"Invalid response from Reddit: {exc}") from exc

        children = payload.get("data", {}).get("children", [])
        candidates = [
            candidate_from_listing(child["data"])
            for child in children
            if child.get("kind") == "t3" and not child.get("data", {}).get("stickied")
        ]
        logger.info("Fetched %d candidates from r/%s", len(candidates), name)
        return candidates[:bounded_limit]

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["RedditContentSource", "candidate_from_listing"]
