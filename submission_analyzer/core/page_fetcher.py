"""
Page Fetcher component for the Submission Analysis Service.

Retrieves a bounded number of submissions from the judge's paginated
submissions endpoint, one page at a time with a courtesy delay in between.
"""
import asyncio
import logging
import math
from typing import List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from submission_analyzer.config.settings import settings
from submission_analyzer.errors import DecodeError, FetchError
from submission_analyzer.models.dtos import Submission, SubmissionsPage

logger = logging.getLogger(__name__)

SUBMISSIONS_PATH = "/api/submissions/"


class PageFetcher:
    """
    Fetches a user's recent submissions from the judge.

    Each page request is independent and stateless. A failure on any page aborts
    the whole fetch; no partial results are returned.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        page_size: Optional[int] = None,
        page_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            base_url: Base URL of the judge, e.g. ``https://leetcode.com``.
            page_size: Fixed page size of the judge endpoint.
            page_delay: Seconds to wait between two page requests.
            timeout: Per-request timeout in seconds.
            client: Optional pre-built HTTP client (tests inject a mock here).
        """
        self.base_url = (base_url or settings.JUDGE_BASE_URL).rstrip("/")
        self.page_size = page_size or settings.JUDGE_PAGE_SIZE
        self.page_delay = settings.JUDGE_PAGE_DELAY_SECONDS if page_delay is None else page_delay
        self.timeout = timeout or settings.JUDGE_REQUEST_TIMEOUT_SECONDS
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))

    async def close(self) -> None:
        await self.client.aclose()

    def plan_pages(self, limit: int) -> List[tuple]:
        """Returns the ``(offset, count)`` pairs needed to fetch ``limit`` submissions."""
        if limit <= 0:
            return []
        pages = []
        for page in range(math.ceil(limit / self.page_size)):
            offset = page * self.page_size
            pages.append((offset, min(self.page_size, limit - offset)))
        return pages

    async def fetch(self, cookie: str, limit: int) -> List[Submission]:
        """
        Fetches up to ``limit`` submissions, newest first.

        Args:
            cookie: The judge session cookie, sent verbatim.
            limit: Maximum number of submissions to fetch. ``limit <= 0`` is a no-op.

        Returns:
            The submissions in the order the judge returned them.

        Raises:
            FetchError: If any page request fails or cannot be decoded.
        """
        pages = self.plan_pages(limit)
        if not pages:
            logger.info(f"Submission limit {limit} requires no page requests.")
            return []

        logger.info(f"Fetching up to {limit} submissions in {len(pages)} page(s).")
        submissions: List[Submission] = []
        for index, (offset, count) in enumerate(pages):
            if index > 0:
                await asyncio.sleep(self.page_delay)
            page = await self._fetch_page(cookie, offset, count)
            submissions.extend(page)
            logger.debug(f"Page {index + 1}/{len(pages)} (offset={offset}, limit={count}) returned {len(page)} submissions.")
            if len(page) < count:
                logger.info(f"Judge returned a short page at offset {offset}; no more submissions available.")
                break

        logger.info(f"Fetched {len(submissions)} submissions.")
        return submissions

    async def _fetch_page(self, cookie: str, offset: int, count: int) -> List[Submission]:
        url = f"{self.base_url}{SUBMISSIONS_PATH}"
        params = {"offset": offset, "limit": count}
        try:
            response = await self.client.get(url, params=params, headers={"Cookie": cookie})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error fetching submissions from {url} (offset={offset}, limit={count}): {e}", exc_info=True)
            raise FetchError(f"Error fetching submissions at offset {offset}", cause=e) from e

        try:
            page = SubmissionsPage.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            decode_error = DecodeError(f"Malformed submissions page at offset {offset}", cause=e)
            logger.error(f"Error decoding submissions page from {url}: {e}", exc_info=True)
            raise FetchError(f"Error decoding submissions at offset {offset}", cause=decode_error) from decode_error

        return page.submissions[:count]
