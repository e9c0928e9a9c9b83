"""Plagiarism checker client

Wraps the external originality service behind a single ``check`` call. The
check is advisory: transport errors, bad payloads and timeouts are absorbed
here and reported as ``CheckFailed`` so callers never fail an edit because of
the checker.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Any

import httpx

from campus_news.config import settings
from campus_news.errors import DependencyFailedError
from campus_news.models.article import PlagiarismStatus

logger = logging.getLogger(__name__)


class PlagiarismVerdict(str, Enum):
    OK = "OK"
    FLAGGED = "Flagged"
    CHECK_FAILED = "CheckFailed"


_STORED_STATUS = {
    PlagiarismVerdict.OK: PlagiarismStatus.CHECKED_OK,
    PlagiarismVerdict.FLAGGED: PlagiarismStatus.CHECKED_FLAGGED,
    PlagiarismVerdict.CHECK_FAILED: PlagiarismStatus.CHECK_FAILED,
}


@dataclass(frozen=True)
class PlagiarismResult:
    verdict: PlagiarismVerdict
    score: Optional[int] = None

    @classmethod
    def failed(cls) -> "PlagiarismResult":
        return cls(PlagiarismVerdict.CHECK_FAILED, None)

    @property
    def stored_status(self) -> PlagiarismStatus:
        return _STORED_STATUS[self.verdict]


def _parse_response(payload: Any) -> PlagiarismResult:
    """Normalize the checker's JSON body into a PlagiarismResult."""
    if not isinstance(payload, dict):
        raise DependencyFailedError(
            f"Plagiarism response is not an object: {type(payload).__name__}")
    score = payload.get("score")
    if score is not None:
        score = int(round(float(score)))
        if not 0 <= score <= 100:
            raise DependencyFailedError(f"Plagiarism score out of range: {score}")

    status = str(payload.get("status") or "").strip().lower()
    if status in ("ok", "clean", "checked - ok"):
        return PlagiarismResult(PlagiarismVerdict.OK, score)
    if status in ("flagged", "checked - flagged"):
        return PlagiarismResult(PlagiarismVerdict.FLAGGED, score)
    if status in ("checkfailed", "check failed", "failed", "error"):
        return PlagiarismResult.failed()
    if status:
        raise DependencyFailedError(f"Unknown plagiarism status: {status}")
    if score is None:
        raise DependencyFailedError("Plagiarism response has neither status nor score")

    if score >= settings.PLAGIARISM_FLAG_THRESHOLD:
        return PlagiarismResult(PlagiarismVerdict.FLAGGED, score)
    return PlagiarismResult(PlagiarismVerdict.OK, score)


class PlagiarismService:
    """Client for the plagiarism checker (or a local mock when unconfigured)"""

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.api_url = settings.PLAGIARISM_API_URL if api_url is None else api_url
        self.api_key = settings.PLAGIARISM_API_KEY if api_key is None else api_key
        self.timeout = settings.PLAGIARISM_TIMEOUT_SECONDS if timeout is None else timeout

    async def _request(self, text: str) -> PlagiarismResult:
        if not self.api_url:
            logger.info("[PlagiarismService MOCK] no checker configured, reporting OK")
            return PlagiarismResult(PlagiarismVerdict.OK, 0)

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                resp = await client.post(self.api_url, json={"text": text}, headers=headers)
                resp.raise_for_status()
                return _parse_response(resp.json())
            except (httpx.HTTPError, ValueError, TypeError, OverflowError) as e:
                raise DependencyFailedError(f"Plagiarism check failed: {e}") from e

    async def check(self, text: str) -> PlagiarismResult:
        """Check ``text``; always returns, never raises."""
        try:
            result = await asyncio.wait_for(self._request(text), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Plagiarism check timed out after {self.timeout}s")
            return PlagiarismResult.failed()
        except DependencyFailedError as e:
            logger.error(e.message)
            return PlagiarismResult.failed()

        if result.verdict == PlagiarismVerdict.FLAGGED:
            logger.warning(f"Content flagged for plagiarism: {result.score}%")
        return result


plagiarism_service = PlagiarismService()
