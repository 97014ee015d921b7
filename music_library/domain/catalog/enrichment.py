#!/usr/bin/env python
"""
Client for the external song-detail service used to enrich new songs.

One call to ``EnrichmentClient.run`` drives a small state machine:

    ATTEMPTING --200--> SUCCEEDED
    ATTEMPTING --400--> FAILED_CLIENT
    ATTEMPTING --500--> BACKOFF --(attempts left)--> ATTEMPTING
                                --(budget spent)--> FAILED_SERVER
    ATTEMPTING --transport error / other status--> FAILED_UNEXPECTED

Retries are bounded by attempt count only. The backoff delay doubles from
the initial delay up to the cap, with no jitter: 1, 2, 4, 8, 10, 10, ...
All state lives in locals of a single ``run`` call, so concurrent requests
never share retry state.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

import requests
from pydantic import ValidationError

from config import Config
from music_library.models.dto import SongDetailDTO, SongDTO, SongIdentityDTO
from music_library.observability.metrics import record_enrichment_attempt, record_enrichment_outcome

from .errors import (
    EnrichmentCancelled,
    UpstreamBadRequest,
    UpstreamUnavailable,
    UpstreamUnexpected,
)

logger = logging.getLogger(__name__)


class EnrichmentState(str, Enum):
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    FAILED_CLIENT = "failed_client"
    FAILED_SERVER = "failed_server"
    FAILED_UNEXPECTED = "failed_unexpected"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset(
    {
        EnrichmentState.SUCCEEDED,
        EnrichmentState.FAILED_CLIENT,
        EnrichmentState.FAILED_SERVER,
        EnrichmentState.FAILED_UNEXPECTED,
        EnrichmentState.CANCELLED,
    }
)


def backoff_delay(server_errors: int, initial: float = 1.0, cap: float = 10.0) -> float:
    """Delay to wait after the ``server_errors``-th consecutive server error (1-based)."""
    if server_errors < 1:
        raise ValueError("server_errors must be >= 1")
    return min(initial * (2 ** (server_errors - 1)), cap)


@dataclass
class EnrichmentResult:
    state: EnrichmentState
    attempts: int = 0
    detail: Optional[SongDetailDTO] = None
    status_code: Optional[int] = None
    message: Optional[str] = None
    delays: List[float] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is EnrichmentState.SUCCEEDED


class EnrichmentClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        http: Any = None,
        max_attempts: Optional[int] = None,
        initial_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Fallback to values from Config when not explicitly provided.

        ``http`` only needs a requests-style ``get(url, params=..., timeout=...)``;
        the ``requests`` module itself is used by default.
        """
        self.base_url = base_url if base_url is not None else Config.EXTERNAL_API_URL
        self.max_attempts = max_attempts or Config.ENRICHMENT_MAX_ATTEMPTS
        self.initial_delay = Config.ENRICHMENT_INITIAL_DELAY_SECONDS if initial_delay is None else initial_delay
        self.max_delay = Config.ENRICHMENT_MAX_DELAY_SECONDS if max_delay is None else max_delay
        self.timeout = Config.ENRICHMENT_TIMEOUT_SECONDS if timeout is None else timeout
        self._http = http or requests
        self._sleep = sleep
        if not self.base_url:
            logger.warning("EXTERNAL_API_URL not configured; song creation will fail until it is set.")

    def _pause(self, delay: float, cancel_event: Optional[threading.Event]) -> bool:
        """Wait out a backoff delay. Returns True if cancellation was requested."""
        if cancel_event is None:
            self._sleep(delay)
            return False
        return cancel_event.wait(delay)

    def run(self, author: str, title: str, cancel_event: Optional[threading.Event] = None) -> EnrichmentResult:
        """Drive the retry state machine for one (author, title) lookup."""
        params = {"group": author, "song": title}
        result = EnrichmentResult(state=EnrichmentState.ATTEMPTING)
        server_errors = 0
        song_fields = {"song_author": author, "song_title": title}

        while result.state not in TERMINAL_STATES:
            if result.state is EnrichmentState.BACKOFF:
                delay = backoff_delay(server_errors, self.initial_delay, self.max_delay)
                result.delays.append(delay)
                logger.warning(
                    "Enrichment service returned 500 for %s - %s (attempt %s/%s); retrying in %ss",
                    author, title, result.attempts, self.max_attempts, delay,
                    extra={**song_fields, "attempt": result.attempts, "state": result.state.value,
                           "delay_seconds": delay, "upstream_status": 500},
                )
                if self._pause(delay, cancel_event):
                    result.state = EnrichmentState.CANCELLED
                    result.message = "enrichment cancelled during backoff"
                elif result.attempts >= self.max_attempts:
                    result.state = EnrichmentState.FAILED_SERVER
                    result.status_code = 500
                    result.message = "external api is not working"
                else:
                    result.state = EnrichmentState.ATTEMPTING
                continue

            if cancel_event is not None and cancel_event.is_set():
                result.state = EnrichmentState.CANCELLED
                result.message = "enrichment cancelled before request"
                continue

            result.attempts += 1
            record_enrichment_attempt()
            logger.debug("Requesting song detail from %s params=%s (attempt %s)", self.base_url, params, result.attempts)
            try:
                resp = self._http.get(self.base_url, params=params, timeout=self.timeout)
            except requests.RequestException as exc:
                logger.error("Enrichment request failed for %s - %s: %s", author, title, exc)
                result.state = EnrichmentState.FAILED_UNEXPECTED
                result.message = f"error trying to access external api: {exc}"
                continue

            result.status_code = resp.status_code
            if resp.status_code == 200:
                result.state, result.detail, result.message = self._parse_detail(resp)
            elif resp.status_code == 400:
                logger.error("Enrichment service rejected %s - %s with 400", author, title)
                result.state = EnrichmentState.FAILED_CLIENT
                result.message = "external api rejected the request as malformed"
            elif resp.status_code == 500:
                server_errors += 1
                result.state = EnrichmentState.BACKOFF
            else:
                # The service contract only defines 200, 400 and 500
                logger.error("Enrichment service returned unsupported status %s", resp.status_code)
                result.state = EnrichmentState.FAILED_UNEXPECTED
                result.message = f"external api returned unsupported status {resp.status_code}"

        record_enrichment_outcome(result.state.value)
        logger.info(
            "Enrichment for %s - %s finished: %s after %s attempt(s)",
            author, title, result.state.value, result.attempts,
            extra={**song_fields, "attempt": result.attempts, "state": result.state.value,
                   "upstream_status": result.status_code},
        )
        return result

    @staticmethod
    def _parse_detail(resp):
        try:
            detail = SongDetailDTO.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            logger.error("Could not parse enrichment response: %s", exc)
            return EnrichmentState.FAILED_UNEXPECTED, None, f"external api returned a malformed body: {exc}"
        return EnrichmentState.SUCCEEDED, detail, None

    def enrich(self, identity: SongIdentityDTO, cancel_event: Optional[threading.Event] = None) -> SongDTO:
        """Return a fully populated song or raise the matching upstream error."""
        result = self.run(identity.author, identity.title, cancel_event=cancel_event)
        if result.state is EnrichmentState.SUCCEEDED:
            return SongDTO.from_parts(identity, result.detail)
        if result.state is EnrichmentState.FAILED_CLIENT:
            raise UpstreamBadRequest(result.message)
        if result.state is EnrichmentState.FAILED_SERVER:
            raise UpstreamUnavailable(result.message)
        if result.state is EnrichmentState.CANCELLED:
            raise EnrichmentCancelled(result.message)
        # Transport failures and malformed bodies carry no usable status of their own
        forwarded = result.status_code if result.status_code not in (None, 200) else None
        raise UpstreamUnexpected(result.message, upstream_status=forwarded)


__all__ = [
    "EnrichmentState",
    "EnrichmentResult",
    "EnrichmentClient",
    "backoff_delay",
]
