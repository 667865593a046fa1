"""Bounded fixed-delay retry for deferred generation stats."""

import http.client
import logging
import time
from typing import Callable

from autocommit.errors import StatsFetchTimeout
from autocommit.llm.base import LLMError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY = 0.1  # seconds, before every attempt


def fetch_with_retry(fetch: Callable[[str], dict | None], generation_id: str,
                     attempts: int = MAX_ATTEMPTS, delay: float = RETRY_DELAY,
                     sleep: Callable[[float], None] = time.sleep) -> dict:
    """Return the first well-formed stats record; raise StatsFetchTimeout if none arrives."""
    for attempt in range(1, attempts + 1):
        sleep(delay)
        try:
            record = fetch(generation_id)
        except (LLMError, OSError, http.client.HTTPException, ValueError, KeyError, TypeError) as e:
            logger.debug("Stats attempt %d/%d for %s failed: %s", attempt, attempts, generation_id, e)
            continue
        if isinstance(record, dict) and record:
            return record
        logger.debug("Stats attempt %d/%d for %s returned nothing", attempt, attempts, generation_id)
    raise StatsFetchTimeout(generation_id, attempts)


def enrich_result(result, backend, sleep: Callable[[float], None] = time.sleep):
    """Overwrite optimistic usage with the backend's authoritative stats, if it has any."""
    fetch = getattr(backend, "fetch_stats", None) if backend is not None else None
    if fetch is None or not result.generation_id:
        return result
    try:
        record = fetch_with_retry(fetch, result.generation_id, sleep=sleep)
    except StatsFetchTimeout as e:
        logger.debug("%s; keeping optimistic values", e)
        return result
    return result.merged_with(record)
