"""
Juice Bar POS — Retry for version-guarded product writes

PricingEngine reads a product, derives a price and writes it back with
compare_and_set_price(expected_version=...). When that write matches no row
it raises StaleDataError and the whole read-compute-write is run again.

On the bundled SQLite store every transaction starts with BEGIN IMMEDIATE,
so writers to the file are serialized and the compare-and-set cannot lose;
the loop is dormant there. It fires only when DATABASE_URL points at a
server database whose transactions do not hold the write lock from the start.
"""
import asyncio
import functools
import logging
import random

from juicebar_pos.core.config import get_settings
from juicebar_pos.core.errors import StaleDataError

settings = get_settings()
logger = logging.getLogger(__name__)


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before retry `attempt` (1-based): doubling, capped, jittered."""
    ceiling = settings.OPT_LOCK_MAX_DELAY_MS
    delay_ms = min(settings.OPT_LOCK_BASE_DELAY_MS * 2 ** attempt, ceiling)
    delay_ms += random.uniform(0, settings.OPT_LOCK_JITTER_MS)
    return delay_ms / 1000.0


def with_optimistic_retry(max_retries: int | None = None):
    """Re-run the wrapped coroutine on StaleDataError, at most `max_retries` times in total."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempts = max_retries or settings.OPT_LOCK_MAX_RETRIES
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except StaleDataError:
                    if attempt >= attempts:
                        logger.error("%s still conflicting after %d attempts", func.__qualname__, attempts)
                        raise
                delay = backoff_delay(attempt)
                logger.warning(
                    "%s lost a version race (attempt %d of %d), retrying in %.3fs",
                    func.__qualname__, attempt, attempts, delay,
                )
                await asyncio.sleep(delay)
                attempt += 1

        return wrapper

    return decorator
