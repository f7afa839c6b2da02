"""Receipt number allocation.

Numbers look like ``REC-2026-000001``: one counter per tenant per calendar
year (business timezone), advanced by a single atomic increment in the
shared store. The counter is never read before incrementing and never
cached locally, so concurrent callers across processes always receive
distinct numbers.
"""
from __future__ import annotations

import logging
import re
import threading
from datetime import datetime
from typing import Callable, Optional, Protocol, Tuple

import redis

from vatledger import metrics
from vatledger.core.config import settings
from vatledger.core.exceptions import SequencerError
from vatledger.services.tax_reporting.period_utils import business_timezone

logger = logging.getLogger(__name__)

_RECEIPT_RE = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<year>\d{4})-(?P<seq>\d{6,})$")


class CounterStore(Protocol):
    """Shared counter store. One operation, atomic across processes."""

    def increment_and_get(self, key: str) -> int:  # pragma: no cover - protocol stub
        ...


class RedisCounterStore(CounterStore):
    """Counter store backed by Redis ``INCR``."""

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        self._client = client

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            from vatledger.db.redis_client import get_redis_client
            self._client = get_redis_client()
        return self._client

    def increment_and_get(self, key: str) -> int:
        try:
            value = self._get_client().incr(key)
        except redis.RedisError as exc:
            # Outcome unknown (a timeout may have applied the INCR); never retry
            raise SequencerError(key, f"{type(exc).__name__}: {exc}") from exc
        return int(value)


class InMemoryCounterStore(CounterStore):
    """Process-local counter store for tests and single-process use."""

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def increment_and_get(self, key: str) -> int:
        with self._lock:
            value = self._counters.get(key, 0) + 1
            self._counters[key] = value
            return value

    def peek(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)


def counter_key(tenant_id: str, year: int) -> str:
    return f"{settings.RECEIPT_COUNTER_KEY_PREFIX}:{tenant_id}:{year}"


def format_receipt_number(year: int, seq: int, prefix: Optional[str] = None) -> str:
    """``REC-{YYYY}-{seq:06d}``; sequences past 999999 simply grow wider."""
    if seq < 1:
        raise ValueError(f"receipt sequence must be positive, got {seq}")
    return f"{prefix or settings.RECEIPT_PREFIX}-{year:04d}-{seq:06d}"


def parse_receipt_number(text: str) -> Tuple[int, int]:
    """Return ``(year, seq)`` from a receipt number, or raise ``ValueError``."""
    match = _RECEIPT_RE.match(text or "")
    if not match:
        raise ValueError(f"Not a receipt number: {text!r}")
    return int(match.group("year")), int(match.group("seq"))


class ReceiptSequencer:
    """Issues receipt numbers from a shared counter store."""

    def __init__(self, store: CounterStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or (lambda: datetime.now(business_timezone()))

    def current_year(self) -> int:
        now = self.clock()
        if now.tzinfo is not None:
            now = now.astimezone(business_timezone())
        return now.year

    def next_receipt_number(self, tenant_id: str) -> str:
        """
        Allocate the next receipt number for a tenant.

        Raises:
            SequencerError: the increment failed or its outcome is unknown
        """
        year = self.current_year()
        key = counter_key(tenant_id, year)
        try:
            seq = self.store.increment_and_get(key)
        except SequencerError:
            metrics.receipt_sequencer_failure()
            logger.error("Receipt counter increment failed for %s", key)
            raise

        if not isinstance(seq, int) or seq < 1:
            metrics.receipt_sequencer_failure()
            raise SequencerError(key, f"store returned invalid counter value {seq!r}")

        number = format_receipt_number(year, seq)
        metrics.receipt_number_issued()
        logger.info("Issued receipt number %s for tenant %s", number, tenant_id)
        return number


def allocate_receipt_number_or_none(sequencer: ReceiptSequencer, tenant_id: str) -> Optional[str]:
    """Allocate a number, or return ``None`` so the receipt prints without one."""
    try:
        return sequencer.next_receipt_number(tenant_id)
    except SequencerError as exc:
        logger.warning("Printing receipt without number for tenant %s: %s", tenant_id, exc.message)
        return None
