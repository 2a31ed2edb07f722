"""Daily image-generation quota — in-memory, per user identity.

State lives for the lifetime of the process and is never persisted. A record
whose ``date_key`` is not today's UTC date counts as a fresh day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request

from src.errors import QuotaExceeded

logger = logging.getLogger(__name__)

USER_ID_HEADER = "x-user-id"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QuotaRecord:
    user_identity: str
    date_key: str
    count: int = 0


def user_identity(request: Request) -> str:
    """Quota identity: ``x-user-id`` header when present, else the caller's address."""
    header_id = request.headers.get(USER_ID_HEADER, "").strip()
    if header_id:
        return header_id
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


class ImageQuota:
    """Per-identity daily counter for image generation.

    ``check`` runs before the upstream call and reserves a slot; ``consume``
    commits it after the call succeeded and ``release`` returns it after a
    failure, so failed generations are never charged and concurrent requests
    cannot overshoot the limit.
    """

    def __init__(self, daily_limit: int, clock: Callable[[], datetime] = _utcnow) -> None:
        self.daily_limit = daily_limit
        self._clock = clock
        self._records: dict[str, QuotaRecord] = {}
        # In-flight reservations per identity
        self._pending: dict[str, int] = {}

    def today_key(self) -> str:
        return self._clock().astimezone(timezone.utc).strftime("%Y-%m-%d")

    def get(self, identity: str) -> QuotaRecord | None:
        return self._records.get(identity)

    def check(self, identity: str) -> None:
        """Reserve a use for ``identity`` or raise :class:`QuotaExceeded`."""
        today = self.today_key()
        record = self._records.get(identity)
        if record is None or record.date_key != today:
            record = QuotaRecord(user_identity=identity, date_key=today)
            self._records[identity] = record
        pending = self._pending.get(identity, 0)
        if record.count + pending >= self.daily_limit:
            logger.info(
                "Image quota exhausted for %s (%d/%d)", identity, record.count, self.daily_limit
            )
            raise QuotaExceeded()
        self._pending[identity] = pending + 1

    def release(self, identity: str) -> None:
        """Give back a reservation whose upstream call failed."""
        pending = self._pending.get(identity, 0)
        if pending <= 1:
            self._pending.pop(identity, None)
        else:
            self._pending[identity] = pending - 1

    def consume(self, identity: str) -> QuotaRecord:
        self.release(identity)
        today = self.today_key()
        record = self._records.get(identity)
        if record is None or record.date_key != today:
            record = QuotaRecord(user_identity=identity, date_key=today, count=1)
            self._records[identity] = record
        else:
            record.count += 1
        return record

    def remaining(self, identity: str) -> int:
        record = self._records.get(identity)
        if record is None or record.date_key != self.today_key():
            return self.daily_limit
        return max(self.daily_limit - record.count, 0)
