"""TTL stamping and read-time expiration checks."""

from datetime import datetime
from numbers import Real
from typing import Any, Callable, Optional

from ..models.record import Record
from ..utils.date_utils import calculate_expiry, is_expired, utcnow

Clock = Callable[[], datetime]


class ExpirationPolicy:
    """Decides when records expire.

    Expiration is soft: the backend may still hold an expired record, but
    no read ever returns it. Callers sample ``now()`` once per operation and
    pass it to ``stamp_for``/``is_expired`` so every decision in that
    operation agrees.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return self._clock()

    @staticmethod
    def should_expire(ttl_seconds: Any) -> bool:
        """True when ``ttl_seconds`` is a positive number."""
        if ttl_seconds is None or isinstance(ttl_seconds, bool):
            return False
        if not isinstance(ttl_seconds, Real):
            return False
        return ttl_seconds > 0

    def stamp_for(self, ttl_seconds: Any, now: Optional[datetime] = None) -> Optional[datetime]:
        """Expiration timestamp for a write with ``ttl_seconds``, or None for permanent.

        A TTL that reaches past the last representable datetime never expires.
        """
        if not self.should_expire(ttl_seconds):
            return None
        try:
            return calculate_expiry(float(ttl_seconds), now or self.now())
        except OverflowError:
            return None

    def is_expired(self, record: Record, now: Optional[datetime] = None) -> bool:
        return is_expired(record.expire_at, now or self.now())

    def visible(self, record: Optional[Record], now: Optional[datetime] = None) -> Optional[Record]:
        """Return ``record`` unless it is missing or expired."""
        if record is None or self.is_expired(record, now):
            return None
        return record
