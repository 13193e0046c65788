import secrets
from datetime import datetime, timezone
from typing import Optional


class SystemClock:
    """Current UTC time and secure random bytes."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def random_bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
