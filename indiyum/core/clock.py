import time
from datetime import datetime

import pytz

from indiyum.core.config import settings


def now_ms() -> int:
    return int(time.time() * 1000)


def now_iso(tz_name: str | None = None) -> str:
    """Current time as ISO-8601 in the business timezone."""
    tz = pytz.timezone(tz_name or settings.TIMEZONE)
    return datetime.now(tz).isoformat()
