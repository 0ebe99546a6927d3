# digital_menu/util/time.py
from datetime import datetime, timezone


def utcnow_naive() -> datetime:
    # Naive UTC (no tzinfo), matching the DateTime columns; keeps microseconds
    return datetime.now(timezone.utc).replace(tzinfo=None)
