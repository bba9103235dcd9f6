"""UTC timestamps for bill, order and payment records"""

from datetime import datetime, timezone


def get_utc_now() -> datetime:
    """
    Naive UTC now, matching the TIMESTAMP WITHOUT TIME ZONE columns
    (closed_at, confirmed_at, approved_at, created_at).
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
