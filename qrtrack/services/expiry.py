from ..models import as_utc, utc_now


def scan_limit_reached(record) -> bool:
    max_scans = record.max_scans or 0
    return max_scans > 0 and (record.scan_count or 0) >= max_scans


def is_expired(record, now=None) -> bool:
    """Return True when ``record`` can no longer be scanned.

    A missing record counts as expired. The stored ``is_expired`` flag is only
    a cache of this predicate: a past ``expires_at`` or a reached scan ceiling
    make the record expired even before the flag is persisted.
    """
    if record is None:
        return True
    if record.is_expired:
        return True
    if record.expires_at is not None:
        now = now or utc_now()
        if now > as_utc(record.expires_at):
            return True
    if scan_limit_reached(record):
        return True
    return False
