from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from qrtrack.models import QRRecord
from qrtrack.services.expiry import is_expired


def _record(**fields) -> QRRecord:
    fields.setdefault("owner_id", "o")
    fields.setdefault("destination", "https://example.com")
    fields.setdefault("scan_count", 0)
    return QRRecord(**fields)


def test_missing_record_is_expired() -> None:
    assert is_expired(None) is True


def test_fresh_record_is_usable() -> None:
    assert is_expired(_record()) is False


def test_stored_flag_wins() -> None:
    future = datetime.now(timezone.utc) + timedelta(days=1)
    assert is_expired(_record(is_expired=True, expires_at=future)) is True


@pytest.mark.parametrize(
    "delta, expected",
    [(timedelta(minutes=-1), True), (timedelta(minutes=5), False)],
)
def test_expiry_date(delta: timedelta, expected: bool) -> None:
    record = _record(expires_at=datetime.now(timezone.utc) + delta)
    assert is_expired(record) is expected


def test_naive_expiry_date_is_read_as_utc() -> None:
    past = (datetime.now(timezone.utc) - timedelta(hours=1)).replace(tzinfo=None)
    assert is_expired(_record(expires_at=past)) is True


def test_explicit_now_is_honoured() -> None:
    expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
    record = _record(expires_at=expires)
    assert is_expired(record, now=expires) is False
    assert is_expired(record, now=expires + timedelta(seconds=1)) is True


@pytest.mark.parametrize(
    "max_scans, scan_count, expected",
    [
        (3, 2, False),
        (3, 3, True),
        (3, 7, True),
        (0, 100, False),
        (None, 100, False),
    ],
)
def test_scan_ceiling(max_scans, scan_count, expected) -> None:
    record = _record(max_scans=max_scans, scan_count=scan_count)
    assert is_expired(record) is expected


def test_ceiling_is_derived_even_without_flag() -> None:
    record = _record(max_scans=1, scan_count=1)
    assert record.is_expired is not True
    assert is_expired(record) is True


def test_expired_flag_is_sticky() -> None:
    record = _record(is_expired=True)
    record.is_expired = False
    assert record.is_expired is True
    assert is_expired(record) is True
