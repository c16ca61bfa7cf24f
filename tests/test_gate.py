from __future__ import annotations

from datetime import datetime, timedelta, timezone

from qrtrack.services import gate
from qrtrack.services.gate import GateStatus, handle_scan, verify_password
from qrtrack.services.scans import ScanContext

CTX = ScanContext(user_agent="Mozilla/5.0 (iPhone) Mobile", source_ip="127.0.0.1")


def test_unknown_record_is_not_found(app) -> None:
    result = handle_scan(424242, "t1", CTX)
    assert result.status is GateStatus.NOT_FOUND


def test_non_numeric_id_is_not_found(app) -> None:
    assert handle_scan("not-an-id", "t1", CTX).status is GateStatus.NOT_FOUND
    assert verify_password("not-an-id", "pw", CTX).status is GateStatus.NOT_FOUND


def test_expired_record_is_not_recorded(make_record, reload) -> None:
    record = make_record(max_scans=2, scan_count=2)
    result = handle_scan(record.id, "t1", CTX)
    assert result.status is GateStatus.EXPIRED
    assert reload(record.id).scan_count == 2


def test_protected_record_asks_for_password_without_counting(make_record, reload) -> None:
    record = make_record(is_password_protected=True, password="s3cret")
    result = handle_scan(record.id, "track-9", CTX)
    assert result.status is GateStatus.PASSWORD_REQUIRED
    assert result.record_id == record.id
    assert result.tracking_id == "track-9"
    assert reload(record.id).scan_count == 0


def test_open_record_redirects_and_counts(make_record, reload) -> None:
    record = make_record(destination="https://example.org/menu")
    result = handle_scan(record.id, "t1", CTX)
    assert result.status is GateStatus.REDIRECT
    assert result.destination == "https://example.org/menu"
    assert result.analytics == {"scanCount": 1, "maxScans": 0}
    fresh = reload(record.id)
    assert fresh.scan_count == 1
    assert fresh.device_map() == {"mobile": 1}


def test_recording_failure_still_redirects(make_record, reload, monkeypatch) -> None:
    record = make_record(destination="https://example.org/menu")

    def explode(*args, **kwargs):
        raise RuntimeError("analytics backend down")

    monkeypatch.setattr(gate, "record_scan", explode)
    result = handle_scan(record.id, "t1", CTX)
    assert result.status is GateStatus.REDIRECT
    assert result.destination == "https://example.org/menu"
    assert reload(record.id).scan_count == 0


def test_recorder_returning_none_still_redirects(make_record, monkeypatch) -> None:
    record = make_record(scan_count=4, max_scans=9)
    monkeypatch.setattr(gate, "record_scan", lambda *a, **k: None)
    result = handle_scan(record.id, "t1", CTX)
    assert result.status is GateStatus.REDIRECT
    # falls back to the record as loaded before the scan
    assert result.analytics == {"scanCount": 4, "maxScans": 9}


def test_verify_correct_password_records_one_scan(make_record, reload) -> None:
    record = make_record(is_password_protected=True, password="s3cret", max_scans=0)
    result = verify_password(record.id, "s3cret", CTX)
    assert result.status is GateStatus.SUCCESS
    assert result.destination == "https://example.com/landing"
    assert result.analytics == {"scanCount": 1, "maxScans": 0}
    assert reload(record.id).scan_count == 1


def test_verify_wrong_password_never_counts(make_record, reload) -> None:
    record = make_record(is_password_protected=True, password="s3cret")
    for attempt in ("wrong", "S3CRET", "s3cret "):
        assert verify_password(record.id, attempt, CTX).status is GateStatus.INVALID_PASSWORD
    assert reload(record.id).scan_count == 0


def test_verify_missing_password_is_distinct(make_record) -> None:
    record = make_record(is_password_protected=True, password="s3cret")
    assert verify_password(record.id, None, CTX).status is GateStatus.PASSWORD_REQUIRED
    assert verify_password(record.id, "", CTX).status is GateStatus.PASSWORD_REQUIRED


def test_verify_checks_expiry_before_password(make_record, reload) -> None:
    record = make_record(
        is_password_protected=True,
        password="s3cret",
        expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
    )
    assert verify_password(record.id, "s3cret", CTX).status is GateStatus.EXPIRED
    assert reload(record.id).scan_count == 0


def test_verify_unprotected_record_opens_directly(make_record, reload) -> None:
    record = make_record(scan_count=3, max_scans=10)
    result = verify_password(record.id, None, CTX)
    assert result.status is GateStatus.SUCCESS
    assert result.analytics == {"scanCount": 3, "maxScans": 10}
    assert reload(record.id).scan_count == 3


def test_verify_last_allowed_scan_expires_record(make_record, reload) -> None:
    record = make_record(is_password_protected=True, password="pw", max_scans=1)
    assert verify_password(record.id, "pw", CTX).status is GateStatus.SUCCESS
    assert reload(record.id).is_expired is True
    assert verify_password(record.id, "pw", CTX).status is GateStatus.EXPIRED
