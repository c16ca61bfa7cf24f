"""Access decisions for a single scan.

``handle_scan`` answers a tracking-link hit; ``verify_password`` is the
follow-up call for password-protected records. Both return a ``GateResult``
and never raise for the expected outcomes (not found, expired, password
problems); the HTTP layer maps the status to a response.
"""
from dataclasses import dataclass, field
import enum
import logging

from . import geo, store
from .expiry import is_expired
from .passwords import passwords_match
from .scans import ScanContext, record_scan

logger = logging.getLogger(__name__)


class GateStatus(str, enum.Enum):
    NOT_FOUND = 'not_found'
    EXPIRED = 'expired'
    PASSWORD_REQUIRED = 'password_required'
    INVALID_PASSWORD = 'invalid_password'
    REDIRECT = 'redirect'
    SUCCESS = 'success'


@dataclass
class GateResult:
    status: GateStatus
    record_id: object = None
    tracking_id: str | None = None
    destination: str | None = None
    kind: str | None = None
    analytics: dict = field(default_factory=dict)


def _snapshot(record):
    return {'scanCount': record.scan_count or 0, 'maxScans': record.max_scans or 0}


def _record_quietly(record_id, ctx):
    """Record a scan; failures are logged and never reach the caller."""
    try:
        if ctx.source_ip and not ctx.has_location:
            ctx = ctx.with_location(geo.lookup(ctx.source_ip))
        return record_scan(record_id, ctx)
    except Exception:
        logger.exception('scan recording failed for %s, continuing', record_id)
        return None


def handle_scan(record_id, tracking_id, ctx=None) -> GateResult:
    ctx = ctx or ScanContext()
    record = store.find_by_id(record_id)
    if record is None:
        return GateResult(GateStatus.NOT_FOUND, record_id, tracking_id)

    if is_expired(record):
        return GateResult(GateStatus.EXPIRED, record.id, tracking_id)

    if record.is_password_protected:
        return GateResult(GateStatus.PASSWORD_REQUIRED, record.id, tracking_id)

    record_id, destination, kind = record.id, record.destination, record.kind
    snapshot = _snapshot(record)
    updated = _record_quietly(record_id, ctx)
    if updated is None:
        logger.warning('scan for %s not recorded, redirecting anyway', record_id)
    else:
        snapshot = _snapshot(updated)
    return GateResult(GateStatus.REDIRECT, record_id, tracking_id, destination, kind, snapshot)


def verify_password(record_id, supplied_password, ctx=None) -> GateResult:
    ctx = ctx or ScanContext()
    record = store.find_by_id(record_id)
    if record is None:
        return GateResult(GateStatus.NOT_FOUND, record_id)

    if is_expired(record):
        return GateResult(GateStatus.EXPIRED, record.id)

    record_id, destination, kind = record.id, record.destination, record.kind
    snapshot = _snapshot(record)

    if not record.is_password_protected:
        return GateResult(GateStatus.SUCCESS, record_id, ctx.tracking_id, destination, kind, snapshot)

    if not supplied_password:
        return GateResult(GateStatus.PASSWORD_REQUIRED, record_id, ctx.tracking_id)

    if not passwords_match(record.password, supplied_password):
        logger.info('invalid password for %s', record_id)
        return GateResult(GateStatus.INVALID_PASSWORD, record_id, ctx.tracking_id)

    updated = _record_quietly(record_id, ctx)
    if updated is not None:
        snapshot = _snapshot(updated)
    return GateResult(GateStatus.SUCCESS, record_id, ctx.tracking_id, destination, kind, snapshot)
