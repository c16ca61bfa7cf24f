"""Scan recording: the per-record read-modify-write behind every counted scan."""
from dataclasses import dataclass, replace
import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..models import as_utc, db, DailyScanCount, DeviceCount, ScanLocation, utc_now
from . import store
from .device import classify_device
from .expiry import is_expired, scan_limit_reached

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanContext:
    user_agent: str = ''
    source_ip: str = ''
    referer: str | None = None
    tracking_id: str | None = None
    country: str = 'Unknown'
    city: str = 'Unknown'

    def with_location(self, loc):
        return replace(self, country=loc.get('country') or 'Unknown', city=loc.get('city') or 'Unknown')

    @property
    def has_location(self):
        return any(v and v != 'Unknown' for v in (self.country, self.city))


def _bump(model, record_id, **key):
    counter = store.find_counter(model, record_id, **key)
    if counter is None:
        # a concurrent insert of the same key fails the commit on the unique constraint
        db.session.add(model(record_id=record_id, count=1, **key))
    else:
        counter.count += 1


class _Skip(Exception):
    """Raised inside an attempt when the record cannot take a scan."""


def _apply_scan(record_id, ctx, now):
    record = store.find_by_id(record_id, for_update=True)
    if record is None:
        raise _Skip('not found')

    if is_expired(record, now):
        if not record.is_expired:
            record.is_expired = True
            store.save(record)
        raise _Skip('expired')

    device = classify_device(ctx.user_agent)

    record.scan_count = (record.scan_count or 0) + 1
    record.last_scanned_at = now

    if ctx.has_location:
        # appended without loading the existing log
        db.session.add(ScanLocation(
            record_id=record.id,
            country=ctx.country or 'Unknown',
            city=ctx.city or 'Unknown',
            timestamp=now,
        ))

    _bump(DeviceCount, record.id, device_class=device)
    _bump(DailyScanCount, record.id, day=as_utc(now).date())

    if scan_limit_reached(record):
        record.is_expired = True

    return store.save(record)


def record_scan(record_id, ctx=None, now=None):
    """Record one scan of ``record_id`` and return the updated record.

    Returns None when the record is missing, already expired, or the store
    failed. Concurrent writers are detected through the record version and the
    whole scan is reapplied on a fresh copy.
    """
    ctx = ctx or ScanContext()
    attempts = max(1, int(current_app.config.get('SCAN_RECORD_RETRIES', 3)))
    for attempt in range(1, attempts + 1):
        try:
            record = _apply_scan(record_id, ctx, now or utc_now())
        except _Skip as reason:
            logger.info('scan not recorded for %s: %s', record_id, reason)
            return None
        except (StaleDataError, IntegrityError):
            store.rollback()
            logger.info('write conflict recording scan for %s (attempt %d/%d)', record_id, attempt, attempts)
            continue
        except SQLAlchemyError:
            store.rollback()
            logger.exception('error recording scan for %s', record_id)
            return None
        logger.debug('scan recorded for %s count=%s tracking=%s', record_id, record.scan_count, ctx.tracking_id)
        return record
    logger.error('gave up recording scan for %s after %d attempts', record_id, attempts)
    return None
