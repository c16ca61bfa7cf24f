import logging

from sqlalchemy.exc import SQLAlchemyError

from . import store

logger = logging.getLogger(__name__)


def _owner_rollup(owner_id):
    records = store.find(owner_id=owner_id)
    view = {
        'totalQrCodes': len(records),
        'totalScans': 0,
        'scansByDate': store.scans_by_day(owner_id),
        'scansByDevice': store.scans_by_device(owner_id),
        'scansByLocation': store.scans_by_country(owner_id),
        'mostScanned': None,
    }
    top = 0
    for rec in records:
        count = rec.scan_count or 0
        view['totalScans'] += count
        # strict > keeps the first record on ties
        if count > top:
            top = count
            view['mostScanned'] = {'id': str(rec.id), 'text': rec.destination, 'scanCount': count}
    return view


def get_analytics(record_id=None, owner_id=None):
    """Analytics for one record, or a rollup over all records of an owner.

    ``record_id`` takes precedence. Returns None when neither is given, when
    the record does not exist, or when the store fails.
    """
    try:
        if record_id is not None:
            record = store.find_by_id(record_id)
            return record.analytics_dict() if record is not None else None
        if owner_id is not None:
            return _owner_rollup(owner_id)
    except SQLAlchemyError:
        store.rollback()
        logger.exception('error computing analytics record=%s owner=%s', record_id, owner_id)
    return None
