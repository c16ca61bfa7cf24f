"""Record store: thin persistence layer over the SQLAlchemy session.

Every function works on the request-scoped ``db.session``. ``save`` commits,
so a concurrent write to the same record surfaces as
``sqlalchemy.orm.exc.StaleDataError`` (see ``QRRecord.version_id``).
"""
from sqlalchemy import func

from ..models import db, DailyScanCount, DeviceCount, QRRecord, ScanLocation


def find(owner_id=None, ids=None):
    q = QRRecord.query
    if owner_id is not None:
        q = q.filter(QRRecord.owner_id == owner_id)
    if ids is not None:
        q = q.filter(QRRecord.id.in_(list(ids)))
    return q.order_by(QRRecord.created_at, QRRecord.id).all()


def find_by_id(record_id, owner_id=None, for_update=False):
    try:
        record_id = int(record_id)
    except (TypeError, ValueError):
        return None
    if owner_id is not None:
        return QRRecord.query.filter_by(id=record_id, owner_id=owner_id).first()
    if for_update:
        # bypass the identity map so a retry sees the committed row
        return db.session.get(QRRecord, record_id, populate_existing=True)
    return db.session.get(QRRecord, record_id)


def find_counter(model, record_id, **key):
    """Counter row of ``model`` (DeviceCount, DailyScanCount) for one record, or None."""
    return model.query.filter_by(record_id=record_id, **key).first()


# Owner-wide aggregates run in the database; the per-record rows are never loaded.

def _owned(query, model):
    return query.join(QRRecord, QRRecord.id == model.record_id)


def scans_by_device(owner_id):
    total = func.sum(DeviceCount.count)
    q = _owned(db.session.query(DeviceCount.device_class, total), DeviceCount)
    rows = q.filter(QRRecord.owner_id == owner_id).group_by(DeviceCount.device_class) \
        .order_by(DeviceCount.device_class).all()
    return {device: int(n or 0) for device, n in rows}


def scans_by_country(owner_id):
    q = _owned(db.session.query(ScanLocation.country, func.count(ScanLocation.id)), ScanLocation)
    rows = q.filter(QRRecord.owner_id == owner_id).group_by(ScanLocation.country) \
        .order_by(ScanLocation.country).all()
    return {country: int(n) for country, n in rows}


def scans_by_day(owner_id):
    total = func.sum(DailyScanCount.count)
    q = _owned(db.session.query(DailyScanCount.day, total), DailyScanCount)
    rows = q.filter(QRRecord.owner_id == owner_id).group_by(DailyScanCount.day) \
        .order_by(DailyScanCount.day).all()
    return {day.isoformat(): int(n or 0) for day, n in rows}


def save(record):
    db.session.add(record)
    db.session.commit()
    return record


def save_all(records):
    db.session.add_all(records)
    db.session.commit()
    return records


def delete_by_id(record_id, owner_id=None):
    record = find_by_id(record_id, owner_id=owner_id)
    if record is None:
        return False
    db.session.delete(record)
    db.session.commit()
    return True


def delete_many(ids, owner_id=None):
    ids = [int(i) for i in ids]
    records = find(owner_id=owner_id, ids=ids)
    for record in records:
        db.session.delete(record)
    db.session.commit()
    return len(records)


def rollback():
    db.session.rollback()
