from datetime import datetime, timezone
import os
import time

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import func
from sqlalchemy.orm import validates


def _gen_bigint_id():
    """Generate a sortable 64-bit int: millis timestamp << 16 | 16 bits randomness."""
    return (int(time.time() * 1000) << 16) | int.from_bytes(os.urandom(2), 'big')


def utc_now():
    return datetime.now(timezone.utc)


def as_utc(value):
    """SQLite hands back naive datetimes; they were written as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value):
    value = as_utc(value)
    return value.isoformat() if value else None


QR_KINDS = ('url', 'text', 'vcard', 'wifi', 'email', 'sms', 'geo', 'event', 'phone')

db = SQLAlchemy()


class QRRecord(db.Model):
    __tablename__ = 'qr_record'

    id = db.Column(db.BigInteger, primary_key=True, default=_gen_bigint_id)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    destination = db.Column(db.Text, nullable=False)
    kind = db.Column(db.String(16), nullable=False, default='url')
    qr_image = db.Column(db.Text)

    # customization
    stroke_color = db.Column(db.String(16), nullable=False, default='#000000')
    background_color = db.Column(db.String(16), nullable=False, default='#ffffff')
    logo_ref = db.Column(db.Text)
    margin = db.Column(db.Integer, nullable=False, default=4)

    # security
    password = db.Column(db.String(255))
    is_password_protected = db.Column(db.Boolean, nullable=False, default=False)
    expires_at = db.Column(db.DateTime(timezone=True))
    max_scans = db.Column(db.Integer)

    # analytics
    scan_count = db.Column(db.Integer, nullable=False, default=0)
    last_scanned_at = db.Column(db.DateTime(timezone=True))

    is_expired = db.Column(db.Boolean, nullable=False, default=False)
    tags = db.Column(db.JSON, default=list)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    version_id = db.Column(db.Integer, nullable=False)

    scan_locations = db.relationship(
        'ScanLocation', order_by='ScanLocation.id', lazy='select',
        cascade='all, delete-orphan',
    )
    device_counts = db.relationship(
        'DeviceCount', order_by='DeviceCount.id', lazy='select',
        cascade='all, delete-orphan',
    )
    daily_counts = db.relationship(
        'DailyScanCount', order_by='DailyScanCount.id', lazy='select',
        cascade='all, delete-orphan',
    )

    __mapper_args__ = {'version_id_col': version_id}

    @validates('is_expired')
    def _sticky_expired(self, key, value):
        # once expired, always expired
        if self.is_expired:
            return True
        return bool(value)

    @validates('kind')
    def _check_kind(self, key, value):
        if value not in QR_KINDS:
            raise ValueError(f'unknown kind {value!r}')
        return value

    @validates('max_scans')
    def _check_max_scans(self, key, value):
        if value is not None and int(value) < 0:
            raise ValueError('max_scans must be positive')
        return value

    def device_map(self):
        return {d.device_class: d.count for d in self.device_counts}

    def analytics_dict(self):
        return {
            'scanCount': self.scan_count or 0,
            'lastScanned': _iso(self.last_scanned_at),
            'scanLocations': [loc.to_dict() for loc in self.scan_locations],
            'devices': [{'type': d.device_class, 'count': d.count} for d in self.device_counts],
        }

    def to_dict(self):
        return {
            'id': str(self.id),
            'userId': self.owner_id,
            'text': self.destination,
            'qrType': self.kind,
            'qrImage': self.qr_image,
            'customization': {
                'color': self.stroke_color,
                'backgroundColor': self.background_color,
                'logo': self.logo_ref,
                'margin': self.margin,
            },
            'security': {
                'isPasswordProtected': bool(self.is_password_protected),
                'expiresAt': _iso(self.expires_at),
                'maxScans': self.max_scans or 0,
            },
            'analytics': self.analytics_dict(),
            'tags': list(self.tags or []),
            'isExpired': bool(self.is_expired),
            'createdAt': _iso(self.created_at),
            'version': self.version_id,
        }

    def __repr__(self):
        return f'<QRRecord id={self.id} owner={self.owner_id!r} scans={self.scan_count}>'


class ScanLocation(db.Model):
    """Append-only log of scan locations."""
    __tablename__ = 'scan_location'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    record_id = db.Column(db.BigInteger, db.ForeignKey('qr_record.id', ondelete='CASCADE'),
                          nullable=False, index=True)
    country = db.Column(db.String(64), nullable=False, default='Unknown')
    city = db.Column(db.String(128), nullable=False, default='Unknown')
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)

    def to_dict(self):
        return {'country': self.country, 'city': self.city, 'timestamp': _iso(self.timestamp)}


class DeviceCount(db.Model):
    __tablename__ = 'device_count'
    __table_args__ = (
        db.UniqueConstraint('record_id', 'device_class', name='uq_device_count_record_class'),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    record_id = db.Column(db.BigInteger, db.ForeignKey('qr_record.id', ondelete='CASCADE'),
                          nullable=False, index=True)
    device_class = db.Column(db.String(16), nullable=False)
    count = db.Column(db.Integer, nullable=False, default=0)


class DailyScanCount(db.Model):
    """Scans per record per UTC day; every recorded scan lands in exactly one row."""
    __tablename__ = 'daily_scan_count'
    __table_args__ = (
        db.UniqueConstraint('record_id', 'day', name='uq_daily_scan_count_record_day'),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    record_id = db.Column(db.BigInteger, db.ForeignKey('qr_record.id', ondelete='CASCADE'),
                          nullable=False, index=True)
    day = db.Column(db.Date, nullable=False)
    count = db.Column(db.Integer, nullable=False, default=0)
