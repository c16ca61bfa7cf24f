from datetime import datetime, timezone
import base64
import io
import logging
import os

from flask import Blueprint, current_app, g, jsonify, request, send_file
from sqlalchemy.orm.exc import StaleDataError

from .errors import BadRequest, Conflict, NotFound
from .models import QRRecord, QR_KINDS, _gen_bigint_id
from .services import store
from .services.content import format_content
from .services.qr import make_qr_bytes
from .services.tokens import make_tracking_id, require_owner, tracking_url

logger = logging.getLogger(__name__)

bp = Blueprint('qrcodes', __name__)


def _int(value, name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequest(f'invalid {name}')


def _parse_dt(value):
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise BadRequest('invalid expiresAt')
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _logo_path(record):
    if not record.logo_ref:
        return None
    path = os.path.join(current_app.config.get('LOGO_DIR', 'uploads/logos'), os.path.basename(record.logo_ref))
    return path if os.path.isfile(path) else None


def _render(record, url):
    return make_qr_bytes(
        url,
        color=record.stroke_color or '#000000',
        background=record.background_color or '#ffffff',
        margin=record.margin if record.margin is not None else 4,
        logo_path=_logo_path(record),
    )


def _apply_fields(record, data):
    if 'text' in data:
        if not data['text']:
            raise BadRequest('text required')
        record.destination = data['text']
    if 'qrType' in data:
        if data['qrType'] not in QR_KINDS:
            raise BadRequest('invalid qrType')
        record.kind = data['qrType']
    if 'qrImage' in data:
        record.qr_image = data['qrImage']
    if 'tags' in data:
        record.tags = [str(t) for t in (data['tags'] or [])]

    custom = data.get('customization') or {}
    if 'color' in custom:
        record.stroke_color = custom['color'] or '#000000'
    if 'backgroundColor' in custom:
        record.background_color = custom['backgroundColor'] or '#ffffff'
    if 'logo' in custom:
        record.logo_ref = custom['logo']
    if 'margin' in custom:
        record.margin = _int(custom['margin'], 'margin')

    sec = data.get('security') or {}
    if 'isPasswordProtected' in sec:
        record.is_password_protected = bool(sec['isPasswordProtected'])
    if 'password' in sec:
        record.password = sec['password'] or None
    if not record.is_password_protected:
        record.password = None
    elif not record.password:
        raise BadRequest('password required for protected QR code')
    if 'expiresAt' in sec:
        record.expires_at = _parse_dt(sec['expiresAt'])
    if 'maxScans' in sec:
        max_scans = _int(sec['maxScans'] or 0, 'maxScans')
        if max_scans < 0:
            raise BadRequest('maxScans must be positive')
        record.max_scans = max_scans or None
    if data.get('isExpired'):
        record.is_expired = True


def _new_record(data, owner_id):
    if not data.get('text'):
        raise BadRequest('text required')
    # Explicit PK so the tracking URL can be encoded before the first commit
    record = QRRecord(id=_gen_bigint_id(), owner_id=owner_id, kind='url', tags=[])
    _apply_fields(record, data)
    return record


@bp.get('')
@require_owner
def list_records():
    records = store.find(owner_id=g.owner_id)
    return jsonify([rec.to_dict() for rec in reversed(records)])


@bp.get('/<record_id>')
@require_owner
def get_record(record_id):
    record = store.find_by_id(record_id, owner_id=g.owner_id)
    if record is None:
        raise NotFound('QR code not found or unauthorized')
    return jsonify(record.to_dict())


@bp.post('')
@require_owner
def create_record():
    data = request.get_json(silent=True) or {}
    record = _new_record(data, g.owner_id)
    url = tracking_url(record.id, make_tracking_id())
    png = _render(record, url)
    if not record.qr_image:
        record.qr_image = 'data:image/png;base64,' + base64.b64encode(png).decode('ascii')
    store.save(record)
    logger.info('created QR code %s for owner %s', record.id, g.owner_id)
    body = record.to_dict()
    body['trackingUrl'] = url
    body['qr_png_b64'] = base64.b64encode(png).decode('ascii')
    return jsonify(body), 201


@bp.post('/bulk')
@require_owner
def bulk_create():
    data = request.get_json(silent=True) or {}
    items = data.get('qrCodes')
    if not isinstance(items, list) or not items:
        raise BadRequest('No QR codes provided')
    records = []
    for item in items:
        record = _new_record(item or {}, g.owner_id)
        records.append(record)
    store.save_all(records)
    body = []
    for record in records:
        out = record.to_dict()
        out['trackingUrl'] = tracking_url(record.id)
        body.append(out)
    return jsonify(body), 201


@bp.put('/<record_id>')
@require_owner
def update_record(record_id):
    record = store.find_by_id(record_id, owner_id=g.owner_id)
    if record is None:
        raise NotFound('QR code not found or unauthorized')
    data = request.get_json(silent=True) or {}
    data.pop('userId', None)
    if 'version' in data and data['version'] is not None and _int(data['version'], 'version') != record.version_id:
        raise Conflict()
    _apply_fields(record, data)
    try:
        store.save(record)
    except StaleDataError:
        store.rollback()
        raise Conflict()
    return jsonify(record.to_dict())


@bp.delete('/bulk')
@require_owner
def bulk_delete():
    data = request.get_json(silent=True) or {}
    ids = data.get('ids')
    if not isinstance(ids, list) or not ids:
        raise BadRequest('No QR code IDs provided')
    try:
        deleted = store.delete_many(ids, owner_id=g.owner_id)
    except (TypeError, ValueError):
        raise BadRequest('invalid id')
    return jsonify({'message': 'QR codes deleted successfully', 'deletedCount': deleted})


@bp.delete('/<record_id>')
@require_owner
def delete_record(record_id):
    if not store.delete_by_id(record_id, owner_id=g.owner_id):
        raise NotFound('QR code not found or unauthorized')
    return jsonify({'message': 'QR code deleted successfully'})


@bp.get('/<record_id>/image')
@require_owner
def record_image(record_id):
    record = store.find_by_id(record_id, owner_id=g.owner_id)
    if record is None:
        raise NotFound('QR code not found or unauthorized')
    png = _render(record, tracking_url(record.id, request.args.get('t')))
    return send_file(
        io.BytesIO(png), mimetype='image/png', as_attachment=False, download_name=f"qr_{record.id}.png",
        etag=False,
    )


@bp.post('/format-content')
@require_owner
def format_content_view():
    data = request.get_json(silent=True) or {}
    return jsonify({'formattedContent': format_content(data.get('qrType'), data.get('data'))})
