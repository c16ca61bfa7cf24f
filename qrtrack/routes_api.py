from flask import Blueprint, current_app, g, jsonify, request

from .errors import Expired, InvalidPassword, NotFound, PasswordRequired
from .routes_public import scan_context
from .services import store
from .services.analytics import get_analytics
from .services.device import client_ip
from .services.gate import GateStatus, handle_scan, verify_password
from .services.rate_limit import check_rate_ip
from .services.tokens import require_owner

bp = Blueprint('api', __name__)


def _success_body(result):
    return {
        'success': True,
        'redirectUrl': result.destination,
        'qrCode': {
            'text': result.destination,
            'type': result.kind,
            'analytics': result.analytics,
        },
    }


@bp.get('/analytics/track/<record_id>/<tracking_id>')
def track_json(record_id, tracking_id):
    result = handle_scan(record_id, tracking_id, scan_context(tracking_id))
    if result.status is GateStatus.NOT_FOUND:
        raise NotFound()
    if result.status is GateStatus.EXPIRED:
        raise Expired('This QR code has expired')
    if result.status is GateStatus.PASSWORD_REQUIRED:
        return jsonify({
            'requiresPassword': True,
            'qrCodeId': str(result.record_id),
            'trackingId': tracking_id,
        })
    return jsonify(_success_body(result))


@bp.post('/analytics/verify-password/<record_id>')
def verify(record_id):
    check_rate_ip(
        client_ip(), 'verify',
        limit=current_app.config.get('VERIFY_RATE_LIMIT', 20),
        window=current_app.config.get('VERIFY_RATE_WINDOW', 60),
    )
    data = request.get_json(silent=True) or {}
    password = data.get('password')
    result = verify_password(record_id, password, scan_context(data.get('trackingId')))

    if result.status is GateStatus.NOT_FOUND:
        raise NotFound()
    if result.status is GateStatus.EXPIRED:
        raise Expired()
    if result.status is GateStatus.PASSWORD_REQUIRED:
        raise PasswordRequired()
    if result.status is GateStatus.INVALID_PASSWORD:
        raise InvalidPassword()
    return jsonify(_success_body(result))


@bp.get('/analytics')
@require_owner
def owner_analytics():
    view = get_analytics(owner_id=g.owner_id)
    if view is None:
        raise NotFound('No analytics found')
    return jsonify(view)


@bp.get('/analytics/<record_id>')
@require_owner
def record_analytics(record_id):
    if store.find_by_id(record_id, owner_id=g.owner_id) is None:
        raise NotFound('QR code not found or unauthorized')
    view = get_analytics(record_id=record_id)
    if view is None:
        raise NotFound('No analytics found for this QR code')
    return jsonify(view)
