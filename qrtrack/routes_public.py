from flask import Blueprint, redirect, render_template, request

from .services.device import client_ip
from .services.gate import GateStatus, handle_scan
from .services.scans import ScanContext

bp = Blueprint('public', __name__)


def scan_context(tracking_id=None):
    return ScanContext(
        user_agent=request.headers.get('User-Agent', ''),
        source_ip=client_ip(),
        referer=request.headers.get('Referer'),
        tracking_id=tracking_id,
    )


@bp.get('/track/<record_id>/<tracking_id>')
def track(record_id, tracking_id):
    result = handle_scan(record_id, tracking_id, scan_context(tracking_id))

    if result.status is GateStatus.NOT_FOUND:
        return render_template('not_found.html'), 404
    if result.status is GateStatus.EXPIRED:
        return render_template('expired.html')
    if result.status is GateStatus.PASSWORD_REQUIRED:
        return render_template('password.html', record_id=result.record_id, tracking_id=tracking_id)
    return redirect(result.destination)
