from flask import request

MOBILE_MARKERS = ('Mobile', 'Android', 'iPhone')
TABLET_MARKERS = ('Tablet', 'iPad')
DESKTOP_MARKERS = ('Windows', 'Macintosh', 'Linux')


def classify_device(user_agent: str | None) -> str:
    """Map a User-Agent string to mobile, tablet, desktop or unknown.

    Order matters: mobile markers win over tablet and desktop ones.
    """
    ua = user_agent or ''
    if any(m in ua for m in MOBILE_MARKERS):
        return 'mobile'
    if any(m in ua for m in TABLET_MARKERS):
        return 'tablet'
    if any(m in ua for m in DESKTOP_MARKERS):
        return 'desktop'
    return 'unknown'


def client_ip() -> str:
    # ProxyFix has already applied X-Forwarded-For
    ip = request.remote_addr or '0.0.0.0'
    if ip.startswith('::ffff:'):
        ip = ip[len('::ffff:'):]
    return ip
