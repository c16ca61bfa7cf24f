"""Geolocation collaborator: client address -> {country, city}."""
import ipaddress
import json
import logging

import redis
import requests
from flask import current_app

from .rate_limit import r

logger = logging.getLogger(__name__)

UNKNOWN = {'country': 'Unknown', 'city': 'Unknown'}


def _is_public(ip: str) -> bool:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return addr.is_global


def _fetch(ip: str) -> dict:
    url = current_app.config['GEOIP_URL'].format(ip=ip)
    resp = requests.get(url, timeout=current_app.config.get('GEOIP_TIMEOUT', 3))
    if resp.status_code != 200:
        return dict(UNKNOWN)
    data = resp.json()
    if data.get('status') not in (None, 'success'):
        return dict(UNKNOWN)
    return {
        'country': data.get('country') or 'Unknown',
        'city': data.get('city') or 'Unknown',
    }


def lookup(ip: str | None) -> dict:
    """Return ``{'country', 'city'}`` for ``ip``; Unknown on any failure."""
    if not ip or not current_app.config.get('GEOIP_ENABLED') or not _is_public(ip):
        return dict(UNKNOWN)

    key = f"geo:{ip}"
    try:
        cached = r().get(key)
    except redis.RedisError:
        cached = None
    if cached:
        return json.loads(cached)

    try:
        loc = _fetch(ip)
    except (requests.RequestException, ValueError) as exc:
        logger.warning('geolocation lookup failed for %s: %s', ip, exc)
        return dict(UNKNOWN)

    try:
        r().setex(key, current_app.config.get('GEOIP_CACHE_TTL', 86400), json.dumps(loc))
    except redis.RedisError:
        logger.debug('could not cache geolocation for %s', ip)
    return loc
