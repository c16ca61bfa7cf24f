import logging
import threading
import time

import redis
from flask import current_app

from ..errors import RateLimited

logger = logging.getLogger(__name__)

_lock = threading.Lock()


class _MemStore:
    def __init__(self):
        self._data = {}
        self._exp = {}
        self._lock = threading.Lock()

    def _cleanup(self):
        now = time.time()
        expired = [k for k, ts in self._exp.items() if ts <= now]
        for k in expired:
            self._data.pop(k, None)
            self._exp.pop(k, None)

    def incr(self, key):
        with self._lock:
            self._cleanup()
            v = int(self._data.get(key, '0')) + 1
            self._data[key] = str(v)
            return v

    def expire(self, key, ttl):
        with self._lock:
            self._cleanup()
            self._exp[key] = time.time() + ttl

    def setex(self, key, ttl, value):
        with self._lock:
            self._cleanup()
            self._data[key] = value
            self._exp[key] = time.time() + ttl

    def get(self, key):
        with self._lock:
            self._cleanup()
            return self._data.get(key)


def r():
    """Key/value store for the current app: Redis when reachable, else memory."""
    ext = current_app.extensions
    store = ext.get('qrtrack.kv')
    if store is not None:
        return store
    with _lock:
        store = ext.get('qrtrack.kv')
        if store is not None:
            return store
        url = current_app.config.get('REDIS_URL')
        if current_app.config.get('USE_REDIS') and url:
            try:
                client = redis.from_url(url, decode_responses=True)
                # Test connection once; fallback to memory on failure
                client.ping()
                store = client
            except redis.RedisError as exc:
                logger.warning('redis unavailable (%s), using in-memory store', exc)
        if store is None:
            store = _MemStore()
        ext['qrtrack.kv'] = store
        return store


def check_rate_ip(ip: str, scope: str, limit=20, window=60):
    k = f"rl:{scope}:{ip}:{int(time.time()//window)}"
    v = r().incr(k)
    r().expire(k, window)
    if v > limit:
        logger.info('rate limit hit scope=%s ip=%s', scope, ip)
        raise RateLimited()
