import secrets
from functools import wraps

import jwt
from flask import current_app, g, request

from ..errors import Unauthorized


def make_tracking_id() -> str:
    return secrets.token_urlsafe(6)


def tracking_url(record_id, tracking_id=None) -> str:
    base = current_app.config.get('BASE_URL', '').rstrip('/')
    return f"{base}/track/{record_id}/{tracking_id or make_tracking_id()}"


def decode_owner_token(token: str) -> str:
    """Validate a bearer token issued by the auth service and return the owner id."""
    alg = current_app.config.get('JWT_ALG', 'HS256')
    key = current_app.config.get('JWT_PUBLIC_KEY') if alg.startswith(('RS', 'ES')) \
        else current_app.config['SECRET_KEY']
    try:
        payload = jwt.decode(token, key, algorithms=[alg])
    except jwt.ExpiredSignatureError:
        raise Unauthorized('expired')
    except jwt.InvalidTokenError:
        raise Unauthorized('invalid')
    owner_id = payload.get('sub') or payload.get('userId')
    if not owner_id:
        raise Unauthorized('invalid')
    return str(owner_id)


def require_owner(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        auth = request.headers.get('Authorization', '')
        if not auth.startswith('Bearer '):
            raise Unauthorized('missing_token')
        g.owner_id = decode_owner_token(auth.split(' ', 1)[1].strip())
        return view(*args, **kwargs)
    return wrapper
