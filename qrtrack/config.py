import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name, default='1'):
    return os.environ.get(name, default).lower() not in ('0', 'false', 'no')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///local.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_PUBLIC_KEY = os.environ.get('JWT_PUBLIC_KEY')
    JWT_ALG = os.environ.get('JWT_ALG')
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
    USE_REDIS = _flag('USE_REDIS')
    BASE_URL = os.environ.get('BASE_URL', 'http://localhost:5000')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Geolocation collaborator (ip-api.com compatible JSON)
    GEOIP_ENABLED = _flag('GEOIP_ENABLED')
    GEOIP_URL = os.environ.get('GEOIP_URL', 'http://ip-api.com/json/{ip}')
    GEOIP_TIMEOUT = float(os.environ.get('GEOIP_TIMEOUT', '3'))
    GEOIP_CACHE_TTL = int(os.environ.get('GEOIP_CACHE_TTL', '86400'))

    SCAN_RECORD_RETRIES = int(os.environ.get('SCAN_RECORD_RETRIES', '3'))
    VERIFY_RATE_LIMIT = int(os.environ.get('VERIFY_RATE_LIMIT', '20'))
    VERIFY_RATE_WINDOW = int(os.environ.get('VERIFY_RATE_WINDOW', '60'))
    LOGO_DIR = os.environ.get('LOGO_DIR', 'uploads/logos')

    def __init__(self):
        # Optional fallbacks to support Secret Files on Render (/etc/secrets)
        if not self.JWT_PUBLIC_KEY:
            for p in ('/etc/secrets/jwt.pub', 'jwt.pub'):
                try:
                    with open(p, 'r') as f:
                        self.JWT_PUBLIC_KEY = f.read().strip()
                        break
                except OSError:
                    continue
        if not self.JWT_ALG:
            # RS256 against the auth service public key, else HS256 on SECRET_KEY
            self.JWT_ALG = 'RS256' if self.JWT_PUBLIC_KEY else 'HS256'
        if (not self.SECRET_KEY) or self.SECRET_KEY == 'dev':
            try:
                with open('/etc/secrets/secret_key', 'r') as f:
                    self.SECRET_KEY = f.read().strip()
            except OSError:
                pass
