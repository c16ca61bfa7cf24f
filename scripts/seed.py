import os, sys, pathlib
from datetime import datetime, timedelta, timezone
# Ensure project root is on PYTHONPATH when running directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from qrtrack import create_app
from qrtrack.models import QRRecord
from qrtrack.services import store
from qrtrack.services.tokens import tracking_url

owner = os.environ.get('SEED_OWNER_ID', 'demo-user')

app = create_app()
with app.app_context():
    open_code = store.save(QRRecord(owner_id=owner, destination='https://example.com', kind='url', tags=['demo']))
    locked = store.save(QRRecord(
        owner_id=owner, destination='https://example.com/private', kind='url',
        is_password_protected=True, password='letmein', max_scans=10,
        expires_at=datetime.now(timezone.utc) + timedelta(days=7),
    ))
    print('Open QR URL:  ', tracking_url(open_code.id))
    print('Locked QR URL:', tracking_url(locked.id), '(password: letmein)')
