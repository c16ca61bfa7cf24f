import os, sys, pathlib
# Ensure project root is on PYTHONPATH when running directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from qrtrack import create_app
from qrtrack.services import store
from qrtrack.services.qr import make_qr_bytes
from qrtrack.services.tokens import tracking_url

# Usage: python scripts/make_qr.py <RECORD_ID> [OUT_PNG]
# Renders the tracking QR of a stored record with its colors and margin.


def main():
    if len(sys.argv) < 2:
        print("Usage: make_qr.py <RECORD_ID> [OUT_PNG]")
        sys.exit(1)
    out = sys.argv[2] if len(sys.argv) > 2 else os.environ.get('OUT', 'qr.png')

    app = create_app()
    with app.app_context():
        record = store.find_by_id(sys.argv[1])
        if record is None:
            print("ERROR: no such QR record")
            sys.exit(1)
        url = tracking_url(record.id)
        png = make_qr_bytes(url, color=record.stroke_color, background=record.background_color,
                            margin=record.margin)
    with open(out, 'wb') as f:
        f.write(png)
    print("URL:", url)
    print("PNG saved to", out)


if __name__ == "__main__":
    main()
