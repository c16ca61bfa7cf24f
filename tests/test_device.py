from __future__ import annotations

import pytest

from qrtrack.services.device import classify_device

IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Mobile/15E148"
ANDROID = "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 Chrome/120.0 Mobile Safari/537.36"
IPAD = "Mozilla/5.0 (iPad; CPU OS 13_2 like Mac OS X) AppleWebKit/605.1.15 Version/13.0.3 Safari/604.1"
WINDOWS = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36"
MAC = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 Version/17.0 Safari/605.1.15"


@pytest.mark.parametrize(
    "ua, expected",
    [
        (IPHONE, "mobile"),
        (ANDROID, "mobile"),
        (IPAD, "tablet"),
        ("SomeTablet/1.0", "tablet"),
        (WINDOWS, "desktop"),
        (MAC, "desktop"),
        ("X11; Linux x86_64", "desktop"),
        ("curl/8.4.0", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
    ],
)
def test_classify_device(ua, expected) -> None:
    assert classify_device(ua) == expected


def test_mobile_markers_take_priority() -> None:
    # Android user agents also carry "Linux"
    assert classify_device("Linux; Android; Tablet") == "mobile"
