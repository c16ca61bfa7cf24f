"""Turn structured form data into the string a QR code of a given kind encodes."""
from urllib.parse import urlencode, quote


def _esc_wifi(value):
    out = str(value or '')
    for ch in ('\\', ';', ',', ':', '"'):
        out = out.replace(ch, '\\' + ch)
    return out


def format_vcard(data):
    lines = ['BEGIN:VCARD', 'VERSION:3.0']
    first, last = data.get('firstName', ''), data.get('lastName', '')
    lines.append(f"N:{last};{first};;;")
    lines.append(f"FN:{(first + ' ' + last).strip()}")
    if data.get('organization'):
        lines.append(f"ORG:{data['organization']}")
    if data.get('title'):
        lines.append(f"TITLE:{data['title']}")
    if data.get('phone'):
        lines.append(f"TEL:{data['phone']}")
    if data.get('email'):
        lines.append(f"EMAIL:{data['email']}")
    if data.get('url'):
        lines.append(f"URL:{data['url']}")
    if data.get('address'):
        lines.append(f"ADR:;;{data['address']};;;;")
    lines.append('END:VCARD')
    return '\n'.join(lines)


def format_wifi(data):
    encryption = data.get('encryption') or 'WPA'
    hidden = 'true' if data.get('hidden') else 'false'
    return f"WIFI:T:{encryption};S:{_esc_wifi(data.get('ssid'))};P:{_esc_wifi(data.get('password'))};H:{hidden};;"


def format_email(data):
    params = {k: data[k] for k in ('subject', 'body') if data.get(k)}
    query = ('?' + urlencode(params, quote_via=quote)) if params else ''
    return f"mailto:{data.get('email', '')}{query}"


def format_sms(data):
    return f"SMSTO:{data.get('phone', '')}:{data.get('message', '')}"


def format_geo(data):
    return f"geo:{data.get('latitude', 0)},{data.get('longitude', 0)}"


def format_phone(data):
    return f"tel:{data.get('phone', '')}"


def format_event(data):
    lines = ['BEGIN:VEVENT', f"SUMMARY:{data.get('title', '')}"]
    if data.get('location'):
        lines.append(f"LOCATION:{data['location']}")
    if data.get('description'):
        lines.append(f"DESCRIPTION:{data['description']}")
    # expects compact iCalendar stamps, e.g. 20250101T090000Z
    if data.get('start'):
        lines.append(f"DTSTART:{data['start']}")
    if data.get('end'):
        lines.append(f"DTEND:{data['end']}")
    lines.append('END:VEVENT')
    return '\n'.join(lines)


FORMATTERS = {
    'vcard': format_vcard,
    'wifi': format_wifi,
    'email': format_email,
    'sms': format_sms,
    'geo': format_geo,
    'event': format_event,
    'phone': format_phone,
}


def format_content(kind, data):
    data = data or {}
    formatter = FORMATTERS.get(kind)
    if formatter is None:
        return data.get('text', '')
    return formatter(data)
