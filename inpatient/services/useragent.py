"""Small user-agent classifier for the audit trail.

Only the handful of browsers and platforms staff actually use are
recognised; anything else is reported as unknown.
"""
import re
from typing import Optional

WINDOWS_VERSIONS = {
    '10.0': '10',
    '11.0': '11',
    '6.3': '8.1',
    '6.2': '8',
    '6.1': '7',
    '6.0': 'Vista',
    '5.1': 'XP',
}

BOT_RE = re.compile(r'(bot|crawler|spider|bingpreview|facebookexternalhit|slurp)', re.I)

# (name, pattern, exclude) checked in order
BROWSER_RULES = [
    ('Edge', re.compile(r'Edg(?:e|A|iOS)?/([\d.]+)'), None),
    ('Opera', re.compile(r'OPR/([\d.]+)'), None),
    ('Opera', re.compile(r'Opera/([\d.]+)'), None),
    ('Samsung Internet', re.compile(r'SamsungBrowser/([\d.]+)'), None),
    ('Firefox', re.compile(r'Firefox/([\d.]+)'), None),
    ('Firefox', re.compile(r'FxiOS/([\d.]+)'), None),
    ('Chrome', re.compile(r'Chrome/([\d.]+)'), re.compile(r'OPR|Edg|Brave|SamsungBrowser')),
    ('Chrome', re.compile(r'CriOS/([\d.]+)'), None),
    ('Safari', re.compile(r'Version/([\d.]+).*Safari'), None),
    ('Safari', re.compile(r'Safari/([\d.]+)'), None),
    ('Internet Explorer', re.compile(r'MSIE ([\d.]+)'), None),
    ('Internet Explorer', re.compile(r'Trident/.*rv:([\d.]+)'), None),
    ('Brave', re.compile(r'Brave/([\d.]+)'), None),
]


def _version(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    cleaned = re.sub(r'[^0-9._-]', '', raw)
    if not cleaned:
        return None
    parts = re.sub(r'[_-]', '.', cleaned).split('.')
    return '.'.join(parts[:3])


def _browser(ua: str) -> dict:
    for name, pattern, exclude in BROWSER_RULES:
        if exclude is not None and exclude.search(ua):
            continue
        m = pattern.search(ua)
        if m:
            return {'name': name, 'version': _version(m.group(1))}
    if re.search('whatsapp', ua, re.I):
        return {'name': 'WhatsApp', 'version': None}
    return {'name': 'Unknown Browser', 'version': None}


def _os(ua: str) -> dict:
    m = re.search(r'Windows NT ([0-9.]+)', ua)
    if m:
        return {'name': 'Windows', 'version': _version(WINDOWS_VERSIONS.get(m.group(1), m.group(1)))}
    m = re.search(r'Mac OS X ([0-9_]+)', ua)
    if m and not re.search(r'iPhone|iPad|iPod', ua):
        return {'name': 'macOS', 'version': _version(m.group(1).replace('_', '.'))}
    if re.search(r'iPhone|iPad|iPod', ua):
        m = re.search(r'OS ([0-9_]+)', ua)
        return {'name': 'iOS', 'version': _version(m.group(1).replace('_', '.')) if m else None}
    m = re.search(r'Android ([0-9.]+)', ua)
    if m:
        return {'name': 'Android', 'version': _version(m.group(1))}
    if 'CrOS' in ua:
        m = re.search(r'CrOS [^ ]+ ([0-9.]+)', ua)
        return {'name': 'Chrome OS', 'version': _version(m.group(1)) if m else None}
    if 'Linux' in ua:
        return {'name': 'Linux', 'version': None}
    return {'name': 'Unknown OS', 'version': None}


def _device(ua: str, is_bot: bool) -> str:
    if is_bot:
        return 'bot'
    if re.search(r'Tablet|iPad', ua):
        return 'tablet'
    if re.search(r'Mobile|iPhone|Android', ua):
        return 'mobile'
    return 'desktop'


def parse_user_agent(raw: Optional[str]) -> dict:
    ua = (raw or '').strip()
    if not ua:
        return {
            'browser': {'name': 'Unknown Browser', 'version': None},
            'os': {'name': 'Unknown OS', 'version': None},
            'deviceType': 'unknown',
            'isBot': False,
        }
    is_bot = bool(BOT_RE.search(ua))
    return {
        'browser': _browser(ua),
        'os': _os(ua),
        'deviceType': _device(ua, is_bot),
        'isBot': is_bot,
    }
