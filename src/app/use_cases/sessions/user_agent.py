"""
Simplified User-Agent classification for session analytics and alerts.
"""

import re

from .dtos import DeviceInfo

_MOBILE = re.compile(r"Mobile|Android|iPhone|iPad")
_TABLET = re.compile(r"iPad|Tablet")
_BOT = re.compile(r"bot|crawler|spider", re.IGNORECASE)

# Order matters: Edge and Chrome UAs also mention Safari/Chrome
_BROWSERS = [
    ("Edg", "Edge"),
    ("Firefox", "Firefox"),
    ("Chrome", "Chrome"),
    ("Safari", "Safari"),
]
_OPERATING_SYSTEMS = [
    ("Android", "Android"),
    ("iPhone", "iOS"),
    ("iPad", "iOS"),
    ("Windows", "Windows"),
    ("Mac", "macOS"),
    ("Linux", "Linux"),
]


def parse_user_agent(user_agent: str) -> DeviceInfo:
    user_agent = user_agent or ""

    browser = next((name for marker, name in _BROWSERS if marker in user_agent), "Unknown")
    os_name = next(
        (name for marker, name in _OPERATING_SYSTEMS if marker in user_agent), "Unknown"
    )

    if _TABLET.search(user_agent):
        device_type = "tablet"
    elif _MOBILE.search(user_agent):
        device_type = "mobile"
    else:
        device_type = "desktop"

    return DeviceInfo(
        type=device_type,
        browser=browser,
        os=os_name,
        is_bot=bool(_BOT.search(user_agent)),
    )
