"""
Device and traffic-source classification for carried provenance fields.

Pattern matching over lower-cased user agent substrings; bot patterns take
priority, then tablet, then mobile, then desktop browsers.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(frozen=True)
class DeviceConfig:
    """Device classification patterns."""

    bot_patterns: tuple[str, ...] = (
        "bot",
        "crawler",
        "spider",
        "scraper",
        "wget",
        "curl",
        "python-requests",
        "go-http-client",
        "headlesschrome",
        "facebookexternalhit",
        "slurp",
    )

    tablet_patterns: tuple[str, ...] = (
        "ipad",
        "tablet",
        "kindle",
        "silk/",
        "playbook",
    )

    mobile_patterns: tuple[str, ...] = (
        "iphone",
        "ipod",
        "android",
        "mobile",
        "windows phone",
        "blackberry",
        "opera mini",
    )

    desktop_patterns: tuple[str, ...] = (
        "windows nt",
        "macintosh",
        "x11",
        "linux",
        "cros",
    )


DEFAULT_DEVICE_CONFIG = DeviceConfig()

DIRECT_SOURCE = "direct"
OTHER_SOURCE = "other"


def classify_device(user_agent: str | None, config: DeviceConfig = DEFAULT_DEVICE_CONFIG) -> str:
    """Classify a user agent as bot, tablet, mobile, desktop or unknown."""
    if not user_agent:
        return "unknown"

    ua_lower = user_agent.lower()

    if any(p in ua_lower for p in config.bot_patterns):
        return "bot"
    # Android tablets omit "mobile" from their UA
    if any(p in ua_lower for p in config.tablet_patterns) or (
        "android" in ua_lower and "mobile" not in ua_lower
    ):
        return "tablet"
    if any(p in ua_lower for p in config.mobile_patterns):
        return "mobile"
    if any(p in ua_lower for p in config.desktop_patterns):
        return "desktop"
    return "unknown"


def referrer_source(referrer: str | None) -> str:
    """
    Host of the referring URL without ``www.`` or port.

    ``direct`` when there is no referrer, ``other`` when it has no host.
    """
    if not referrer or not referrer.strip():
        return DIRECT_SOURCE

    value = referrer.strip()
    parsed = urlparse(value if "//" in value else f"//{value}")
    host = (parsed.hostname or "").lower()
    if not host:
        return OTHER_SOURCE
    if host.startswith("www."):
        host = host[4:]
    return host
