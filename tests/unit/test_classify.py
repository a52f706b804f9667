"""
Device and traffic-source classification.
"""

import pytest

from src.components.analytics import classify_device, referrer_source

IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
ANDROID_PHONE = "Mozilla/5.0 (Linux; Android 14; Pixel 8) Chrome/120.0 Mobile Safari/537.36"
ANDROID_TABLET = "Mozilla/5.0 (Linux; Android 13; SM-X700) Chrome/120.0 Safari/537.36"
IPAD = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15"
MAC = "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/605.1.15 Safari/605.1.15"
WINDOWS = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0 Safari/537.36"
GOOGLEBOT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


class TestClassifyDevice:
    @pytest.mark.parametrize(
        ("user_agent", "expected"),
        [
            (IPHONE, "mobile"),
            (ANDROID_PHONE, "mobile"),
            (ANDROID_TABLET, "tablet"),
            (IPAD, "tablet"),
            (MAC, "desktop"),
            (WINDOWS, "desktop"),
            (GOOGLEBOT, "bot"),
            ("curl/8.4.0", "bot"),
            ("SomethingElse/1.0", "unknown"),
        ],
    )
    def test_classification(self, user_agent: str, expected: str) -> None:
        assert classify_device(user_agent) == expected

    @pytest.mark.parametrize("user_agent", [None, ""])
    def test_missing_user_agent(self, user_agent: str | None) -> None:
        assert classify_device(user_agent) == "unknown"

    def test_bot_wins_over_mobile(self) -> None:
        assert classify_device("Mozilla/5.0 (iPhone) Mobile Googlebot") == "bot"


class TestReferrerSource:
    @pytest.mark.parametrize(
        ("referrer", "expected"),
        [
            ("https://www.google.com/search?q=x", "google.com"),
            ("https://l.instagram.com/?u=abc", "l.instagram.com"),
            ("http://Example.COM:8080/page", "example.com"),
            ("facebook.com/groups/1", "facebook.com"),
        ],
    )
    def test_host_extracted(self, referrer: str, expected: str) -> None:
        assert referrer_source(referrer) == expected

    @pytest.mark.parametrize("referrer", [None, "", "   "])
    def test_missing_is_direct(self, referrer: str | None) -> None:
        assert referrer_source(referrer) == "direct"

    def test_hostless_is_other(self) -> None:
        assert referrer_source("///just-a-path") == "other"
