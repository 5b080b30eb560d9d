"""
Tests for voter identity helpers.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest

from core.config import settings
from core.security import (
    create_day_key,
    generate_voter_fingerprint,
    get_client_address,
    verify_admin_key,
)


def _request(headers: dict | None = None, host: str | None = "10.1.1.1") -> MagicMock:
    request = MagicMock()
    request.headers = headers or {}
    request.client = MagicMock(host=host) if host else None
    return request


@pytest.mark.unit
class TestVoterFingerprint:
    """Test generate_voter_fingerprint."""

    def test_deterministic(self) -> None:
        assert generate_voter_fingerprint("203.0.113.7") == generate_voter_fingerprint("203.0.113.7")

    def test_distinct_addresses(self) -> None:
        assert generate_voter_fingerprint("203.0.113.7") != generate_voter_fingerprint("203.0.113.8")

    def test_hex_sha256(self) -> None:
        fingerprint = generate_voter_fingerprint("203.0.113.7")
        assert len(fingerprint) == 64
        int(fingerprint, 16)

    def test_does_not_contain_address(self) -> None:
        assert "203.0.113.7" not in generate_voter_fingerprint("203.0.113.7")

    def test_empty_address(self) -> None:
        assert generate_voter_fingerprint("") == ""


@pytest.mark.unit
class TestDayKey:
    """Test create_day_key."""

    def test_format(self) -> None:
        assert create_day_key("abc123", date(2026, 3, 9)) == "2026-03-09-abc123"

    def test_defaults_to_today(self) -> None:
        from core.security import utc_today

        assert create_day_key("abc").startswith(utc_today().isoformat())


@pytest.mark.unit
class TestClientAddress:
    """Test get_client_address."""

    def test_first_forwarded_hop(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2"})
        assert get_client_address(request) == "203.0.113.7"

    def test_peer_address_without_header(self) -> None:
        assert get_client_address(_request()) == "10.1.1.1"

    def test_forwarded_ignored_when_proxy_untrusted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "TRUST_PROXY", False)
        request = _request({"X-Forwarded-For": "203.0.113.7"})
        assert get_client_address(request) == "10.1.1.1"

    def test_no_client(self) -> None:
        assert get_client_address(_request(host=None)) == ""


@pytest.mark.unit
class TestVerifyAdminKey:
    """Test verify_admin_key."""

    def test_match(self) -> None:
        assert verify_admin_key(settings.ADMIN_API_KEY) is True

    def test_mismatch(self) -> None:
        assert verify_admin_key("wrong") is False
        assert verify_admin_key(None) is False

    def test_unconfigured(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "ADMIN_API_KEY", None)
        assert verify_admin_key("anything") is False
