"""Voter identity helpers.

The voter fingerprint is a coarse, non-authenticated identity derived from
the caller's network address. It is keyed with SECRET_KEY so raw addresses
never land in the vote ledger, but callers behind a shared address share a
fingerprint and a spoofed address yields a new one.
"""

import hashlib
import hmac
import secrets
from datetime import date, datetime, timezone

from fastapi import Request

from core.config import settings


def get_client_address(request: Request) -> str:
    """
    Get the caller's network address.

    Behind a reverse proxy (TRUST_PROXY) the first X-Forwarded-For hop is the
    client. Returns an empty string when no address is available.
    """
    if settings.TRUST_PROXY:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

    return request.client.host if request.client else ""


def generate_voter_fingerprint(address: str) -> str:
    """
    Derive the voter fingerprint for a network address.

    HMAC-SHA256(SECRET_KEY, address), hex encoded. An empty address maps to
    an empty fingerprint.
    """
    if not address:
        return ""
    return hmac.new(
        settings.SECRET_KEY.encode(),
        address.strip().lower().encode(),
        hashlib.sha256,
    ).hexdigest()


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def create_day_key(fingerprint: str, day: date | None = None) -> str:
    """
    Build the day key for quota accounting: "YYYY-MM-DD-<fingerprint>".

    The date is the UTC calendar date unless one is given.
    """
    day = day or utc_today()
    return f"{day.isoformat()}-{fingerprint}"


def verify_admin_key(provided: str | None) -> bool:
    """Constant-time comparison of an X-Admin-Key header against ADMIN_API_KEY."""
    if not settings.ADMIN_API_KEY or not provided:
        return False
    return secrets.compare_digest(provided, settings.ADMIN_API_KEY)
