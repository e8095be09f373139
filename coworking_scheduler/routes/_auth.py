"""
HTTP Basic Auth for the collaborator routes.

Payment outcomes (settle/fail and the provider webhook) are reported with the
``WEBHOOK_USERNAME``/``WEBHOOK_PASSWORD`` pair; staff actions (confirm and
complete) with ``STAFF_USERNAME``/``STAFF_PASSWORD``. A pair whose username
is unset rejects every request.
"""

from __future__ import annotations

import base64
import binascii
import secrets
from typing import Optional

import structlog
from fastapi import Header, HTTPException, status

from coworking_scheduler.config import (
    STAFF_PASSWORD,
    STAFF_USERNAME,
    WEBHOOK_PASSWORD,
    WEBHOOK_USERNAME,
)

logger = structlog.get_logger(__name__)


def validate_basic_auth(auth_header: Optional[str], username: str, password: str) -> bool:
    """
    Validate HTTP Basic Auth credentials against an expected pair.

    Args:
        auth_header: Authorization header value (e.g., "Basic dXNlcjpwYXNz")
        username: Expected username; an empty value never matches
        password: Expected password

    Returns:
        bool: True if credentials match, False otherwise
    """
    if not username or not auth_header or not auth_header.startswith("Basic "):
        return False

    try:
        encoded_credentials = auth_header.replace("Basic ", "", 1)
        decoded_credentials = base64.b64decode(encoded_credentials, validate=True).decode("utf-8")
        given_username, given_password = decoded_credentials.split(":", 1)
    except (binascii.Error, ValueError):
        logger.warning("basic_auth_header_malformed")
        return False

    username_ok = secrets.compare_digest(given_username.encode(), username.encode())
    password_ok = secrets.compare_digest(given_password.encode(), password.encode())
    return username_ok and password_ok


def payment_credentials_valid(auth_header: Optional[str]) -> bool:
    return validate_basic_auth(auth_header, WEBHOOK_USERNAME, WEBHOOK_PASSWORD)


def staff_credentials_valid(auth_header: Optional[str]) -> bool:
    return validate_basic_auth(auth_header, STAFF_USERNAME, STAFF_PASSWORD)


def _unauthorized(realm: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or missing credentials",
        headers={"WWW-Authenticate": f'Basic realm="{realm}"'},
    )


def require_payment_credentials(authorization: Optional[str] = Header(None)) -> None:
    """Route dependency: 401 unless the payment collaborator's credentials are sent."""
    if not payment_credentials_valid(authorization):
        logger.warning("payment_auth_failed")
        raise _unauthorized("payments")


def require_staff_credentials(authorization: Optional[str] = Header(None)) -> None:
    """Route dependency: 401 unless staff credentials are sent."""
    if not staff_credentials_valid(authorization):
        logger.warning("staff_auth_failed")
        raise _unauthorized("staff")
