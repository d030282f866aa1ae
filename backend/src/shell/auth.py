"""Authentication - Shared-secret bearer token checks.

A single API key, held by the server in the API_KEY environment variable,
authorizes the app and the MCP client. Tokens are compared in constant time.
"""

import hmac
import logging
from dataclasses import dataclass


logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


@dataclass(frozen=True)
class AuthFailure:
    """Why a request was rejected and which HTTP status to answer with."""

    status_code: int
    message: str


MISSING_HEADER = AuthFailure(401, "Missing Authorization header")
MALFORMED_HEADER = AuthFailure(401, "Invalid Authorization header format. Use: Bearer <token>")
SERVER_MISCONFIGURED = AuthFailure(500, "Server configuration error: API_KEY not set")
INVALID_KEY = AuthFailure(403, "Invalid API key")


def parse_bearer_token(auth_header: str | None) -> str | None:
    """Extract the token from an 'Authorization: Bearer <token>' header.

    Args:
        auth_header: Raw header value

    Returns:
        The token, or None if the header is missing or not a bearer header
    """
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0] != BEARER_SCHEME:
        return None
    return parts[1]


def verify_api_key(token: str, expected: str) -> bool:
    """Constant-time comparison of a presented token with the server secret."""
    return hmac.compare_digest(token.encode(), expected.encode())


def check_authorization(auth_header: str | None, expected_key: str | None) -> AuthFailure | None:
    """Validate an Authorization header against the server secret.

    Args:
        auth_header: Raw Authorization header value (None if absent)
        expected_key: Server-held API key (None if not configured)

    Returns:
        None if the request is authorized, otherwise the AuthFailure to report
    """
    if not auth_header:
        return MISSING_HEADER

    token = parse_bearer_token(auth_header)
    if token is None:
        return MALFORMED_HEADER

    if not expected_key:
        logger.error("API_KEY is not configured; rejecting authenticated request")
        return SERVER_MISCONFIGURED

    if not verify_api_key(token, expected_key):
        logger.warning("Rejected request with invalid API key")
        return INVALID_KEY

    return None
