"""Signed bearer tokens identifying a marketplace user.

A token is ``"<user_id>.<hex HMAC-SHA256(user_id)>"`` keyed by the configured
auth secret.  Tokens do not expire; rotating the secret revokes all of them.
"""

from __future__ import annotations

import hashlib
import hmac

from marketplace.domain.errors import AuthenticationError


def _sign(user_id: str, secret: str) -> str:
    return hmac.new(secret.encode(), user_id.encode(), hashlib.sha256).hexdigest()


def issue_token(user_id: str, secret: str) -> str:
    """Return a bearer token for *user_id*."""
    return f"{user_id}.{_sign(user_id, secret)}"


def verify_token(token: str, secret: str) -> str:
    """Return the user ID carried by a valid *token*.

    Raises:
        AuthenticationError: If the token is malformed or its signature does
            not match.
    """
    user_id, _, signature = token.rpartition(".")
    if not user_id or not signature or not secret:
        raise AuthenticationError("Unauthorized")
    if not hmac.compare_digest(_sign(user_id, secret), signature):
        raise AuthenticationError("Unauthorized")
    return user_id
