"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Header, Request

from marketplace.domain.errors import AuthenticationError
from marketplace.domain.models import Profile


def get_services(request: Request) -> dict[str, Any]:
    """Return the services dict built by ``initialize_services``."""
    return request.app.state.services


def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Profile:
    """Resolve the ``Authorization: Bearer <token>`` header to a profile.

    Raises:
        AuthenticationError: If the header is missing or the token is invalid.
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Unauthorized")
    return get_services(request)["users"].authenticate(token.strip())


Services = Annotated[dict[str, Any], Depends(get_services)]
CurrentUser = Annotated[Profile, Depends(get_current_user)]
