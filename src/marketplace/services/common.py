"""Small helpers shared by the service modules."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

from marketplace.domain.errors import NotFoundError, PermissionDeniedError
from marketplace.domain.models import Profile
from marketplace.domain.types import UserRole
from marketplace.timeutil import to_timestamp, utc_now

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def new_id() -> str:
    return str(uuid.uuid4())


def now_timestamp() -> str:
    return to_timestamp(utc_now())


def require_found(row: Any, message: str) -> Any:
    """Return *row*, raising NotFoundError with *message* when it is None."""
    if row is None:
        raise NotFoundError(message)
    return row


def require_role(actor: Profile, roles: Iterable[UserRole], message: str) -> None:
    """Raise PermissionDeniedError unless *actor* holds one of *roles*."""
    if actor.role not in set(roles):
        raise PermissionDeniedError(message)


def page_window(page: int, limit: int) -> tuple[int, int]:
    """Clamp pagination arguments to sane bounds."""
    return max(page, 1), min(max(limit, 1), MAX_PAGE_SIZE)


def pagination(page: int, limit: int, total: int) -> dict[str, int]:
    """Build the ``pagination`` block returned alongside list results."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": (total + limit - 1) // limit if total else 0,
    }
