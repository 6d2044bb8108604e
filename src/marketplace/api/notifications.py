"""The caller's notification inbox."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import CreateNotification, MarkNotifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    user: CurrentUser,
    services: Services,
    page: int = 1,
    limit: int = 20,
    unread_only: bool = False,
) -> dict[str, Any]:
    return services["notifications"].list(user, page=page, limit=limit, unread_only=unread_only)


@router.put("")
def mark_notifications(
    body: MarkNotifications, user: CurrentUser, services: Services
) -> dict[str, Any]:
    updated = services["notifications"].mark_read(
        user, notification_id=body.notification_id, mark_all=body.mark_all_as_read
    )
    return {"updated": updated}


@router.post("", status_code=201)
def send_notification(
    body: CreateNotification, user: CurrentUser, services: Services
) -> dict[str, Any]:
    notification = services["notifications"].send_system(
        user, body.user_id, body.title, body.message, body.data
    )
    return {"notification": notification}


@router.delete("/{notification_id}", status_code=204)
def delete_notification(notification_id: str, user: CurrentUser, services: Services) -> Response:
    services["notifications"].delete(user, notification_id)
    return Response(status_code=204)
