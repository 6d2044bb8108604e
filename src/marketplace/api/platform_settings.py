"""Admin-managed platform settings."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import CreateSetting, UpdateSetting

router = APIRouter(prefix="/platform-settings", tags=["platform-settings"])


@router.get("")
def list_settings(user: CurrentUser, services: Services, key: str | None = None) -> dict[str, Any]:
    if key is not None:
        return {"setting": services["platform_settings"].get(key)}
    return {"settings": services["platform_settings"].list()}


@router.post("", status_code=201)
def create_setting(body: CreateSetting, user: CurrentUser, services: Services) -> dict[str, Any]:
    setting = services["platform_settings"].create(
        user, body.setting_key, body.setting_value, body.description
    )
    return {"setting": setting}


@router.patch("")
def update_setting(body: UpdateSetting, user: CurrentUser, services: Services) -> dict[str, Any]:
    data = body.fields()
    key = data.pop("setting_key")
    return {"setting": services["platform_settings"].update(user, key, data)}


@router.delete("/{key}", status_code=204)
def delete_setting(key: str, user: CurrentUser, services: Services) -> Response:
    services["platform_settings"].delete(user, key)
    return Response(status_code=204)
