"""Registration and the caller's own profile."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from marketplace.api.deps import CurrentUser, Services
from marketplace.api.schemas import RegisterUser, UpdateProfile

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", status_code=201)
def register(body: RegisterUser, services: Services) -> dict[str, Any]:
    profile, token = services["users"].register(body.fields())
    return {"user": profile, "token": token}


@router.get("/me")
def get_me(user: CurrentUser) -> dict[str, Any]:
    return {"user": user}


@router.patch("/me")
def update_me(body: UpdateProfile, user: CurrentUser, services: Services) -> dict[str, Any]:
    return {"user": services["users"].update_profile(user, body.fields())}
