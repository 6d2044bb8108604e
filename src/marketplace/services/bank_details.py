"""Influencer payout bank accounts.

Account and routing numbers are masked for everyone but admins.  Exactly one
active account per influencer is primary whenever any exists.
"""

from __future__ import annotations

from typing import Any

import structlog

from marketplace.domain.errors import PermissionDeniedError, ValidationFailedError
from marketplace.domain.models import BankDetails, Profile
from marketplace.domain.types import AccountType, UserRole
from marketplace.services.common import new_id, now_timestamp, require_found
from marketplace.store import Repositories
from marketplace.store.base import Filters

logger = structlog.get_logger()

INFLUENCER_EDITABLE_FIELDS = frozenset(
    {
        "bank_name",
        "account_holder_name",
        "account_number",
        "routing_number",
        "swift_code",
        "currency",
        "account_type",
        "is_primary",
        "is_active",
    }
)


class BankDetailsService:
    def __init__(self, repos: Repositories, currency: str) -> None:
        self._repos = repos
        self._currency = currency

    def list(
        self,
        actor: Profile,
        *,
        influencer_id: str | None = None,
        is_primary: bool | None = None,
    ) -> list[BankDetails]:
        self._deny_business(actor)
        if actor.role == UserRole.INFLUENCER:
            influencer_id = actor.id
        filters = Filters().equal("influencer_id", influencer_id).equal("is_primary", is_primary)
        return [self._present(actor, d) for d in self._repos.bank_details.find(filters)]

    def create(self, actor: Profile, data: dict[str, Any]) -> BankDetails:
        """Register a bank account for the calling influencer.

        The first active account becomes primary automatically; an account
        created as primary demotes the previous one.
        """
        if actor.role != UserRole.INFLUENCER:
            raise PermissionDeniedError("Only influencers can add bank details")
        for field in ("bank_name", "account_holder_name", "account_number"):
            if not (data.get(field) or "").strip():
                raise ValidationFailedError(
                    "Missing required fields: bank_name, account_holder_name, account_number"
                )
        account_type = _account_type(data.get("account_type") or AccountType.CHECKING)

        with self._repos.db.transaction():
            is_primary = bool(data.get("is_primary")) or not self._repos.bank_details.has_active(
                actor.id
            )
            if is_primary:
                self._repos.bank_details.clear_primary(actor.id)
            now = now_timestamp()
            details = self._repos.bank_details.insert(
                {
                    **{k: v for k, v in data.items() if k in INFLUENCER_EDITABLE_FIELDS},
                    "id": new_id(),
                    "influencer_id": actor.id,
                    "currency": data.get("currency") or self._currency,
                    "account_type": account_type,
                    "is_primary": is_primary,
                    "is_active": True,
                    "is_verified": False,
                    "created_at": now,
                    "updated_at": now,
                }
            )
        logger.info("bank_details_added", bank_details_id=details.id, influencer_id=actor.id)
        return self._present(actor, details)

    def update(self, actor: Profile, bank_details_id: str, data: dict[str, Any]) -> BankDetails:
        """Apply an owner edit, or an admin verification decision."""
        self._deny_business(actor)
        with self._repos.db.transaction():
            details = require_found(
                self._repos.bank_details.get(bank_details_id), "Bank details not found"
            )
            if actor.role == UserRole.ADMIN:
                changes = self._verification_changes(data)
            elif details.influencer_id == actor.id:
                changes = {
                    k: v
                    for k, v in data.items()
                    if k in INFLUENCER_EDITABLE_FIELDS and v is not None
                }
                if "account_type" in changes:
                    changes["account_type"] = _account_type(changes["account_type"])
                if changes.get("is_primary") and not details.is_primary:
                    self._repos.bank_details.clear_primary(
                        details.influencer_id, except_id=details.id
                    )
            else:
                raise PermissionDeniedError("Unauthorized to update these bank details")

            if not changes:
                raise ValidationFailedError("No valid fields to update")
            if changes.get("is_primary") and not changes.get("is_active", details.is_active):
                raise ValidationFailedError("Only an active account can be primary")
            updated = self._repos.bank_details.update_required(bank_details_id, changes)
            if details.is_primary and not (updated.is_primary and updated.is_active):
                updated = self._hand_over_primary(updated)
        return self._present(actor, updated)

    def _hand_over_primary(self, details: BankDetails) -> BankDetails:
        """Move the primary flag off *details*, keeping it when no other active account exists."""
        successor = self._repos.bank_details.oldest_active(
            details.influencer_id, except_id=details.id
        )
        if successor is not None:
            self._repos.bank_details.update(successor.id, {"is_primary": True})
            if details.is_primary:
                return self._repos.bank_details.update_required(details.id, {"is_primary": False})
            return details
        return self._repos.bank_details.update_required(
            details.id, {"is_primary": details.is_active}
        )

    def delete(self, actor: Profile, bank_details_id: str) -> None:
        """Delete an account; deleting the primary promotes the oldest other active one."""
        with self._repos.db.transaction():
            details = require_found(
                self._repos.bank_details.get(bank_details_id), "Bank details not found"
            )
            if actor.role != UserRole.ADMIN and details.influencer_id != actor.id:
                raise PermissionDeniedError("Unauthorized to delete these bank details")
            self._repos.bank_details.delete(bank_details_id)
            if details.is_primary:
                successor = self._repos.bank_details.oldest_active(details.influencer_id)
                if successor is not None:
                    self._repos.bank_details.update(successor.id, {"is_primary": True})

    @staticmethod
    def _verification_changes(data: dict[str, Any]) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if data.get("is_verified") is not None:
            changes["is_verified"] = bool(data["is_verified"])
            changes["verified_at"] = now_timestamp() if data["is_verified"] else None
        if data.get("verification_method") is not None:
            changes["verification_method"] = data["verification_method"]
        return changes

    @staticmethod
    def _deny_business(actor: Profile) -> None:
        if actor.role == UserRole.BUSINESS:
            raise PermissionDeniedError("Businesses cannot access bank details")

    @staticmethod
    def _present(actor: Profile, details: BankDetails) -> BankDetails:
        return details if actor.role == UserRole.ADMIN else details.masked()


def _account_type(value: str) -> AccountType:
    try:
        return AccountType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in AccountType)
        raise ValidationFailedError(f"Invalid account type. Must be one of: {allowed}") from None
