"""Profile rows: one per registered user."""

from __future__ import annotations

from typing import ClassVar

from marketplace.domain.models import Profile
from marketplace.store.base import Repository


class ProfileRepository(Repository[Profile]):
    table: ClassVar[str] = "profiles"
    model = Profile

    def get_by_email(self, email: str) -> Profile | None:
        row = self._conn.execute(
            "SELECT * FROM profiles WHERE lower(email) = lower(?)", (email,)
        ).fetchone()
        return self._to_model(row)
