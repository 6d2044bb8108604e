"""Application and submission rows."""

from __future__ import annotations

from typing import ClassVar

from marketplace.domain.models import Application, Submission
from marketplace.store.base import Repository


class ApplicationRepository(Repository[Application]):
    table: ClassVar[str] = "applications"
    model = Application
    # Joined so callers can scope by the campaign owner without a second query.
    select_sql: ClassVar[str] = """
        SELECT a.*, c.business_id AS business_id
        FROM applications a
        JOIN campaigns c ON c.id = a.campaign_id
    """

    def get_for_influencer(self, campaign_id: str, influencer_id: str) -> Application | None:
        row = self._conn.execute(
            "SELECT * FROM applications WHERE campaign_id = ? AND influencer_id = ?",
            (campaign_id, influencer_id),
        ).fetchone()
        return self._to_model(row)


class SubmissionRepository(Repository[Submission]):
    table: ClassVar[str] = "submissions"
    model = Submission

    def get_by_application(self, application_id: str) -> Submission | None:
        row = self._conn.execute(
            "SELECT * FROM submissions WHERE application_id = ?", (application_id,)
        ).fetchone()
        return self._to_model(row)
