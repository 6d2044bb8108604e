"""Influencer review rows and per-influencer rating summaries."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, ClassVar

from marketplace.domain.models import InfluencerReview
from marketplace.store.base import Repository


class ReviewRepository(Repository[InfluencerReview]):
    table: ClassVar[str] = "influencer_reviews"
    model = InfluencerReview

    def exists_for(self, campaign_id: str, business_id: str, influencer_id: str) -> bool:
        row = self._conn.execute(
            """
            SELECT 1 FROM influencer_reviews
            WHERE campaign_id = ? AND business_id = ? AND influencer_id = ?
            """,
            (campaign_id, business_id, influencer_id),
        ).fetchone()
        return row is not None

    def summary(self, influencer_id: str) -> dict[str, Any]:
        """Aggregate public reviews of *influencer_id*.

        Returns:
            A dict with ``total_reviews``, ``average_rating`` (2 dp, or None
            when there are no reviews) and ``would_work_again_percentage``.
        """
        row = self._conn.execute(
            """
            SELECT COUNT(*) AS total,
                   SUM(overall_rating) AS rating_sum,
                   SUM(would_work_again) AS again
            FROM influencer_reviews
            WHERE influencer_id = ? AND is_public = 1
            """,
            (influencer_id,),
        ).fetchone()
        total = int(row["total"])
        if total == 0:
            return {
                "influencer_id": influencer_id,
                "total_reviews": 0,
                "average_rating": None,
                "would_work_again_percentage": None,
            }
        average = (Decimal(row["rating_sum"]) / total).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        again = (Decimal(row["again"]) * 100 / total).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        return {
            "influencer_id": influencer_id,
            "total_reviews": total,
            "average_rating": average,
            "would_work_again_percentage": again,
        }
