"""Influencer leaderboard and CSV export."""

import csv
import io
from typing import Any

from sqlalchemy import func, select

from campaign.logging_config import get_logger
from campaign.storage.db import db
from campaign.storage.models import Influencer, Redemption

logger = get_logger(__name__)

EXPORT_COLUMNS = ["Rank", "Name", "Code", "Points", "Redemptions"]
EXPORT_FILENAME = "influencer-rankings.csv"


def leaderboard_sort_key(row: dict[str, Any]) -> tuple:
    """Points descending, earliest sign-up first on ties."""
    return (-row["points"], row["created_at"])


def rank_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Attach 1-based ranks and bar widths relative to the leader."""
    max_points = max([row["points"] for row in rows] + [1])
    return [
        {
            "rank": position,
            "id": row["id"],
            "name": f"{row['first_name']} {row['last_name']}",
            "code": row["code"],
            "points": row["points"],
            "redemptions": row.get("redemptions", 0),
            "bar_percent": round(row["points"] / max_points * 100, 1),
        }
        for position, row in enumerate(rows, 1)
    ]


class RankingService:
    """Service for influencer rankings."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def influencer_rows(self) -> list[dict[str, Any]]:
        """Influencer rows with their redemption counts, leaderboard-ordered."""
        with db.session() as session:
            counts = dict(
                session.query(Redemption.influencer_id, func.count(Redemption.id))
                .group_by(Redemption.influencer_id)
                .all()
            )
            influencers = session.query(Influencer).all()
            rows = [
                {**influencer.to_dict(), "redemptions": counts.get(influencer.id, 0)}
                for influencer in influencers
            ]
        rows.sort(key=leaderboard_sort_key)
        return rows

    def redemption_count(self, influencer_id: str) -> int:
        with db.session() as session:
            return session.scalar(
                select(func.count(Redemption.id)).where(Redemption.influencer_id == influencer_id)
            ) or 0

    def leaderboard(self, limit: int | None = None) -> list[dict[str, Any]]:
        """Ranked entries, optionally only the first ``limit``."""
        rows = self.influencer_rows()
        ranked = rank_rows(rows)
        return ranked[:limit] if limit else ranked

    def top_performers(self, n: int = 3) -> list[dict[str, Any]]:
        return self.leaderboard(limit=n)

    def export_csv(self) -> str:
        """Complete rankings as CSV text."""
        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(EXPORT_COLUMNS)
        entries = self.leaderboard()
        for entry in entries:
            writer.writerow([
                entry["rank"],
                entry["name"],
                entry["code"],
                entry["points"],
                entry["redemptions"],
            ])

        self.logger.info("rankings_exported", rows=len(entries))
        return output.getvalue()


# Singleton instance
ranking_service = RankingService()
