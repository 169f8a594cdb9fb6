"""Influencer rankings."""

from campaign.rankings.service import (
    EXPORT_FILENAME,
    RankingService,
    leaderboard_sort_key,
    rank_rows,
    ranking_service,
)

__all__ = ["EXPORT_FILENAME", "RankingService", "leaderboard_sort_key", "rank_rows", "ranking_service"]
