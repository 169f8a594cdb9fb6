"""Tests for the influencer leaderboard."""

import csv
import io

from campaign.influencers.service import influencer_service
from campaign.rankings.service import EXPORT_COLUMNS, rank_rows, ranking_service
from campaign.redemption.service import redemption_service


def _seed(product_codes):
    """Sarah gets 2 points, Emma 3, Tom none."""
    sarah = influencer_service.register("Sarah", "Johnson", "secret1", code="SARAH1")
    emma = influencer_service.create_by_admin("Emma", "Davis")
    influencer_service.create_by_admin("Tom", "Brown")
    for code in product_codes[:2]:
        redemption_service.redeem(sarah.code, code)
    for code in product_codes[2:5]:
        redemption_service.redeem(emma.code, code)
    return sarah, emma


def test_leaderboard_orders_by_points(product_codes):
    _seed(product_codes)

    board = ranking_service.leaderboard()

    assert [row["name"] for row in board] == ["Emma Davis", "Sarah Johnson", "Tom Brown"]
    assert [row["rank"] for row in board] == [1, 2, 3]
    assert [row["points"] for row in board] == [3, 2, 0]
    assert [row["redemptions"] for row in board] == [3, 2, 0]


def test_ties_keep_earliest_sign_up_first():
    first = influencer_service.create_by_admin("First", "Person")
    influencer_service.create_by_admin("Second", "Person")

    assert ranking_service.leaderboard()[0]["id"] == first.id


def test_bar_percent_relative_to_leader(product_codes):
    _seed(product_codes)

    assert [row["bar_percent"] for row in ranking_service.leaderboard()] == [100.0, 66.7, 0.0]


def test_top_performers_limit(product_codes):
    _seed(product_codes)
    assert len(ranking_service.top_performers(2)) == 2
    assert len(ranking_service.leaderboard(limit=10)) == 3


def test_rank_rows_with_no_points():
    rows = [{"id": "a", "first_name": "A", "last_name": "B", "code": "X", "points": 0}]
    assert rank_rows(rows)[0]["bar_percent"] == 0.0
    assert rank_rows(rows)[0]["redemptions"] == 0
    assert rank_rows([]) == []


def test_export_csv(product_codes):
    _, emma = _seed(product_codes)

    rows = list(csv.reader(io.StringIO(ranking_service.export_csv())))

    assert rows[0] == EXPORT_COLUMNS
    assert rows[1] == ["1", "Emma Davis", emma.code, "3", "3"]
    assert rows[2] == ["2", "Sarah Johnson", "SARAH1", "2", "2"]
    assert len(rows) == 4


def test_export_csv_header_only_when_empty():
    assert ranking_service.export_csv() == "Rank,Name,Code,Points,Redemptions\n"
