"""
Tests for the scoring engine.

Tests cover:
- Each of the five signals in isolation
- Weighted combination and bounds
- Worked examples (no context at all, viewer standing at the business)
- Ranking order and tie-breaks
"""
from datetime import datetime, timedelta

import pytest

from review_feed.ranking.geo import Coordinates, equirectangular_km
from review_feed.ranking.models import Candidate, ScoredCandidate, ViewerContext
from review_feed.ranking.ranker import rank
from review_feed.ranking.scoring import (
    SOCIAL_WEIGHT,
    CATEGORY_WEIGHT,
    ENGAGEMENT_WEIGHT,
    FRESHNESS_WEIGHT,
    LOCATION_WEIGHT,
    category_score,
    combine,
    engagement_score,
    freshness_score,
    location_score,
    score_candidate,
    social_score,
)

NOW = datetime(2025, 9, 1, 12, 0, 0)
CAFE = Coordinates(40.7128, -74.0060)


def make_candidate(**overrides) -> Candidate:
    fields = dict(
        review_id="r1",
        author_id="author",
        created_at=NOW - timedelta(hours=1),
        business_id="biz",
        business_category_ids=frozenset({"pizza"}),
    )
    fields.update(overrides)
    return Candidate(**fields)


# Weights

def test_weights_sum_to_one():
    total = (
        SOCIAL_WEIGHT + CATEGORY_WEIGHT + LOCATION_WEIGHT + ENGAGEMENT_WEIGHT + FRESHNESS_WEIGHT
    )
    assert total == pytest.approx(1.0)


# Individual signals

def test_social_score_for_followed_author():
    assert social_score(frozenset({"author"}), "author") == 100
    assert social_score(frozenset({"someone-else"}), "author") == 0
    assert social_score(frozenset(), "author") == 0


def test_category_score_never_drops_to_zero():
    assert category_score(frozenset({"pizza", "sushi"}), frozenset({"sushi"})) == 80
    assert category_score(frozenset({"pizza"}), frozenset({"tacos"})) == 10
    assert category_score(frozenset(), frozenset()) == 10


def test_location_score_neutral_when_either_side_unknown():
    assert location_score(None, CAFE) == 30
    assert location_score(CAFE, None) == 30
    assert location_score(None, None) == 30


def test_location_score_is_100_at_zero_distance():
    assert location_score(CAFE, CAFE) == 100


def test_location_score_saturates_beyond_50_km():
    # One degree of latitude is ~111 km
    far = Coordinates(CAFE.latitude + 1.0, CAFE.longitude)
    assert location_score(CAFE, far) == 0
    just_past = Coordinates(CAFE.latitude + 0.46, CAFE.longitude)
    assert equirectangular_km(CAFE, just_past) > 50
    assert location_score(CAFE, just_past) == 0


def test_location_score_strictly_decreasing_inside_50_km():
    scores = [
        location_score(CAFE, Coordinates(CAFE.latitude + step * 0.04, CAFE.longitude))
        for step in range(0, 12)
    ]
    inside = [s for s in scores if s > 0]
    assert len(inside) >= 10
    assert all(a > b for a, b in zip(inside, inside[1:]))


def test_location_score_follows_two_points_per_km():
    nearby = Coordinates(CAFE.latitude + 0.1, CAFE.longitude)
    distance = equirectangular_km(CAFE, nearby)
    assert distance == pytest.approx(11.12, abs=0.01)
    assert location_score(CAFE, nearby) == pytest.approx(100 - 2 * distance)


def test_equirectangular_is_close_to_great_circle_for_short_hops():
    # NYC → Newark is ~14.4 km great-circle
    newark = Coordinates(40.7357, -74.1724)
    assert equirectangular_km(CAFE, newark) == pytest.approx(14.2, abs=0.3)


def test_engagement_weights_comments_above_likes_above_views():
    assert engagement_score(views=10, likes=0, comments=0) == pytest.approx(1.0)
    assert engagement_score(views=0, likes=1, comments=0) == 2
    assert engagement_score(views=0, likes=0, comments=1) == 3
    assert engagement_score(views=100, likes=5, comments=5) == pytest.approx(35.0)


def test_engagement_caps_at_100():
    assert engagement_score(views=1_000_000, likes=0, comments=0) == 100
    assert engagement_score(views=0, likes=40, comments=10) == 100


@pytest.mark.parametrize(
    "age_hours, expected",
    [
        (0, 100),
        (24, 100),
        (24.01, 80),
        (72, 80),
        (100, 60),
        (168, 60),
        (169, 40),
        (720, 40),
        (721, 20),
        (24 * 365, 20),
    ],
)
def test_freshness_tiers_are_inclusive(age_hours, expected):
    assert freshness_score(NOW - timedelta(hours=age_hours), NOW) == expected


def test_freshness_never_increases_with_age():
    ages = [0, 1, 12, 24, 25, 48, 72, 73, 100, 168, 200, 720, 721, 5000]
    scores = [freshness_score(NOW - timedelta(hours=h), NOW) for h in ages]
    assert all(a >= b for a, b in zip(scores, scores[1:]))


def test_freshness_treats_future_timestamps_as_brand_new():
    assert freshness_score(NOW + timedelta(minutes=5), NOW) == 100


# Combination

def test_combine_bounds():
    assert combine(0, 0, 0, 0, 0) == 0
    assert combine(100, 100, 100, 100, 100) == 100


def test_combine_is_rounded_for_exact_cursor_round_trips():
    value = combine(0, 10, 30, 0, 100)
    assert value == 18.5
    assert repr(value) == "18.5"


# Worked examples

def test_cold_viewer_scores_18_5():
    context = ViewerContext(viewer_id="viewer")
    candidate = make_candidate()

    score = score_candidate(context, candidate, NOW)

    assert score.social == 0
    assert score.category == 10
    assert score.location == 30
    assert score.engagement == 0
    assert score.freshness == 100
    assert score.final == 18.5


def test_viewer_at_the_business_scores_32_5():
    context = ViewerContext(viewer_id="viewer", location=CAFE)
    candidate = make_candidate(business_location=CAFE)

    score = score_candidate(context, candidate, NOW)

    assert score.location == 100
    assert score.final == 32.5


def test_best_possible_candidate_tops_out_at_95():
    # A category match is worth 80, not 100
    context = ViewerContext(
        viewer_id="viewer",
        following_ids=frozenset({"author"}),
        category_ids=frozenset({"pizza"}),
        location=CAFE,
    )
    candidate = make_candidate(business_location=CAFE, likes=50)

    assert score_candidate(context, candidate, NOW).final == 95


def test_candidate_without_business_gets_baselines():
    context = ViewerContext(
        viewer_id="viewer", category_ids=frozenset({"pizza"}), location=CAFE
    )
    candidate = make_candidate(business_id=None, business_category_ids=frozenset())

    score = score_candidate(context, candidate, NOW)

    assert score.category == 10
    assert score.location == 30


def test_scoring_is_deterministic():
    context = ViewerContext(viewer_id="viewer", location=CAFE)
    candidate = make_candidate(
        business_location=Coordinates(40.73, -73.99), views=123, likes=4, comments=2
    )
    assert score_candidate(context, candidate, NOW) == score_candidate(context, candidate, NOW)


def test_all_components_stay_in_range():
    context = ViewerContext(
        viewer_id="viewer",
        following_ids=frozenset({"author"}),
        category_ids=frozenset({"pizza"}),
        location=Coordinates(-89.9, 179.9),
    )
    for views, likes, comments, age in [
        (0, 0, 0, 0),
        (10**9, 10**6, 10**6, 10**5),
        (7, 3, 1, 50),
    ]:
        candidate = make_candidate(
            views=views,
            likes=likes,
            comments=comments,
            created_at=NOW - timedelta(hours=age),
            business_location=Coordinates(89.9, -179.9),
        )
        score = score_candidate(context, candidate, NOW)
        for value in (
            score.social,
            score.category,
            score.location,
            score.engagement,
            score.freshness,
            score.final,
        ):
            assert 0 <= value <= 100


# Ranking

def test_rank_orders_by_score_then_recency():
    context = ViewerContext(viewer_id="viewer", following_ids=frozenset({"friend"}))
    older_friend = make_candidate(
        review_id="older-friend", author_id="friend", created_at=NOW - timedelta(hours=5)
    )
    newer_friend = make_candidate(
        review_id="newer-friend", author_id="friend", created_at=NOW - timedelta(hours=2)
    )
    stranger = make_candidate(review_id="stranger", author_id="stranger")

    ranked = rank(
        [
            ScoredCandidate(c, score_candidate(context, c, NOW))
            for c in (older_friend, stranger, newer_friend)
        ]
    )

    assert [s.candidate.review_id for s in ranked] == [
        "newer-friend",
        "older-friend",
        "stranger",
    ]
