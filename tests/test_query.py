"""Tests for the query module."""

import pytest

from gmail_subscription_finder.query import build_search_queries, clamp_lookback, sender_body_query


def test_six_queries_with_window():
    queries = build_search_queries(12)
    assert len(queries) == 6
    assert all(q.startswith("subject:") for q in queries)
    assert all(q.endswith(" newer_than:12m") for q in queries)


def test_query_contents():
    queries = build_search_queries(6)
    assert queries[0] == "subject:(receipt OR invoice OR payment OR billing) newer_than:6m"
    assert '"amount due"' in queries[2]
    assert '"auto-pay"' in queries[2]
    assert '"api usage"' in queries[3]
    assert "refund" in queries[4]
    assert '"subscription ended"' in queries[5]


@pytest.mark.parametrize(
    "requested, expected",
    [(None, 12), (0, 12), (1, 1), (24, 24), (36, 36), (100, 36), (-5, 1)],
)
def test_clamp_lookback(requested, expected):
    assert clamp_lookback(requested) == expected


def test_queries_use_clamped_window():
    assert build_search_queries(100)[0].endswith("newer_than:36m")


def test_sender_body_query_uses_query_domain(cursor_sender):
    assert sender_body_query(cursor_sender, 6) == "from:stripe.com newer_than:6m"
