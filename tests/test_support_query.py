"""Tests for support queries as statements in their own right."""

from __future__ import annotations

import pytest

from schemaplan import Condition, FieldSetting, Insert, SupportQuery, Update
from schemaplan.errors import InvalidStatementError


@pytest.fixture
def add_tweet(tweet):
    return Insert(
        tweet,
        [FieldSetting(tweet["TweetId"], 5), FieldSetting(tweet["Body"], "hi")],
        [Condition(tweet["User"], "=", 7)],
        group="writes",
    )


@pytest.fixture
def city_query(add_tweet, tweets_by_user_with_city):
    (query,) = add_tweet.support_queries(tweets_by_user_with_city)
    return query


class TestSupportQuery:
    def test_read_only(self, city_query):
        assert city_query.read_only
        assert not Insert.read_only
        assert not Update.read_only

    def test_inherits_group(self, city_query):
        assert city_query.group == "writes"

    def test_given_fields(self, city_query, user):
        assert city_query.given_fields == frozenset({user["UserId"]})

    def test_graph_frozen(self, city_query):
        assert city_query.frozen
        assert city_query.graph.frozen

    def test_correlation(self, city_query, add_tweet, tweets_by_user_with_city):
        assert city_query.correlation == hash(add_tweet) ^ hash(tweets_by_user_with_city)

    def test_empty_select_rejected(self, user, add_tweet, tweets_by_user_with_city):
        graph = tweets_by_user_with_city.graph.clone()
        graph.remove_nodes(["Tweet"])
        with pytest.raises(InvalidStatementError, match="at least one field"):
            SupportQuery(
                user,
                [],
                graph.longest_path(),
                graph,
                [],
                statement=add_tweet,
                index=tweets_by_user_with_city,
            )


class TestSupportQueryIdentity:
    def test_query_key_ignores_origin(self, tweet, user, tweets_by_user_with_city, add_tweet):
        other_insert = Insert(
            tweet,
            [FieldSetting(tweet["TweetId"], 9), FieldSetting(tweet["Body"], "bye")],
            [Condition(tweet["User"], "=", 7)],
        )
        (a,) = add_tweet.support_queries(tweets_by_user_with_city)
        (b,) = other_insert.support_queries(tweets_by_user_with_city)
        assert a.query_key() == b.query_key()
        assert a.structural_key() != b.structural_key()
        assert a != b

    def test_equal_for_same_origin(self, add_tweet, tweets_by_user_with_city):
        (a,) = add_tweet.support_queries(tweets_by_user_with_city)
        (b,) = add_tweet.support_queries(tweets_by_user_with_city)
        assert a == b
        assert hash(a) == hash(b)

    def test_different_bound_value(self, tweet, add_tweet, tweets_by_user_with_city):
        other_insert = Insert(
            tweet,
            [FieldSetting(tweet["TweetId"], 5), FieldSetting(tweet["Body"], "hi")],
            [Condition(tweet["User"], "=", 8)],
        )
        (a,) = add_tweet.support_queries(tweets_by_user_with_city)
        (b,) = other_insert.support_queries(tweets_by_user_with_city)
        assert a.query_key() != b.query_key()
