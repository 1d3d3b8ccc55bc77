"""Shared test fixtures for schemaplan tests."""

from __future__ import annotations

import pytest

from schemaplan import Entity, Field, FieldKind, Index, KeyPath, Model

# --- Test models ---


def build_twitter_model() -> Model:
    """User(UserId, City) <- Tweet(TweetId, Body, Timestamp, User)."""
    user = Entity("User", count=10)
    user.add_field(Field("UserId", FieldKind.ID))
    user.add_field(Field("City", FieldKind.STRING, size=20))

    tweet = Entity("Tweet", count=1000)
    tweet.add_field(Field("TweetId", FieldKind.ID))
    tweet.add_field(Field("Body", FieldKind.STRING, size=140))
    tweet.add_field(Field("Timestamp", FieldKind.INTEGER))

    model = Model([user, tweet])
    model.connect(tweet, "User", user, reverse_name="Tweets")
    return model


def build_blog_model() -> Model:
    """Author <- Post <- Comment, a three entity chain."""
    author = Entity("Author")
    author.add_field(Field("AuthorId", FieldKind.ID))
    author.add_field(Field("Name"))

    post = Entity("Post")
    post.add_field(Field("PostId", FieldKind.ID))
    post.add_field(Field("Title"))

    comment = Entity("Comment")
    comment.add_field(Field("CommentId", FieldKind.ID))
    comment.add_field(Field("Text"))

    model = Model([author, post, comment])
    model.connect(post, "Author", author, reverse_name="Posts")
    model.connect(comment, "Post", post, reverse_name="Comments")
    return model


# --- Fixtures ---


@pytest.fixture
def model():
    return build_twitter_model()


@pytest.fixture
def user(model):
    return model["User"]


@pytest.fixture
def tweet(model):
    return model["Tweet"]


@pytest.fixture
def tweets_by_user(model, user, tweet):
    """Tweet -> User, hash UserId, order TweetId, extra Body."""
    return Index(
        [user["UserId"]],
        [tweet["TweetId"]],
        [tweet["Body"]],
        KeyPath.parse(model, "Tweet.User"),
        key="tweets_by_user",
    )


@pytest.fixture
def tweets_by_user_with_city(model, user, tweet):
    """Same as tweets_by_user with User.City as an extra field."""
    return Index(
        [user["UserId"]],
        [tweet["TweetId"]],
        [tweet["Body"], user["City"]],
        KeyPath.parse(model, "Tweet.User"),
        key="tweets_by_user_with_city",
    )


@pytest.fixture
def tweets_by_id(model, tweet):
    """Single-entity index over Tweet, hash TweetId."""
    return Index(
        [tweet["TweetId"]],
        [],
        [tweet["Body"], tweet["Timestamp"]],
        KeyPath.parse(model, "Tweet"),
        key="tweets_by_id",
    )


@pytest.fixture
def blog():
    return build_blog_model()


@pytest.fixture
def other_model():
    """A second, independently built copy of the twitter model."""
    return build_twitter_model()
