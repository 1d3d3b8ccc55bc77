"""Tests for fields, entities and the model registry."""

from __future__ import annotations

from datetime import datetime

import pytest

from schemaplan import Entity, Field, FieldKind, ForeignKeyField, Model
from schemaplan.errors import ModelError


class TestField:
    def test_field_identity(self, tweet):
        body = tweet["Body"]
        assert body.id == "Tweet.Body"
        assert str(body) == "Tweet.Body"
        assert body.parent is tweet

    def test_fields_with_same_identity_are_equal(self):
        a = Entity("Thing")
        a.add_field(Field("ThingId", FieldKind.ID))
        b = Entity("Thing")
        b.add_field(Field("ThingId", FieldKind.ID))
        assert a["ThingId"] == b["ThingId"]
        assert hash(a["ThingId"]) == hash(b["ThingId"])

    def test_kind_flags(self, tweet):
        assert tweet["TweetId"].is_id
        assert tweet["User"].is_foreign_key
        assert not tweet["Body"].is_id
        assert not tweet["Body"].is_foreign_key

    def test_default_size(self, tweet):
        assert tweet["Timestamp"].size == 8
        assert tweet["Body"].size == 140

    def test_empty_name_rejected(self):
        with pytest.raises(ModelError):
            Field("")

    def test_dotted_names_rejected(self):
        with pytest.raises(ModelError, match="contain no"):
            Field("A.B")
        with pytest.raises(ModelError, match="contain no"):
            Entity("A.B")

    def test_identity_does_not_collide_across_entities(self):
        ab = Entity("A_B")
        ab.add_field(Field("C"))
        a = Entity("A")
        a.add_field(Field("B_C"))
        assert ab["C"].id != a["B_C"].id
        assert ab["C"] != a["B_C"]
        assert len({ab["C"], a["B_C"]}) == 2

    def test_coerce_integer(self, tweet):
        assert tweet["Timestamp"].coerce("42") == 42

    def test_coerce_id_keeps_strings(self, tweet):
        assert tweet["TweetId"].coerce(5) == 5
        assert tweet["TweetId"].coerce("abc") == "abc"

    def test_coerce_date(self):
        e = Entity("Event")
        when = e.add_field(Field("When", FieldKind.DATE))
        assert when.coerce("2024-01-01T00:00:00") == datetime(2024, 1, 1)

    def test_coerce_none_is_unbound(self, tweet):
        assert tweet["Timestamp"].coerce(None) is None

    def test_coerce_invalid_value(self, tweet):
        with pytest.raises(ModelError, match="Invalid value"):
            tweet["Timestamp"].coerce("not a number")


class TestEntity:
    def test_id_field(self, user):
        assert user.id_field == user["UserId"]

    def test_missing_id_field(self):
        with pytest.raises(ModelError, match="no ID field"):
            Entity("Orphan").id_field

    def test_second_id_field_rejected(self, user):
        with pytest.raises(ModelError, match="already has an ID field"):
            user.add_field(Field("OtherId", FieldKind.ID))

    def test_duplicate_field_rejected(self, user):
        with pytest.raises(ModelError, match="already has a field"):
            user.add_field(Field("City"))

    def test_unknown_field(self, user):
        with pytest.raises(ModelError, match="no field named"):
            user["Nope"]

    def test_foreign_keys(self, tweet, user):
        assert set(tweet.foreign_keys) == {"User"}
        assert set(user.foreign_keys) == {"Tweets"}

    def test_equality_by_name(self):
        assert Entity("A") == Entity("A")
        assert Entity("A") != Entity("B")
        assert hash(Entity("A")) == hash(Entity("A"))


class TestModel:
    def test_lookup(self, model, tweet):
        assert model["Tweet"] is tweet
        assert "Tweet" in model
        assert len(model) == 2

    def test_unknown_entity(self, model):
        with pytest.raises(ModelError, match="Unknown entity"):
            model["Nope"]

    def test_duplicate_entity(self, model):
        with pytest.raises(ModelError, match="Duplicate entity"):
            model.add_entity(Entity("User"))

    def test_find_field(self, model, user):
        assert model.find_field("User.City") is user["City"]

    def test_find_field_bad_reference(self, model):
        with pytest.raises(ModelError, match="Entity.Field"):
            model.find_field("City")

    def test_connect_wires_reverse(self, tweet, user):
        key = tweet["User"]
        assert isinstance(key, ForeignKeyField)
        assert key.entity is user
        assert key.relationship == "one"
        assert key.reverse is user["Tweets"]
        assert user["Tweets"].reverse is key
        assert user["Tweets"].relationship == "many"

    def test_connect_default_reverse_name(self):
        a = Entity("A")
        a.add_field(Field("AId", FieldKind.ID))
        b = Entity("B")
        b.add_field(Field("BId", FieldKind.ID))
        model = Model([a, b])
        model.connect("A", "Owner", "B")
        assert b["A"].reverse is a["Owner"]

    def test_connect_foreign_entity_rejected(self, model):
        stranger = Entity("User")
        stranger.add_field(Field("UserId", FieldKind.ID))
        with pytest.raises(ModelError, match="not part of this model"):
            model.connect("Tweet", "Author", stranger)


class TestForeignKeyFor:
    def test_towards_target(self, tweet, user):
        assert tweet["User"].foreign_key_for(user) is tweet["User"]

    def test_towards_parent(self, tweet):
        assert tweet["User"].foreign_key_for(tweet) is tweet.fields["User"].reverse

    def test_unrelated_entity(self, tweet):
        with pytest.raises(ModelError, match="does not connect"):
            tweet["User"].foreign_key_for(Entity("Elsewhere"))

    def test_invalid_relationship(self, user):
        with pytest.raises(ModelError, match="Relationship"):
            ForeignKeyField("Bad", user, relationship="several")
