"""Example 01: Basic Planning - compiling writes against indexes.

This example demonstrates:
- Building a model of entities connected by foreign keys
- Declaring indexes over key paths
- Deciding which indexes an insert and an update modify
- Deriving the support queries each write needs
"""

from schemaplan import (
    Condition,
    Entity,
    Field,
    FieldKind,
    FieldSetting,
    Index,
    Insert,
    KeyPath,
    Model,
    Update,
    UpdatePlanner,
)


def build_model() -> Model:
    user = Entity("User", count=10)
    user.add_field(Field("UserId", FieldKind.ID))
    user.add_field(Field("City"))

    tweet = Entity("Tweet", count=1000)
    tweet.add_field(Field("TweetId", FieldKind.ID))
    tweet.add_field(Field("Body", size=140))

    model = Model([user, tweet])
    model.connect(tweet, "User", user, reverse_name="Tweets")
    return model


def main():
    """Run the basic planning example."""
    print("=" * 80)
    print("SCHEMAPLAN BASIC PLANNING EXAMPLE")
    print("=" * 80)

    # Step 1: The logical model
    model = build_model()
    user, tweet = model["User"], model["Tweet"]

    # Step 2: Candidate indexes
    # Tweets of a user, carrying the author's city alongside each tweet
    tweets_by_user = Index(
        [user["UserId"]],
        [tweet["TweetId"]],
        [tweet["Body"], user["City"]],
        KeyPath.parse(model, "Tweet.User"),
        key="tweets_by_user",
    )
    tweets_by_id = Index(
        [tweet["TweetId"]], [], [tweet["Body"]], KeyPath.parse(model, "Tweet"), key="tweets_by_id"
    )
    planner = UpdatePlanner([tweets_by_user, tweets_by_id])

    # Step 3: Writes
    add_tweet = Insert(
        tweet,
        [FieldSetting(tweet["TweetId"]), FieldSetting(tweet["Body"])],
        [Condition(tweet["User"])],
    )
    edit_body = Update(tweet, [FieldSetting(tweet["Body"])], [Condition(tweet["TweetId"])])

    # Step 4: Plans
    for statement in (add_tweet, edit_body):
        print(f"\n{statement.unparse()}")
        for plan in planner.plan(statement):
            print(
                f"  {plan.index.key}: insert={plan.requires_insert} "
                f"delete={plan.requires_delete}"
            )
            for query in plan.support_queries:
                print(f"    {query.unparse()}")


if __name__ == "__main__":
    main()
