"""InfluencerDirectory tests: partial updates, validation, cascade delete."""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from app.exceptions import NotFoundError, ValidationError
from app.models import CampaignInfluencer, Reminder
from app.services.influencer_service import campaign_history


def _create(directory, **overrides):
    data = {"handle": "@jane", "followers": 100, "rate": 50}
    data.update(overrides)
    return directory.create(data)


def test_create_applies_defaults(directory):
    influencer = directory.create({"handle": "@jane"})

    assert influencer.id is not None
    assert influencer.followers == 0
    assert influencer.platform == "Instagram"
    assert influencer.categories == []
    assert influencer.notes == []
    assert influencer.created_at is not None


def test_create_requires_handle(directory):
    with pytest.raises(ValidationError):
        directory.create({"followers": 10})


@pytest.mark.parametrize(
    "field,value",
    [("followers", -1), ("rate", -5), ("engagement_rate", 101), ("engagement_rate", -0.1)],
)
def test_create_rejects_out_of_range_numbers(directory, field, value):
    with pytest.raises(ValidationError):
        directory.create({"handle": "@jane", field: value})


def test_update_merges_only_supplied_fields(directory):
    influencer = _create(directory)

    updated = directory.update(influencer.id, {"rate": 75})

    assert updated.followers == 100
    assert updated.rate == Decimal("75")
    assert updated.handle == "@jane"


def test_update_unknown_field_leaves_record_intact(directory, test_db_session):
    influencer = _create(directory)

    with pytest.raises(ValidationError):
        directory.update(influencer.id, {"rate": 80, "favourite_colour": "green"})

    test_db_session.expire_all()
    fresh = directory.get_by_id(influencer.id)
    assert fresh.rate == Decimal("50")


def test_update_invalid_value_leaves_record_intact(directory, test_db_session):
    influencer = _create(directory)

    with pytest.raises(ValidationError):
        directory.update(influencer.id, {"followers": 500, "engagement_rate": 250})

    test_db_session.expire_all()
    assert directory.get_by_id(influencer.id).followers == 100


def test_update_missing_influencer(directory):
    with pytest.raises(NotFoundError):
        directory.update(uuid4(), {"rate": 10})


def test_get_by_id_absent_returns_none(directory):
    assert directory.get_by_id(uuid4()) is None


def test_list_all_newest_first(directory, test_db_session):
    older = _create(directory, handle="@older")
    newer = _create(directory, handle="@newer")
    older.created_at = datetime.utcnow() - timedelta(days=1)
    test_db_session.commit()

    handles = [i.handle for i in directory.list_all()]
    assert handles == ["@newer", "@older"]
    assert newer.id is not None


def test_delete_cascades_associations_and_unlinks_reminders(
    directory, campaign_engine, registry, test_user, test_db_session
):
    influencer = _create(directory)
    campaign = campaign_engine.create({"user_id": test_user.id, "name": "Summer"})
    campaign_engine.add_influencer_to_campaign(campaign.id, influencer.id)
    reminder = registry.create({
        "user_id": test_user.id,
        "title": "Follow up",
        "expiration_date": datetime.utcnow() + timedelta(days=2),
        "influencer_id": influencer.id,
    })
    reminder_id = reminder.id

    directory.delete(influencer.id)

    test_db_session.expire_all()
    assert directory.get_by_id(influencer.id) is None
    assert test_db_session.query(CampaignInfluencer).count() == 0
    assert test_db_session.get(Reminder, reminder_id).influencer_id is None
    assert campaign_engine.get_by_id(campaign.id).total_influencers == 0


def test_delete_missing_influencer(directory):
    with pytest.raises(NotFoundError):
        directory.delete(uuid4())


# ============================================================================
# Notes / messages
# ============================================================================

def test_add_and_delete_note(directory, test_db_session):
    influencer = _create(directory)

    note = directory.add_note(influencer.id, "Loves outdoor shoots")
    assert note["id"] and note["date"]

    test_db_session.expire_all()
    assert [n["content"] for n in directory.get_by_id(influencer.id).notes] == ["Loves outdoor shoots"]

    directory.delete_note(influencer.id, note["id"])
    test_db_session.expire_all()
    assert directory.get_by_id(influencer.id).notes == []


def test_delete_unknown_note(directory):
    influencer = _create(directory)
    with pytest.raises(NotFoundError):
        directory.delete_note(influencer.id, "missing")


def test_add_message_validates_direction(directory):
    influencer = _create(directory)

    with pytest.raises(ValidationError):
        directory.add_message(influencer.id, "sideways", "Hi", "Hello")

    message = directory.add_message(influencer.id, "outgoing", "Brief", "Here is the brief")
    assert message["direction"] == "outgoing"


def test_embedded_entries_get_ids(directory):
    influencer = directory.create({"handle": "@jane", "notes": [{"content": "First"}]})

    assert influencer.notes[0]["id"]
    assert influencer.notes[0]["date"]


def test_campaign_history_derived_from_associations(directory, campaign_engine, test_user):
    influencer = _create(directory)
    campaign = campaign_engine.create({"user_id": test_user.id, "name": "Summer"})
    campaign_engine.add_influencer_to_campaign(campaign.id, influencer.id, {"rate": 120})

    history = campaign_history(directory.get_by_id(influencer.id))

    assert len(history) == 1
    assert history[0]["id"] == campaign.id
    assert history[0]["name"] == "Summer"
    assert history[0]["payment"] == Decimal("120")


@pytest.mark.parametrize(
    "field,value",
    [
        ("followers", "abc"),
        ("followers", 10.5),
        ("followers", float("nan")),
        ("rate", "abc"),
        ("rate", float("nan")),
        ("rate", float("inf")),
        ("engagement_rate", "abc"),
        ("engagement_rate", float("nan")),
    ],
)
def test_create_rejects_non_numeric_and_non_finite(directory, field, value):
    with pytest.raises(ValidationError):
        directory.create({"handle": "@jane", field: value})
