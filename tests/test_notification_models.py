from datetime import datetime, timedelta, timezone

import pytest
from pydantic import TypeAdapter, ValidationError

from notifykit.notifications.models import (
    AfterTrigger,
    AtTrigger,
    ContentDescriptor,
    ImmediateTrigger,
    InterruptionLevel,
    InvalidTriggerDate,
    NotificationAction,
    NotificationCategory,
    NotificationMetadata,
    NotificationRequest,
    NotificationSound,
    Trigger,
    clamp_relevance,
    fire_date,
    resolve_trigger,
)

NOW = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)


def _content(**kw):
    kw.setdefault("title", "Title")
    kw.setdefault("body", "Body")
    kw.setdefault("metadata", NotificationMetadata(created_at=NOW))
    return ContentDescriptor(**kw)


@pytest.mark.parametrize("raw,stored", [(1.7, 1.0), (-0.3, 0.0), (0.25, 0.25), (1, 1.0)])
def test_relevance_score_is_clamped(raw, stored):
    assert _content(relevance_score=raw).relevance_score == stored


@pytest.mark.parametrize(
    "raw,stored", [(float("nan"), 0.5), (float("inf"), 1.0), (float("-inf"), 0.0)]
)
def test_non_finite_relevance_stays_in_range(raw, stored):
    assert _content(relevance_score=raw).relevance_score == stored
    assert clamp_relevance(raw) == stored


def test_empty_optionals_become_absent():
    c = _content(subtitle="", thread_id="", image_url="")
    assert c.subtitle is None
    assert c.thread_id is None
    assert c.image_url is None
    assert _content(subtitle="Sub", thread_id="t1").thread_id == "t1"


def test_content_defaults():
    c = _content()
    assert c.sound == NotificationSound.default
    assert c.category == NotificationCategory.basic
    assert c.urgency == InterruptionLevel.active
    assert c.relevance_score == 0.5
    assert c.badge is None
    assert c.attachments == []


def test_content_is_immutable():
    c = _content()
    with pytest.raises(ValidationError):
        c.title = "other"


def test_metadata_keeps_created_at_system_owned():
    meta = NotificationMetadata(
        created_at=NOW, extra={"createdAt": 1, "created_at": 2, "source": "shortcut"}
    )
    assert meta.created_at == NOW
    assert meta.extra == {"source": "shortcut"}


def test_category_actions():
    assert NotificationCategory.basic.actions == (
        NotificationAction.open,
        NotificationAction.dismiss,
    )
    assert NotificationAction.reply in NotificationCategory.interactive.actions
    assert NotificationCategory.reminder.actions[0] == NotificationAction.snooze
    assert NotificationCategory.quick_actions.actions[0] == NotificationAction.mark_read
    assert NotificationCategory.interactive.custom_dismiss is True
    assert NotificationCategory("QUICK_ACTIONS") is NotificationCategory.quick_actions


def test_sound_resources():
    assert NotificationSound.none.sound_file is None
    assert NotificationSound.default.sound_file == "default"
    assert NotificationSound.tritone.sound_file == "tri-tone.caf"
    assert NotificationSound.glass.sound_file == "glass.caf"
    assert NotificationSound.none.display_name == "None (Silent)"


def test_interruption_level_values():
    assert InterruptionLevel("timeSensitive") is InterruptionLevel.time_sensitive
    assert "Focus" in InterruptionLevel.time_sensitive.description


def test_resolve_trigger_defaults_to_sixty_seconds():
    t = resolve_trigger(None, None, False, now=NOW)
    assert t == AfterTrigger(seconds=60, repeats=False)


def test_resolve_trigger_non_positive_delay_counts_as_missing():
    assert resolve_trigger(None, 0, True, now=NOW) == AfterTrigger(seconds=60, repeats=True)
    assert resolve_trigger(None, -5, False, now=NOW).seconds == 60


def test_resolve_trigger_prefers_date():
    when = NOW + timedelta(hours=2)
    t = resolve_trigger(when, 300, False, now=NOW)
    assert isinstance(t, AtTrigger)
    assert t.date == when


def test_resolve_trigger_rejects_past_and_present_dates():
    with pytest.raises(InvalidTriggerDate):
        resolve_trigger(NOW - timedelta(seconds=1), None, False, now=NOW)
    with pytest.raises(InvalidTriggerDate):
        resolve_trigger(NOW, None, False, now=NOW)


def test_resolve_trigger_treats_naive_dates_as_utc():
    t = resolve_trigger(datetime(2026, 1, 15, 10, 0), None, False, now=NOW)
    assert t.date.tzinfo is not None
    assert fire_date(t, NOW) == datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)


def test_calendar_components():
    t = AtTrigger(date=datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc), repeats=True)
    assert t.date_components() == {
        "year": 2026,
        "month": 3,
        "day": 4,
        "hour": 5,
        "minute": 6,
        "second": 7,
    }


def test_after_trigger_requires_positive_seconds():
    with pytest.raises(ValidationError):
        AfterTrigger(seconds=0)


def test_trigger_union_parses_by_kind():
    adapter = TypeAdapter(Trigger)
    assert adapter.validate_python({"kind": "after", "seconds": 300}) == AfterTrigger(
        seconds=300
    )
    assert isinstance(adapter.validate_python({"kind": "immediate"}), ImmediateTrigger)


def test_fire_date_per_trigger():
    assert fire_date(ImmediateTrigger(), NOW) is None
    assert fire_date(AfterTrigger(seconds=90), NOW) == NOW + timedelta(seconds=90)
    with pytest.raises(TypeError):
        fire_date(object(), NOW)


def test_request_defaults_to_immediate():
    req = NotificationRequest(id="n1", content=_content())
    assert isinstance(req.trigger, ImmediateTrigger)
