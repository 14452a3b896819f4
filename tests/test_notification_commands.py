from datetime import timedelta

import pytest

from notifykit.commands import (
    ActionNotAvailable,
    FailedToSchedule,
    FailedToSend,
    InvalidDate,
    NotAuthorized,
    NotFound,
    NotificationCommands,
)
from notifykit.notifications.manager import NotificationManager
from notifykit.notifications.models import (
    AfterTrigger,
    AtTrigger,
    AuthorizationStatus,
    NotificationCategory,
)
from notifykit.notifications.store import InMemoryNotificationStore


@pytest.fixture
def commands(manager):
    manager.authorized = True
    return NotificationCommands(manager)


@pytest.mark.asyncio
async def test_send(commands, manager):
    assert await commands.send("Test", "Hi", subtitle="", relevance_score=1.7) is True
    content = manager.delivered[0].content
    assert content.subtitle is None
    assert content.relevance_score == 1.0


@pytest.mark.asyncio
async def test_unauthorized_verbs_refuse_before_touching_the_store(commands, manager, store):
    manager.authorized = False
    with pytest.raises(NotAuthorized):
        await commands.send("T", "B")
    with pytest.raises(NotAuthorized):
        await commands.schedule("T", "B", delay_seconds=60)
    with pytest.raises(NotAuthorized):
        await commands.schedule_delayed("T", "B")
    with pytest.raises(NotAuthorized):
        await commands.set_badge(3)
    assert await store.list_pending() == []
    assert await store.list_delivered() == []
    assert store.badge_count == 0


@pytest.mark.asyncio
async def test_authorization_follows_the_store(manager, store):
    store.authorization_status = AuthorizationStatus.denied
    await manager.check_permission_status()
    with pytest.raises(NotAuthorized):
        await NotificationCommands(manager).send("T", "B")


@pytest.mark.asyncio
async def test_schedule_past_date_is_invalid(commands, store, clock):
    with pytest.raises(InvalidDate) as exc:
        await commands.schedule("T", "B", scheduled_date=clock.now - timedelta(hours=1))
    assert str(exc.value) == "The scheduled date must be in the future."
    assert await store.list_pending() == []


@pytest.mark.asyncio
async def test_schedule_trigger_choice(commands, manager, clock):
    at_id = await commands.schedule("T", "B", scheduled_date=clock.now + timedelta(hours=1))
    delay_id = await commands.schedule("T", "B", delay_seconds=300)
    default_id = await commands.schedule("T", "B")
    zero_id = await commands.schedule("T", "B", delay_seconds=0)

    assert isinstance(manager.find(at_id).trigger, AtTrigger)
    assert manager.find(delay_id).trigger == AfterTrigger(seconds=300)
    assert manager.find(default_id).trigger == AfterTrigger(seconds=60)
    assert manager.find(zero_id).trigger == AfterTrigger(seconds=60)


@pytest.mark.asyncio
async def test_schedule_delayed_uses_minutes(commands, manager):
    nid = await commands.schedule_delayed("T", "B")
    assert manager.find(nid).trigger == AfterTrigger(seconds=300)
    nid = await commands.schedule_delayed("T", "B", delay_minutes=2)
    assert manager.find(nid).trigger == AfterTrigger(seconds=120)


@pytest.mark.asyncio
async def test_store_rejections_surface_as_errors(commands, store):
    store.fail_submissions = True
    with pytest.raises(FailedToSend):
        await commands.send("T", "B")
    with pytest.raises(FailedToSchedule):
        await commands.schedule("T", "B", delay_seconds=60)
    with pytest.raises(FailedToSchedule):
        await commands.schedule_delayed("T", "B")


@pytest.mark.asyncio
async def test_cancel_all_reports_snapshot_count(commands, manager):
    await commands.schedule("A", "B", delay_seconds=600)
    await commands.schedule("C", "D", delay_seconds=600)
    await commands.send("E", "F")

    assert await commands.cancel_all() == 3
    assert await commands.get_pending_count() == 0
    assert manager.delivered == []


@pytest.mark.asyncio
async def test_cancel_and_pending_count(commands):
    nid = await commands.schedule("A", "B", delay_seconds=600)
    assert await commands.get_pending_count() == 1
    await commands.cancel(nid)
    await commands.cancel(nid)
    assert await commands.get_pending_count() == 0


@pytest.mark.asyncio
async def test_cancel_by_thread_returns_count(commands):
    await commands.schedule("A", "B", delay_seconds=600, thread_id="chores")
    await commands.schedule("C", "D", delay_seconds=600, thread_id="chores")
    await commands.schedule("E", "F", delay_seconds=600)
    assert await commands.cancel_by_thread("chores") == 2
    assert await commands.get_pending_count() == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("requested,stored", [(4, 4), (0, 0), (-3, 0)])
async def test_set_badge(commands, store, requested, stored):
    store.badge_count = 9
    await commands.set_badge(requested)
    assert store.badge_count == stored


@pytest.mark.asyncio
async def test_clear_badge_needs_no_permission(commands, manager, store):
    store.badge_count = 2
    manager.authorized = False
    await commands.clear_badge()
    assert store.badge_count == 0


@pytest.mark.asyncio
async def test_respond(commands, manager):
    await commands.send("T", "B", category=NotificationCategory.reminder)
    delivered_id = manager.delivered[0].id
    new_id = await commands.respond(delivered_id, "SNOOZE_ACTION")
    assert manager.find(new_id).trigger == AfterTrigger(seconds=300)
    with pytest.raises(NotFound):
        await commands.respond("missing", "SNOOZE_ACTION")


@pytest.mark.asyncio
async def test_list_notifications_is_json_ready(commands):
    nid = await commands.schedule("A", "B", delay_seconds=600)
    listing = await commands.list_notifications()
    assert listing["authorized"] is True
    assert listing["pending"][0]["id"] == nid
    assert listing["pending"][0]["trigger"] == {
        "kind": "after",
        "seconds": 600.0,
        "repeats": False,
    }
    assert listing["delivered"] == []


@pytest.mark.asyncio
async def test_respond_rejects_actions_the_category_does_not_offer(commands, manager):
    await commands.send("T", "B")
    basic_id = manager.delivered[0].id
    with pytest.raises(ActionNotAvailable):
        await commands.respond(basic_id, "SNOOZE_ACTION")
    with pytest.raises(ActionNotAvailable):
        await commands.respond(basic_id, "NOT_A_REAL_ACTION")
    assert await commands.get_pending_count() == 0
    assert await commands.respond(basic_id, "DEFAULT_ACTION") is None


class TickingClock:
    """Moves forward a little on every read."""

    def __init__(self, now, step):
        self.now = now
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


@pytest.mark.asyncio
async def test_schedule_validates_the_date_once(clock):
    ticking = TickingClock(clock.now, timedelta(milliseconds=5))
    store = InMemoryNotificationStore(
        authorization_status=AuthorizationStatus.authorized, clock=ticking
    )
    mgr = NotificationManager(store, clock=ticking)
    mgr.authorized = True
    target = clock.now + timedelta(milliseconds=7)

    nid = await NotificationCommands(mgr).schedule("T", "B", scheduled_date=target)

    record = mgr.find(nid)
    assert isinstance(record.trigger, AtTrigger)
    assert record.trigger.date == target
