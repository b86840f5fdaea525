"""Tests for notification intake, listing and mark-handled."""
from datetime import timedelta

import pytest
from sqlalchemy import select

from relay.errors import TransientProviderFailure
from relay.models import Notification
from relay.services.notifications import create_notification, mark_handled
from relay.utils.clock import utcnow
from tests.conftest import add_device, auth_headers


async def post_notification(client, owner, **overrides):
    payload = {"sourceDeviceName": "Yard camera", "text": "Cart 7 returned"}
    payload.update(overrides)
    return await client.post("/api/notifications", json=payload, headers=auth_headers(owner))


@pytest.mark.asyncio
async def test_intake_stores_and_dispatches(client, ctx, events, push_provider, owner):
    await add_device(ctx, owner, push_token="master-token")

    resp = await post_notification(client, owner, timestamp="2026-05-01T08:00:00Z")
    await events.drain()

    assert resp.status_code == 201
    body = resp.json()
    assert body["targetUserId"] == owner
    assert body["isHandled"] is False
    assert body["handledAt"] is None
    assert len(push_provider.calls) == 1
    assert push_provider.calls[0].tokens == ["master-token"]
    assert push_provider.calls[0].data["notificationId"] == body["id"]


@pytest.mark.asyncio
async def test_intake_cannot_target_another_account(client, ctx, events, push_provider, owner, other_owner):
    await add_device(ctx, other_owner, push_token="their-token")

    resp = await post_notification(client, owner, targetUserId=other_owner)
    await events.drain()

    assert resp.status_code == 403
    assert push_provider.calls == []
    async with ctx.session_factory() as session:
        rows = (await session.execute(select(Notification))).scalars().all()
    assert rows == []


@pytest.mark.asyncio
async def test_intake_survives_provider_outage(client, ctx, events, push_provider, owner):
    await add_device(ctx, owner, push_token="m1")
    push_provider.raise_error = TransientProviderFailure("FCM down")

    resp = await post_notification(client, owner)
    await events.drain()

    assert resp.status_code == 201
    # Redelivered by the event runtime, never by the dispatcher itself
    assert len(push_provider.calls) == ctx.settings.event_max_attempts


@pytest.mark.asyncio
async def test_mark_handled_is_idempotent(client, owner):
    created = (await post_notification(client, owner)).json()
    headers = auth_headers(owner)

    first = await client.post(f"/api/notifications/{created['id']}/handled", headers=headers)
    second = await client.post(f"/api/notifications/{created['id']}/handled", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["isHandled"] is True
    assert second.json()["isHandled"] is True
    assert first.json()["handledAt"] is not None
    assert second.json()["handledAt"] == first.json()["handledAt"]


@pytest.mark.asyncio
async def test_overlapping_mark_handled_keeps_first_handled_at(ctx, owner, monkeypatch):
    async with ctx.session_factory() as session:
        notification = await create_notification(session, owner, "Yard camera", "Cart 7 returned")
    notification_id = notification.id

    async with ctx.session_factory() as first, ctx.session_factory() as second:
        original_execute = first.execute
        other = {}

        async def read_then_let_other_call_finish(*args, **kwargs):
            result = await original_execute(*args, **kwargs)
            if not other:
                # First session has loaded the unhandled row; the second call
                # now runs to completion before the first one writes.
                other["notification"] = await mark_handled(second, owner, notification_id)
            return result

        monkeypatch.setattr(first, "execute", read_then_let_other_call_finish)
        late = await mark_handled(first, owner, notification_id)

    winner = other["notification"]
    assert winner.handled_at is not None
    assert late.is_handled is True
    assert late.handled_at == winner.handled_at

    async with ctx.session_factory() as session:
        stored = (await session.execute(
            select(Notification).where(Notification.id == notification_id)
        )).scalar_one()
    assert stored.handled_at == winner.handled_at


@pytest.mark.asyncio
async def test_mark_handled_ownership(client, owner, other_owner):
    created = (await post_notification(client, owner)).json()

    denied = await client.post(
        f"/api/notifications/{created['id']}/handled", headers=auth_headers(other_owner)
    )
    missing = await client.post("/api/notifications/nope/handled", headers=auth_headers(owner))

    assert denied.status_code == 403
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_list_returns_newest_first_with_stats(client, ctx, owner, other_owner):
    now = utcnow()
    async with ctx.session_factory() as session:
        for i in range(3):
            session.add(Notification(
                id=f"n{i}",
                target_user_id=owner,
                source_device_name="Cam",
                text=f"event {i}",
                created_at=now - timedelta(minutes=10 - i),
                is_handled=(i == 0),
            ))
        session.add(Notification(id="theirs", target_user_id=other_owner, text="hidden", created_at=now))
        await session.commit()

    resp = await client.get("/api/notifications", headers=auth_headers(owner))

    assert resp.status_code == 200
    body = resp.json()
    assert [n["id"] for n in body["notifications"]] == ["n2", "n1", "n0"]
    assert body["stats"] == {"total": 3, "handled": 1, "unhandled": 2}

    limited = await client.get("/api/notifications?limit=1", headers=auth_headers(owner))
    assert [n["id"] for n in limited.json()["notifications"]] == ["n2"]
