"""Tests for the FCM multicast provider."""
from types import SimpleNamespace

import pytest
from firebase_admin import exceptions, messaging

from relay.config import Settings
from relay.errors import TransientProviderFailure
from relay.services import push_sender
from relay.services.push_sender import FcmPushProvider, MulticastMessage

FAKE_APP = object()


def message(tokens):
    return MulticastMessage(
        tokens=tokens,
        title="\U0001F4F1 Yard camera",
        body="Cart 7 returned",
        data={"notificationId": "n1", "sourceDeviceName": "Yard camera", "timestamp": None},
    )


def ok(message_id):
    return SimpleNamespace(success=True, message_id=message_id, exception=None)


def failed(code, text):
    return SimpleNamespace(success=False, message_id=None, exception=exceptions.FirebaseError(code, text))


@pytest.fixture
def sent(monkeypatch):
    """Captures send_each_for_multicast calls; set .reply or .error to control the outcome."""
    state = SimpleNamespace(calls=[], reply=None, error=None)

    def fake_send(multicast, app=None):
        state.calls.append((multicast, app))
        if state.error:
            raise state.error
        return SimpleNamespace(responses=state.reply(multicast))

    monkeypatch.setattr(push_sender.messaging, "send_each_for_multicast", fake_send)
    return state


@pytest.mark.asyncio
async def test_all_tokens_in_one_call(sent):
    sent.reply = lambda multicast: [ok("a"), failed("NOT_FOUND", "Requested entity was not found."), ok("c")]
    provider = FcmPushProvider(FAKE_APP)

    result = await provider.send_multicast(message(["t1", "t2", "t3"]))

    assert len(sent.calls) == 1
    multicast, app = sent.calls[0]
    assert isinstance(multicast, messaging.MulticastMessage)
    assert multicast.tokens == ["t1", "t2", "t3"]
    assert multicast.notification.title == "\U0001F4F1 Yard camera"
    assert multicast.notification.body == "Cart 7 returned"
    assert multicast.data == {"notificationId": "n1", "sourceDeviceName": "Yard camera", "timestamp": ""}
    assert app is FAKE_APP
    assert result.success_count == 2
    assert result.failure_count == 1
    assert result.responses[1].token == "t2"
    assert result.responses[1].error == "NOT_FOUND"
    assert result.responses[2].message_id == "c"


@pytest.mark.asyncio
async def test_unreachable_provider_is_transient(sent):
    sent.error = exceptions.UnavailableError("FCM unavailable")

    with pytest.raises(TransientProviderFailure):
        await FcmPushProvider(FAKE_APP).send_multicast(message(["t1"]))


@pytest.mark.asyncio
async def test_malformed_request_is_call_level_failure(sent):
    sent.error = ValueError("tokens must not contain more than 500 elements")

    with pytest.raises(TransientProviderFailure):
        await FcmPushProvider(FAKE_APP).send_multicast(message(["t1"]))


@pytest.mark.asyncio
async def test_mismatched_results_are_rejected(sent):
    sent.reply = lambda multicast: []

    with pytest.raises(TransientProviderFailure):
        await FcmPushProvider(FAKE_APP).send_multicast(message(["t1"]))


@pytest.mark.asyncio
async def test_unconfigured_provider_sends_nothing(sent):
    provider = FcmPushProvider.from_settings(Settings(fcm_credentials_path=""))

    result = await provider.send_multicast(message(["t1"]))

    assert provider.enabled is False
    assert sent.calls == []
    assert result.success_count == 0


@pytest.mark.asyncio
async def test_unreadable_credentials_disable_push(tmp_path, sent):
    provider = FcmPushProvider.from_settings(
        Settings(fcm_credentials_path=str(tmp_path / "missing.json"))
    )

    assert provider.enabled is False
    await provider.close()
