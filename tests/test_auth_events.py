"""Tests for auth notifications and the auth context."""

import asyncio
import uuid

from app.core.enums import AuthEvent
from app.models.user import User
from app.services.auth_events import AuthContext, AuthStateNotifier


def _user() -> User:
    return User(id=uuid.uuid4(), email="n@example.com", provider="email", user_metadata={})


def test_listeners_called_in_order():
    notifier = AuthStateNotifier()
    calls = []

    async def first(event, user):
        calls.append(("first", event))

    async def second(event, user):
        calls.append(("second", event))

    notifier.subscribe(first)
    notifier.subscribe(second)
    asyncio.run(notifier.emit(AuthEvent.SIGNED_IN, _user()))

    assert calls == [("first", AuthEvent.SIGNED_IN), ("second", AuthEvent.SIGNED_IN)]


def test_unsubscribe_stops_delivery():
    notifier = AuthStateNotifier()
    calls = []

    async def listener(event, user):
        calls.append(event)

    sub = notifier.subscribe(listener)
    sub.unsubscribe()
    sub.unsubscribe()
    asyncio.run(notifier.emit(AuthEvent.SIGNED_OUT, _user()))

    assert calls == []
    assert notifier.listener_count == 0


def test_failing_listener_does_not_block_others():
    notifier = AuthStateNotifier()
    calls = []

    async def broken(event, user):
        raise RuntimeError("boom")

    async def healthy(event, user):
        calls.append(event)

    notifier.subscribe(broken)
    notifier.subscribe(healthy)
    asyncio.run(notifier.emit(AuthEvent.SIGNED_IN, _user()))

    assert calls == [AuthEvent.SIGNED_IN]


def test_auth_context_init_and_close():
    context = AuthContext()
    assert context.notifier.listener_count == 0
    context.init()
    assert context.notifier.listener_count == 1
    context.close()
    assert context.notifier.listener_count == 0


def test_app_lifespan_wires_auth_context(client):
    assert client.app.state.auth_context.notifier.listener_count == 1
