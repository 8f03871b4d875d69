"""Auth state notifications and the per-application auth context.

The identity provider emits SIGNED_IN / SIGNED_OUT through an AuthStateNotifier.
AuthContext owns the notifier for one application instance: ``init()`` wires
the subscribers (profile auto-provisioning) at startup and ``close()`` removes
them at shutdown. It lives on ``app.state`` and reaches endpoints through the
``get_auth_context`` dependency.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi import Request

from app.core.enums import AuthEvent
from app.models.user import User

logger = logging.getLogger(__name__)

AuthListener = Callable[[AuthEvent, User], Awaitable[None]]


@dataclass
class Subscription:
    notifier: "AuthStateNotifier"
    listener: AuthListener

    def unsubscribe(self) -> None:
        self.notifier._remove(self.listener)


class AuthStateNotifier:
    """Ordered list of async listeners called on every auth state change."""

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def emit(self, event: AuthEvent, user: User) -> None:
        """Call each listener in subscription order. A failing listener is logged, not raised."""
        logger.info("Auth event %s for user %s", event.value, user.id)
        for listener in list(self._listeners):
            try:
                await listener(event, user)
            except Exception:
                logger.exception("Auth listener %r failed on %s", listener, event.value)


class AuthContext:
    def __init__(self, notifier: AuthStateNotifier | None = None) -> None:
        self.notifier = notifier or AuthStateNotifier()
        self._subscriptions: list[Subscription] = []

    def init(self) -> None:
        from app.services.profiles import provision_profile_on_sign_in

        self._subscriptions.append(self.notifier.subscribe(provision_profile_on_sign_in))

    def close(self) -> None:
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions.clear()


def get_auth_context(request: Request) -> AuthContext:
    """Dependency: the AuthContext created in the application lifespan."""
    return request.app.state.auth_context
