# src/services/identity.py

"""Identity provider: the signed-in user, or its absence."""

import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger("gearzone.identity")

IdentityListener = Callable[[str | None], None]


class IdentitySource(Protocol):
    """Exposes the current identity and notifies on transitions."""

    @property
    def current(self) -> str | None: ...

    def add_listener(
        self, listener: IdentityListener,
    ) -> Callable[[], None]: ...


class IdentitySession:
    """Minimal in-process identity provider.

    Listeners are called synchronously, in registration order, only
    when the identity actually changes.
    """

    def __init__(self, identity: str | None = None) -> None:
        self._identity = identity
        self._listeners: list[IdentityListener] = []

    @property
    def current(self) -> str | None:
        return self._identity

    def add_listener(
        self, listener: IdentityListener,
    ) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _transition(self, identity: str | None) -> None:
        if identity == self._identity:
            return
        logger.info(
            "Identity changed: %s -> %s", self._identity, identity
        )
        self._identity = identity
        for listener in list(self._listeners):
            listener(identity)

    def sign_in(self, user_id: str) -> None:
        if not user_id:
            msg = "user_id must be non-empty"
            raise ValueError(msg)
        self._transition(user_id)

    def sign_out(self) -> None:
        self._transition(None)
