# appflow/app/auth.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Protocol, runtime_checkable

from appflow.core.errors import HSMError

logger = logging.getLogger(__name__)

AuthStateCallback = Callable[[Optional[str]], None]
Unsubscribe = Callable[[], None]


class AuthError(HSMError):
    """
    Raised by an auth adapter when the identity provider rejects or fails an operation.
    """


@dataclass(frozen=True)
class AuthUser:
    uid: str


@dataclass(frozen=True)
class SignInResult:
    user: AuthUser


@runtime_checkable
class AuthAdapter(Protocol):
    """
    Boundary to the identity provider. The machine receives an adapter at
    construction; it never reaches for a process-wide client.
    """

    def sign_out(self) -> Awaitable[None]:
        """Sign the current user out. Raises AuthError on failure."""
        ...

    def sign_in_anonymously(self) -> Awaitable[SignInResult]:
        """Create and sign in an anonymous user. Raises AuthError on failure."""
        ...

    def observe_auth_state(self, callback: AuthStateCallback) -> Unsubscribe:
        """
        Deliver the signed-in user id (or None) to ``callback``, now and on every
        change, until the returned function is called.
        """
        ...


class InMemoryAuthAdapter:
    """
    Process-local identity provider: anonymous users get random ids and nothing
    outlives the process.
    """

    def __init__(self, user_id: Optional[str] = None) -> None:
        self._user_id = user_id
        self._observers: List[AuthStateCallback] = []

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    async def sign_out(self) -> None:
        logger.debug("signing out %s", self._user_id)
        self._set_user(None)

    async def sign_in_anonymously(self) -> SignInResult:
        user = AuthUser(uid=uuid.uuid4().hex)
        logger.debug("signed in anonymous user %s", user.uid)
        self._set_user(user.uid)
        return SignInResult(user=user)

    def observe_auth_state(self, callback: AuthStateCallback) -> Unsubscribe:
        self._observers.append(callback)
        callback(self._user_id)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _set_user(self, user_id: Optional[str]) -> None:
        self._user_id = user_id
        for observer in list(self._observers):
            observer(user_id)
