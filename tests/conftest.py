# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio
from typing import Any, List, Optional

import pytest

from appflow.app.auth import AuthError, AuthUser, SignInResult


class TraceHook:
    """Records lifecycle notifications as ENTER:/EXIT:/TRANSITION:/ERROR: strings."""

    def __init__(self):
        self.trace: List[str] = []
        self.errors: List[Exception] = []

    def on_enter(self, state):
        self.trace.append(f"ENTER:{state.id}")

    def on_exit(self, state):
        self.trace.append(f"EXIT:{state.id}")

    def on_transition(self, source, target):
        self.trace.append(f"TRANSITION:{source.id}->{target.id if target is not None else None}")

    def on_error(self, error):
        self.errors.append(error)


class FakeAuthAdapter:
    """Scriptable auth adapter recording every call."""

    def __init__(
        self,
        user_id: Optional[str] = None,
        anonymous_uid: str = "abc",
        sign_in_error: Optional[Exception] = None,
        sign_out_error: Optional[Exception] = None,
        observe_error: Optional[Exception] = None,
    ):
        self.user_id = user_id
        self.anonymous_uid = anonymous_uid
        self.sign_in_error = sign_in_error
        self.sign_out_error = sign_out_error
        self.observe_error = observe_error
        self.calls: List[str] = []
        self.unsubscribed = 0

    async def sign_out(self) -> None:
        self.calls.append("sign_out")
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.user_id = None

    async def sign_in_anonymously(self) -> SignInResult:
        self.calls.append("sign_in_anonymously")
        if self.sign_in_error is not None:
            raise self.sign_in_error
        self.user_id = self.anonymous_uid
        return SignInResult(user=AuthUser(uid=self.anonymous_uid))

    def observe_auth_state(self, callback):
        self.calls.append("observe_auth_state")
        if self.observe_error is not None:
            raise self.observe_error
        callback(self.user_id)

        def unsubscribe():
            self.unsubscribed += 1

        return unsubscribe


class Gate:
    """A service whose runs block until the test resolves or fails them."""

    def __init__(self):
        self.pending: List[asyncio.Future] = []
        self.calls: List[Any] = []

    async def __call__(self, context, event):
        self.calls.append((context, event))
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        return await future


@pytest.fixture
def trace_hook():
    return TraceHook()


@pytest.fixture
def fake_auth():
    return FakeAuthAdapter()


@pytest.fixture
def logged_in_auth():
    return FakeAuthAdapter(user_id="u1")


@pytest.fixture
def gate():
    return Gate()


@pytest.fixture
def auth_error():
    return AuthError("identity provider unavailable")


@pytest.fixture(scope="session")
def fake_auth_factory():
    return FakeAuthAdapter
