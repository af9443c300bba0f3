# tests/unit/app/test_auth.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from appflow.app.auth import AuthAdapter, AuthError, InMemoryAuthAdapter, SignInResult
from appflow.core.errors import HSMError


def test_in_memory_adapter_satisfies_protocol(fake_auth):
    assert isinstance(InMemoryAuthAdapter(), AuthAdapter)
    assert isinstance(fake_auth, AuthAdapter)


def test_auth_error_is_an_hsm_error(auth_error):
    assert isinstance(auth_error, HSMError)
    assert "unavailable" in str(auth_error)


def test_observe_reports_current_user_immediately():
    adapter = InMemoryAuthAdapter(user_id="u1")
    seen = []
    adapter.observe_auth_state(seen.append)
    assert seen == ["u1"]


@pytest.mark.asyncio
async def test_anonymous_sign_in_creates_fresh_users():
    adapter = InMemoryAuthAdapter()
    first = await adapter.sign_in_anonymously()
    second = await adapter.sign_in_anonymously()
    assert isinstance(first, SignInResult)
    assert first.user.uid != second.user.uid
    assert adapter.user_id == second.user.uid


@pytest.mark.asyncio
async def test_observers_follow_changes_until_unsubscribed():
    adapter = InMemoryAuthAdapter()
    seen = []
    unsubscribe = adapter.observe_auth_state(seen.append)
    result = await adapter.sign_in_anonymously()
    await adapter.sign_out()
    unsubscribe()
    await adapter.sign_in_anonymously()
    assert seen == [None, result.user.uid, None]
    assert adapter.user_id is not None
