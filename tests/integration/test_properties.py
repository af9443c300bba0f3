# tests/integration/test_properties.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from appflow.app.machine import create_app_machine
from appflow.app.model import EVENT_CLASSES, AppEventType, SubmitLogin

LOGGED_IN_SCREENS = ("Home", "Review", "Settings")

app_events = st.one_of(
    st.sampled_from([cls() for kind, cls in EVENT_CLASSES.items() if kind is not AppEventType.SUBMIT_LOGIN]),
    st.emails().map(lambda email: SubmitLogin(email=email)),
)


def run(coroutine):
    return asyncio.run(coroutine)


async def walk(auth, events):
    """Send each event, settling invocations in between, and collect (event, before, after)."""
    machine = create_app_machine(auth)
    await machine.start()
    await machine.settle()
    steps = []
    for event in events:
        before = machine.configuration
        after = await machine.send(event)
        await machine.settle()
        steps.append((event, before, after, machine.configuration))
    await machine.stop()
    return steps


@pytest.mark.property
@settings(deadline=None, max_examples=60)
@given(user_id=st.one_of(st.none(), st.just("u1")), events=st.lists(app_events, max_size=12))
def test_user_id_matches_the_visible_screen(fake_auth_factory, user_id, events):
    for _, _, _, settled in run(walk(fake_auth_factory(user_id=user_id), events)):
        assert not settled.matches("Init")
        if settled.matches("Welcome"):
            assert settled.context.user_id is None
        if any(settled.matches(name) for name in LOGGED_IN_SCREENS):
            assert settled.context.user_id is not None


@pytest.mark.property
@settings(deadline=None, max_examples=60)
@given(user_id=st.one_of(st.none(), st.just("u1")), events=st.lists(app_events, max_size=12))
def test_undeclared_events_change_nothing(fake_auth_factory, user_id, events):
    for event, before, after, _ in run(walk(fake_auth_factory(user_id=user_id), events)):
        if not before.can(event.name):
            assert after is before


@pytest.mark.property
@settings(deadline=None, max_examples=20)
@given(user_id=st.one_of(st.none(), st.text(min_size=1, max_size=8)))
def test_init_resolves_to_exactly_one_screen(fake_auth_factory, user_id):
    async def boot():
        machine = create_app_machine(fake_auth_factory(user_id=user_id))
        await machine.start()
        return await machine.settle()

    configuration = run(boot())
    expected = "Home" if user_id is not None else "Welcome"
    assert configuration.value[0] == expected
    assert configuration.context.user_id == user_id
