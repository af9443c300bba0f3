# tests/unit/test_events.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import dataclasses

import pytest

from appflow.core.events import (
    DoneInvokeEvent,
    DoneStateEvent,
    ErrorInvokeEvent,
    Event,
    InitEvent,
    done_invoke,
    done_state,
    error_invoke,
    is_internal_name,
    to_event,
)


def test_event_is_frozen():
    event = Event("GO")
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.name = "STOP"


def test_events_compare_by_value():
    assert Event("GO") == Event("GO")
    assert Event("GO") != Event("STOP")


def test_internal_event_names():
    assert done_state("Login") == "done.state.Login"
    assert done_invoke("Login.Loading") == "done.invoke.Login.Loading"
    assert error_invoke("Login.Loading") == "error.platform.Login.Loading"
    assert is_internal_name("done.state.Login")
    assert is_internal_name(InitEvent().name)
    assert not is_internal_name("SUBMIT_LOGIN")


def test_internal_events_are_flagged():
    assert InitEvent().is_internal
    assert DoneStateEvent(done_state("A"), state_id="A").is_internal
    assert DoneInvokeEvent(done_invoke("A"), invocation_id="A:1", data=1).is_internal
    assert ErrorInvokeEvent(error_invoke("A"), invocation_id="A:1", error=ValueError()).is_internal
    assert not Event("GO").is_internal


def test_to_event_accepts_names_and_events():
    event = Event("GO")
    assert to_event(event) is event
    assert to_event("GO") == Event("GO")


@pytest.mark.parametrize("bad", ["", None, 42])
def test_to_event_rejects_other_values(bad):
    with pytest.raises(TypeError):
        to_event(bad)
