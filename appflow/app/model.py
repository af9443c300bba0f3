# appflow/app/model.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""Event vocabulary and shared context of the application flow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Dict, Optional, Type

from appflow.core.events import Event


@unique
class AppEventType(str, Enum):
    """Every external event the application machine understands."""

    # Welcome screen
    OPEN_LOGIN = "OPEN_LOGIN"
    # Onboarding screen
    CONTINUE = "CONTINUE"
    # Home screen
    START_REVIEW = "START_REVIEW"
    OPEN_SETTINGS = "OPEN_SETTINGS"
    # Login screen
    SUBMIT_LOGIN = "SUBMIT_LOGIN"
    # Settings screen
    LOGOUT = "LOGOUT"
    # Shared
    START = "START"
    BACK = "BACK"


@dataclass(frozen=True)
class OpenLogin(Event):
    name: str = field(default=AppEventType.OPEN_LOGIN.value, init=False)


@dataclass(frozen=True)
class Continue(Event):
    name: str = field(default=AppEventType.CONTINUE.value, init=False)


@dataclass(frozen=True)
class StartReview(Event):
    name: str = field(default=AppEventType.START_REVIEW.value, init=False)


@dataclass(frozen=True)
class OpenSettings(Event):
    name: str = field(default=AppEventType.OPEN_SETTINGS.value, init=False)


@dataclass(frozen=True)
class SubmitLogin(Event):
    """Login form submission; the only event carrying a payload."""

    name: str = field(default=AppEventType.SUBMIT_LOGIN.value, init=False)
    email: str


@dataclass(frozen=True)
class Logout(Event):
    name: str = field(default=AppEventType.LOGOUT.value, init=False)


@dataclass(frozen=True)
class Start(Event):
    name: str = field(default=AppEventType.START.value, init=False)


@dataclass(frozen=True)
class Back(Event):
    name: str = field(default=AppEventType.BACK.value, init=False)


EVENT_CLASSES: Dict[AppEventType, Type[Event]] = {
    AppEventType.OPEN_LOGIN: OpenLogin,
    AppEventType.CONTINUE: Continue,
    AppEventType.START_REVIEW: StartReview,
    AppEventType.OPEN_SETTINGS: OpenSettings,
    AppEventType.SUBMIT_LOGIN: SubmitLogin,
    AppEventType.LOGOUT: Logout,
    AppEventType.START: Start,
    AppEventType.BACK: Back,
}


@dataclass(frozen=True)
class AppContext:
    """
    Shared record of the application flow. ``user_id`` is set exactly while a
    user is authenticated. Holds only plain values so snapshots never alias.
    """

    user_id: Optional[str] = None

    @property
    def is_logged_in(self) -> bool:
        return self.user_id is not None
