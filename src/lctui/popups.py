"""Modal controllers layered above the active screen."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from lctui.models import FavoriteList

logger = logging.getLogger(__name__)


@dataclass
class AddToListPopup:
    question_id: str
    lists: list[FavoriteList] = field(default_factory=list)
    selected: int = 0
    loading: bool = True

    def set_lists(self, lists: list[FavoriteList]) -> None:
        self.lists = lists
        self.selected = 0
        self.loading = False

    def move(self, delta: int) -> None:
        if self.lists:
            self.selected = (self.selected + delta) % len(self.lists)

    def selected_list(self) -> Optional[FavoriteList]:
        if self.loading or not self.lists:
            return None
        return self.lists[self.selected]


class LoginState(Enum):
    IDLE = "idle"
    PROMPT_SHOWN = "prompt_shown"
    WAITING_FOR_BROWSER = "waiting_for_browser"


class LoginController:
    """Tracks the login prompt and browser-wait states.

    While not idle it intercepts every key ahead of the active screen.
    ``busy`` is set while a cookie extraction is in flight.
    """

    def __init__(self) -> None:
        self.state = LoginState.IDLE
        self.busy = False

    @property
    def active(self) -> bool:
        return self.state is not LoginState.IDLE

    def show_prompt(self) -> None:
        self.state = LoginState.PROMPT_SHOWN

    def dismiss(self) -> None:
        self.state = LoginState.IDLE

    def begin_extraction(self) -> bool:
        """Mark an extraction as started. False if one is already running."""
        if self.busy:
            return False
        self.busy = True
        return True

    def extraction_failed(self) -> None:
        self.busy = False
        logger.info("Waiting for browser login")
        self.state = LoginState.WAITING_FOR_BROWSER

    def extraction_succeeded(self) -> None:
        self.busy = False
        self.state = LoginState.IDLE
