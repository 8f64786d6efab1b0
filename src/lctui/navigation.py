"""Active screen plus the two single-slot back-navigation memories."""

import logging
from typing import Optional

from lctui.dispatch import Origin
from lctui.screens import BrowseState, DetailState, ListsState, ResultState, Screen

logger = logging.getLogger(__name__)


class Navigator:
    """Owns the one active screen and the saved Browse and Lists states.

    Leaving Browse saves it in the Browse slot; leaving Lists for a Detail
    saves it in the Lists slot. A slot is emptied when it is restored.
    Detail and Result screens carry the Origin they were opened from, which
    decides the slot ``go_back`` restores.
    """

    def __init__(self, screen: Screen) -> None:
        self.screen: Screen = screen
        self.saved_browse: Optional[BrowseState] = None
        self.saved_lists: Optional[ListsState] = None

    def transition_to(self, new_screen: Screen) -> None:
        old = self.screen
        if isinstance(old, BrowseState) and not isinstance(new_screen, BrowseState):
            self.saved_browse = old
        elif isinstance(old, ListsState) and isinstance(new_screen, DetailState):
            self.saved_lists = old
        logger.debug("Screen %s -> %s", type(old).__name__, type(new_screen).__name__)
        self.screen = new_screen

    def go_back(self, origin: Origin = Origin.BROWSE) -> bool:
        """Restore the slot the origin points at.

        Returns True when no Browse state was saved and a fresh one was
        created, in which case the caller must start its initial load.
        """
        if origin is Origin.LISTS and self.saved_lists is not None:
            self.screen, self.saved_lists = self.saved_lists, None
            return False
        if self.saved_browse is not None:
            self.screen, self.saved_browse = self.saved_browse, None
            return False
        self.screen = BrowseState()
        return True

    def browse_target(self) -> Optional[BrowseState]:
        """The live Browse state, active or saved."""
        if isinstance(self.screen, BrowseState):
            return self.screen
        return self.saved_browse

    def lists_target(self) -> Optional[ListsState]:
        if isinstance(self.screen, ListsState):
            return self.screen
        return self.saved_lists

    def origin_of_active(self) -> Optional[Origin]:
        if isinstance(self.screen, BrowseState):
            return Origin.BROWSE
        if isinstance(self.screen, ListsState):
            return Origin.LISTS
        if isinstance(self.screen, (DetailState, ResultState)):
            return self.screen.origin
        return None
