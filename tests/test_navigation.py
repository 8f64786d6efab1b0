"""Tests for screen transitions and back-navigation memory."""

from lctui.dispatch import Origin
from lctui.navigation import Navigator
from lctui.screens import BrowseState, DetailState, ListsState, ResultState, SetupState


class TestTransitionTo:
    """Tests for Navigator.transition_to()."""

    def test_browse_to_detail_saves_browse(self, sample_detail):
        browse = BrowseState(search_query="two")
        nav = Navigator(browse)

        nav.transition_to(DetailState(sample_detail, Origin.BROWSE))

        assert nav.saved_browse is browse
        assert nav.saved_lists is None

    def test_browse_to_lists_saves_browse(self):
        browse = BrowseState()
        nav = Navigator(browse)
        nav.transition_to(ListsState())
        assert nav.saved_browse is browse

    def test_lists_to_detail_saves_lists(self, sample_detail):
        lists = ListsState()
        nav = Navigator(BrowseState())
        nav.transition_to(lists)

        nav.transition_to(DetailState(sample_detail, Origin.LISTS))

        assert nav.saved_lists is lists

    def test_slot_is_overwritten(self, sample_detail):
        """Test a slot holds only the latest saved state."""
        nav = Navigator(BrowseState())
        nav.transition_to(DetailState(sample_detail, Origin.BROWSE))
        second = BrowseState(selected=3)
        nav.transition_to(second)
        nav.transition_to(DetailState(sample_detail, Origin.BROWSE))
        assert nav.saved_browse is second


class TestGoBack:
    """Tests for Navigator.go_back()."""

    def test_restores_browse_once(self, sample_detail):
        browse = BrowseState()
        nav = Navigator(browse)
        nav.transition_to(DetailState(sample_detail, Origin.BROWSE))

        assert nav.go_back(Origin.BROWSE) is False
        assert nav.screen is browse
        assert nav.saved_browse is None

    def test_lists_origin_restores_lists(self, sample_detail):
        browse, lists = BrowseState(), ListsState()
        nav = Navigator(browse)
        nav.transition_to(lists)
        nav.transition_to(DetailState(sample_detail, Origin.LISTS))

        nav.go_back(Origin.LISTS)
        assert nav.screen is lists
        assert nav.saved_lists is None

        nav.go_back(Origin.BROWSE)
        assert nav.screen is browse

    def test_result_origin_is_honoured(self, sample_detail):
        """Test the origin tag, not slot occupancy, decides the target."""
        browse, lists = BrowseState(), ListsState()
        nav = Navigator(browse)
        nav.transition_to(lists)
        nav.transition_to(DetailState(sample_detail, Origin.LISTS))
        nav.transition_to(ResultState("run", sample_detail, Origin.LISTS, attempt_id=1))

        assert nav.origin_of_active() is Origin.LISTS
        nav.go_back(Origin.LISTS)
        assert nav.screen is lists

    def test_missing_slot_creates_fresh_browse(self, sample_detail):
        nav = Navigator(SetupState())

        assert nav.go_back(Origin.BROWSE) is True
        assert isinstance(nav.screen, BrowseState)

    def test_lists_origin_without_lists_slot_falls_back_to_browse(self, sample_detail):
        browse = BrowseState()
        nav = Navigator(browse)
        nav.transition_to(DetailState(sample_detail, Origin.LISTS))

        assert nav.go_back(Origin.LISTS) is False
        assert nav.screen is browse


class TestTargets:
    def test_browse_target_active_or_saved(self, sample_detail):
        browse = BrowseState()
        nav = Navigator(browse)
        assert nav.browse_target() is browse
        nav.transition_to(DetailState(sample_detail, Origin.BROWSE))
        assert nav.browse_target() is browse
        assert nav.lists_target() is None
