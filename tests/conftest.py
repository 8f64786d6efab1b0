"""Shared pytest fixtures for the lctui test suite."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from lctui.client import LeetCodeClient
from lctui.dispatch import Dispatcher
from lctui.models import (
    CodeSnippet,
    Config,
    Language,
    ProblemDetail,
    ProblemSummary,
    TopicTag,
)
from lctui.session import SessionManager
from lctui.storage import Storage


def make_summary(n: int, title: str | None = None, difficulty: str = "Easy") -> ProblemSummary:
    """Build a ProblemSummary numbered n."""
    title = title or f"Problem {n}"
    return ProblemSummary(
        frontend_id=str(n),
        title=title,
        slug=title.lower().replace(" ", "-"),
        difficulty=difficulty,
        ac_rate=50.0,
        paid_only=False,
        question_id=str(n),
    )


@pytest.fixture
def sample_detail() -> ProblemDetail:
    """Returns a sample ProblemDetail for Two Sum."""
    return ProblemDetail(
        question_id="1",
        frontend_id="1",
        title="Two Sum",
        slug="two-sum",
        difficulty="Easy",
        content="<p>Given an array of integers <code>nums</code> and an integer <code>target</code>.</p>",
        paid_only=False,
        topic_tags=[TopicTag(name="Array", slug="array")],
        code_snippets=[
            CodeSnippet(
                lang="Rust",
                lang_slug="rust",
                code="impl Solution {\n    pub fn two_sum(nums: Vec<i32>, target: i32) -> Vec<i32> {\n        \n    }\n}",
            ),
            CodeSnippet(
                lang="Python3",
                lang_slug="python3",
                code="class Solution:\n    def twoSum(self, nums: List[int], target: int) -> List[int]:\n        ",
            ),
        ],
        sample_test_case="[2,7,11,15]\n9",
        example_testcase_list=["[2,7,11,15]\n9", "[3,2,4]\n6"],
    )


@pytest.fixture
def sample_summary() -> ProblemSummary:
    """Returns the list-row version of Two Sum."""
    return make_summary(1, "Two Sum")


@pytest.fixture
def sample_config(tmp_path) -> Config:
    """Returns an authenticated Rust config with a temporary workspace."""
    return Config(
        workspace_dir=str(tmp_path / "workspace"),
        language=Language.RUST,
        editor="vim",
        leetcode_session="test_session",
        csrf_token="test_csrf",
    )


@pytest.fixture
def anonymous_config(tmp_path) -> Config:
    """Returns a config without credentials."""
    return Config(
        workspace_dir=str(tmp_path / "workspace"),
        language=Language.RUST,
        editor="vim",
    )


@pytest.fixture
def tmp_storage(tmp_path) -> Storage:
    """Returns a Storage instance using a temporary directory."""
    return Storage(base_path=tmp_path / "config")


@pytest.fixture
def mock_leetcode_client() -> MagicMock:
    """Returns a mock LeetCodeClient whose coroutine methods are AsyncMocks."""
    mock = MagicMock(spec=LeetCodeClient)
    for name in (
        "fetch_problem_page",
        "fetch_problem_detail",
        "run_code",
        "submit_code",
        "check",
        "fetch_favorites",
        "create_favorite_list",
        "delete_favorite_list",
        "add_to_favorite",
        "remove_from_favorite",
        "fetch_username",
        "fetch_user_stats",
        "aclose",
    ):
        setattr(mock, name, AsyncMock())
    mock.fetch_username.return_value = None
    return mock


@pytest.fixture
def mock_session(mock_leetcode_client: MagicMock) -> MagicMock:
    """Returns a SessionManager mock handing out the mock client."""
    session = MagicMock(spec=SessionManager)
    session.get_client.return_value = mock_leetcode_client
    return session


@pytest.fixture
def dispatcher() -> Dispatcher:
    return Dispatcher()
