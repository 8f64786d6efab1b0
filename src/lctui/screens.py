"""Per-screen state and key handling.

Screens never perform I/O. ``handle_key`` updates local state and returns an
``Action`` that the app turns into navigation or background work.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from lctui.dispatch import Origin
from lctui.models import Config, FavoriteList, ProblemDetail, ProblemSummary, UserStats, Verdict
from lctui.storage import DEFAULT_CONFIG

DIFFICULTIES = ("EASY", "MEDIUM", "HARD")
HALF_PAGE = 10


@dataclass(frozen=True)
class Action:
    kind: str
    value: Any = None


NO_ACTION = Action("none")
QUIT = Action("quit")
BACK = Action("back")


@dataclass
class DifficultyFilter:
    open: bool = False
    cursor: int = 0
    selected: set[str] = field(default_factory=set)

    def toggle(self) -> None:
        difficulty = DIFFICULTIES[self.cursor]
        if difficulty in self.selected:
            self.selected.discard(difficulty)
        else:
            self.selected.add(difficulty)

    def matches(self, problem: ProblemSummary) -> bool:
        return not self.selected or problem.difficulty.upper() in self.selected

    @property
    def single(self) -> Optional[str]:
        """The selected difficulty when exactly one is selected."""
        if len(self.selected) == 1:
            return next(iter(self.selected))
        return None


@dataclass
class BrowseState:
    """The problem table, its search/filter state, and the in-progress load."""

    problems: list[ProblemSummary] = field(default_factory=list)
    loading_buffer: list[ProblemSummary] = field(default_factory=list)
    showing_partial: bool = False
    load_id: int = 0
    loading: bool = False
    total_problems: int = 0
    error_message: Optional[str] = None
    user_stats: Optional[UserStats] = None
    search_mode: bool = False
    search_query: str = ""
    filter: DifficultyFilter = field(default_factory=DifficultyFilter)
    filtered_indices: list[int] = field(default_factory=list)
    selected: int = 0
    spinner_frame: int = 0

    def begin_load(self, load_id: int, cached: Optional[list[ProblemSummary]]) -> None:
        """Start a fresh accumulation, showing the cached collection meanwhile."""
        self.load_id = load_id
        self.loading = True
        self.error_message = None
        self.loading_buffer = []
        if cached:
            self.problems = list(cached)
            self.total_problems = len(cached)
            self.showing_partial = False
        else:
            self.problems = []
            self.total_problems = 0
            self.showing_partial = True
        self.rebuild_filter()

    def apply_batch(self, problems: list[ProblemSummary], total: int, done: bool) -> bool:
        """Accumulate a page. Returns True when the load completed."""
        self.loading_buffer.extend(problems)
        self.total_problems = total
        self.error_message = None
        if done:
            self.loading = False
            self.problems = self.loading_buffer
            self.loading_buffer = []
            self.showing_partial = False
            self.rebuild_filter()
            return True
        if self.showing_partial:
            # No cache to show, so expose a snapshot of what arrived so far.
            self.problems = list(self.loading_buffer)
            self.rebuild_filter()
        return False

    def fail_load(self, error: str) -> None:
        self.loading = False
        self.loading_buffer = []
        self.error_message = error

    def rebuild_filter(self) -> None:
        query = self.search_query.strip().lower()
        self.filtered_indices = [
            i
            for i, problem in enumerate(self.problems)
            if self.filter.matches(problem)
            and (not query or query in problem.title.lower() or problem.frontend_id == query)
        ]
        if self.selected >= len(self.filtered_indices):
            self.selected = max(0, len(self.filtered_indices) - 1)

    def visible_problems(self) -> list[ProblemSummary]:
        return [self.problems[i] for i in self.filtered_indices]

    def selected_problem(self) -> Optional[ProblemSummary]:
        if not self.filtered_indices:
            return None
        return self.problems[self.filtered_indices[self.selected]]

    def _move(self, delta: int) -> None:
        if self.filtered_indices:
            self.selected = max(0, min(len(self.filtered_indices) - 1, self.selected + delta))

    def handle_key(self, key: str) -> Action:
        if self.search_mode:
            return self._handle_search_key(key)
        if self.filter.open:
            return self._handle_filter_key(key)

        problem = self.selected_problem()
        if key in ("j", "down"):
            self._move(1)
        elif key in ("k", "up"):
            self._move(-1)
        elif key == "g":
            self.selected = 0
        elif key == "G":
            self.selected = max(0, len(self.filtered_indices) - 1)
        elif key == "enter" and problem:
            return Action("open_detail", problem.slug)
        elif key == "o" and problem:
            return Action("scaffold", problem.slug)
        elif key == "a" and problem:
            return Action("add_to_list", problem.question_id)
        elif key == "/":
            self.search_mode = True
        elif key == "f":
            self.filter.open = True
        elif key == "L":
            return Action("lists")
        elif key == "S":
            return Action("settings")
        elif key == "q":
            return QUIT
        return NO_ACTION

    def _handle_search_key(self, key: str) -> Action:
        if key == "esc":
            self.search_mode = False
            self.search_query = ""
            self.rebuild_filter()
        elif key == "enter":
            matches = len(self.filtered_indices)
            query = self.search_query.strip()
            if matches == 1:
                self.search_mode = False
                return Action("open_detail", self.selected_problem().slug)
            if matches == 0 and query:
                return Action("search_fetch", (query, self.filter.single))
            self.search_mode = False
        elif key == "backspace":
            if not self.search_query:
                self.search_mode = False
            else:
                self.search_query = self.search_query[:-1]
                self.rebuild_filter()
        elif key in ("down", "up"):
            self._move(1 if key == "down" else -1)
        elif len(key) == 1:
            self.search_query += key
            self.selected = 0
            self.rebuild_filter()
        return NO_ACTION

    def _handle_filter_key(self, key: str) -> Action:
        if key in ("j", "down"):
            self.filter.cursor = (self.filter.cursor + 1) % len(DIFFICULTIES)
        elif key in ("k", "up"):
            self.filter.cursor = (self.filter.cursor - 1) % len(DIFFICULTIES)
        elif key == " ":
            self.filter.toggle()
            self.selected = 0
            self.rebuild_filter()
        elif key in ("esc", "enter", "f"):
            self.filter.open = False
        return NO_ACTION


@dataclass
class DetailState:
    detail: ProblemDetail
    origin: Origin
    scroll: int = 0

    def handle_key(self, key: str) -> Action:
        if key in ("j", "down"):
            self.scroll += 1
        elif key in ("k", "up"):
            self.scroll = max(0, self.scroll - 1)
        elif key == "d":
            self.scroll += HALF_PAGE
        elif key == "u":
            self.scroll = max(0, self.scroll - HALF_PAGE)
        elif key == "o":
            return Action("scaffold")
        elif key == "a":
            return Action("add_to_list", self.detail.question_id)
        elif key == "r":
            return Action("run")
        elif key == "s":
            return Action("submit")
        elif key in ("b", "esc"):
            return BACK
        elif key == "q":
            return QUIT
        return NO_ACTION


@dataclass
class ResultState:
    """Outcome of one run/submit attempt; running until the job finishes."""

    kind: str
    detail: ProblemDetail
    origin: Origin
    attempt_id: int
    verdict: Optional[Verdict] = None
    error: Optional[str] = None
    scroll: int = 0
    spinner_frame: int = 0

    @property
    def title(self) -> str:
        return self.detail.display_title

    @property
    def running(self) -> bool:
        return self.verdict is None and self.error is None

    def set_result(self, verdict: Verdict) -> None:
        self.verdict = verdict

    def set_error(self, error: str) -> None:
        self.error = error

    def handle_key(self, key: str) -> Action:
        if key in ("j", "down"):
            self.scroll += 1
        elif key in ("k", "up"):
            self.scroll = max(0, self.scroll - 1)
        elif key in ("b", "esc"):
            return BACK
        elif key == "q":
            return QUIT
        return NO_ACTION


@dataclass
class ListsState:
    lists: list[FavoriteList] = field(default_factory=list)
    loading: bool = True
    error_message: Optional[str] = None
    selected: int = 0
    viewing_list: Optional[str] = None
    problem_selected: int = 0
    input_mode: bool = False
    input_buffer: str = ""
    spinner_frame: int = 0

    def set_lists(self, lists: list[FavoriteList]) -> None:
        self.lists = lists
        self.loading = False
        self.error_message = None
        if self.selected >= len(lists):
            self.selected = max(0, len(lists) - 1)
        if self.viewing_list is not None:
            current = self.current_list()
            if current is None:
                self.viewing_list = None
            elif self.problem_selected >= len(current.questions):
                self.problem_selected = max(0, len(current.questions) - 1)

    def current_list(self) -> Optional[FavoriteList]:
        for favorite in self.lists:
            if favorite.id_hash == self.viewing_list:
                return favorite
        return None

    def handle_key(self, key: str) -> Action:
        if self.input_mode:
            return self._handle_input_key(key)
        if self.viewing_list is not None:
            return self._handle_list_problems_key(key)

        if key in ("j", "down") and self.lists:
            self.selected = min(len(self.lists) - 1, self.selected + 1)
        elif key in ("k", "up"):
            self.selected = max(0, self.selected - 1)
        elif key == "enter" and self.lists:
            self.viewing_list = self.lists[self.selected].id_hash
            self.problem_selected = 0
        elif key == "n":
            self.input_mode = True
            self.input_buffer = ""
        elif key == "d" and self.lists:
            return Action("delete_list", self.lists[self.selected].id_hash)
        elif key in ("esc", "q"):
            return BACK
        return NO_ACTION

    def _handle_list_problems_key(self, key: str) -> Action:
        current = self.current_list()
        questions = current.questions if current else []
        if key in ("j", "down") and questions:
            self.problem_selected = min(len(questions) - 1, self.problem_selected + 1)
        elif key in ("k", "up"):
            self.problem_selected = max(0, self.problem_selected - 1)
        elif key == "enter" and questions:
            return Action("open_detail", questions[self.problem_selected].slug)
        elif key == "d" and questions and current:
            return Action("remove_problem", (current.id_hash, questions[self.problem_selected].question_id))
        elif key == "esc":
            self.viewing_list = None
        return NO_ACTION

    def _handle_input_key(self, key: str) -> Action:
        if key == "esc":
            self.input_mode = False
            self.input_buffer = ""
        elif key == "enter":
            name = self.input_buffer.strip()
            self.input_mode = False
            self.input_buffer = ""
            if name:
                return Action("create_list", name)
        elif key == "backspace":
            self.input_buffer = self.input_buffer[:-1]
        elif len(key) == 1:
            self.input_buffer += key
        return NO_ACTION


SETUP_LABELS = ("Workspace", "Language", "Editor", "LEETCODE_SESSION", "csrftoken")


@dataclass
class SetupState:
    fields: list[str] = field(
        default_factory=lambda: [
            DEFAULT_CONFIG.workspace_dir,
            DEFAULT_CONFIG.language.config_name,
            DEFAULT_CONFIG.editor,
            "",
            "",
        ]
    )
    focus: int = 0
    authenticated: bool = False
    error_message: Optional[str] = None

    @classmethod
    def from_config(cls, config: Config) -> "SetupState":
        return cls(
            fields=[
                config.workspace_dir,
                config.language.config_name,
                config.editor,
                config.leetcode_session or "",
                config.csrf_token or "",
            ],
            authenticated=config.is_authenticated(),
        )

    def apply_credentials(self, config: Config) -> None:
        self.fields[3] = config.leetcode_session or ""
        self.fields[4] = config.csrf_token or ""
        self.authenticated = config.is_authenticated()

    def handle_key(self, key: str) -> Action:
        if key in ("tab", "down"):
            self.focus = (self.focus + 1) % len(self.fields)
        elif key in ("shift+tab", "up"):
            self.focus = (self.focus - 1) % len(self.fields)
        elif key == "enter":
            return Action("setup_submit")
        elif key == "esc":
            return Action("setup_cancel")
        elif key == "ctrl+l":
            return Action("browser_login")
        elif key == "backspace":
            self.fields[self.focus] = self.fields[self.focus][:-1]
        elif len(key) == 1:
            self.fields[self.focus] += key
        return NO_ACTION


Screen = SetupState | BrowseState | DetailState | ResultState | ListsState
