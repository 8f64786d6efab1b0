"""The application state and its single-writer event loop.

Only ``App`` mutates screen, navigation, and popup state, and only from
``handle_key``, ``handle_message`` and ``handle_tick``, which the loop in
``run`` calls one at a time.
"""

import asyncio
import itertools
import logging
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol

from lctui import tasks
from lctui.client import LOGIN_URL, LeetCodeClient
from lctui.dispatch import (
    DetailLoaded,
    Dispatcher,
    FavoritesLoaded,
    JudgeFinished,
    ListMutationFinished,
    LoginFinished,
    Message,
    Origin,
    ProblemBatch,
    ProblemFetchFailed,
    SearchFinished,
    UserStatsLoaded,
)
from lctui.exceptions import LeetCodeError
from lctui.models import Config, Language, ProblemDetail
from lctui.navigation import Navigator
from lctui.popups import AddToListPopup, LoginController, LoginState
from lctui.scaffold import scaffold_problem
from lctui.screens import (
    Action,
    BrowseState,
    DetailState,
    ListsState,
    ResultState,
    Screen,
    SetupState,
)
from lctui.session import SessionManager
from lctui.storage import Storage
from lctui.submission import AttemptKind, prepare_attempt, run_attempt

logger = logging.getLogger(__name__)

TICK_SECONDS = 0.2
TOAST_TICKS = 12


@dataclass
class EditorRequest:
    editor: str
    path: Path
    cwd: Path


class Terminal(Protocol):
    def draw(self, app: "App") -> None: ...

    async def next_key(self) -> str: ...

    async def run_editor(self, request: EditorRequest) -> int: ...


class App:
    """Owns all mutable state of a session."""

    def __init__(
        self,
        config: Optional[Config],
        storage: Optional[Storage] = None,
        session: Optional[SessionManager] = None,
        client: Optional[LeetCodeClient] = None,
        dispatcher: Optional[Dispatcher] = None,
        open_browser: Callable[[str], object] = webbrowser.open,
    ) -> None:
        self.storage = storage or Storage()
        self.session = session or SessionManager(self.storage)
        self.config = config
        self.client = client or self.session.get_client(config)
        self.dispatcher = dispatcher or Dispatcher()
        self._open_browser = open_browser

        self.nav = Navigator(BrowseState() if config is not None else SetupState())
        self.login = LoginController()
        if config is not None and not config.is_authenticated():
            self.login.show_prompt()

        self.error_overlay: Optional[str] = None
        self.toast: Optional[tuple[str, int]] = None
        self.help_overlay = False
        self.add_popup: Optional[AddToListPopup] = None
        self.should_quit = False
        self.last_opened_dir: Optional[Path] = None
        self.pending_editor: Optional[EditorRequest] = None

        self._retired_clients: list[LeetCodeClient] = []
        self._load_ids = itertools.count(1)
        self._attempt_ids = itertools.count(1)

    @property
    def screen(self) -> Screen:
        return self.nav.screen

    def start(self) -> None:
        """Kick off the initial loads. Must be called from inside the event loop."""
        if isinstance(self.screen, BrowseState):
            self.start_fetch_problems()
            self.start_fetch_user_stats()

    # Main loop

    async def run(self, terminal: Terminal) -> None:
        self.start()
        sources = {
            "key": terminal.next_key,
            "message": self.dispatcher.next_message,
            "tick": lambda: asyncio.sleep(TICK_SECONDS),
        }
        waiting: dict[str, asyncio.Future] = {}
        try:
            while not self.should_quit:
                terminal.draw(self)

                if self.pending_editor is not None:
                    request, self.pending_editor = self.pending_editor, None
                    await self._run_editor(terminal, request)
                    continue

                for name, factory in sources.items():
                    if name not in waiting:
                        waiting[name] = asyncio.ensure_future(factory())

                done, _ = await asyncio.wait(waiting.values(), return_when=asyncio.FIRST_COMPLETED)
                name = next(n for n, future in waiting.items() if future in done)
                result = waiting.pop(name).result()

                if name == "key":
                    self.handle_key(result)
                elif name == "message":
                    self.handle_message(result)
                else:
                    self.handle_tick()
        finally:
            for future in waiting.values():
                future.cancel()
            await self.dispatcher.shutdown()
            for client in [self.client, *self._retired_clients]:
                await client.aclose()

    async def _run_editor(self, terminal: Terminal, request: EditorRequest) -> None:
        try:
            status = await terminal.run_editor(request)
        except OSError as e:
            self.error_overlay = f"Failed to launch editor '{request.editor}': {e}"
            return
        if status != 0:
            self.error_overlay = f"Editor exited with status: {status}"

    # Input

    def _captures_text(self) -> bool:
        screen = self.screen
        if isinstance(screen, SetupState):
            return True
        if isinstance(screen, BrowseState):
            return screen.search_mode
        if isinstance(screen, ListsState):
            return screen.input_mode
        return False

    def handle_key(self, key: str) -> None:
        if key == "ctrl+c":
            self.should_quit = True
            return

        if (
            key == "?"
            and not self._captures_text()
            and not self.login.active
            and self.error_overlay is None
            and self.add_popup is None
        ):
            self.help_overlay = not self.help_overlay
            return

        if self.login.state is LoginState.WAITING_FOR_BROWSER:
            if key == "enter":
                self.start_browser_login(retry=True)
            elif key == "esc":
                self.login.dismiss()
            return

        if self.login.state is LoginState.PROMPT_SHOWN:
            if key in ("y", "Y"):
                self.login.dismiss()
                self.start_browser_login()
            elif key in ("n", "N", "esc"):
                self.login.dismiss()
            elif key in ("s", "S"):
                self.login.dismiss()
                self.open_settings()
            return

        if self.help_overlay:
            self.help_overlay = False
            return

        self.toast = None

        if self.error_overlay is not None:
            if key in ("esc", "q"):
                self.error_overlay = None
            return

        if self.add_popup is not None:
            self._handle_popup_key(key)
            return

        screen = self.screen
        self._apply_action(screen, screen.handle_key(key))

    def _handle_popup_key(self, key: str) -> None:
        popup = self.add_popup
        if key == "esc":
            self.add_popup = None
        elif key in ("j", "down"):
            popup.move(1)
        elif key in ("k", "up"):
            popup.move(-1)
        elif key == "enter":
            target = popup.selected_list()
            if target is not None:
                self.add_popup = None
                self.start_list_mutation(
                    self.client.add_to_favorite(target.id_hash, popup.question_id),
                    f'Added to "{target.name}"',
                )

    def _apply_action(self, screen: Screen, action: Action) -> None:
        kind = action.kind
        if kind == "none":
            return
        if kind == "quit":
            self.should_quit = True
        elif kind == "add_to_list":
            self.open_add_to_list_popup(action.value)
        elif isinstance(screen, SetupState):
            self._apply_setup_action(screen, action)
        elif isinstance(screen, BrowseState):
            self._apply_browse_action(screen, action)
        elif isinstance(screen, DetailState):
            self._apply_detail_action(screen, action)
        elif isinstance(screen, ResultState):
            if kind == "back":
                self.nav.transition_to(DetailState(screen.detail, screen.origin))
        elif isinstance(screen, ListsState):
            self._apply_lists_action(action)

    def _apply_setup_action(self, screen: SetupState, action: Action) -> None:
        if action.kind == "setup_submit":
            self.submit_setup(screen)
        elif action.kind == "setup_cancel":
            if self.config is None:
                self.should_quit = True
            else:
                self.go_back(Origin.BROWSE)
        elif action.kind == "browser_login":
            self.start_browser_login()

    def _apply_browse_action(self, screen: BrowseState, action: Action) -> None:
        kind = action.kind
        if kind == "open_detail":
            self.start_fetch_detail(action.value, Origin.BROWSE)
        elif kind == "scaffold":
            self.start_fetch_detail(action.value, Origin.BROWSE, scaffold=True)
        elif kind == "search_fetch":
            query, difficulty = action.value
            self.dispatcher.spawn(
                tasks.search_problems(self.client, self.dispatcher.send, query, difficulty),
                name="search",
            )
        elif kind == "lists":
            self.nav.transition_to(ListsState())
            self.start_fetch_favorites()
        elif kind == "settings":
            self.open_settings()

    def _apply_detail_action(self, screen: DetailState, action: Action) -> None:
        kind = action.kind
        if kind == "back":
            self.go_back(screen.origin)
        elif kind == "scaffold":
            self.scaffold_and_edit(screen.detail)
        elif kind == "run":
            self.start_attempt(AttemptKind.RUN)
        elif kind == "submit":
            self.start_attempt(AttemptKind.SUBMIT)

    def _apply_lists_action(self, action: Action) -> None:
        kind = action.kind
        if kind == "back":
            self.go_back(Origin.BROWSE)
        elif kind == "open_detail":
            self.start_fetch_detail(action.value, Origin.LISTS)
        elif kind == "create_list":
            self.start_list_mutation(
                self.client.create_favorite_list(action.value), f'List "{action.value}" created'
            )
        elif kind == "delete_list":
            self.start_list_mutation(self.client.delete_favorite_list(action.value), "List deleted")
        elif kind == "remove_problem":
            id_hash, question_id = action.value
            self.start_list_mutation(
                self.client.remove_from_favorite(id_hash, question_id), "Removed from list"
            )

    def handle_tick(self) -> None:
        if self.toast is not None:
            message, ticks = self.toast
            self.toast = None if ticks == 0 else (message, ticks - 1)

        screen = self.screen
        if isinstance(screen, (BrowseState, ResultState, ListsState)):
            screen.spinner_frame += 1

    # Results

    def handle_message(self, message: Message) -> None:
        if isinstance(message, ProblemBatch):
            target = self.nav.browse_target()
            if target is None or target.load_id != message.load_id:
                logger.debug("Discarding stale problem batch from load %d", message.load_id)
                return
            if target.apply_batch(message.problems, message.total, message.done):
                logger.info("Loaded %d problems", len(target.problems))
                self.dispatcher.spawn(tasks.save_cache(self.storage, list(target.problems)), name="save-cache")

        elif isinstance(message, ProblemFetchFailed):
            target = self.nav.browse_target()
            if target is not None and target.load_id == message.load_id:
                target.fail_load(message.error)
            else:
                logger.warning("Stale problem load failed: %s", message.error)

        elif isinstance(message, DetailLoaded):
            self._apply_detail(message)

        elif isinstance(message, JudgeFinished):
            screen = self.screen
            if not isinstance(screen, ResultState) or screen.attempt_id != message.attempt_id:
                logger.debug("Discarding result of attempt %d", message.attempt_id)
                return
            job = message.job
            if job.verdict is not None:
                screen.set_result(job.verdict)
            else:
                screen.set_error(job.error or "Unknown error")

        elif isinstance(message, UserStatsLoaded):
            target = self.nav.browse_target()
            if target is not None:
                target.user_stats = message.stats

        elif isinstance(message, SearchFinished):
            self._apply_search(message)

        elif isinstance(message, FavoritesLoaded):
            self._apply_favorites(message)

        elif isinstance(message, ListMutationFinished):
            if message.error is not None:
                self.error_overlay = message.error
                return
            self.toast = (message.success_message, TOAST_TICKS)
            if isinstance(self.screen, ListsState):
                self.start_fetch_favorites()

        elif isinstance(message, LoginFinished):
            self._apply_login(message)

    def _apply_detail(self, message: DetailLoaded) -> None:
        if message.error is not None:
            self.error_overlay = message.error
            return
        if self.nav.origin_of_active() is not message.origin or isinstance(
            self.screen, (DetailState, ResultState)
        ):
            logger.debug("Discarding detail for %s, its screen is gone", message.slug)
            return
        self.nav.transition_to(DetailState(message.detail, message.origin))
        if message.scaffold:
            self.scaffold_and_edit(message.detail)

    def _apply_search(self, message: SearchFinished) -> None:
        target = self.nav.browse_target()
        if target is not None:
            target.search_mode = False
        if message.error is not None:
            self.error_overlay = message.error
        elif message.problems:
            self.start_fetch_detail(message.problems[0].slug, Origin.BROWSE)
        else:
            self.error_overlay = "Problem not found."

    def _apply_favorites(self, message: FavoritesLoaded) -> None:
        if message.for_popup:
            if self.add_popup is None:
                return
            if message.error is not None:
                self.add_popup = None
                self.error_overlay = message.error
            else:
                self.add_popup.set_lists(message.lists)
            return

        target = self.nav.lists_target()
        if target is None:
            return
        if message.error is not None:
            target.loading = False
            target.error_message = message.error
        else:
            target.set_lists(message.lists)

    def _apply_login(self, message: LoginFinished) -> None:
        if message.error is not None:
            self.login.extraction_failed()
            if message.retry:
                self.error_overlay = (
                    f"Still can't extract cookies: {message.error}\n\n"
                    "Make sure you logged into leetcode.com,\nthen press Enter to retry."
                )
            else:
                self._open_browser(LOGIN_URL)
            return

        self.login.extraction_succeeded()
        screen = self.screen
        if message.config is None:
            if isinstance(screen, SetupState):
                screen.fields[3] = message.session_token or ""
                screen.fields[4] = message.csrf_token or ""
                screen.authenticated = True
            return

        self.config = message.config
        if isinstance(screen, SetupState):
            screen.apply_credentials(message.config)
        self._replace_client(self.session.get_client(self.config))
        if self.nav.browse_target() is not None:
            self.start_fetch_problems()
            self.start_fetch_user_stats()

    # Operations

    def _replace_client(self, client: LeetCodeClient) -> None:
        # Tasks in flight keep using the old client until they finish.
        self._retired_clients.append(self.client)
        self.client = client

    def go_back(self, origin: Origin) -> None:
        if self.nav.go_back(origin):
            self.start_fetch_problems()

    def open_settings(self) -> None:
        state = SetupState.from_config(self.config) if self.config is not None else SetupState()
        self.nav.transition_to(state)

    def submit_setup(self, screen: SetupState) -> None:
        workspace, language_name, editor, session_token, csrf_token = (f.strip() for f in screen.fields)
        try:
            language = Language.parse(language_name)
        except ValueError as e:
            screen.error_message = str(e)
            return

        config = Config(
            workspace_dir=workspace,
            language=language,
            editor=editor,
            leetcode_session=session_token or None,
            csrf_token=csrf_token or None,
        )
        try:
            self.storage.save_config(config)
        except LeetCodeError as e:
            self.error_overlay = e.message
            return

        self.config = config
        self._replace_client(self.session.get_client(config))
        self.nav.transition_to(BrowseState())
        self.start_fetch_problems()
        self.start_fetch_user_stats()

    def start_fetch_problems(self) -> None:
        """Start a fresh load into the active Browse screen, or the saved one."""
        target = self.nav.browse_target()
        if target is None:
            return
        load_id = next(self._load_ids)
        target.begin_load(load_id, self.storage.load_cached_problems())
        self.dispatcher.spawn(
            tasks.load_problems(self.client, self.dispatcher.send, load_id),
            name=f"load-problems-{load_id}",
        )

    def start_fetch_user_stats(self) -> None:
        self.dispatcher.spawn(tasks.load_user_stats(self.client, self.dispatcher.send), name="user-stats")

    def start_fetch_detail(self, slug: str, origin: Origin, scaffold: bool = False) -> None:
        self.dispatcher.spawn(
            tasks.load_detail(self.client, self.dispatcher.send, slug, origin, scaffold),
            name=f"detail-{slug}",
        )

    def start_fetch_favorites(self) -> None:
        screen = self.screen
        if isinstance(screen, ListsState):
            screen.loading = True
        self.dispatcher.spawn(tasks.load_favorites(self.client, self.dispatcher.send), name="favorites")

    def open_add_to_list_popup(self, question_id: str) -> None:
        self.add_popup = AddToListPopup(question_id=question_id)
        self.dispatcher.spawn(
            tasks.load_favorites(self.client, self.dispatcher.send, for_popup=True),
            name="popup-favorites",
        )

    def start_list_mutation(self, mutation, success_message: str) -> None:
        self.dispatcher.spawn(tasks.mutate_list(self.dispatcher.send, mutation, success_message), name="list-mutation")

    def start_browser_login(self, retry: bool = False) -> None:
        if not self.login.begin_extraction():
            return
        self.dispatcher.spawn(
            tasks.browser_login(self.session, self.config, self.dispatcher.send, retry),
            name="browser-login",
        )

    def start_attempt(self, kind: AttemptKind) -> None:
        """Start a run or submit from the active Detail screen."""
        screen = self.screen
        if not isinstance(screen, DetailState):
            return
        try:
            payload = prepare_attempt(kind, self.config, screen.detail, self.storage)
        except LeetCodeError as e:
            self.error_overlay = e.message
            return

        attempt_id = next(self._attempt_ids)
        self.nav.transition_to(ResultState(kind.value, screen.detail, screen.origin, attempt_id))
        self.dispatcher.spawn(
            run_attempt(self.client, payload, attempt_id, self.dispatcher.send),
            name=f"{kind.value}-{attempt_id}",
        )

    def scaffold_and_edit(self, detail: ProblemDetail) -> None:
        if self.config is None:
            self.error_overlay = "No config loaded"
            return
        try:
            path = scaffold_problem(self.storage, self.config, detail)
        except LeetCodeError as e:
            self.error_overlay = e.message
            return
        project_dir = self.storage.project_dir(self.config, detail)
        self.last_opened_dir = project_dir
        self.pending_editor = EditorRequest(self.config.editor, path, project_dir)
