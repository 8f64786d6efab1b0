"""Background task dispatcher and the result messages it carries.

Background work never touches application state. Each task receives the
values it needs plus ``Dispatcher.send`` and reports through the single
result queue that the main loop drains.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Coroutine, Optional

from lctui.models import Config, FavoriteList, ProblemDetail, ProblemSummary, UserStats

if TYPE_CHECKING:
    from lctui.submission import JudgeJob

logger = logging.getLogger(__name__)


class Origin(Enum):
    """Which screen a Detail (and the Results started from it) was opened from."""

    BROWSE = "browse"
    LISTS = "lists"


@dataclass
class ProblemBatch:
    """One page of a paginated problem load. The last page has done=True."""

    load_id: int
    problems: list[ProblemSummary]
    total: int
    done: bool


@dataclass
class ProblemFetchFailed:
    load_id: int
    error: str


@dataclass
class DetailLoaded:
    slug: str
    origin: Origin
    scaffold: bool = False
    detail: Optional[ProblemDetail] = None
    error: Optional[str] = None


@dataclass
class JudgeFinished:
    """Terminal message of a run/submit attempt; carries the finished job."""

    attempt_id: int
    job: "JudgeJob"


@dataclass
class UserStatsLoaded:
    stats: Optional[UserStats]


@dataclass
class SearchFinished:
    problems: list[ProblemSummary] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class FavoritesLoaded:
    for_popup: bool
    lists: list[FavoriteList] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class ListMutationFinished:
    success_message: str
    error: Optional[str] = None


@dataclass
class LoginFinished:
    """Outcome of a cookie extraction. config is set when the tokens were persisted."""

    retry: bool
    session_token: Optional[str] = None
    csrf_token: Optional[str] = None
    config: Optional[Config] = None
    error: Optional[str] = None


Message = (
    ProblemBatch
    | ProblemFetchFailed
    | DetailLoaded
    | JudgeFinished
    | UserStatsLoaded
    | SearchFinished
    | FavoritesLoaded
    | ListMutationFinished
    | LoginFinished
)

Sender = Callable[[Message], None]


class Dispatcher:
    """Launches detached tasks and multiplexes their results into one queue."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Message] = asyncio.Queue()
        self._tasks: set[asyncio.Task[None]] = set()

    def send(self, message: Message) -> None:
        self._queue.put_nowait(message)

    async def next_message(self) -> Message:
        return await self._queue.get()

    def pending(self) -> int:
        """Number of messages waiting to be consumed."""
        return self._queue.qsize()

    @property
    def running(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, None], name: str = "task") -> asyncio.Task[None]:
        """Schedule a coroutine without waiting for it."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._on_task_done)
        logger.debug("Dispatched %s (%d running)", name, len(self._tasks))
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in %s: %s", task.get_name(), exc, exc_info=exc)

    async def drain(self) -> None:
        """Wait for every running task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
