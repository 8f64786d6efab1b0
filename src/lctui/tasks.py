"""Background operations. Each reports through the dispatcher's send handle."""

import asyncio
import logging
from typing import Awaitable, Optional

from lctui.client import LeetCodeClient
from lctui.dispatch import (
    DetailLoaded,
    FavoritesLoaded,
    ListMutationFinished,
    LoginFinished,
    Origin,
    ProblemBatch,
    ProblemFetchFailed,
    SearchFinished,
    Sender,
    UserStatsLoaded,
)
from lctui.exceptions import LeetCodeError
from lctui.models import Config, ProblemSummary
from lctui.session import SessionManager
from lctui.storage import Storage

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


async def load_problems(client: LeetCodeClient, send: Sender, load_id: int, batch_size: int = BATCH_SIZE) -> None:
    """Page through the whole problem set in offset order."""
    skip = 0
    while True:
        try:
            batch, total = await client.fetch_problem_page(batch_size, skip)
        except LeetCodeError as e:
            send(ProblemFetchFailed(load_id, f"Failed to load problems: {e.message}"))
            return

        done = len(batch) < batch_size or skip + len(batch) >= total
        send(ProblemBatch(load_id=load_id, problems=batch, total=total, done=done))
        if done:
            return
        skip += batch_size


async def save_cache(storage: Storage, problems: list[ProblemSummary]) -> None:
    try:
        await asyncio.to_thread(storage.save_problems_cache, problems)
    except LeetCodeError as e:
        logger.warning("Problem cache not saved: %s", e.message)


async def load_detail(client: LeetCodeClient, send: Sender, slug: str, origin: Origin, scaffold: bool = False) -> None:
    try:
        detail = await client.fetch_problem_detail(slug)
    except LeetCodeError as e:
        send(DetailLoaded(slug, origin, scaffold, error=f"Failed to load problem: {e.message}"))
        return
    send(DetailLoaded(slug, origin, scaffold, detail=detail))


async def search_problems(client: LeetCodeClient, send: Sender, query: str, difficulty: Optional[str] = None) -> None:
    try:
        problems, _ = await client.fetch_problem_page(1, 0, difficulty=difficulty, search=query)
    except LeetCodeError as e:
        send(SearchFinished(error=f"Search failed: {e.message}"))
        return
    send(SearchFinished(problems=problems))


async def load_user_stats(client: LeetCodeClient, send: Sender) -> None:
    username = await client.fetch_username()
    stats = None
    if username:
        try:
            stats = await client.fetch_user_stats(username)
        except LeetCodeError as e:
            logger.info("User stats unavailable: %s", e.message)
    send(UserStatsLoaded(stats))


async def load_favorites(client: LeetCodeClient, send: Sender, for_popup: bool = False) -> None:
    try:
        lists = await client.fetch_favorites()
    except LeetCodeError as e:
        prefix = "Failed to load lists: " if for_popup else ""
        send(FavoritesLoaded(for_popup, error=f"{prefix}{e.message}"))
        return
    send(FavoritesLoaded(for_popup, lists=lists))


async def mutate_list(send: Sender, mutation: Awaitable[None], success_message: str) -> None:
    try:
        await mutation
    except LeetCodeError as e:
        send(ListMutationFinished(success_message, error=e.message))
        return
    send(ListMutationFinished(success_message))


async def browser_login(
    session: SessionManager, config: Optional[Config], send: Sender, retry: bool = False
) -> None:
    """Extract browser cookies off the event loop.

    With a config the tokens are saved into it; without one (first-run setup)
    they are only reported back.
    """
    try:
        if config is None:
            session_token, csrf_token = await asyncio.to_thread(session.extract_tokens)
            send(LoginFinished(retry, session_token=session_token, csrf_token=csrf_token))
            return
        updated = await asyncio.to_thread(session.login_from_browser, config)
    except LeetCodeError as e:
        send(LoginFinished(retry, error=e.message))
        return
    send(LoginFinished(retry, session_token=updated.leetcode_session, csrf_token=updated.csrf_token, config=updated))
