"""Async LeetCode API client used by the background tasks."""

import logging
from typing import Any, Optional

import httpx

from lctui.exceptions import (
    LeetCodeError,
    ProblemNotFoundError,
    SessionExpiredError,
    SubmissionError,
    TransportError,
)
from lctui.models import FavoriteList, ProblemDetail, ProblemSummary, UserStats
from lctui.queries import (
    ADD_TO_FAVORITE_MUTATION,
    FAVORITES_QUERY,
    PROBLEM_LIST_QUERY,
    QUESTION_DETAIL_QUERY,
    REMOVE_FROM_FAVORITE_MUTATION,
    USER_STATS_QUERY,
    USER_STATUS_QUERY,
)

logger = logging.getLogger(__name__)

GRAPHQL_ENDPOINT = "https://leetcode.com/graphql/"
BASE_URL = "https://leetcode.com"
LOGIN_URL = f"{BASE_URL}/accounts/login/"


class LeetCodeClient:
    """Client for LeetCode's GraphQL and judge endpoints.

    The client holds no application state; background tasks share one instance
    and every method is safe to await concurrently.
    """

    def __init__(
        self,
        session_token: Optional[str] = None,
        csrf_token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._session_token = session_token
        self._csrf_token = csrf_token
        self._client = http_client or httpx.AsyncClient(
            headers=self._build_headers(),
            timeout=30.0,
        )

    @property
    def authenticated(self) -> bool:
        return bool(self._session_token) and bool(self._csrf_token)

    def _build_headers(self) -> dict[str, str]:
        headers = {
            "Referer": BASE_URL,
            "Content-Type": "application/json",
        }
        if self.authenticated:
            headers["Cookie"] = f"LEETCODE_SESSION={self._session_token}; csrftoken={self._csrf_token}"
            headers["X-CSRFToken"] = self._csrf_token or ""
        return headers

    async def aclose(self) -> None:
        await self._client.aclose()

    def _check_response_auth(self, response: httpx.Response) -> None:
        if response.status_code in (401, 403):
            raise SessionExpiredError()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e
        self._check_response_auth(response)
        return response

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Malformed response (HTTP {response.status_code})") from e
        if not isinstance(data, dict):
            raise TransportError("Malformed response: expected a JSON object")
        return data

    async def _graphql(self, query: str, variables: dict[str, Any], referer: str = BASE_URL) -> dict[str, Any]:
        response = await self._request(
            "POST",
            GRAPHQL_ENDPOINT,
            json={"query": query, "variables": variables},
            headers={"Referer": referer},
        )
        if response.status_code != 200:
            raise TransportError(f"GraphQL request failed: HTTP {response.status_code}")
        payload = self._json(response)
        errors = payload.get("errors")
        if errors and not payload.get("data"):
            message = errors[0].get("message", "Unknown error") if isinstance(errors[0], dict) else str(errors[0])
            raise LeetCodeError(f"LeetCode error: {message}")
        return payload.get("data") or {}

    async def fetch_problem_page(
        self,
        limit: int,
        skip: int,
        difficulty: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[ProblemSummary], int]:
        """Fetch one page of the problem set. Returns (page, total)."""
        filters: dict[str, Any] = {}
        if difficulty:
            filters["difficulty"] = difficulty.upper()
        if search:
            filters["searchKeywords"] = search

        data = await self._graphql(
            PROBLEM_LIST_QUERY,
            {
                "categorySlug": "all-code-essentials",
                "limit": limit,
                "skip": skip,
                "filters": filters,
            },
            referer=f"{BASE_URL}/problemset/",
        )
        question_list = data.get("problemsetQuestionList")
        if not question_list:
            raise TransportError("No problem list data in response")

        problems = [ProblemSummary.from_api(q) for q in question_list.get("questions") or []]
        return problems, int(question_list.get("total") or 0)

    async def fetch_problem_detail(self, slug: str) -> ProblemDetail:
        data = await self._graphql(
            QUESTION_DETAIL_QUERY,
            {"titleSlug": slug},
            referer=f"{BASE_URL}/problems/{slug}/",
        )
        question = data.get("question")
        if not question:
            raise ProblemNotFoundError(slug)
        return ProblemDetail.from_api(question)

    async def run_code(self, slug: str, question_id: str, lang: str, code: str, data_input: str) -> str:
        """Start a run against sample input. Returns the interpret id."""
        response = await self._request(
            "POST",
            f"{BASE_URL}/problems/{slug}/interpret_solution/",
            json={
                "lang": lang,
                "question_id": str(question_id),
                "typed_code": code,
                "data_input": data_input,
            },
            headers={"Referer": f"{BASE_URL}/problems/{slug}/"},
        )
        if response.status_code != 200:
            raise SubmissionError(f"Failed to run code: HTTP {response.status_code}")

        interpret_id = self._json(response).get("interpret_id")
        if not interpret_id:
            raise SubmissionError("No interpret ID returned")
        return str(interpret_id)

    async def submit_code(self, slug: str, question_id: str, lang: str, code: str) -> str:
        """Submit a solution. Returns the submission id."""
        response = await self._request(
            "POST",
            f"{BASE_URL}/problems/{slug}/submit/",
            json={
                "lang": lang,
                "question_id": str(question_id),
                "typed_code": code,
            },
            headers={"Referer": f"{BASE_URL}/problems/{slug}/"},
        )
        if response.status_code != 200:
            raise SubmissionError(f"Failed to submit: HTTP {response.status_code}")

        submission_id = self._json(response).get("submission_id")
        if not submission_id:
            raise SubmissionError("No submission ID returned")
        return str(submission_id)

    async def check(self, job_id: str) -> dict[str, Any]:
        """Fetch the current check payload for a run or submission."""
        response = await self._request("GET", f"{BASE_URL}/submissions/detail/{job_id}/check/")
        if response.status_code != 200:
            raise TransportError(f"Check failed: HTTP {response.status_code}")
        return self._json(response)

    async def fetch_favorites(self) -> list[FavoriteList]:
        data = await self._graphql(FAVORITES_QUERY, {}, referer=f"{BASE_URL}/list/")
        favorites = (data.get("favoritesLists") or {}).get("allFavorites") or []
        return [FavoriteList.from_api(f) for f in favorites]

    async def create_favorite_list(self, name: str) -> None:
        response = await self._request(
            "POST",
            f"{BASE_URL}/list/api/",
            json={"name": name, "description": "", "is_public_favorite": False},
            headers={"Referer": f"{BASE_URL}/list/"},
        )
        if response.status_code not in (200, 201):
            raise LeetCodeError(f"Failed to create list: HTTP {response.status_code}")

    async def delete_favorite_list(self, id_hash: str) -> None:
        response = await self._request(
            "DELETE",
            f"{BASE_URL}/list/api/{id_hash}",
            headers={"Referer": f"{BASE_URL}/list/"},
        )
        if response.status_code not in (200, 204):
            raise LeetCodeError(f"Failed to delete list: HTTP {response.status_code}")

    async def add_to_favorite(self, id_hash: str, question_id: str) -> None:
        data = await self._graphql(
            ADD_TO_FAVORITE_MUTATION,
            {"favoriteIdHash": id_hash, "questionId": str(question_id)},
        )
        self._check_mutation(data.get("addQuestionToFavorite"), "add to list")

    async def remove_from_favorite(self, id_hash: str, question_id: str) -> None:
        data = await self._graphql(
            REMOVE_FROM_FAVORITE_MUTATION,
            {"favoriteIdHash": id_hash, "questionId": str(question_id)},
        )
        self._check_mutation(data.get("removeQuestionFromFavorite"), "remove from list")

    def _check_mutation(self, result: Optional[dict[str, Any]], action: str) -> None:
        if not result or not result.get("ok"):
            error = (result or {}).get("error") or "unknown error"
            raise LeetCodeError(f"Failed to {action}: {error}")

    async def fetch_username(self) -> Optional[str]:
        """Return the signed-in username, or None when signed out or unreachable."""
        try:
            data = await self._graphql(USER_STATUS_QUERY, {})
        except LeetCodeError as e:
            logger.debug("Username lookup failed: %s", e.message)
            return None
        status = data.get("userStatus") or {}
        if not status.get("isSignedIn"):
            return None
        return status.get("username")

    async def fetch_user_stats(self, username: str) -> UserStats:
        data = await self._graphql(USER_STATS_QUERY, {"username": username})
        user = data.get("matchedUser")
        if not user:
            raise LeetCodeError(f"User not found: {username}")
        counts = (user.get("submitStatsGlobal") or {}).get("acSubmissionNum") or []
        return UserStats(
            username=username,
            solved={c.get("difficulty", ""): int(c.get("count") or 0) for c in counts},
        )
