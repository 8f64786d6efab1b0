"""Session manager for coordinating LeetCode authentication."""

import logging
from dataclasses import replace

from lctui.client import LeetCodeClient
from lctui.cookies import DEFAULT_DOMAIN, extract_cookies
from lctui.exceptions import CookieError
from lctui.models import Config
from lctui.storage import Storage

logger = logging.getLogger(__name__)


class SessionManager:
    """Builds LeetCode clients from stored credentials and refreshes them from the browser."""

    def __init__(self, storage: Storage | None = None) -> None:
        self._storage = storage or Storage()

    def get_client(self, config: Config | None) -> LeetCodeClient:
        """Return a client using the config's tokens; anonymous when there are none."""
        if config is None or not config.is_authenticated():
            return LeetCodeClient()
        return LeetCodeClient(config.leetcode_session, config.csrf_token)

    def extract_tokens(self) -> tuple[str, str]:
        """Return (session token, csrf token) from installed browsers."""
        try:
            return extract_cookies(DEFAULT_DOMAIN)
        except CookieError as e:
            logger.info("Browser login failed: %s", e.message)
            raise

    def login_from_browser(self, config: Config) -> Config:
        """Extract cookies from installed browsers and persist them in the config.

        Raises CookieError when no browser has both LeetCode cookies, and
        StorageError when the updated config can't be written.
        """
        session_token, csrf_token = self.extract_tokens()
        updated = replace(config, leetcode_session=session_token, csrf_token=csrf_token)
        self._storage.save_config(updated)
        logger.info("Saved LeetCode credentials from browser")
        return updated
