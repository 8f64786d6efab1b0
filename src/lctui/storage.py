"""Local file operations for configuration, the problem cache, and workspaces."""

import json
import logging
from pathlib import Path
from typing import Optional

from lctui.exceptions import StorageError
from lctui.models import Config, Language, ProblemDetail, ProblemSummary

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Config(
    workspace_dir="~/leetcode",
    language=Language.RUST,
    editor="vim",
)


class Storage:
    """Manages the config directory and locates solution files in the workspace."""

    def __init__(self, base_path: Path | None = None) -> None:
        self.base_path = base_path or Path.home() / ".leetcode-tui"
        self.config_path = self.base_path / "config.json"
        self.cache_path = self.base_path / "problems_cache.json"
        self.log_path = self.base_path / "lctui.log"

    def _ensure_dirs(self) -> None:
        """Create the config directory if it doesn't exist."""
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create config dir {self.base_path}: {e}") from e

    def get_config(self) -> Optional[Config]:
        """Load config from config.json. Returns None when not configured yet."""
        if not self.config_path.exists():
            return None

        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read config from {self.config_path}: {e}") from e

        try:
            language = Language.parse(data.get("language", DEFAULT_CONFIG.language.config_name))
        except ValueError as e:
            raise StorageError(str(e)) from e

        return Config(
            workspace_dir=data.get("workspace_dir", DEFAULT_CONFIG.workspace_dir),
            language=language,
            editor=data.get("editor", DEFAULT_CONFIG.editor),
            leetcode_session=data.get("leetcode_session") or None,
            csrf_token=data.get("csrf_token") or None,
        )

    def save_config(self, config: Config) -> None:
        """Save config to config.json."""
        self._ensure_dirs()
        data = {
            "workspace_dir": config.workspace_dir,
            "language": config.language.config_name,
            "editor": config.editor,
            "leetcode_session": config.leetcode_session,
            "csrf_token": config.csrf_token,
        }
        try:
            self.config_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write config to {self.config_path}: {e}") from e

    def load_cached_problems(self) -> Optional[list[ProblemSummary]]:
        """Return the last fully loaded problem list, or None if there is no usable cache."""
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable problem cache %s: %s", self.cache_path, e)
            return None

        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            logger.warning("Ignoring malformed problem cache %s", self.cache_path)
            return None
        return [ProblemSummary.from_api(item) for item in data]

    def save_problems_cache(self, problems: list[ProblemSummary]) -> None:
        self._ensure_dirs()
        payload = json.dumps([p.to_api() for p in problems])
        try:
            self.cache_path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write problem cache: {e}") from e

    def project_dir(self, config: Config, detail: ProblemDetail) -> Path:
        return config.expanded_workspace() / detail.project_dir_name

    def solution_path(self, config: Config, detail: ProblemDetail) -> Path:
        """Path of the canonical source file for the configured language."""
        return self.project_dir(config, detail) / config.language.source_file
