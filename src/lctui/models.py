"""Data models for the LeetCode TUI."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class Language(Enum):
    """Solution languages the workspace knows how to lay out and submit."""

    RUST = ("rust", "rust", "src/main.rs")
    PYTHON3 = ("python3", "python3", "solution.py")
    CPP = ("cpp", "cpp", "solution.cpp")
    JAVA = ("java", "java", "Solution.java")
    JAVASCRIPT = ("javascript", "javascript", "solution.js")
    TYPESCRIPT = ("typescript", "typescript", "solution.ts")
    GO = ("go", "golang", "solution.go")

    def __init__(self, config_name: str, lang_slug: str, source_file: str) -> None:
        self.config_name = config_name
        self.lang_slug = lang_slug
        self.source_file = source_file

    @classmethod
    def parse(cls, name: str) -> "Language":
        """Resolve a config value such as 'python' or 'c++' to a Language."""
        normalized = name.strip().lower()
        aliases = {"python": "python3", "c++": "cpp", "golang": "go"}
        normalized = aliases.get(normalized, normalized)
        for language in cls:
            if language.config_name == normalized:
                return language
        supported = ", ".join(language.config_name for language in cls)
        raise ValueError(f"Unsupported language '{name}'. Supported: {supported}")


@dataclass(frozen=True)
class TopicTag:
    name: str
    slug: str


@dataclass(frozen=True)
class ProblemSummary:
    """One row of the problem set, as returned by the list query."""

    frontend_id: str
    title: str
    slug: str
    difficulty: str
    ac_rate: float
    paid_only: bool
    topic_tags: tuple[TopicTag, ...] = ()
    question_id: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ProblemSummary":
        return cls(
            frontend_id=str(data.get("frontendQuestionId", "")),
            title=data.get("title", ""),
            slug=data.get("titleSlug", ""),
            difficulty=data.get("difficulty", ""),
            ac_rate=float(data.get("acRate") or 0.0),
            paid_only=bool(data.get("isPaidOnly", False)),
            topic_tags=tuple(
                TopicTag(name=t.get("name", ""), slug=t.get("slug", ""))
                for t in data.get("topicTags") or []
            ),
            question_id=str(data.get("questionId") or data.get("frontendQuestionId", "")),
        )

    def to_api(self) -> dict[str, Any]:
        """Serialize in the same shape the API returns, for the cache file."""
        return {
            "questionId": self.question_id,
            "frontendQuestionId": self.frontend_id,
            "title": self.title,
            "titleSlug": self.slug,
            "difficulty": self.difficulty,
            "acRate": self.ac_rate,
            "isPaidOnly": self.paid_only,
            "topicTags": [{"name": t.name, "slug": t.slug} for t in self.topic_tags],
        }


@dataclass
class CodeSnippet:
    lang: str
    lang_slug: str
    code: str


@dataclass
class ProblemDetail:
    """Full problem record; content is None for premium-gated problems."""

    question_id: str
    frontend_id: str
    title: str
    slug: str
    difficulty: str
    content: Optional[str]
    paid_only: bool
    topic_tags: list[TopicTag] = field(default_factory=list)
    code_snippets: list[CodeSnippet] = field(default_factory=list)
    hints: list[str] = field(default_factory=list)
    sample_test_case: Optional[str] = None
    example_testcase_list: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ProblemDetail":
        return cls(
            question_id=str(data.get("questionId", "")),
            frontend_id=str(data.get("questionFrontendId") or data.get("frontendQuestionId", "")),
            title=data.get("title", ""),
            slug=data.get("titleSlug", ""),
            difficulty=data.get("difficulty", ""),
            content=data.get("content"),
            paid_only=bool(data.get("isPaidOnly", False)),
            topic_tags=[
                TopicTag(name=t.get("name", ""), slug=t.get("slug", ""))
                for t in data.get("topicTags") or []
            ],
            code_snippets=[
                CodeSnippet(lang=s.get("lang", ""), lang_slug=s.get("langSlug", ""), code=s.get("code", ""))
                for s in data.get("codeSnippets") or []
            ],
            hints=list(data.get("hints") or []),
            sample_test_case=data.get("sampleTestCase"),
            example_testcase_list=list(data.get("exampleTestcaseList") or []),
        )

    @property
    def display_title(self) -> str:
        return f"{self.frontend_id}. {self.title}"

    @property
    def project_dir_name(self) -> str:
        return f"{self.frontend_id}-{self.slug}"

    def snippet_for(self, language: Language) -> Optional[str]:
        for snippet in self.code_snippets:
            if snippet.lang_slug == language.lang_slug:
                return snippet.code
        return None


@dataclass
class Verdict:
    """Terminal outcome of a run or submission check."""

    status_code: int
    status_msg: str
    run_success: bool
    accepted: bool
    runtime: Optional[str] = None
    runtime_percentile: Optional[float] = None
    memory: Optional[str] = None
    memory_percentile: Optional[float] = None
    test_cases_passed: Optional[int] = None
    total_test_cases: Optional[int] = None
    compile_error: Optional[str] = None
    runtime_error: Optional[str] = None
    last_testcase: Optional[str] = None
    expected_output: Optional[str] = None
    code_output: Optional[str] = None
    code_answer: list[str] = field(default_factory=list)
    expected_code_answer: list[str] = field(default_factory=list)
    std_output: list[str] = field(default_factory=list)

    @classmethod
    def from_check(cls, data: dict[str, Any]) -> "Verdict":
        status_msg = data.get("status_msg", "Unknown")
        status_code = int(data.get("status_code") or 0)
        if "correct_answer" in data:
            # Run responses report correctness against the sample cases.
            accepted = bool(data.get("correct_answer"))
        else:
            accepted = status_msg == "Accepted"

        code_output = data.get("code_output")
        if isinstance(code_output, list):
            code_output = "\n".join(code_output)

        return cls(
            status_code=status_code,
            status_msg=status_msg,
            run_success=bool(data.get("run_success", False)),
            accepted=accepted,
            runtime=data.get("status_runtime"),
            runtime_percentile=data.get("runtime_percentile"),
            memory=data.get("status_memory"),
            memory_percentile=data.get("memory_percentile"),
            test_cases_passed=data.get("total_correct"),
            total_test_cases=data.get("total_testcases"),
            compile_error=data.get("full_compile_error") or data.get("compile_error"),
            runtime_error=data.get("full_runtime_error") or data.get("runtime_error"),
            last_testcase=data.get("last_testcase") or data.get("input_formatted"),
            expected_output=data.get("expected_output"),
            code_output=code_output,
            code_answer=[a for a in data.get("code_answer") or [] if a],
            expected_code_answer=[a for a in data.get("expected_code_answer") or [] if a],
            std_output=list(data.get("std_output_list") or []),
        )


@dataclass
class FavoriteList:
    """A user's favorite list; members are question ids in list order."""

    id_hash: str
    name: str
    question_ids: list[str] = field(default_factory=list)
    questions: list[ProblemSummary] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "FavoriteList":
        questions = data.get("questions") or []
        return cls(
            id_hash=data.get("idHash", ""),
            name=data.get("name", ""),
            question_ids=[str(q.get("questionId", "")) for q in questions],
            questions=[ProblemSummary.from_api(q) for q in questions],
        )


@dataclass
class UserStats:
    username: str
    solved: dict[str, int] = field(default_factory=dict)

    @property
    def total_solved(self) -> int:
        return self.solved.get("All", 0)


@dataclass
class Config:
    """User configuration, including the two LeetCode session tokens."""

    workspace_dir: str
    language: Language
    editor: str
    leetcode_session: Optional[str] = None
    csrf_token: Optional[str] = None

    def is_authenticated(self) -> bool:
        return bool(self.leetcode_session) and bool(self.csrf_token)

    def expanded_workspace(self) -> Path:
        return Path(self.workspace_dir).expanduser()
