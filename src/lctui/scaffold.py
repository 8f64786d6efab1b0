"""Create a local project for a problem: statement, source file, and harness."""

import logging
from pathlib import Path

from markdownify import markdownify

from lctui.exceptions import StorageError
from lctui.models import Config, Language, ProblemDetail
from lctui.storage import Storage

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LINES = 50

RUST_HARNESS = """
fn main() {
    println!("Run with: cargo test");
}

#[cfg(test)]
mod tests {
    use super::*;

    #[test]
    fn test_solution() {
        // add test cases
    }
}
"""

PYTHON_HARNESS = """
if __name__ == "__main__":
    print("Edit the solution above, then run or submit from lctui.")
"""


def _comment_prefix(language: Language) -> str:
    return "#" if language is Language.PYTHON3 else "//"


def problem_markdown(detail: ProblemDetail) -> str:
    """Render the problem statement as Markdown."""
    if detail.content is None:
        return "This problem is only available to LeetCode Premium members."
    return markdownify(detail.content, heading_style="ATX", strip=["script", "style"]).strip()


def render_source(detail: ProblemDetail, language: Language) -> str:
    """Build the initial source file: description comments, snippet, harness."""
    prefix = _comment_prefix(language)
    lines = [
        f"{prefix} {detail.frontend_id}: {detail.title}",
        f"{prefix} Difficulty: {detail.difficulty}",
        f"{prefix} https://leetcode.com/problems/{detail.slug}/",
        prefix,
    ]
    for line in problem_markdown(detail).splitlines()[:MAX_DESCRIPTION_LINES]:
        lines.append(f"{prefix} {line}".rstrip())

    snippet = detail.snippet_for(language)
    if snippet is None:
        snippet = f"{prefix} No {language.config_name} snippet available for this problem"

    parts = ["\n".join(lines), ""]
    if language is Language.RUST:
        # rust-analyzer needs the type LeetCode declares on its side.
        parts.append("pub struct Solution;\n")
    parts.append(snippet.rstrip() + "\n")

    if language is Language.RUST:
        parts.append(RUST_HARNESS)
    elif language is Language.PYTHON3:
        parts.append(PYTHON_HARNESS)

    return "\n".join(parts)


def _cargo_manifest(detail: ProblemDetail) -> str:
    # Cargo package names can't start with a digit.
    package = f"p{detail.project_dir_name}"
    return f'[package]\nname = "{package}"\nversion = "0.1.0"\nedition = "2021"\n\n[dependencies]\n'


def scaffold_problem(storage: Storage, config: Config, detail: ProblemDetail) -> Path:
    """Create the project directory for a problem. Returns the source file path.

    Existing source files are never overwritten.
    """
    source_path = storage.solution_path(config, detail)
    if source_path.exists():
        logger.info("Reusing existing solution file %s", source_path)
        return source_path

    project_dir = storage.project_dir(config, detail)
    try:
        source_path.parent.mkdir(parents=True, exist_ok=True)
        if config.language is Language.RUST:
            (project_dir / "Cargo.toml").write_text(_cargo_manifest(detail), encoding="utf-8")
        (project_dir / "problem.md").write_text(problem_markdown(detail) + "\n", encoding="utf-8")
        source_path.write_text(render_source(detail, config.language), encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Scaffold failed for {project_dir}: {e}") from e

    logger.info("Scaffolded %s", source_path)
    return source_path
