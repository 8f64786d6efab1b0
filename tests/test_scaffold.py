"""Tests for scaffolding problem projects."""

import dataclasses
from unittest.mock import patch

import pytest

from lctui.exceptions import StorageError
from lctui.extract import extract_solution
from lctui.models import Language
from lctui.scaffold import (
    MAX_DESCRIPTION_LINES,
    problem_markdown,
    render_source,
    scaffold_problem,
)


class TestProblemMarkdown:
    def test_converts_html(self, sample_detail):
        markdown = problem_markdown(sample_detail)
        assert "`nums`" in markdown
        assert "<p>" not in markdown

    def test_premium_problem(self, sample_detail):
        """Test a problem without content gets a premium notice."""
        premium = dataclasses.replace(sample_detail, content=None)
        assert "Premium" in problem_markdown(premium)


class TestRenderSource:
    """Tests for render_source()."""

    def test_rust_source_layout(self, sample_detail):
        source = render_source(sample_detail, Language.RUST)
        assert source.startswith("// 1: Two Sum\n// Difficulty: Easy\n")
        assert "pub struct Solution;" in source
        assert "impl Solution {" in source
        assert "fn main()" in source
        assert "#[cfg(test)]" in source

    def test_python_uses_hash_comments(self, sample_detail):
        source = render_source(sample_detail, Language.PYTHON3)
        assert source.startswith("# 1: Two Sum\n")
        assert 'if __name__ == "__main__":' in source

    def test_missing_snippet(self, sample_detail):
        source = render_source(sample_detail, Language.JAVA)
        assert "// No java snippet available for this problem" in source

    def test_description_is_truncated(self, sample_detail):
        long = dataclasses.replace(sample_detail, content="".join(f"<p>line {i}</p>" for i in range(200)))
        source = render_source(long, Language.PYTHON3)
        assert "line 0" in source
        assert f"line {MAX_DESCRIPTION_LINES * 2}" not in source

    def test_extraction_yields_the_snippet(self, sample_detail):
        """Test a freshly scaffolded Rust file extracts back to LeetCode's snippet."""
        source = render_source(sample_detail, Language.RUST)
        assert extract_solution(source, Language.RUST) == sample_detail.snippet_for(Language.RUST)


class TestScaffoldProblem:
    """Tests for scaffold_problem()."""

    def test_rust_project(self, tmp_storage, sample_config, sample_detail, tmp_path):
        path = scaffold_problem(tmp_storage, sample_config, sample_detail)

        project = tmp_path / "workspace" / "1-two-sum"
        assert path == project / "src" / "main.rs"
        assert path.exists()
        assert 'name = "p1-two-sum"' in (project / "Cargo.toml").read_text()
        assert (project / "problem.md").exists()

    def test_python_project_has_no_manifest(self, tmp_storage, sample_config, sample_detail, tmp_path):
        config = dataclasses.replace(sample_config, language=Language.PYTHON3)
        path = scaffold_problem(tmp_storage, config, sample_detail)

        assert path.name == "solution.py"
        assert not (path.parent / "Cargo.toml").exists()

    def test_existing_solution_is_not_overwritten(self, tmp_storage, sample_config, sample_detail):
        path = scaffold_problem(tmp_storage, sample_config, sample_detail)
        path.write_text("my work")

        assert scaffold_problem(tmp_storage, sample_config, sample_detail) == path
        assert path.read_text() == "my work"

    def test_write_failure_raises_storage_error(self, tmp_storage, sample_config, sample_detail):
        with patch("pathlib.Path.write_text", side_effect=PermissionError("denied")):
            with pytest.raises(StorageError) as exc_info:
                scaffold_problem(tmp_storage, sample_config, sample_detail)
        assert "Scaffold failed" in exc_info.value.message
