"""Tests for extracting the submittable snippet from solution files."""

import pytest

from lctui.extract import (
    CODE,
    COMMENT,
    ENTRY_POINT,
    MARKER,
    TEST_ATTRIBUTE,
    Unit,
    extract_solution,
    filter_units,
    split_python,
    split_rust,
)
from lctui.models import Language

RUST_IMPL = """impl Solution {
    pub fn two_sum(nums: Vec<i32>, target: i32) -> Vec<i32> {
        vec![]
    }
}"""

SCAFFOLDED_RUST = f"""// 1: Two Sum
// Difficulty: Easy
// https://leetcode.com/problems/two-sum/
//
// Given an array of integers nums and an integer target.

pub struct Solution;

{RUST_IMPL}

fn main() {{
    println!("Run with: cargo test");
}}

#[cfg(test)]
mod tests {{
    use super::*;

    #[test]
    fn test_solution() {{
        assert_eq!(Solution::two_sum(vec![2, 7], 9), vec![0, 1]);
    }}
}}
"""

PYTHON_CLASS = """class Solution:
    def twoSum(self, nums: List[int], target: int) -> List[int]:
        return []"""

SCAFFOLDED_PYTHON = f"""# 1: Two Sum
# Difficulty: Easy
#
# Given an array of integers nums and an integer target.

from typing import List


{PYTHON_CLASS}


if __name__ == "__main__":
    print(Solution().twoSum([2, 7], 9))
"""


class TestFilterUnits:
    """Tests for the language-independent filtering rules."""

    def test_leading_comments_dropped_later_comments_kept(self):
        units = [
            Unit(COMMENT, "// description"),
            Unit(CODE, "use std::collections::HashMap;"),
            Unit(COMMENT, "// helper"),
            Unit(CODE, "fn helper() {}"),
        ]
        kept, dropped = filter_units(units)
        assert dropped
        assert [u.text for u in kept] == ["use std::collections::HashMap;", "// helper", "fn helper() {}"]

    def test_comments_after_marker_are_still_leading(self):
        """Test a dropped marker does not end the leading comment block."""
        units = [
            Unit(COMMENT, "// description"),
            Unit(MARKER, "pub struct Solution;"),
            Unit(COMMENT, "// more description"),
            Unit(CODE, "impl Solution {}"),
        ]
        kept, _ = filter_units(units)
        assert [u.text for u in kept] == ["impl Solution {}"]

    def test_test_attribute_drops_following_unit(self):
        units = [
            Unit(CODE, "impl Solution {}"),
            Unit(TEST_ATTRIBUTE, "#[cfg(test)]"),
            Unit(COMMENT, "// tests"),
            Unit(CODE, "mod tests {}"),
            Unit(CODE, "fn after() {}"),
        ]
        kept, dropped = filter_units(units)
        assert dropped
        assert [u.text for u in kept] == ["impl Solution {}", "fn after() {}"]

    def test_entry_point_dropped(self):
        kept, dropped = filter_units([Unit(CODE, "a"), Unit(ENTRY_POINT, "fn main() {}")])
        assert dropped
        assert [u.text for u in kept] == ["a"]

    def test_nothing_dropped(self):
        units = [Unit(CODE, "a"), Unit(COMMENT, "// b"), Unit(CODE, "c")]
        kept, dropped = filter_units(units)
        assert not dropped
        assert kept == units


class TestSplitRust:
    """Tests for classifying Rust top-level items."""

    def test_classifies_scaffold(self):
        units = split_rust(SCAFFOLDED_RUST)
        kinds = [u.kind for u in units]
        assert kinds.count(COMMENT) == 5
        assert kinds[5:] == [MARKER, CODE, ENTRY_POINT, TEST_ATTRIBUTE, CODE]

    def test_struct_with_fields_is_not_a_marker(self):
        units = split_rust("pub struct Solution {\n    cache: Vec<i32>,\n}\n")
        assert [u.kind for u in units] == [CODE]

    def test_empty_braced_struct_is_a_marker(self):
        units = split_rust("struct Solution {}\n")
        assert [u.kind for u in units] == [MARKER]

    def test_other_struct_is_code(self):
        units = split_rust("struct ListNode;\n")
        assert [u.kind for u in units] == [CODE]


class TestSplitPython:
    """Tests for classifying Python top-level statements."""

    def test_classifies_scaffold(self):
        units = split_python(SCAFFOLDED_PYTHON)
        assert [u.kind for u in units] == [COMMENT, CODE, CODE, ENTRY_POINT]
        assert units[2].text == PYTHON_CLASS

    def test_decorators_stay_with_their_function(self):
        source = "import functools\n\n@functools.cache\ndef fib(n):\n    return n\n"
        units = split_python(source)
        assert units[-1].text == "@functools.cache\ndef fib(n):\n    return n"

    def test_empty_solution_class_is_a_marker(self):
        units = split_python('class Solution:\n    """Placeholder."""\n    pass\n')
        assert [u.kind for u in units] == [MARKER]

    def test_def_main_is_entry_point(self):
        units = split_python("def main():\n    pass\n")
        assert [u.kind for u in units] == [ENTRY_POINT]

    def test_statements_sharing_a_line_are_one_unit(self):
        units = split_python("# header\nimport os; import sys\n\nclass Solution:\n    x = 1\n")
        assert [u.kind for u in units] == [COMMENT, CODE, CODE]
        assert units[1].text == "import os; import sys"

    def test_syntax_error_returns_none(self):
        assert split_python("def broken(:\n") is None


class TestExtractSolution:
    """Tests for extract_solution()."""

    def test_rust_scaffold(self):
        """Test description, marker, main, and the test module are removed."""
        assert extract_solution(SCAFFOLDED_RUST, Language.RUST) == RUST_IMPL

    def test_python_scaffold(self):
        expected = "from typing import List\n\n" + PYTHON_CLASS
        assert extract_solution(SCAFFOLDED_PYTHON, Language.PYTHON3) == expected

    @pytest.mark.parametrize(
        "content, language",
        [(SCAFFOLDED_RUST, Language.RUST), (SCAFFOLDED_PYTHON, Language.PYTHON3)],
    )
    def test_idempotent(self, content, language):
        """Test extracting an already-extracted snippet changes nothing."""
        once = extract_solution(content, language)
        assert extract_solution(once, language) == once

    def test_file_without_scaffolding_is_unchanged(self):
        """Test a file with nothing to drop is returned byte for byte."""
        content = "use std::cmp;\n\n// keep me\nimpl Solution {\n    pub fn f() {}\n}\n"
        assert extract_solution(content, Language.RUST) == content

    def test_attribute_pair_with_comment_between(self):
        content = "impl Solution {}\n\n#[cfg(test)]\n// local tests\nmod tests {}\n\nfn helper() {}\n"
        assert extract_solution(content, Language.RUST) == "impl Solution {}\n\nfn helper() {}"

    def test_struct_with_fields_is_kept(self):
        content = "pub struct Solution {\n    memo: Vec<i64>,\n}\n\nfn main() {}\n"
        assert extract_solution(content, Language.RUST) == "pub struct Solution {\n    memo: Vec<i64>,\n}"

    def test_over_stripping_returns_original(self):
        """Test a file that would extract to nothing is submitted as-is."""
        content = "// only a description\n\npub struct Solution;\n\nfn main() {}\n"
        assert extract_solution(content, Language.RUST) == content

    def test_semicolon_line_keeps_the_rest_of_the_file(self):
        """Test a one-line compound statement doesn't cut off the solution."""
        content = (
            "# Two Sum\n# description\nimport os; import sys\n\n"
            "class Solution:\n    def twoSum(self, nums, target):\n        return [0, 1]\n"
        )
        expected = "import os; import sys\n\nclass Solution:\n    def twoSum(self, nums, target):\n        return [0, 1]"

        once = extract_solution(content, Language.PYTHON3)

        assert once == expected
        assert extract_solution(once, Language.PYTHON3) == once

    def test_unparseable_python_returns_original(self):
        content = "# description\nclass Solution\n    def f(self): pass\n"
        assert extract_solution(content, Language.PYTHON3) == content

    def test_language_without_extractor_passes_through(self):
        content = "// header\nclass Solution {\n    public int[] twoSum() { return null; }\n}\n"
        assert extract_solution(content, Language.JAVA) == content
