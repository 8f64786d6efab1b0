"""Tests for key decoding."""

import pytest

from lctui.terminal import key_name


class TestKeyName:
    @pytest.mark.parametrize(
        "char, sequence, expected",
        [
            ("\x1b", "", "esc"),
            ("\x1b", "[A", "up"),
            ("\x1b", "OB", "down"),
            ("\x1b", "[Z", "shift+tab"),
            ("\r", "", "enter"),
            ("\x7f", "", "backspace"),
            ("\x03", "", "ctrl+c"),
            ("\x0c", "", "ctrl+l"),
            ("\t", "", "tab"),
            ("G", "", "G"),
            (" ", "", " "),
            ("?", "", "?"),
        ],
    )
    def test_known_keys(self, char, sequence, expected):
        assert key_name(char, sequence) == expected

    def test_unknown_sequence(self):
        assert key_name("\x1b", "[99~") is None

    def test_unprintable_control(self):
        assert key_name("\x01") is None
