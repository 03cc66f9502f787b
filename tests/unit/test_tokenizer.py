"""
Unit tests for the command tokenizer.

Tests cover:
- Splitting on |, ; and &&
- Quote handling (separators inside quotes are content)
- Escaped quotes
- Empty and separator-only input
- Base command extraction with environment assignments
"""

import pytest

from gatekeeper.policy.tokenizer import get_base_command, parse_commands


class TestParseCommands:
    """Tests for parse_commands."""

    def test_single_command(self) -> None:
        """A plain command is one sub-command."""
        assert parse_commands("ls -la") == ["ls -la"]

    def test_pipe(self) -> None:
        """Pipes split sub-commands."""
        assert parse_commands("cat file.txt | grep pattern") == [
            "cat file.txt",
            "grep pattern",
        ]

    def test_semicolon(self) -> None:
        """Semicolons split sub-commands."""
        assert parse_commands("npm ci; npm test") == ["npm ci", "npm test"]

    def test_and_chain(self) -> None:
        """&& splits and both ampersands are consumed."""
        assert parse_commands("npm install && npm test") == ["npm install", "npm test"]

    def test_or_chain_splits_twice(self) -> None:
        """|| is two pipes; the empty segment between them is dropped."""
        assert parse_commands("make || echo failed") == ["make", "echo failed"]

    def test_single_ampersand_kept(self) -> None:
        """A lone & is not a separator."""
        assert parse_commands("sleep 5 & wait") == ["sleep 5 & wait"]

    def test_no_whitespace_around_separators(self) -> None:
        """Separators need no surrounding whitespace."""
        assert parse_commands("ls;pwd|wc&&date") == ["ls", "pwd", "wc", "date"]

    def test_segments_trimmed(self) -> None:
        """Whitespace around each segment is removed."""
        assert parse_commands("   ls   |   wc -l   ") == ["ls", "wc -l"]

    def test_trailing_and_repeated_separators_dropped(self) -> None:
        """Empty segments never become sub-commands."""
        assert parse_commands("ls ;; ; pwd ;") == ["ls", "pwd"]

    @pytest.mark.parametrize("line", ["", "   ", ";", " | ; && ", "\t\n"])
    def test_empty_input(self, line: str) -> None:
        """Empty, blank or separator-only input yields nothing."""
        assert parse_commands(line) == []

    def test_double_quoted_separators_are_content(self) -> None:
        """Separators inside double quotes do not split."""
        assert parse_commands('grep "a|b;c && d" file.txt') == [
            'grep "a|b;c && d" file.txt'
        ]

    def test_single_quoted_separators_are_content(self) -> None:
        """Separators inside single quotes do not split."""
        assert parse_commands("echo 'one; two' | wc") == ["echo 'one; two'", "wc"]

    def test_other_quote_kind_inside_quotes(self) -> None:
        """A single quote inside double quotes does not close them."""
        assert parse_commands("echo \"it's; fine\" ; ls") == [
            "echo \"it's; fine\"",
            "ls",
        ]

    def test_escaped_quote_does_not_open(self) -> None:
        """A backslash-escaped quote does not change quote state."""
        assert parse_commands('echo \\"x ; ls') == ['echo \\"x', "ls"]

    def test_escaped_backslash_before_quote(self) -> None:
        """An escaped backslash does not escape the following quote."""
        assert parse_commands('echo \\\\"a;b" ; ls') == ['echo \\\\"a;b"', "ls"]

    def test_backslash_escapes_quote_inside_single_quotes(self) -> None:
        """A backslash before a quote escapes it even inside single quotes."""
        line = "ls 'a\\' ; python evil.py #'"
        assert parse_commands(line) == [line]

    def test_unterminated_quote_swallows_rest(self) -> None:
        """An unterminated quote keeps the rest of the line together."""
        assert parse_commands('echo "abc; ls') == ['echo "abc; ls']

    def test_quotes_preserved_in_output(self) -> None:
        """Quote characters stay in the sub-command text."""
        assert parse_commands('git commit -m "message"') == ['git commit -m "message"']


class TestGetBaseCommand:
    """Tests for get_base_command."""

    def test_simple(self) -> None:
        """The first token is the base command."""
        assert get_base_command("ls -la") == "ls"

    def test_env_assignment_stripped(self) -> None:
        """A leading NAME=value assignment is skipped."""
        assert get_base_command("NODE_ENV=test npm run build") == "npm"

    def test_multiple_env_assignments_stripped(self) -> None:
        """Several leading assignments are skipped."""
        assert get_base_command("CI=1 DEBUG=true pytest -q") == "pytest"

    def test_assignment_only(self) -> None:
        """An assignment with nothing after it is itself the first token."""
        assert get_base_command("FOO=bar") == "FOO=bar"

    def test_assignment_later_in_line_kept(self) -> None:
        """Only leading assignments are stripped."""
        assert get_base_command("make CC=clang") == "make"

    def test_empty(self) -> None:
        """Empty input gives an empty base command."""
        assert get_base_command("") == ""
        assert get_base_command("   ") == ""
