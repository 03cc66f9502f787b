"""
Integration tests for the Gatekeeper CLI.

Tests cover:
- check: exit codes and JSON output for each verdict
- check-path: safe and blocked paths
- sanitize: stdin and file input
- show-policy: mode overlays and custom policy files
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from gatekeeper import __version__
from gatekeeper.cli import EXIT_ALLOWED, EXIT_APPROVAL, EXIT_DENIED, app

runner = CliRunner()


@pytest.fixture
def policy_file(temp_dir: Path, sample_policy_yaml: str) -> Path:
    """Write the sample policy to disk."""
    path = temp_dir / "policy.yaml"
    path.write_text(sample_policy_yaml)
    return path


class TestVersion:
    """Tests for --version."""

    def test_version(self) -> None:
        """--version prints the version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestCheckCommand:
    """Tests for `gatekeeper check`."""

    def test_allowed(self) -> None:
        """Allowed commands exit 0."""
        result = runner.invoke(app, ["check", "ls -la"])
        assert result.exit_code == EXIT_ALLOWED
        assert "allowed" in result.stdout

    def test_blocked(self) -> None:
        """Blocked commands exit 1 and show the reason."""
        result = runner.invoke(app, ["check", "sudo ls"])
        assert result.exit_code == EXIT_DENIED
        assert "blocked pattern: sudo" in result.stdout

    def test_requires_approval(self) -> None:
        """Gated commands exit 2."""
        result = runner.invoke(app, ["check", "rm file.txt"])
        assert result.exit_code == EXIT_APPROVAL
        assert "requires approval" in result.stdout

    def test_empty(self) -> None:
        """Empty commands are denied."""
        result = runner.invoke(app, ["check", ""])
        assert result.exit_code == EXIT_DENIED

    def test_mode_overlay(self) -> None:
        """--mode applies the overlay."""
        assert runner.invoke(app, ["check", "git add ."]).exit_code == EXIT_ALLOWED
        result = runner.invoke(app, ["check", "git add .", "--mode", "discovery"])
        assert result.exit_code == EXIT_APPROVAL

    def test_json_output(self) -> None:
        """--json prints the validation."""
        result = runner.invoke(app, ["check", "npm test && sudo rm -rf /", "--json"])
        assert result.exit_code == EXIT_DENIED
        data = json.loads(result.stdout)
        assert data["command"] == "npm test && sudo rm -rf /"
        assert data["allowed"] is False
        assert data["reason"] == "Command matches blocked pattern: sudo"
        assert data["verdict"] == "blocked"

    def test_custom_policy(self, policy_file: Path) -> None:
        """--policy replaces the default rules."""
        result = runner.invoke(app, ["check", "npm test", "--policy", str(policy_file), "--json"])
        assert result.exit_code == EXIT_DENIED
        assert json.loads(result.stdout)["reason"] == "Command not in allowlist: npm"

    def test_invalid_policy(self, temp_dir: Path) -> None:
        """An invalid policy file exits 1 with an error."""
        bad = temp_dir / "bad.yaml"
        bad.write_text("allow_all: true\n")
        result = runner.invoke(app, ["check", "ls", "--policy", str(bad), "--json"])
        assert result.exit_code == EXIT_DENIED
        data = json.loads(result.stdout)
        assert data["error"] is True
        assert data["error_type"] == "PolicyConfigError"

    def test_non_utf8_policy(self, temp_dir: Path) -> None:
        """A policy file that is not UTF-8 is reported, not a traceback."""
        bad = temp_dir / "latin1.yaml"
        bad.write_bytes(b"allowed_commands: [\xff]\n")
        result = runner.invoke(app, ["check", "ls", "--policy", str(bad), "--json"])
        assert result.exit_code == EXIT_DENIED
        assert json.loads(result.stdout)["error_type"] == "PolicyConfigError"


class TestCheckPathCommand:
    """Tests for `gatekeeper check-path`."""

    def test_safe(self) -> None:
        """Paths inside the root exit 0."""
        result = runner.invoke(app, ["check-path", "src/index.ts", "--root", "/home/user/project"])
        assert result.exit_code == EXIT_ALLOWED
        assert "safe" in result.stdout

    def test_blocked(self) -> None:
        """Traversal out of the root exits 1."""
        result = runner.invoke(
            app, ["check-path", "../../etc/passwd", "--root", "/home/user/project"]
        )
        assert result.exit_code == EXIT_DENIED
        assert "blocked" in result.stdout

    def test_json_output(self) -> None:
        """--json includes the resolved path."""
        result = runner.invoke(
            app,
            ["check-path", "src/../lib/a.py", "--root", "/srv/app", "--json"],
        )
        assert result.exit_code == EXIT_ALLOWED
        data = json.loads(result.stdout)
        assert data["safe"] is True
        assert data["resolved"] == "/srv/app/lib/a.py"


class TestSanitizeCommand:
    """Tests for `gatekeeper sanitize`."""

    def test_stdin(self) -> None:
        """Secrets on stdin are redacted."""
        result = runner.invoke(app, ["sanitize"], input="ok\napi_key=abc123\n")
        assert result.exit_code == 0
        assert result.stdout == "ok\n[REDACTED]\n"

    def test_file(self, temp_dir: Path) -> None:
        """Secrets in a file are redacted."""
        log = temp_dir / "out.log"
        log.write_text("connect mongodb://u:p@h/db\n")
        result = runner.invoke(app, ["sanitize", str(log)])
        assert result.exit_code == 0
        assert result.stdout == "connect [REDACTED]\n"

    def test_binary_file(self, temp_dir: Path) -> None:
        """Output that is not valid UTF-8 is decoded with replacement characters."""
        log = temp_dir / "out.bin"
        log.write_bytes(b"token=abc \xff\xfe binary\n")
        result = runner.invoke(app, ["sanitize", str(log)])
        assert result.exit_code == 0
        assert result.stdout == "[REDACTED] \ufffd\ufffd binary\n"

    def test_binary_stdin(self) -> None:
        """Binary stdin is sanitized rather than rejected."""
        result = runner.invoke(app, ["sanitize"], input=b"\x80ok password=hunter2\n")
        assert result.exit_code == 0
        assert result.stdout == "\ufffdok [REDACTED]\n"


class TestShowPolicyCommand:
    """Tests for `gatekeeper show-policy`."""

    def test_json_default(self) -> None:
        """--json dumps the rule lists."""
        result = runner.invoke(app, ["show-policy", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert "ls" in data["allowed_commands"]
        assert "sudo" in data["blocked_patterns"]
        assert "mkdir" not in data["require_approval_for"]

    def test_json_with_mode(self) -> None:
        """--mode shows the overlaid approval rules."""
        result = runner.invoke(app, ["show-policy", "--mode", "migration", "--json"])
        assert result.exit_code == 0
        assert "cargo add" in json.loads(result.stdout)["require_approval_for"]

    def test_tables(self, policy_file: Path) -> None:
        """The table view lists every rule."""
        result = runner.invoke(app, ["show-policy", "--policy", str(policy_file)])
        assert result.exit_code == 0
        assert "Blocked patterns" in result.stdout
        assert "DROP.*TABLE" in result.stdout
        assert "git status" in result.stdout

    def test_malformed_pattern_marked(self, temp_dir: Path) -> None:
        """Patterns that failed to compile are flagged in the table."""
        policy = temp_dir / "bad_regex.yaml"
        policy.write_text("blocked_patterns:\n  - \"evil.*(\"\n  - sudo\n")
        result = runner.invoke(app, ["show-policy", "--policy", str(policy)])
        assert result.exit_code == 0
        assert "literal*" in result.stdout
        assert "invalid regex" in result.stdout

    def test_no_malformed_footnote_by_default(self) -> None:
        """Valid policies print no footnote."""
        result = runner.invoke(app, ["show-policy"])
        assert result.exit_code == 0
        assert "invalid regex" not in result.stdout

    def test_unknown_mode_rejected(self) -> None:
        """Only the four modes are accepted."""
        result = runner.invoke(app, ["show-policy", "--mode", "production"])
        assert result.exit_code != 0
