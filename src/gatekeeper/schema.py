"""
Schema definitions for Gatekeeper.

This module defines the Pydantic models shared by every part of Gatekeeper:
- OperationMode: Which kind of agent session the policy is derived for
- SecurityConfig: The three rule lists (allow / block / require approval)
- CommandValidation: The verdict returned for a command line
- DEFAULT_SECURITY_CONFIG: The built-in policy

Design Decisions:
    - Models are frozen; rule lists are stored as tuples so no caller can
      mutate a config another caller is reading
    - Rule lists are ordered sets: order is preserved, duplicates dropped
    - Policies load from YAML and are validated before use
"""

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gatekeeper.errors import PolicyConfigError


# =============================================================================
# Enums
# =============================================================================


class OperationMode(str, Enum):
    """
    The kind of session an agent is running.

    The mode selects which extra approval rules are layered on top of
    the base configuration (see gatekeeper.policy.engine.get_security_config_for_mode).
    """

    DISCOVERY = "discovery"
    COVERAGE = "coverage"
    ENHANCEMENT = "enhancement"
    MIGRATION = "migration"


class Verdict(str, Enum):
    """Classification of a whole command line."""

    ALLOWED = "allowed"
    REQUIRES_APPROVAL = "requires_approval"
    EMPTY_COMMAND = "empty_command"
    BLOCKED = "blocked"
    NOT_ALLOWLISTED = "not_allowlisted"


# =============================================================================
# Default Rules
# =============================================================================


DEFAULT_ALLOWED_COMMANDS: tuple[str, ...] = (
    # Read-only operations
    "ls",
    "cat",
    "head",
    "tail",
    "grep",
    "find",
    "tree",
    "wc",
    "file",
    "stat",
    # Git read operations
    "git status",
    "git log",
    "git diff",
    "git show",
    "git branch",
    "git remote",
    # Git write operations (monitored)
    "git add",
    "git commit",
    "git checkout",
    "git switch",
    "git stash",
    # Package managers (read)
    "npm list",
    "npm outdated",
    "npm audit",
    "pnpm list",
    "yarn list",
    "pip list",
    "pip show",
    "go list",
    "cargo tree",
    # Package managers (install - monitored)
    "npm install",
    "npm ci",
    "pnpm install",
    "yarn install",
    "pip install",
    "go mod download",
    "cargo build",
    # Build and test
    "npm run",
    "npm test",
    "pnpm run",
    "pnpm test",
    "yarn run",
    "yarn test",
    "pytest",
    "go test",
    "cargo test",
    "vitest",
    "jest",
    # Coverage
    "coverage",
    "nyc",
    "c8",
    # Code analysis
    "eslint",
    "prettier",
    "tsc",
    "rustfmt",
    "gofmt",
    "black",
    "flake8",
    "mypy",
    # Process inspection
    "ps",
    "lsof",
    # File creation (monitored)
    "mkdir",
    "touch",
    "cp",
    "mv",
)

# Order matters: the first matching pattern is the one reported.
DEFAULT_BLOCKED_PATTERNS: tuple[str, ...] = (
    # Privilege escalation
    "sudo",
    "su -",
    "chmod 777",
    "chown root",
    # Destructive operations
    "rm -rf /",
    "rm -rf ~",
    "rm -rf *",
    "dd if=",
    "mkfs",
    ":(){",
    "fork bomb",
    # Git dangerous operations
    "git push --force",
    "git push -f",
    "git reset --hard origin",
    "git clean -fdx",
    # Database destruction
    "DROP DATABASE",
    "DROP TABLE",
    "TRUNCATE",
    "DELETE FROM.*WHERE 1",
    # Secrets
    "/etc/passwd",
    "/etc/shadow",
    ".ssh/id_",
    "aws configure",
    "gcloud auth",
    # Network exfiltration. These are regexes and "|" is alternation, so
    # any sub-command containing "curl", "bash", "wget" or "sh" matches.
    "curl.*|.*bash",
    "wget.*|.*sh",
    "nc -e",
    "netcat",
)

DEFAULT_REQUIRE_APPROVAL_FOR: tuple[str, ...] = (
    # Git push operations
    "git push",
    # File deletion
    "rm ",
    "unlink",
    # Database modifications
    "DELETE FROM",
    "UPDATE.*SET",
    "ALTER TABLE",
    # Process termination
    "kill",
    "pkill",
    # System modifications
    "chmod",
    "chown",
)


# =============================================================================
# Policy Models
# =============================================================================


class SecurityConfig(BaseModel):
    """
    The rule lists a command line is checked against.

    Attributes:
        allowed_commands: Exact base commands or full-text prefixes that may run
        blocked_patterns: Literal substrings, or regex sources containing ".*",
            whose match vetoes the whole command line
        require_approval_for: Prefixes that gate a command on external approval
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed_commands: tuple[str, ...] = Field(
        default=DEFAULT_ALLOWED_COMMANDS,
        description="Exact base commands or prefixes permitted to run",
    )
    blocked_patterns: tuple[str, ...] = Field(
        default=DEFAULT_BLOCKED_PATTERNS,
        description="Substrings or regexes that always block a command",
    )
    require_approval_for: tuple[str, ...] = Field(
        default=DEFAULT_REQUIRE_APPROVAL_FOR,
        description="Prefixes that require approval before running",
    )

    @field_validator("allowed_commands", "blocked_patterns", "require_approval_for")
    @classmethod
    def validate_rule_list(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject empty rules and drop duplicates, keeping first occurrence."""
        for rule in v:
            if not rule:
                msg = "Rules must be non-empty strings"
                raise ValueError(msg)
        return tuple(dict.fromkeys(v))

    def extend(
        self,
        allowed_commands: tuple[str, ...] | list[str] = (),
        blocked_patterns: tuple[str, ...] | list[str] = (),
        require_approval_for: tuple[str, ...] | list[str] = (),
    ) -> "SecurityConfig":
        """
        Return a new config with the given rules appended.

        The receiver is left untouched; the result owns fresh tuples.
        """
        return SecurityConfig(
            allowed_commands=(*self.allowed_commands, *allowed_commands),
            blocked_patterns=(*self.blocked_patterns, *blocked_patterns),
            require_approval_for=(*self.require_approval_for, *require_approval_for),
        )


DEFAULT_SECURITY_CONFIG = SecurityConfig()


# =============================================================================
# Runtime Models
# =============================================================================


class CommandValidation(BaseModel):
    """
    Result of validating a command line.

    Attributes:
        allowed: Whether the command may run
        requires_approval: Whether it may run only after external approval
        reason: Human-readable explanation (None for a plain allow)
        verdict: Machine-readable classification
        rule_matched: The rule text that decided the verdict, if any
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed: bool = Field(..., description="Whether the command may run")
    requires_approval: bool = Field(
        default=False,
        description="Whether the command needs approval first",
    )
    reason: str | None = Field(
        default=None,
        description="Human-readable explanation of the verdict",
    )
    verdict: Verdict = Field(
        default=Verdict.ALLOWED,
        description="Classification of the command line",
    )
    rule_matched: str | None = Field(
        default=None,
        description="Which rule caused this verdict",
    )

    @classmethod
    def allow(cls) -> "CommandValidation":
        """Every sub-command is on the allowlist."""
        return cls(allowed=True)

    @classmethod
    def empty(cls) -> "CommandValidation":
        """Nothing to run."""
        return cls(
            allowed=False,
            reason="Empty command",
            verdict=Verdict.EMPTY_COMMAND,
        )

    @classmethod
    def blocked(cls, pattern: str) -> "CommandValidation":
        """A sub-command matched a blocked pattern."""
        return cls(
            allowed=False,
            reason=f"Command matches blocked pattern: {pattern}",
            verdict=Verdict.BLOCKED,
            rule_matched=pattern,
        )

    @classmethod
    def approval(cls, command: str, pattern: str | None = None) -> "CommandValidation":
        """A sub-command may run only after approval."""
        return cls(
            allowed=True,
            requires_approval=True,
            reason=f"Command requires approval: {command}",
            verdict=Verdict.REQUIRES_APPROVAL,
            rule_matched=pattern,
        )

    @classmethod
    def not_allowlisted(cls, base_command: str) -> "CommandValidation":
        """A sub-command matched no rule at all."""
        return cls(
            allowed=False,
            reason=f"Command not in allowlist: {base_command}",
            verdict=Verdict.NOT_ALLOWLISTED,
        )


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_security_config(path: Path | str) -> SecurityConfig:
    """
    Load a security config from a YAML file.

    Rule lists omitted from the file keep their defaults.

    Args:
        path: Path to the YAML file

    Returns:
        Validated SecurityConfig

    Raises:
        PolicyConfigError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PolicyConfigError(
            message=f"Cannot read policy file {path}: {e}",
            path=str(path),
        ) from e

    return load_security_config_from_string(content, source=str(path))


def load_security_config_from_string(
    content: str,
    source: str = "<string>",
) -> SecurityConfig:
    """Load a security config from a YAML string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PolicyConfigError(
            message=f"Invalid YAML in {source}: {e}",
            path=source,
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise PolicyConfigError(
            message=f"Policy in {source} must be a mapping, got {type(data).__name__}",
            path=source,
        )

    try:
        return SecurityConfig.model_validate(data)
    except ValidationError as e:
        raise PolicyConfigError(
            message=f"Invalid policy in {source}: {e.error_count()} validation error(s)",
            path=source,
            validation_errors=[
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ],
        ) from e
