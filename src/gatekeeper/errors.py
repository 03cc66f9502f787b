"""
Exception hierarchy for Gatekeeper.

All Gatekeeper exceptions inherit from GatekeeperError, allowing callers to
catch every Gatekeeper-specific exception with a single except clause.

The validation functions themselves never raise: validate_command,
is_path_safe and sanitize_output are total and return structured results.
Exceptions are raised only by the enforcing helpers (PolicyEngine.enforce,
PolicyEngine.enforce_path), by policy loading and by mode coercion.

Exception Categories:
    - CommandDeniedError: A command line may not run as-is
    - PathBlockedError: A file path escapes the project root or is sensitive
    - PolicyConfigError: A policy file could not be loaded
    - InvalidModeError: An unknown operation mode was requested
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Command policy errors: 1xxx
ERROR_COMMAND_DENIED = 1001
ERROR_COMMAND_EMPTY = 1002
ERROR_COMMAND_BLOCKED = 1003
ERROR_COMMAND_NOT_ALLOWLISTED = 1004
ERROR_COMMAND_REQUIRES_APPROVAL = 1005

# Path errors: 2xxx
ERROR_PATH_BLOCKED = 2001

# Configuration errors: 3xxx
ERROR_CONFIG_INVALID = 3001
ERROR_CONFIG_INVALID_MODE = 3002


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class GatekeeperError(Exception):
    """
    Base exception for all Gatekeeper errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Command Errors
# =============================================================================


@dataclass
class CommandDeniedError(GatekeeperError):
    """
    Raised when a command line may not run without further action.

    Attributes:
        command: The full command line that was checked
        reason: The reason string from the validation
        rule: Which rule decided the verdict
    """

    command: str = ""
    reason: str = ""
    rule: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = self.reason or f"Command denied: {self.command}"
        if self.code == 0:
            self.code = ERROR_COMMAND_DENIED
        self.context.update({
            "command": self.command,
            "reason": self.reason,
            "rule": self.rule,
        })


@dataclass
class EmptyCommandError(CommandDeniedError):
    """Raised when a command line contains no sub-commands."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_COMMAND_EMPTY
        super().__post_init__()


@dataclass
class CommandBlockedError(CommandDeniedError):
    """Raised when a sub-command matches a blocked pattern."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_COMMAND_BLOCKED
        super().__post_init__()


@dataclass
class NotAllowlistedError(CommandDeniedError):
    """Raised when a sub-command matches no allowlist entry."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_COMMAND_NOT_ALLOWLISTED
        if not self.suggestion:
            self.suggestion = "Add the command to allowed_commands in policy"
        super().__post_init__()


@dataclass
class ApprovalRequiredError(CommandDeniedError):
    """
    Raised when a command must be approved before it runs.

    This is not a refusal: the caller should route the command to an
    approval gate and run it once approved.
    """

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if self.code == 0:
            self.code = ERROR_COMMAND_REQUIRES_APPROVAL
        if not self.suggestion:
            self.suggestion = "Request approval before running this command"
        super().__post_init__()


# =============================================================================
# Path Errors
# =============================================================================


@dataclass
class PathBlockedError(GatekeeperError):
    """Raised when a file path is not safe to access."""

    path: str = ""
    project_root: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Path blocked: {self.path}"
        if self.code == 0:
            self.code = ERROR_PATH_BLOCKED
        self.context.update({
            "path": self.path,
            "project_root": self.project_root,
        })


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class PolicyConfigError(GatekeeperError):
    """Raised when a policy file cannot be read, parsed or validated."""

    path: str = ""
    validation_errors: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid policy: {self.path}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context.update({
            "path": self.path,
            "validation_errors": self.validation_errors,
        })


@dataclass
class InvalidModeError(GatekeeperError):
    """Raised when an unknown operation mode is requested."""

    mode: str = ""
    valid_modes: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unknown operation mode: {self.mode}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID_MODE
        if not self.suggestion and self.valid_modes:
            self.suggestion = f"Use one of: {', '.join(self.valid_modes)}"
        self.context.update({
            "mode": self.mode,
            "valid_modes": self.valid_modes,
        })
