"""
Policy Engine for Gatekeeper.

The Policy Engine is the gate between an agent and the host shell. Every
command line must be validated before it runs.

How it works:
    1. The line is split into sub-commands (|, ;, && outside quotes)
    2. Each sub-command, left to right, is checked:
       a. blocked pattern   -> the whole line is denied
       b. approval prefix   -> the whole line needs approval
       c. not allowlisted   -> the whole line is denied
    3. The first decisive sub-command ends evaluation; if none is decisive
       the line is allowed

Validation never raises. Callers that prefer exceptions use
PolicyEngine.enforce, which turns a non-allow verdict into the matching
GatekeeperError.

Security Note:
    The engine reasons over strings only. It does not run commands and
    does not confine processes; it is an advisory gate in front of an
    executor that must honor its verdicts.
"""

import logging

from gatekeeper.errors import (
    ApprovalRequiredError,
    CommandBlockedError,
    CommandDeniedError,
    EmptyCommandError,
    InvalidModeError,
    NotAllowlistedError,
    PathBlockedError,
)
from gatekeeper.paths import is_path_safe
from gatekeeper.policy.rules import (
    CompiledPattern,
    compile_blocked_patterns,
    find_approval_rule,
    is_allowed,
    matches_blocked,
)
from gatekeeper.policy.tokenizer import get_base_command, parse_commands
from gatekeeper.redact import sanitize_output
from gatekeeper.schema import (
    DEFAULT_SECURITY_CONFIG,
    CommandValidation,
    OperationMode,
    SecurityConfig,
    Verdict,
)

logger = logging.getLogger(__name__)


# Extra approval prefixes layered on per operation mode.
MODE_APPROVAL_OVERLAYS: dict[OperationMode, tuple[str, ...]] = {
    # Discovery is read-only: anything that changes the tree needs approval
    OperationMode.DISCOVERY: (
        "git add",
        "git commit",
        "mkdir",
        "touch",
        "cp",
        "mv",
    ),
    OperationMode.COVERAGE: (),
    OperationMode.ENHANCEMENT: (),
    # Migration changes dependencies: installs need approval
    OperationMode.MIGRATION: (
        "npm install",
        "pnpm install",
        "pip install",
        "go mod",
        "cargo add",
    ),
}


def coerce_mode(mode: OperationMode | str) -> OperationMode:
    """Convert a mode name to an OperationMode, rejecting unknown names."""
    if isinstance(mode, OperationMode):
        return mode
    try:
        return OperationMode(str(mode).lower())
    except ValueError:
        raise InvalidModeError(
            mode=str(mode),
            valid_modes=[m.value for m in OperationMode],
        ) from None


def get_security_config_for_mode(
    mode: OperationMode | str,
    base: SecurityConfig = DEFAULT_SECURITY_CONFIG,
) -> SecurityConfig:
    """
    Derive the effective config for an operation mode.

    The result is always a new SecurityConfig; base is never modified,
    so many sessions can derive from the same default concurrently.

    Raises:
        InvalidModeError: If mode is not one of the four operation modes
    """
    operation_mode = coerce_mode(mode)
    overlay = MODE_APPROVAL_OVERLAYS[operation_mode]
    return base.extend(require_approval_for=overlay)


def _evaluate(
    line: str,
    config: SecurityConfig,
    blocked: tuple[CompiledPattern, ...],
) -> CommandValidation:
    commands = parse_commands(line)
    if not commands:
        return CommandValidation.empty()

    for command in commands:
        pattern = matches_blocked(command, blocked)
        if pattern is not None:
            return CommandValidation.blocked(pattern)

        approval_rule = find_approval_rule(command, config.require_approval_for)
        if approval_rule is not None:
            return CommandValidation.approval(command, approval_rule)

        if not is_allowed(command, config.allowed_commands):
            return CommandValidation.not_allowlisted(get_base_command(command))

    return CommandValidation.allow()


def validate_command(
    line: str,
    config: SecurityConfig = DEFAULT_SECURITY_CONFIG,
) -> CommandValidation:
    """
    Validate a command line against a config.

    Args:
        line: The raw command line the agent wants to run
        config: The effective security config

    Returns:
        CommandValidation; never raises
    """
    blocked = compile_blocked_patterns(config.blocked_patterns)
    validation = _evaluate(line, config, blocked)
    logger.debug("validate %r -> %s", line, validation.verdict.value)
    return validation


class PolicyEngine:
    """
    A security config bound to its compiled rules.

    Usage:
        engine = PolicyEngine.for_mode("discovery", project_root="/srv/app")
        validation = engine.validate("npm test && git add .")
        if validation.requires_approval:
            # route to an approval gate
        elif not validation.allowed:
            # refuse

    Attributes:
        config: The SecurityConfig being enforced
        project_root: Root directory for path checks (optional)
    """

    def __init__(
        self,
        config: SecurityConfig = DEFAULT_SECURITY_CONFIG,
        project_root: str | None = None,
    ) -> None:
        """
        Initialize the engine and compile the blocked patterns.

        Args:
            config: The security config to enforce
            project_root: Directory that file access is confined to
        """
        self.config = config
        self.project_root = project_root
        self._blocked = compile_blocked_patterns(config.blocked_patterns)

    @classmethod
    def for_mode(
        cls,
        mode: OperationMode | str,
        base: SecurityConfig = DEFAULT_SECURITY_CONFIG,
        project_root: str | None = None,
    ) -> "PolicyEngine":
        """Build an engine for the effective config of an operation mode."""
        return cls(get_security_config_for_mode(mode, base), project_root=project_root)

    @property
    def compiled_patterns(self) -> tuple[CompiledPattern, ...]:
        """Blocked patterns as compiled at construction."""
        return self._blocked

    def validate(self, line: str) -> CommandValidation:
        """Validate a command line; never raises."""
        validation = _evaluate(line, self.config, self._blocked)
        logger.debug("validate %r -> %s", line, validation.verdict.value)
        return validation

    def enforce(self, line: str) -> CommandValidation:
        """
        Validate a command line and raise unless it may run right away.

        Returns:
            The validation, when the command is allowed without approval

        Raises:
            EmptyCommandError: Nothing to run
            CommandBlockedError: A sub-command matched a blocked pattern
            ApprovalRequiredError: The command must be approved first
            NotAllowlistedError: A sub-command is not on the allowlist
        """
        validation = self.validate(line)
        if validation.allowed and not validation.requires_approval:
            return validation

        error_class: type[CommandDeniedError] = {
            Verdict.EMPTY_COMMAND: EmptyCommandError,
            Verdict.BLOCKED: CommandBlockedError,
            Verdict.REQUIRES_APPROVAL: ApprovalRequiredError,
            Verdict.NOT_ALLOWLISTED: NotAllowlistedError,
        }.get(validation.verdict, CommandDeniedError)

        raise error_class(
            command=line,
            reason=validation.reason or "",
            rule=validation.rule_matched,
        )

    def check_path(self, path: str) -> bool:
        """Check a path against the engine's project root."""
        if self.project_root is None:
            msg = "PolicyEngine has no project_root; pass one to check paths"
            raise ValueError(msg)
        safe = is_path_safe(path, self.project_root)
        if not safe:
            logger.debug("path %r blocked for root %r", path, self.project_root)
        return safe

    def enforce_path(self, path: str) -> str:
        """
        Return path if it is safe to access.

        Raises:
            PathBlockedError: If the path is outside the root or sensitive
        """
        if not self.check_path(path):
            raise PathBlockedError(path=path, project_root=self.project_root or "")
        return path

    def sanitize(self, text: str) -> str:
        """Redact secrets from captured output."""
        return sanitize_output(text)
