"""
Command policy for Gatekeeper.

This package decides whether an agent may run a shell command line.

Key concepts:
    - Tokenizer: splits a line into sub-commands, respecting quotes
    - Rules: blocked patterns, approval prefixes and the allowlist
    - PolicyEngine: applies the rules to every sub-command with fixed
      precedence (block > approval > allowlist) and returns one verdict

Mode overlays derive a session's effective config from the default by
appending approval rules; the default itself is frozen.
"""

from gatekeeper.policy.engine import (
    MODE_APPROVAL_OVERLAYS,
    PolicyEngine,
    coerce_mode,
    get_security_config_for_mode,
    validate_command,
)
from gatekeeper.policy.rules import (
    CompiledPattern,
    PatternKind,
    compile_blocked_patterns,
    is_allowed,
    matches_blocked,
    requires_approval,
)
from gatekeeper.policy.tokenizer import get_base_command, parse_commands

__all__ = [
    "MODE_APPROVAL_OVERLAYS",
    "CompiledPattern",
    "PatternKind",
    "PolicyEngine",
    "coerce_mode",
    "compile_blocked_patterns",
    "get_base_command",
    "get_security_config_for_mode",
    "is_allowed",
    "matches_blocked",
    "parse_commands",
    "requires_approval",
    "validate_command",
]
