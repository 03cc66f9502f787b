"""
Gatekeeper - Command and resource policy engine for autonomous coding agents.

Gatekeeper sits between an LLM-driven worker and the host project. It
provides:
- Command validation (block / require approval / allow) for shell lines
- Path containment checks against a declared project root
- Secret redaction for captured process output
- Per-mode policy overlays derived from a frozen default

Example usage:
    >>> from gatekeeper import validate_command
    >>> validate_command("ls -la").allowed
    True

    $ gatekeeper check "npm test && git push" --mode discovery
"""

from gatekeeper.paths import is_path_safe, resolve_path
from gatekeeper.policy import PolicyEngine, get_security_config_for_mode, validate_command
from gatekeeper.redact import REDACTION_TOKEN, sanitize_output
from gatekeeper.schema import (
    DEFAULT_SECURITY_CONFIG,
    CommandValidation,
    OperationMode,
    SecurityConfig,
    Verdict,
    load_security_config,
)

__version__ = "0.1.0"
__author__ = "Gatekeeper Contributors"

__all__ = [
    "DEFAULT_SECURITY_CONFIG",
    "REDACTION_TOKEN",
    "CommandValidation",
    "OperationMode",
    "PolicyEngine",
    "SecurityConfig",
    "Verdict",
    "__author__",
    "__version__",
    "get_security_config_for_mode",
    "is_path_safe",
    "load_security_config",
    "resolve_path",
    "sanitize_output",
    "validate_command",
]
