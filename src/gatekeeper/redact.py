"""
Output redaction.

Scrubs secrets from captured stdout/stderr before it is logged, stored or
shown to a human approver. Patterns are applied in a fixed order and every
match is replaced with REDACTION_TOKEN. The token matches none of the
patterns, so sanitizing twice gives the same text as sanitizing once.
"""

import re

REDACTION_TOKEN = "[REDACTED]"

SENSITIVE_OUTPUT_PATTERNS: tuple[re.Pattern[str], ...] = (
    # API keys, tokens, secrets, passwords: key=value or key: value
    re.compile(
        r"(?:api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?[\w-]+['\"]?",
        re.IGNORECASE,
    ),
    # AWS access key ids
    re.compile(r"AKIA[0-9A-Z]{16}"),
    # PEM private key blocks
    re.compile(
        r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----"
        r".*?"
        r"-----END (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----",
        re.DOTALL,
    ),
    # Database and cache connection strings
    re.compile(
        r"(?:mongodb(?:\+srv)?|postgres(?:ql)?|mysql|rediss?)://\S+",
        re.IGNORECASE,
    ),
)


def sanitize_output(text: str) -> str:
    """
    Replace every secret-looking substring of text with REDACTION_TOKEN.

    Returns text unchanged when nothing matches. Never raises.
    """
    sanitized = text
    for pattern in SENSITIVE_OUTPUT_PATTERNS:
        sanitized = pattern.sub(REDACTION_TOKEN, sanitized)
    return sanitized
