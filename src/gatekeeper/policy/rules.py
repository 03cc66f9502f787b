"""
Rule matching for single sub-commands.

Three rule lists are consulted by the policy engine:
    - blocked patterns: substring or regex match anywhere in the sub-command
    - approval prefixes: the sub-command starts with the rule
    - allowlist: exact base command, or the sub-command starts with the rule

All comparisons are case-insensitive, except the exact base-command
allowlist check. Lists are scanned in order and the first hit wins, so
list order decides which rule text is reported.

Blocked patterns are compiled once per pattern list. A pattern is treated
as a regex only if it contains ".*"; a regex that fails to compile is
logged and degrades to a literal substring match so it can never be
silently skipped. Regexes are compiled in their search form (see
search_form), while the text as written is what gets reported.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Iterable

from gatekeeper.policy.tokenizer import get_base_command

logger = logging.getLogger(__name__)

REGEX_MARKER = ".*"

_QUANTIFIER_CHARS = frozenset("*+?{")


def _split_alternatives(pattern: str) -> list[str]:
    """Split a regex on "|" outside groups, classes and escapes."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    in_class = False
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\":
            current.append(pattern[i : i + 2])
            i += 2
            continue
        if in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "|" and depth == 0:
            parts.append("".join(current))
            current = []
            i += 1
            continue
        current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


def _strip_unanchored_wildcards(alternative: str) -> str:
    # re.search is unanchored, so ".*" at either end of an alternative
    # never changes whether it matches, only how long the scan takes.
    while alternative.startswith(REGEX_MARKER) and alternative[2:3] not in _QUANTIFIER_CHARS:
        alternative = alternative[2:]
    while alternative.endswith(REGEX_MARKER):
        head = alternative[:-2]
        trailing_backslashes = len(head) - len(head.rstrip("\\"))
        if trailing_backslashes % 2 == 1:
            break
        alternative = head
    return alternative


def search_form(pattern: str) -> str:
    """
    Rewrite a regex into an equivalent one for unanchored search.

    Leading and trailing ".*" are dropped from each top-level alternative,
    so "curl.*|.*bash" becomes "curl|bash". Searching with the rewritten
    form takes time linear in the command length.
    """
    return "|".join(_strip_unanchored_wildcards(a) for a in _split_alternatives(pattern))


class PatternKind(str, Enum):
    """How a blocked pattern is matched."""

    LITERAL = "literal"
    REGEX = "regex"


@dataclass(frozen=True)
class CompiledPattern:
    """
    A blocked pattern decided once at load time.

    Attributes:
        text: The pattern as written in the policy (reported in reasons)
        kind: LITERAL or REGEX
        regex: Compiled case-insensitive regex (REGEX only)
        malformed: True if the text looked like a regex but did not compile
    """

    text: str
    kind: PatternKind
    regex: re.Pattern[str] | None = None
    malformed: bool = False

    def matches(self, command: str) -> bool:
        """Check the pattern against a raw sub-command."""
        if self.kind is PatternKind.REGEX and self.regex is not None:
            return self.regex.search(command) is not None
        return self.text.lower() in command.lower()


def compile_pattern(text: str) -> CompiledPattern:
    """Classify and compile one blocked pattern."""
    if REGEX_MARKER not in text:
        return CompiledPattern(text=text, kind=PatternKind.LITERAL)

    try:
        regex = re.compile(text, re.IGNORECASE)
    except re.error as e:
        logger.warning(
            "Blocked pattern %r is not a valid regex (%s); matching it literally",
            text,
            e,
        )
        return CompiledPattern(text=text, kind=PatternKind.LITERAL, malformed=True)

    rewritten = search_form(text)
    if rewritten != text:
        try:
            regex = re.compile(rewritten, re.IGNORECASE)
        except re.error:
            logger.debug("Keeping blocked pattern %r unrewritten", text)

    return CompiledPattern(text=text, kind=PatternKind.REGEX, regex=regex)


@lru_cache(maxsize=64)
def compile_blocked_patterns(patterns: tuple[str, ...]) -> tuple[CompiledPattern, ...]:
    """Compile a whole pattern list, memoised per list."""
    return tuple(compile_pattern(p) for p in patterns)


def _as_compiled(
    patterns: Iterable[str] | Iterable[CompiledPattern],
) -> tuple[CompiledPattern, ...]:
    items = tuple(patterns)
    if all(isinstance(p, CompiledPattern) for p in items):
        return items  # type: ignore[return-value]
    return compile_blocked_patterns(
        tuple(p.text if isinstance(p, CompiledPattern) else p for p in items)
    )


def matches_blocked(
    command: str,
    patterns: Iterable[str] | Iterable[CompiledPattern],
) -> str | None:
    """
    Return the text of the first blocked pattern matching the sub-command.

    Args:
        command: A single sub-command
        patterns: Pattern strings, or patterns already compiled

    Returns:
        The matching pattern text, or None
    """
    for pattern in _as_compiled(patterns):
        if pattern.matches(command):
            return pattern.text
    return None


def find_approval_rule(command: str, patterns: Iterable[str]) -> str | None:
    """Return the first approval prefix the sub-command starts with."""
    lower_command = command.lower()
    for pattern in patterns:
        if lower_command.startswith(pattern.lower()):
            return pattern
    return None


def requires_approval(command: str, patterns: Iterable[str]) -> bool:
    """Check whether the sub-command starts with any approval prefix."""
    return find_approval_rule(command, patterns) is not None


def is_allowed(command: str, allowed_commands: Iterable[str]) -> bool:
    """
    Check the sub-command against the allowlist.

    An entry allows the command if it equals the base command exactly
    ("ls" allows "ls -la"), or if the command text starts with it
    ("git status" allows "git status --short").
    """
    base_command = get_base_command(command)
    lower_command = command.lower()

    for allowed in allowed_commands:
        if allowed == base_command:
            return True
        if lower_command.startswith(allowed.lower()):
            return True
    return False
