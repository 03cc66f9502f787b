"""
Command line tokenizer.

Splits a raw shell command line into the sub-commands the policy engine
evaluates one by one. This is not a shell parser: it only tracks quoting
well enough to know which separators are real.

Separators (outside quotes):
    |     pipe (so || splits twice, leaving an empty segment that is dropped)
    ;     sequence
    &&    and-chain (both characters consumed)

A lone & is kept as part of the sub-command.

Known limitation: a backslash escapes the next quote even inside single
quotes, where a POSIX shell treats it as literal. So in
"ls 'a\\' ; python evil.py #'" the ";" is read as quoted and the
line comes back as one sub-command, while a shell would run python.
Executors should not rely on this tokenizer for single-quoted input
containing backslashes.
"""

import re

_QUOTES = ('"', "'")

# Leading NAME=value assignments, e.g. "CI=1 DEBUG=true npm test"
_ENV_ASSIGNMENTS = re.compile(r"^(?:\w+=\S+\s+)+")


def _is_escaped(line: str, index: int) -> bool:
    """True if the character at index is preceded by an odd run of backslashes."""
    count = 0
    i = index - 1
    while i >= 0 and line[i] == "\\":
        count += 1
        i -= 1
    return count % 2 == 1


def parse_commands(line: str) -> list[str]:
    """
    Split a command line into trimmed, non-empty sub-commands.

    Quote characters stay in the sub-command text; only separators are
    removed. An empty result means there is nothing to run.

    Examples:
        "cat a.txt | grep x"       -> ["cat a.txt", "grep x"]
        "npm ci && npm test;"      -> ["npm ci", "npm test"]
        'grep "a|b" file'          -> ['grep "a|b" file']
    """
    commands: list[str] = []
    current: list[str] = []
    quote_char = ""

    def flush() -> None:
        segment = "".join(current).strip()
        if segment:
            commands.append(segment)
        current.clear()

    i = 0
    length = len(line)
    while i < length:
        char = line[i]

        if char in _QUOTES and not _is_escaped(line, i):
            if not quote_char:
                quote_char = char
            elif char == quote_char:
                quote_char = ""
            current.append(char)
            i += 1
            continue

        if not quote_char:
            if char in ("|", ";"):
                flush()
                i += 1
                continue
            if char == "&" and i + 1 < length and line[i + 1] == "&":
                flush()
                i += 2
                continue

        current.append(char)
        i += 1

    flush()
    return commands


def get_base_command(command: str) -> str:
    """
    Return the executable name of a sub-command.

    Leading environment assignments are skipped:
        "NODE_ENV=test npm run build" -> "npm"
    Returns "" when nothing is left.
    """
    remainder = _ENV_ASSIGNMENTS.sub("", command, count=1)
    parts = remainder.split(None, 1)
    return parts[0] if parts else ""
