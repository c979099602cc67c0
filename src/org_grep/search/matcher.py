"""Apply a compiled pattern to the lines of a file."""

import re
from typing import BinaryIO, Callable, Iterable, List, Optional

# Receives the values of one match: the line, or the capture groups
Emit = Callable[[List[str]], None]

TEXT_ENCODING = "utf-8"
# Undecodable bytes survive a round trip to the output stream unchanged
TEXT_ERRORS = "surrogateescape"

# Same heuristic as git: a NUL byte near the start marks binary content
BINARY_SNIFF_BYTES = 8000


def looks_binary(head: bytes) -> bool:
    return b"\0" in head[:BINARY_SNIFF_BYTES]


def match_line(pattern: "re.Pattern[str]", line: str) -> Optional[List[str]]:
    """Match a single line.

    Returns None when the line does not match. Otherwise returns the whole
    line for patterns without capture groups, or one value per capture group
    (the overall match excluded, non-participating groups as "").
    """
    match = pattern.search(line)
    if match is None:
        return None
    if pattern.groups == 0:
        return [line]
    return list(match.groups(default=""))


def iter_lines(handle: BinaryIO) -> Iterable[str]:
    """Yield decoded lines without their ``\\n`` or ``\\r\\n`` terminator."""
    for raw in handle:
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        yield raw.decode(TEXT_ENCODING, TEXT_ERRORS)


def scan_lines(handle: BinaryIO, pattern: "re.Pattern[str]", emit: Emit) -> int:
    """Emit the values of every matching line of a file.

    Returns:
        Number of matching lines
    """
    matches = 0
    for line in iter_lines(handle):
        values = match_line(pattern, line)
        if values is not None:
            emit(values)
            matches += 1
    return matches
