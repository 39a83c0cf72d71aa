"""Line and brace scanning primitives shared by every analysis pass.

All positions are 0-based indices into a list of source lines. Nothing here
understands strings or block comments; braces are counted character by
character, exactly as the rest of the engine expects.
"""

from __future__ import annotations
import re

_INDENT_RE = re.compile(r"^(\s*)")

STATEMENT_LOOKAHEAD = 10


def brace_delta(line: str) -> int:
    """Net number of braces opened on a line."""
    return line.count("{") - line.count("}")


def count_braces(lines: list[str], start: int, stop: int | None = None) -> int:
    """Net brace depth accumulated over ``lines[start:stop]``."""
    depth = 0
    for line in lines[start:stop]:
        depth += brace_delta(line)
    return depth


def strip_comment(line: str) -> str:
    idx = line.find("//")
    return line[:idx] if idx >= 0 else line


_CONTROL_HEADER_RE = re.compile(r"^(?:\}\s*)?(?:(?:else\s+)?if|for|while|switch)\s*\(")
_BARE_CONTROL_RE = re.compile(r"^(?:\}\s*)?(?:else|do)$")


def _is_control_header(code: str) -> bool:
    """``if (...)``, ``else``, ``for (...)`` and friends with closed parentheses.

    A braceless body follows on the next line, so the header ends the
    statement before it.
    """
    if _BARE_CONTROL_RE.match(code):
        return True
    return (_CONTROL_HEADER_RE.match(code) is not None and code.endswith(")")
            and code.count("(") == code.count(")"))


def is_statement_complete(line: str) -> bool:
    """True when the line ends a statement or block, or carries no code.

    Preprocessor directives and closed control headers count as complete.
    """
    code = strip_comment(line).strip()
    return (not code or code.startswith("#") or code.endswith((";", "{", "}"))
            or _is_control_header(code))


def find_statement_start(lines: list[str], index: int,
                         lookbehind: int = STATEMENT_LOOKAHEAD) -> int:
    """First line of the (possibly multi-line) statement containing ``index``."""
    start = index
    for i in range(index - 1, max(index - lookbehind, 0) - 1, -1):
        if is_statement_complete(lines[i]):
            break
        start = i
    return start


def find_statement_end(lines: list[str], index: int,
                       lookahead: int = STATEMENT_LOOKAHEAD) -> int:
    """Line terminating the statement that starts on or covers ``index``.

    Returns ``index`` itself when it already ends the statement or when no
    terminating ``;`` shows up within the lookahead window.
    """
    if index >= len(lines) or is_statement_complete(lines[index]):
        return index
    for i in range(index + 1, min(index + lookahead, len(lines))):
        if strip_comment(lines[i]).strip().endswith(";"):
            return i
    return index


def find_block_end(lines: list[str], start: int) -> int:
    """Line on which the first block opened at or after ``start`` closes.

    Returns -1 when the scan runs off the end of the source first.
    """
    depth = 0
    opened = False
    for i in range(start, len(lines)):
        for ch in lines[i]:
            if ch == "{":
                depth += 1
                opened = True
            elif ch == "}":
                depth -= 1
                if opened and depth == 0:
                    return i
    return -1


def leading_indent(line: str, default: str = "") -> str:
    indent = _INDENT_RE.match(line).group(1)
    return indent or default
