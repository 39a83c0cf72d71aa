"""Loop topology: every for/while loop of a function, in source order.

``scan_loops`` is the one canonical enumeration. Loop indices come from the
order headers appear in the text, counted across the whole function body
regardless of nesting, so the containment filter (``extract_loops``) and the
iteration capper always agree on which loop is which.
"""

from __future__ import annotations
import re
from dataclasses import dataclass

from shaderprobe.analysis.scanner import (
    find_block_end, find_statement_end, strip_comment,
)
from shaderprobe.models import LoopInfo

_LOOP_HEADER_RE = re.compile(r"^(\s*)(for|while)\s*\(")


@dataclass
class LoopRecord:
    """A loop plus where its body opens, as needed for code injection."""
    info: LoopInfo
    header_line: int = -1   # line holding the header's closing ")"
    header_end: int = -1    # column of that ")" (-1: the header never closes)
    open_line: int = -1     # line holding the body's "{" (-1: braceless or never opened)
    open_col: int = -1
    braceless: bool = False


def _closing_paren(line: str, start: int, depth: int = 0) -> int:
    """Column of the ")" that brings ``depth`` open parentheses back to zero."""
    for col in range(start, len(line)):
        ch = line[col]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return col
    return -1


def match_loop_header(line: str) -> tuple[str, int] | None:
    """Return ``(header_text, close_col)`` for a for/while header line.

    The ``while (...);`` tail of a do-while loop is not a header. When the
    condition does not close on this line, ``close_col`` is -1 and the header
    text runs to the end of the line.
    """
    code = strip_comment(line)
    m = _LOOP_HEADER_RE.match(code)
    if m is None:
        return None
    open_idx = code.index("(", m.end(2))
    close = _closing_paren(code, open_idx)
    if close < 0:
        return code.strip(), -1
    if code[close + 1:].strip().startswith(";"):
        return None
    return code[m.end(1):close + 1], close


def _braceless_body_end(lines: list[str], body_line: int, body_col: int = 0) -> int:
    """Last line of the single statement forming a braceless loop body."""
    body = strip_comment(lines[body_line])[body_col:]
    if match_loop_header(body) is not None or re.match(r"^\s*if\s*\(", body):
        if "{" in body or (body_line + 1 < len(lines) and "{" in lines[body_line + 1]):
            end = find_block_end(lines, body_line)
            return end if end >= 0 else body_line
        if body.rstrip().endswith(")") and body_line + 1 < len(lines):
            # Nested braceless header: its body is the next line
            return _braceless_body_end(lines, body_line + 1)
    return find_statement_end(lines, body_line)


def scan_loops(lines: list[str], function_start: int,
               function_end: int | None = None) -> list[LoopRecord]:
    """Enumerate every loop after ``function_start``, outermost/earliest first.

    Braces are tracked with a stack of open loops; a loop whose header has
    no "{" on the same line binds to the next line that starts with one.
    A header whose parentheses stay open is followed over the next lines,
    and the body is only looked for after its closing ")". Loops whose body
    never closes keep ``end_line == -1``.
    """
    if function_end is None or function_end < 0:
        last = len(lines) - 1
    else:
        last = min(function_end, len(lines) - 1)

    records: list[LoopRecord] = []
    stack: list[tuple[LoopRecord, int]] = []
    pending: LoopRecord | None = None
    open_header: tuple[LoopRecord, int] | None = None   # record, unclosed "(" count
    depth = 0

    for i in range(function_start + 1, last + 1):
        line = lines[i]
        code = strip_comment(line)
        scan_from = 0
        rec = None

        if open_header is not None:
            rec, parens = open_header
            close = _closing_paren(code, 0, parens)
            if close < 0:
                rec.info.header += " " + code.strip()
                open_header = (rec, parens + code.count("(") - code.count(")"))
                continue
            rec.info.header += " " + code[:close + 1].strip()
            open_header = None
        else:
            if pending is not None and code.strip():
                if not code.strip().startswith("{"):
                    # Header without braces: the body is the next statement
                    pending.braceless = True
                    pending.info.end_line = _braceless_body_end(lines, i)
                    pending = None

            header = match_loop_header(line)
            if header is not None:
                text, close = header
                rec = LoopRecord(LoopInfo(loop_index=len(records), line_number=i, header=text))
                records.append(rec)
                if close < 0:
                    open_header = (rec, code.count("(") - code.count(")"))
                    continue

        if rec is not None:
            rec.header_line = i
            rec.header_end = close
            rest = code[close + 1:].strip()
            if rest.startswith(";"):
                # "while (...);" closing a do-while split over lines
                records.pop()
            elif not rest or rest.startswith("{"):
                pending = rec
            else:
                rec.braceless = True
                rec.info.end_line = _braceless_body_end(lines, i, close + 1)
            scan_from = close + 1

        for col in range(scan_from, len(code)):
            ch = code[col]
            if ch == "{":
                depth += 1
                if pending is not None:
                    pending.open_line = i
                    pending.open_col = col
                    stack.append((pending, depth))
                    pending = None
            elif ch == "}":
                if stack and stack[-1][1] == depth:
                    done, _ = stack.pop()
                    done.info.end_line = i
                depth -= 1

    return records


def enumerate_loops(lines: list[str], function_start: int,
                    function_end: int | None = None) -> list[LoopInfo]:
    return [rec.info for rec in scan_loops(lines, function_start, function_end)]


def extract_loops(lines: list[str], function_start: int, target_line: int,
                  function_end: int | None = None) -> list[LoopInfo]:
    """Loops whose body contains ``target_line``, outermost first.

    Indices stay those of the full enumeration, so the second loop of a
    function keeps index 1 even when the first loop does not contain the
    target.
    """
    if function_start < 0:
        return []
    if function_end is None:
        function_end = find_block_end(lines, function_start)
    containing = []
    for rec in scan_loops(lines, function_start, function_end):
        loop = rec.info
        if rec.header_line >= target_line or loop.end_line < 0:
            continue
        # A braceless body ends on its own last statement line
        if target_line < loop.end_line or (rec.braceless and target_line == loop.end_line):
            containing.append(loop)
    return containing
