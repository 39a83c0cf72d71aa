"""List-in/list-out rewrites applied to truncated shader code.

None of these mutate their input. Line numbers are indices into the list
passed in, which is usually a slice of the original source, so callers must
translate absolute positions first.
"""

from __future__ import annotations
import logging
import re
from collections import defaultdict

from shaderprobe.analysis.loops import scan_loops
from shaderprobe.analysis.scanner import (
    count_braces, find_statement_end, leading_indent, strip_comment,
)
from shaderprobe.models import ITER_VAR_PREFIX, SHADOW_VAR, LoopInfo, VarInfo

logger = logging.getLogger(__name__)

BODY_INDENT = "  "

_IF_DIRECTIVE_RE = re.compile(r"^\s*#\s*if(?:n?def)?\b")
_ENDIF_DIRECTIVE_RE = re.compile(r"^\s*#\s*endif\b")


def close_open_braces(lines: list[str], from_line: int = 0) -> list[str]:
    """Append one ``}`` line per block still open after ``from_line``."""
    result = list(lines)
    depth = count_braces(lines, from_line)
    for _ in range(max(depth, 0)):
        result.append("}")
    return result


def _guard(index: int, max_iter: int) -> str:
    return f"if (++{ITER_VAR_PREFIX}{index} > {max_iter}) break;"


def cap_loop_iterations(lines: list[str], from_line: int,
                        max_iter_by_index: dict[int, int]) -> list[str]:
    """Bound selected loops with an iteration counter.

    For each capped loop a counter ``int _dbgIter{k} = 0;`` is declared right
    before the header and the body starts with a guard that breaks out once
    the counter exceeds the cap. Braceless bodies get braces so the guard
    and the original statement stay inside the loop.
    """
    if not max_iter_by_index:
        return list(lines)

    before = defaultdict(list)     # line -> new lines inserted above it
    after = defaultdict(list)      # line -> new lines inserted below it
    closers = defaultdict(list)    # line -> "}" lines closing braceless bodies
    inline = defaultdict(list)     # line -> (column, text) splices

    for rec in scan_loops(lines, from_line):
        loop = rec.info
        max_iter = max_iter_by_index.get(loop.loop_index)
        if max_iter is None:
            continue

        indent = leading_indent(lines[loop.line_number])
        guard = _guard(loop.loop_index, max_iter)

        if rec.braceless:
            closing = rec.header_line
            code = strip_comment(lines[closing])
            if code[rec.header_end + 1:].strip():
                # Body shares the line closing the header
                inline[closing].append((rec.header_end + 1, " { " + guard))
                if loop.end_line == closing:
                    inline[closing].append((len(code.rstrip()), " }"))
                else:
                    closers[loop.end_line].append(indent + "}")
            else:
                inline[closing].append((rec.header_end + 1, " {"))
                after[closing].append(indent + BODY_INDENT + guard)
                closers[loop.end_line].append(indent + "}")
        elif rec.open_line >= 0:
            open_text = strip_comment(lines[rec.open_line])
            if open_text[rec.open_col + 1:].strip():
                inline[rec.open_line].append((rec.open_col + 1, " " + guard))
            else:
                after[rec.open_line].append(indent + BODY_INDENT + guard)
        else:
            logger.debug("Cannot cap loop %d: body never opens", loop.loop_index)
            continue

        before[loop.line_number].append(f"{indent}int {ITER_VAR_PREFIX}{loop.loop_index} = 0;")
        logger.debug("Capped loop %d at line %d to %d iterations",
                     loop.loop_index, loop.line_number, max_iter)

    result = []
    for i, line in enumerate(lines):
        result.extend(before.get(i, ()))
        for col, text in sorted(inline.get(i, ()), reverse=True):
            line = line[:col] + text + line[col:]
        result.append(line)
        result.extend(after.get(i, ()))
        # Inner loops were enumerated later; close them first
        result.extend(reversed(closers.get(i, ())))
    return result


def insert_shadow_variable(lines: list[str], debug_line_index: int,
                           var_info: VarInfo,
                           containing_loops: list[LoopInfo]) -> tuple[list[str], str | None]:
    """Keep a loop-scoped value reachable after its loops end.

    Declares ``_dbgShadow`` before the outermost containing loop and copies
    the inspected variable into it right after the inspected statement, so the
    visualisation placed after the loop sees the last value written. Without
    containing loops the input comes back unchanged.
    """
    if not containing_loops:
        return list(lines), None

    outer = min(loop.line_number for loop in containing_loops)
    assign_after = find_statement_end(lines, debug_line_index)

    result = []
    for i, line in enumerate(lines):
        if i == outer:
            result.append(f"{leading_indent(line)}{var_info.type} {SHADOW_VAR};")
        result.append(line)
        if i == assign_after:
            indent = leading_indent(lines[debug_line_index], BODY_INDENT)
            result.append(f"{indent}{SHADOW_VAR} = {var_info.name};")
    return result, SHADOW_VAR


def close_open_conditionals(lines: list[str]) -> list[str]:
    """``#endif`` lines for every ``#if``/``#ifdef``/``#ifndef`` left open."""
    depth = 0
    for line in lines:
        if _IF_DIRECTIVE_RE.match(line):
            depth += 1
        elif _ENDIF_DIRECTIVE_RE.match(line) and depth:
            depth -= 1
    return ["#endif"] * depth
