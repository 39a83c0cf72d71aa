"""Line classification: what, if anything, a source line assigns.

A line is matched against an ordered set of shape rules and tagged with a
``ShapeKind``. ``detect_variable_and_type`` turns that tag plus the type
environment into the variable to visualise.
"""

from __future__ import annotations
import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional

from shaderprobe.analysis.environment import parse_declaration
from shaderprobe.analysis.scanner import (
    find_statement_start, is_statement_complete, strip_comment,
    STATEMENT_LOOKAHEAD,
)
from shaderprobe.models import RETURN_VAR, VarInfo

logger = logging.getLogger(__name__)


class ShapeKind(enum.Enum):
    DECLARATION = "declaration"
    REASSIGNMENT = "reassignment"
    COMPOUND_ASSIGNMENT = "compound_assignment"
    MEMBER_MUTATION = "member_mutation"
    RETURN = "return"
    LOOP_HEADER = "loop_header"
    CONTROL_FLOW = "control_flow"
    OTHER = "other"


@dataclass
class LineShape:
    kind: ShapeKind
    name: Optional[str] = None
    type_name: Optional[str] = None   # declarations only
    op: str = "="
    accessor: str = ""                # ".xy", "[2]" for member mutations
    expression: str = ""


_ASSIGN_OP = r"(?:<<|>>|[-+*/%&|^])?="

_LOOP_RE = re.compile(r"^\s*(?:for|while)\s*\(")
_CONTROL_RE = re.compile(
    r"^\s*(?:\}\s*)?(?:if|else|do|switch|case|default|break|continue|discard)\b"
)
_RETURN_RE = re.compile(r"^\s*return\s+(.+?)\s*;")
_COMPOUND_RE = re.compile(r"^\s*([A-Za-z_]\w*)\s*((?:<<|>>|[-+*/%&|^])=)\s*(.*)$")
_REASSIGN_RE = re.compile(r"^\s*([A-Za-z_]\w*)\s*=(?!=)\s*(.*)$")
_MEMBER_RE = re.compile(
    rf"^\s*([A-Za-z_]\w*)((?:\s*\.\s*\w+|\s*\[[^\]]*\])+)\s*({_ASSIGN_OP})(?!=)\s*(.*)$"
)
_DECL_INIT_RE = re.compile(r"^[^=]*\b(\w+)\s*(?:\[[^\]]*\]\s*)?=(?!=)")


def classify_line(text: str) -> LineShape:
    """Tag a (joined) statement with its shape."""
    code = strip_comment(text).strip()
    if not code:
        return LineShape(ShapeKind.OTHER)

    if _LOOP_RE.match(code):
        return LineShape(ShapeKind.LOOP_HEADER)
    if _CONTROL_RE.match(code):
        return LineShape(ShapeKind.CONTROL_FLOW)

    decls = parse_declaration(code)
    if decls:
        m = _DECL_INIT_RE.match(code)
        names = dict(decls)
        if m is None or m.group(1) not in names:
            # Declared without an initializer: nothing to show yet
            return LineShape(ShapeKind.OTHER)
        name = m.group(1)
        expr = code.split("=", 1)[1].rstrip(";").strip()
        return LineShape(ShapeKind.DECLARATION, name, names[name], expression=expr)

    m = _REASSIGN_RE.match(code)
    if m:
        return LineShape(ShapeKind.REASSIGNMENT, m.group(1),
                         expression=m.group(2).rstrip(";").strip())

    m = _COMPOUND_RE.match(code)
    if m:
        return LineShape(ShapeKind.COMPOUND_ASSIGNMENT, m.group(1), op=m.group(2),
                         expression=m.group(3).rstrip(";").strip())

    m = _MEMBER_RE.match(code)
    if m:
        accessor = re.sub(r"\s+", "", m.group(2))
        return LineShape(ShapeKind.MEMBER_MUTATION, m.group(1), op=m.group(3),
                         accessor=accessor, expression=m.group(4).rstrip(";").strip())

    m = _RETURN_RE.match(code)
    if m:
        return LineShape(ShapeKind.RETURN, expression=m.group(1))

    return LineShape(ShapeKind.OTHER)


def join_statement(lines: list[str], line_index: int) -> str:
    """Join the physical lines of the statement covering ``line_index``."""
    current_incomplete = not is_statement_complete(lines[line_index])
    prev_incomplete = line_index > 0 and not is_statement_complete(lines[line_index - 1])
    if not (current_incomplete or prev_incomplete):
        return lines[line_index]

    start = find_statement_start(lines, line_index)
    end = line_index
    for i in range(line_index, min(line_index + STATEMENT_LOOKAHEAD, len(lines))):
        if strip_comment(lines[i]).strip().endswith(";"):
            end = i
            break
    statement = " ".join(strip_comment(l).strip() for l in lines[start:end + 1])
    logger.debug("Multi-line statement (lines %d-%d): %s", start, end, statement)
    return statement


def detect_variable_and_type(
    line_text: str,
    var_types: dict[str, str],
    function_return_type: str | None = None,
    lines: list[str] | None = None,
    line_index: int | None = None,
) -> VarInfo | None:
    """Work out which variable a line writes, and its type.

    When ``lines`` and ``line_index`` are supplied, a statement spread over
    several physical lines is joined before matching, so hovering any of
    its lines resolves to the same variable.
    """
    statement = line_text
    if lines is not None and line_index is not None and 0 <= line_index < len(lines):
        statement = join_statement(lines, line_index)

    shape = classify_line(statement)
    logger.debug("Line shape %s for %r", shape.kind.value, statement.strip())

    if shape.kind is ShapeKind.DECLARATION:
        return VarInfo(shape.name, shape.type_name)

    if shape.kind in (ShapeKind.REASSIGNMENT, ShapeKind.COMPOUND_ASSIGNMENT,
                      ShapeKind.MEMBER_MUTATION):
        var_type = var_types.get(shape.name)
        if var_type is None:
            logger.debug("'%s' is not in scope", shape.name)
            return None
        return VarInfo(shape.name, var_type)

    if shape.kind is ShapeKind.RETURN:
        if function_return_type and function_return_type != "void":
            return VarInfo(RETURN_VAR, function_return_type)
        return None

    return None
