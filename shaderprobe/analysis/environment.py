"""Variable type environment: which names are visible at a line, and their types."""

from __future__ import annotations
import re

from shaderprobe.analysis.functions import parse_parameters
from shaderprobe.analysis.scanner import strip_comment
from shaderprobe.builtins.types import TYPE_PATTERN, is_value_type
from shaderprobe.models import FunctionInfo

# "const highp vec3 a = ..., b;" -> type, then the declarator list
DECL_RE = re.compile(
    rf"^\s*(?:const\s+)?(?:(?:highp|mediump|lowp)\s+)?"
    rf"({TYPE_PATTERN})\s+([A-Za-z_]\w*\s*(?:\[[^\]]*\]\s*)?(?:[=;,]|$).*)$"
)

_FOR_INIT_RE = re.compile(r"^\s*for\s*\(([^;]*);")
_DECLARATOR_NAME_RE = re.compile(r"^\s*([A-Za-z_]\w*)")


def split_top_level(text: str, sep: str = ",") -> list[str]:
    """Split on ``sep`` only where no parenthesis or bracket is open."""
    parts = []
    depth = 0
    current = []
    for ch in text:
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def parse_declaration(text: str) -> list[tuple[str, str]]:
    """Return ``(name, type)`` pairs declared by a statement, in order.

    Handles ``float a;``, ``vec3 c = f(x, y), d;`` and the init clause of
    ``for (int i = 0; ...)``.
    """
    code = strip_comment(text)
    m = _FOR_INIT_RE.match(code)
    if m:
        code = m.group(1) + ";"
    m = DECL_RE.match(code)
    if m is None:
        return []
    type_name, rest = m.group(1), m.group(2)
    rest = rest.split(";", 1)[0]
    decls = []
    for declarator in split_top_level(rest):
        dm = _DECLARATOR_NAME_RE.match(declarator)
        if dm:
            decls.append((dm.group(1), type_name))
    return decls


def build_variable_type_map(lines: list[str], target_line: int,
                            function_info: FunctionInfo) -> dict[str, str]:
    """Names visible at ``target_line`` mapped to their declared types.

    Parameters of the enclosing function come first; declarations from the
    function start through the target line (inclusive) follow, later ones
    overwriting earlier ones. Without an enclosing function the scan starts
    at the top of the source.
    """
    var_types: dict[str, str] = {}
    scan_from = 0

    if function_info.found:
        for param in parse_parameters(lines[function_info.start]):
            if is_value_type(param.type_name):
                var_types[param.name] = param.type_name
        scan_from = function_info.start + 1

    for i in range(scan_from, min(target_line, len(lines) - 1) + 1):
        for name, type_name in parse_declaration(lines[i]):
            var_types[name] = type_name

    return var_types
