"""Function boundary resolution and function-header parsing.

Headers are recognised line by line (``returnType name(``); the parameter
list between the header's parentheses is parsed with a small lark grammar.
"""

from __future__ import annotations
import logging
import re
from pathlib import Path

from lark import Lark, Transformer, Token
from lark.exceptions import LarkError

from shaderprobe.analysis.scanner import brace_delta, find_block_end
from shaderprobe.builtins.types import is_value_type
from shaderprobe.models import ENTRY_FUNCTION, FunctionInfo, Param

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).parent.parent / "grammar" / "glsl_params.lark"

_parser = Lark(
    _GRAMMAR_PATH.read_text(encoding="utf-8"),
    parser="lalr",
)

# Words that can precede "name(" without the line being a function header
_NOT_RETURN_TYPES = frozenset({
    "return", "else", "if", "for", "while", "do", "switch", "case",
    "struct", "uniform", "define", "in", "out", "inout", "new",
})

_HEADER_RE = re.compile(
    r"^\s*(?:(?:highp|mediump|lowp|precise)\s+)*"
    r"([A-Za-z_]\w*)\s+([A-Za-z_]\w*)\s*\("
)

_MAIN_IMAGE_RE = re.compile(r"void\s+mainImage\s*\(")


class ParamTransformer(Transformer):
    """Transforms a parameter-list parse tree into a list of Param."""

    def start(self, items):
        return items[0] if items else []

    def void_params(self, items):
        return []

    def param_list(self, items):
        return list(items)

    def qualifier(self, items):
        return str(items[0])

    def array_suffix(self, items):
        return ("array", str(items[0]) if items else "")

    def param(self, items):
        qualifiers = []
        idents = []
        array_size = None
        for item in items:
            if isinstance(item, Token):
                idents.append(str(item))
            elif isinstance(item, tuple):
                array_size = item[1]
            else:
                qualifiers.append(item)
        type_name, name = idents
        return Param(type_name, name, tuple(qualifiers), array_size)


# ---------------------------------------------------------------------------
# Header parsing
# ---------------------------------------------------------------------------

def match_function_header(line: str) -> tuple[str, str] | None:
    """Return ``(return_type, name)`` when the line starts a function header."""
    m = _HEADER_RE.match(line)
    if m is None:
        return None
    ret_type, name = m.group(1), m.group(2)
    if ret_type in _NOT_RETURN_TYPES or name in _NOT_RETURN_TYPES:
        return None
    return ret_type, name


def parse_return_type(header: str) -> str | None:
    """Declared return type of a header line, if it is a known GLSL type."""
    m = match_function_header(header)
    if m is None:
        return None
    ret_type = m[0]
    if ret_type == "void" or is_value_type(ret_type):
        return ret_type
    return None


def _parameter_text(header: str) -> str | None:
    open_idx = header.find("(")
    if open_idx < 0:
        return None
    close_idx = header.find(")", open_idx)
    if close_idx < 0:
        return None
    return header[open_idx + 1:close_idx]


def parse_parameters(header: str) -> list[Param]:
    """Parse the parameter list of a function header line.

    Returns an empty list for ``()``, ``(void)``, and for parameter lists
    the grammar does not understand (struct arrays, macros, ...).
    """
    text = _parameter_text(header)
    if text is None or not text.strip():
        return []
    try:
        tree = _parser.parse(text)
    except LarkError as e:
        logger.debug("Could not parse parameter list %r: %s", text, e)
        return []
    return ParamTransformer().transform(tree)


# ---------------------------------------------------------------------------
# Boundary resolution
# ---------------------------------------------------------------------------

def find_main_image_start(lines: list[str]) -> int:
    for i, line in enumerate(lines):
        if _MAIN_IMAGE_RE.search(line):
            return i
    return -1


def _opens_on_next_line(lines: list[str], i: int) -> bool:
    return i + 1 < len(lines) and lines[i + 1].strip().startswith("{")


def find_enclosing_function(lines: list[str], target_line: int) -> FunctionInfo:
    """Find the function whose body contains ``target_line``.

    Walks backwards counting braces in reverse. Every time the depth reaches
    a new minimum, the current line opened a block that encloses the target;
    the first such block whose opener is a function header wins. A header
    on the target line itself counts as well, so hovering a signature
    resolves to that function.
    """
    if not 0 <= target_line < len(lines):
        return FunctionInfo()

    start = -1
    name = None

    header = match_function_header(lines[target_line])
    if header and ("{" in lines[target_line] or _opens_on_next_line(lines, target_line)):
        start, name = target_line, header[1]
    else:
        depth = 0
        lowest = 0
        for i in range(target_line, -1, -1):
            depth -= brace_delta(lines[i])
            if depth >= lowest:
                continue
            lowest = depth
            header = match_function_header(lines[i])
            if header:
                start, name = i, header[1]
                break
            if lines[i].strip().startswith("{") and i > 0:
                header = match_function_header(lines[i - 1])
                if header and "{" not in lines[i - 1]:
                    start, name = i - 1, header[1]
                    break

    if start < 0:
        return FunctionInfo()

    end = find_block_end(lines, start)
    return FunctionInfo(name=name, start=start, end=end)


def is_entry_function(info: FunctionInfo) -> bool:
    return info.name == ENTRY_FUNCTION
