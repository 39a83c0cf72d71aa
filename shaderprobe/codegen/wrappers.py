"""Program assembly: turn an inspected line into a complete mainImage program.

Helper functions are called from a synthesised ``mainImage`` with default
arguments derived from their parameter types, optionally overridden per
argument by the caller.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass

from shaderprobe.analysis.functions import find_main_image_start, parse_parameters
from shaderprobe.analysis.scanner import (
    find_block_end, find_statement_end, find_statement_start,
)
from shaderprobe.builtins.types import MatrixType, resolve_type
from shaderprobe.codegen.transforms import (
    cap_loop_iterations, close_open_braces, close_open_conditionals,
    insert_shadow_variable,
)
from shaderprobe.codegen.visualize import INDENT, generate_return_statement_for_var
from shaderprobe.models import (
    ENTRY_SIGNATURE, RETURN_VAR, FunctionInfo, LoopInfo, Param, VarInfo,
)

logger = logging.getLogger(__name__)

UV_SETUP = f"{INDENT}vec2 uv = fragCoord / iResolution.xy;"
CENTERED_UV = "((2.0 * fragCoord - iResolution.xy) / iResolution.y)"

_DEFAULT_ARGS = {
    "vec2": "uv",
    "float": "0.5",
    "vec3": "vec3(0.5)",
    "vec4": "vec4(0.5)",
    "int": "1",
    "bool": "true",
    "mat2": "mat2(1.0)",
    "mat3": "mat3(1.0)",
    "mat4": "mat4(1.0)",
    "sampler2D": "iChannel0",
}
_FALLBACK_ARG = "0.0"

_UV_VALUES = {
    "vec2": "uv",
    "float": "uv.x",
    "vec3": "vec3(uv, 0.0)",
    "vec4": "vec4(uv, 0.0, 1.0)",
    "int": "int(uv.x * 10.0)",
    "bool": "uv.x > 0.5",
}

_CENTERED_UV_VALUES = {
    "vec2": CENTERED_UV,
    "float": f"{CENTERED_UV}.x",
    "vec3": f"vec3({CENTERED_UV}, 0.0)",
    "vec4": f"vec4({CENTERED_UV}, 0.0, 1.0)",
    "int": f"int({CENTERED_UV}.x * 10.0)",
    "bool": "fragCoord.x > iResolution.x * 0.5",
}

_USES_UV_RE = re.compile(r"\buv\b")

_HEADER_TYPE_RE = re.compile(
    r"^(\s*(?:(?:highp|mediump|lowp|precise)\s+)*)[A-Za-z_]\w*(\s+\w+\s*\()"
)
_RETURN_RE = re.compile(r"^(\s*)return\s+")


# ---------------------------------------------------------------------------
# Parameter values
# ---------------------------------------------------------------------------

def default_argument(type_name: str) -> str:
    return _DEFAULT_ARGS.get(type_name, _FALLBACK_ARG)


def get_uv_value(type_name: str) -> str:
    """Argument that spreads a parameter over the screen in UV space."""
    if isinstance(resolve_type(type_name), MatrixType):
        return f"{type_name}(uv.x)"
    return _UV_VALUES.get(type_name, "")


def get_centered_uv_value(type_name: str) -> str:
    """Like ``get_uv_value`` but centred on the screen, aspect-corrected."""
    if isinstance(resolve_type(type_name), MatrixType):
        return f"{type_name}({CENTERED_UV}.x)"
    return _CENTERED_UV_VALUES.get(type_name, "")


def get_default_custom_value(type_name: str) -> str:
    if type_name == "vec2":
        return "vec2(0.5)"
    return default_argument(type_name)


@dataclass
class _Argument:
    param: Param
    value: str
    scratch: str | None = None   # local passed in place of out/inout params


def _build_arguments(params: list[Param],
                     custom_parameters: dict[int, str] | None = None) -> tuple[list[str], list[str]]:
    """Call arguments and the setup lines they need.

    Override indices count input parameters only; pure ``out`` parameters
    always receive a scratch local.
    """
    custom_parameters = custom_parameters or {}
    arguments = []
    input_index = 0
    for position, param in enumerate(params):
        if param.is_output:
            value = default_argument(param.type_name)
        else:
            value = custom_parameters.get(input_index, default_argument(param.type_name))
            input_index += 1
        arg = _Argument(param, value)
        if param.is_output or "inout" in param.qualifiers:
            arg.scratch = f"_dbgArg{position}"
        arguments.append(arg)

    values = []
    setup = []
    for arg in arguments:
        if arg.scratch is None:
            values.append(arg.value)
        else:
            setup.append(f"{INDENT}{arg.param.type_name} {arg.scratch} = {arg.value};")
            values.append(arg.scratch)

    if any(_USES_UV_RE.search(line) for line in values + setup):
        setup.insert(0, UV_SETUP)
    return values, setup


def generate_default_parameters(lines: list[str],
                                function_info: FunctionInfo) -> tuple[str, list[str]]:
    """Default call arguments for the function at ``function_info.start``."""
    params = parse_parameters(lines[function_info.start])
    values, setup = _build_arguments(params)
    return ", ".join(values), setup


def generate_function_call(lines: list[str], function_name: str,
                           function_info: FunctionInfo, var_info: VarInfo,
                           custom_parameters: dict[int, str] | None = None,
                           normalize_mode: str = "off",
                           step_edge: float | None = None) -> str:
    """Body of the synthesised mainImage: setup, the call, the visualisation."""
    params = parse_parameters(lines[function_info.start])
    values, setup = _build_arguments(params, custom_parameters)

    call = f"{INDENT}{var_info.type} result = {function_name}({', '.join(values)});"
    parts = setup + [call, generate_return_statement_for_var(
        var_info.type, "result", normalize_mode, step_edge)]
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Program assemblers
# ---------------------------------------------------------------------------

def _entry_point(call_body: str) -> list[str]:
    return ["", ENTRY_SIGNATURE, call_body, "}"]


def _without_entry_function(lines: list[str]) -> list[str]:
    """Drop an existing mainImage so the synthesised one does not collide."""
    start = find_main_image_start(lines)
    if start == -1:
        return list(lines)
    end = find_block_end(lines, start)
    if end == -1:
        return lines[:start]
    return lines[:start] + lines[end + 1:]


def _retype_header(header: str, type_name: str) -> str:
    return _HEADER_TYPE_RE.sub(lambda m: f"{m.group(1)}{type_name}{m.group(2)}", header, count=1)


def wrap_one_liner_for_debugging(line_content: str, var_info: VarInfo,
                                 normalize_mode: str = "off",
                                 step_edge: float | None = None) -> str:
    """A mainImage holding just the inspected line and its visualisation."""
    return "\n".join([
        ENTRY_SIGNATURE,
        INDENT + line_content.strip(),
        generate_return_statement_for_var(var_info.type, var_info.name,
                                          normalize_mode, step_edge),
        "}",
    ])


def wrap_function_for_debugging(lines: list[str], function_info: FunctionInfo,
                                debug_line: int, var_info: VarInfo,
                                containing_loops: list[LoopInfo] | None = None,
                                loop_max_iterations: dict[int, int] | None = None,
                                custom_parameters: dict[int, str] | None = None,
                                normalize_mode: str = "off",
                                step_edge: float | None = None) -> str:
    """Truncate a helper at the inspected line and return the inspected value.

    The helper's return type becomes the inspected variable's type. Everything
    before the helper is kept so the functions it calls stay defined; a new
    mainImage calls it with default (or overridden) arguments.
    """
    containing_loops = containing_loops or []
    start = function_info.start

    if containing_loops:
        truncate_at = containing_loops[0].end_line
    else:
        truncate_at = find_statement_end(lines, debug_line)

    prefix = _without_entry_function(lines[:start])
    body = list(lines[start:truncate_at + 1])
    logger.debug("Helper %s truncated to lines %d-%d", function_info.name, start, truncate_at)
    body[0] = _retype_header(body[0], var_info.type)

    if var_info.name == RETURN_VAR:
        ret_idx = find_statement_start(lines, debug_line) - start
        body[ret_idx] = _RETURN_RE.sub(
            lambda m: f"{m.group(1)}{var_info.type} {RETURN_VAR} = ", body[ret_idx], count=1)

    relative_loops = [
        LoopInfo(loop.loop_index, loop.line_number - start, loop.end_line - start,
                 loop.header, loop.max_iter)
        for loop in containing_loops
    ]
    body, shadow = insert_shadow_variable(body, debug_line - start, var_info, relative_loops)
    body = cap_loop_iterations(body, 0, loop_max_iterations or {})

    closed = close_open_braces(body, 0)
    closers = closed[len(body):]
    body.append(f"{INDENT}return {shadow or var_info.name};")
    body.extend(close_open_conditionals(prefix + body))
    body.extend(closers)

    call = generate_function_call(lines, function_info.name, function_info, var_info,
                                  custom_parameters, normalize_mode, step_edge)
    return "\n".join(prefix + body + _entry_point(call))


def wrap_full_function_for_debugging(lines: list[str], function_info: FunctionInfo,
                                     return_type: str,
                                     loop_max_iterations: dict[int, int] | None = None,
                                     custom_parameters: dict[int, str] | None = None,
                                     normalize_mode: str = "off",
                                     step_edge: float | None = None) -> str:
    """Run a whole helper and show what it returns."""
    start = function_info.start
    end = function_info.end if function_info.end >= 0 else len(lines) - 1

    prefix = _without_entry_function(lines[:start])
    body = cap_loop_iterations(list(lines[start:end + 1]), 0, loop_max_iterations or {})
    body = close_open_braces(body, 0)

    call = generate_function_call(lines, function_info.name, function_info,
                                  VarInfo("result", return_type),
                                  custom_parameters, normalize_mode, step_edge)
    return "\n".join(prefix + body + _entry_point(call))


def truncate_main_image(lines: list[str], debug_line: int, function_start: int,
                        var_info: VarInfo,
                        containing_loops: list[LoopInfo] | None = None,
                        loop_max_iterations: dict[int, int] | None = None,
                        normalize_mode: str = "off",
                        step_edge: float | None = None) -> str:
    """Cut mainImage after the inspected statement and paint the value instead."""
    containing_loops = containing_loops or []
    if containing_loops:
        truncate_at = containing_loops[0].end_line
    else:
        truncate_at = find_statement_end(lines, debug_line)

    truncated = list(lines[:truncate_at + 1])
    logger.debug("mainImage truncated after line %d", truncate_at)
    truncated, shadow = insert_shadow_variable(truncated, debug_line, var_info, containing_loops)
    truncated = cap_loop_iterations(truncated, function_start, loop_max_iterations or {})

    closed = close_open_braces(truncated, function_start)
    closers = closed[len(truncated):]
    truncated.append(generate_return_statement_for_var(
        var_info.type, shadow or var_info.name, normalize_mode, step_edge))
    truncated.extend(close_open_conditionals(truncated))
    truncated.extend(closers)
    return "\n".join(truncated)
