"""Debug orchestration: pick a code path for an inspected line and run it.

Three paths exist:

* the line sits in ``mainImage``: the entry function is truncated after the
  line and the value is painted into ``fragColor``;
* the line sits in another function: that helper is truncated, made to
  return the inspected value, and called from a fresh ``mainImage``;
* the line is outside any function: it is pasted into a minimal
  ``mainImage`` on its own.

Every entry point is a pure function of its arguments. ``None`` means there
is nothing to visualise on the line.
"""

from __future__ import annotations
import logging

from shaderprobe.analysis.classifier import detect_variable_and_type, join_statement
from shaderprobe.analysis.environment import build_variable_type_map
from shaderprobe.analysis.functions import (
    find_enclosing_function, is_entry_function, parse_parameters, parse_return_type,
)
from shaderprobe.analysis.loops import extract_loops
from shaderprobe.codegen.visualize import apply_output_post_processing
from shaderprobe.codegen.wrappers import (
    get_centered_uv_value, get_default_custom_value, get_uv_value,
    truncate_main_image, wrap_full_function_for_debugging,
    wrap_function_for_debugging, wrap_one_liner_for_debugging,
)
from shaderprobe.models import (
    DebugRequest, FunctionContext, ParameterInfo,
    validate_loop_caps, validate_normalize_mode,
)

logger = logging.getLogger(__name__)


def modify_shader_for_debugging(source: str, debug_line: int, line_content: str = "",
                                loop_max_iterations: dict[int, int] | None = None,
                                custom_parameters: dict[int, str] | None = None,
                                normalize_mode: str = "off",
                                step_edge: float | None = None) -> str | None:
    """Build a program that shows the value produced at ``debug_line``.

    ``debug_line`` is a 0-based index into ``source.split("\\n")``. The line
    text used for classification is the one in the source; ``line_content``
    is only pasted verbatim by the global-scope path, and only when the
    statement fits on one line. A statement spread over several lines is
    pasted whole.

    Raises DebugConfigError for an unknown normalisation mode or a negative
    iteration cap.
    """
    validate_normalize_mode(normalize_mode)
    loop_max_iterations = loop_max_iterations or {}
    validate_loop_caps(loop_max_iterations)

    lines = source.split("\n")
    if not 0 <= debug_line < len(lines):
        logger.debug("Debug line %d is outside the source (%d lines)", debug_line, len(lines))
        return None

    function_info = find_enclosing_function(lines, debug_line)
    logger.debug("Debug line %d: %r (function: %s)",
                 debug_line, lines[debug_line], function_info.name or "none")

    containing_loops = []
    return_type = None
    if function_info.found:
        containing_loops = extract_loops(lines, function_info.start, debug_line, function_info.end)
        return_type = parse_return_type(lines[function_info.start])
        if containing_loops:
            logger.debug("Containing loops: %s",
                         ", ".join(f"#{l.loop_index}@{l.line_number}" for l in containing_loops))

    var_types = build_variable_type_map(lines, debug_line, function_info)
    var_info = detect_variable_and_type(lines[debug_line], var_types, return_type,
                                        lines, debug_line)

    if var_info is None:
        if function_info.found and not is_entry_function(function_info) \
                and return_type not in (None, "void"):
            logger.debug("Path: full helper function (%s returns %s)",
                         function_info.name, return_type)
            return wrap_full_function_for_debugging(
                lines, function_info, return_type, loop_max_iterations,
                custom_parameters, normalize_mode, step_edge)
        logger.debug("Nothing to visualise on line %d", debug_line)
        return None

    logger.debug("Inspecting %s (%s)", var_info.name, var_info.type)

    if is_entry_function(function_info):
        logger.debug("Path: entry function truncation")
        return truncate_main_image(lines, debug_line, function_info.start, var_info,
                                   containing_loops, loop_max_iterations,
                                   normalize_mode, step_edge)

    if function_info.found:
        logger.debug("Path: helper function wrapper (%s)", function_info.name)
        return wrap_function_for_debugging(lines, function_info, debug_line, var_info,
                                           containing_loops, loop_max_iterations,
                                           custom_parameters, normalize_mode, step_edge)

    logger.debug("Path: one-liner wrapper")
    statement = join_statement(lines, debug_line)
    if statement == lines[debug_line]:
        statement = line_content or statement
    return wrap_one_liner_for_debugging(statement, var_info,
                                        normalize_mode, step_edge)


def modify(request: DebugRequest) -> str | None:
    return modify_shader_for_debugging(
        request.source,
        request.debug_line,
        request.line_content,
        loop_max_iterations=request.loop_max_iterations,
        custom_parameters=request.custom_parameters,
        normalize_mode=request.normalize_mode,
        step_edge=request.step_edge,
    )


def extract_function_context(source: str, debug_line: int) -> FunctionContext | None:
    """Describe the function around ``debug_line`` for a parameter panel.

    Lists the input parameters with their suggested values and the loops
    containing the line. Returns None at global scope.
    """
    lines = source.split("\n")
    if not 0 <= debug_line < len(lines):
        return None

    function_info = find_enclosing_function(lines, debug_line)
    if not function_info.found:
        return None

    header = lines[function_info.start]
    parameters = []
    for param in parse_parameters(header):
        if param.is_output:
            continue
        custom = get_default_custom_value(param.type_name)
        parameters.append(ParameterInfo(
            name=param.name,
            type=param.type_name,
            uv_value=get_uv_value(param.type_name),
            centered_uv_value=get_centered_uv_value(param.type_name),
            default_custom_value=custom,
            mode="uv" if param.type_name == "vec2" else "custom",
            custom_value=custom,
        ))

    return FunctionContext(
        function_name=function_info.name,
        return_type=parse_return_type(header) or "void",
        parameters=parameters,
        is_function=not is_entry_function(function_info),
        loops=extract_loops(lines, function_info.start, debug_line, function_info.end),
    )


def apply_full_shader_post_processing(source: str, normalize_mode: str = "off",
                                      step_edge: float | None = None) -> str | None:
    """Normalise/threshold the output of an unmodified shader."""
    return apply_output_post_processing(source, normalize_mode, step_edge)
