"""Colour encoding of inspected values.

Every visualisation is an assignment to ``fragColor``. Scalars become gray,
vectors fill the colour channels in order, matrices show a single column.
Optional normalisation squashes unbounded values into [0, 1] first, and an
optional step edge thresholds the final colour to pure 0/1 per channel.
"""

from __future__ import annotations

from shaderprobe.analysis.scanner import find_block_end
from shaderprobe.analysis.functions import find_main_image_start
from shaderprobe.builtins.types import (
    MatrixType, ScalarType, VectorType, resolve_type,
)
from shaderprobe.models import OUTPUT_VAR, validate_normalize_mode

INDENT = "  "

UNKNOWN_TYPE_COLOR = "vec4(1.0, 0.0, 1.0, 1.0)"


def soft_norm_expr(expr: str, size: int = 1) -> str:
    """v / (|v| + 1) * 0.5 + 0.5: zero maps to 0.5, sign picks the half."""
    one = "1.0" if size == 1 else f"vec{size}(1.0)"
    return f"({expr} / (abs({expr}) + {one}) * 0.5 + 0.5)"


def abs_norm_expr(expr: str, size: int = 1) -> str:
    """|v| / (|v| + 1): zero maps to black, large magnitudes approach 1."""
    one = "1.0" if size == 1 else f"vec{size}(1.0)"
    return f"(abs({expr}) / (abs({expr}) + {one}))"


_NORMALIZERS = {
    "soft": soft_norm_expr,
    "abs": abs_norm_expr,
}


def step_statement(step_edge: float) -> str:
    edge = f"{step_edge:.4f}"
    return f"{INDENT}{OUTPUT_VAR} = vec4(step(vec3({edge}), {OUTPUT_VAR}.rgb), 1.0); // Debug: step threshold"


def _float_operand(type_name: str, name: str) -> tuple[str, int] | None:
    """Expression converting ``name`` to float components, with its width."""
    t = resolve_type(type_name)
    if isinstance(t, ScalarType):
        return (name if t.name == "float" else f"float({name})"), 1
    if isinstance(t, VectorType):
        return (name if t.component == "float" else f"vec{t.size}({name})"), t.size
    return None


def _color_for_vector(expr: str, size: int) -> str:
    if size == 1:
        return f"vec4(vec3({expr}), 1.0)"
    if size == 2:
        return f"vec4({expr}, 0.0, 1.0)"
    if size == 3:
        return f"vec4({expr}, 1.0)"
    return expr


_PLAIN_COMMENTS = {
    1: "visualize {type} as grayscale",
    2: "visualize {type} (RG channels)",
    3: "visualize {type} as RGB",
    4: "visualize {type} directly",
}


def _matrix_statement(t: MatrixType, name: str) -> str:
    # A full matrix has no colour representation; show one column instead.
    if t.size == 2:
        return f"{OUTPUT_VAR} = vec4({name}[0], {name}[1]); // Debug: mat2 shown as its two columns (debug compromise)"
    if t.size == 3:
        return f"{OUTPUT_VAR} = vec4({name}[0], 1.0); // Debug: mat3 shown as first column only (debug compromise)"
    return f"{OUTPUT_VAR} = {name}[0]; // Debug: mat4 shown as first column only (debug compromise)"


def generate_return_statement_for_var(var_type: str, var_name: str,
                                      normalize_mode: str = "off",
                                      step_edge: float | None = None) -> str:
    """Statement(s) writing the value of ``var_name`` into fragColor."""
    validate_normalize_mode(normalize_mode)

    t = resolve_type(var_type)
    operand = _float_operand(var_type, var_name)

    if operand is not None:
        expr, size = operand
        normalize = _NORMALIZERS.get(normalize_mode)
        if normalize is None:
            comment = _PLAIN_COMMENTS[size].format(type=var_type)
            line = f"{OUTPUT_VAR} = {_color_for_vector(expr, size)}; // Debug: {comment}"
        elif size == 4:
            # Alpha carries no information once normalised
            line = (f"{OUTPUT_VAR} = vec4({normalize(expr + '.rgb', 3)}, 1.0); "
                    f"// Debug: {normalize_mode} normalized {var_type}")
        else:
            line = (f"{OUTPUT_VAR} = {_color_for_vector(normalize(expr, size), size)}; "
                    f"// Debug: {normalize_mode} normalized {var_type}")
    elif isinstance(t, MatrixType):
        line = _matrix_statement(t, var_name)
    else:
        line = f"{OUTPUT_VAR} = {UNKNOWN_TYPE_COLOR}; // Debug: unknown type"

    line = INDENT + line
    if step_edge is not None:
        line += "\n" + step_statement(step_edge)
    return line


def apply_output_post_processing(source: str, normalize_mode: str,
                                 step_edge: float | None) -> str | None:
    """Normalise/threshold the final colour of a complete shader.

    The statements go right before mainImage's closing brace. Returns None
    when there is nothing to apply or mainImage cannot be located.
    """
    validate_normalize_mode(normalize_mode)
    if normalize_mode == "off" and step_edge is None:
        return None

    lines = source.split("\n")
    main_start = find_main_image_start(lines)
    if main_start == -1:
        return None
    closing = find_block_end(lines, main_start)
    if closing == -1:
        return None

    post = []
    if normalize_mode == "soft":
        post.append(f"{INDENT}{OUTPUT_VAR}.rgb = {OUTPUT_VAR}.rgb / (abs({OUTPUT_VAR}.rgb) + vec3(1.0)) * 0.5 + 0.5;")
    elif normalize_mode == "abs":
        post.append(f"{INDENT}{OUTPUT_VAR}.rgb = abs({OUTPUT_VAR}.rgb) / (abs({OUTPUT_VAR}.rgb) + vec3(1.0));")
    if step_edge is not None:
        post.append(f"{INDENT}{OUTPUT_VAR} = vec4(step(vec3({step_edge:.4f}), {OUTPUT_VAR}.rgb), 1.0);")

    closing_line = lines[closing]
    stripped = closing_line.strip()
    if stripped == "}":
        result = lines[:closing] + post + lines[closing:]
    else:
        # Body and "}" share a line: split before the brace
        col = closing_line.rfind("}")
        result = lines[:closing] + [closing_line[:col]] + post + [closing_line[col:]] + lines[closing + 1:]
    return "\n".join(result)
