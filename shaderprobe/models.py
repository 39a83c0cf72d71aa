"""Plain data records passed between the debug engine's passes."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from shaderprobe.errors import DebugConfigError


ENTRY_FUNCTION = "mainImage"
ENTRY_SIGNATURE = "void mainImage(out vec4 fragColor, in vec2 fragCoord) {"
OUTPUT_VAR = "fragColor"

RETURN_VAR = "_dbgReturn"
SHADOW_VAR = "_dbgShadow"
ITER_VAR_PREFIX = "_dbgIter"

NORMALIZE_MODES = ("off", "soft", "abs")


# ---------------------------------------------------------------------------
# Analysis results
# ---------------------------------------------------------------------------

@dataclass
class FunctionInfo:
    name: Optional[str] = None
    start: int = -1
    end: int = -1  # -1 when the closing brace was never found

    @property
    def found(self) -> bool:
        return self.name is not None and self.start >= 0


@dataclass
class VarInfo:
    name: str
    type: str


@dataclass
class Param:
    type_name: str
    name: str
    qualifiers: tuple[str, ...] = ()
    array_size: Optional[str] = None

    @property
    def is_output(self) -> bool:
        """True for pure ``out`` parameters (``inout`` still carries input)."""
        return "out" in self.qualifiers


@dataclass
class LoopInfo:
    loop_index: int
    line_number: int
    end_line: int = -1
    header: str = ""
    max_iter: Optional[int] = None


# ---------------------------------------------------------------------------
# UI-facing context
# ---------------------------------------------------------------------------

@dataclass
class ParameterInfo:
    name: str
    type: str
    uv_value: str
    centered_uv_value: str
    default_custom_value: str
    mode: str            # "uv", "centered-uv", "custom" or "preset"
    custom_value: str


@dataclass
class FunctionContext:
    function_name: str
    return_type: str
    parameters: list[ParameterInfo] = field(default_factory=list)
    is_function: bool = True   # False for mainImage
    loops: list[LoopInfo] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Request bundle
# ---------------------------------------------------------------------------

@dataclass
class DebugRequest:
    source: str
    debug_line: int
    line_content: str = ""
    loop_max_iterations: dict[int, int] = field(default_factory=dict)
    normalize_mode: str = "off"
    step_edge: Optional[float] = None
    custom_parameters: dict[int, str] = field(default_factory=dict)

    def __post_init__(self):
        validate_normalize_mode(self.normalize_mode)
        validate_loop_caps(self.loop_max_iterations)
        if self.debug_line < 0:
            raise DebugConfigError(f"Debug line must be non-negative, got {self.debug_line}")


def validate_normalize_mode(mode: str) -> None:
    if mode not in NORMALIZE_MODES:
        raise DebugConfigError(
            f"Unknown normalize mode '{mode}' (expected one of: {', '.join(NORMALIZE_MODES)})"
        )


def validate_loop_caps(caps: dict[int, int]) -> None:
    for index, max_iter in caps.items():
        if index < 0:
            raise DebugConfigError(f"Loop index must be non-negative, got {index}")
        if max_iter < 0:
            raise DebugConfigError(f"Iteration cap for loop {index} must be non-negative, got {max_iter}")
