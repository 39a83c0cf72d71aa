"""Built-in GLSL type definitions recognised by the debug engine."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class GlslType:
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class ScalarType(GlslType):
    pass


@dataclass(frozen=True)
class VectorType(GlslType):
    component: str   # "float", "int", "uint", "bool"
    size: int        # 2, 3, 4


@dataclass(frozen=True)
class MatrixType(GlslType):
    size: int  # 2, 3, 4


@dataclass(frozen=True)
class SamplerType(GlslType):
    pass


@dataclass(frozen=True)
class VoidType(GlslType):
    pass


# Singleton type instances
VOID = VoidType("void")
BOOL = ScalarType("bool")
FLOAT = ScalarType("float")
INT = ScalarType("int")
UINT = ScalarType("uint")

VEC2 = VectorType("vec2", "float", 2)
VEC3 = VectorType("vec3", "float", 3)
VEC4 = VectorType("vec4", "float", 4)

IVEC2 = VectorType("ivec2", "int", 2)
IVEC3 = VectorType("ivec3", "int", 3)
IVEC4 = VectorType("ivec4", "int", 4)

UVEC2 = VectorType("uvec2", "uint", 2)
UVEC3 = VectorType("uvec3", "uint", 3)
UVEC4 = VectorType("uvec4", "uint", 4)

BVEC2 = VectorType("bvec2", "bool", 2)
BVEC3 = VectorType("bvec3", "bool", 3)
BVEC4 = VectorType("bvec4", "bool", 4)

MAT2 = MatrixType("mat2", 2)
MAT3 = MatrixType("mat3", 3)
MAT4 = MatrixType("mat4", 4)

SAMPLER2D = SamplerType("sampler2D")
SAMPLER3D = SamplerType("sampler3D")
SAMPLER_CUBE = SamplerType("samplerCube")

# Lookup table: type name string -> GlslType
TYPE_MAP: dict[str, GlslType] = {
    "void": VOID,
    "bool": BOOL,
    "float": FLOAT,
    "int": INT,
    "uint": UINT,
    "vec2": VEC2, "vec3": VEC3, "vec4": VEC4,
    "ivec2": IVEC2, "ivec3": IVEC3, "ivec4": IVEC4,
    "uvec2": UVEC2, "uvec3": UVEC3, "uvec4": UVEC4,
    "bvec2": BVEC2, "bvec3": BVEC3, "bvec4": BVEC4,
    "mat2": MAT2, "mat3": MAT3, "mat4": MAT4,
    "sampler2D": SAMPLER2D,
    "sampler3D": SAMPLER3D,
    "samplerCube": SAMPLER_CUBE,
}

# Names usable as a variable's declared type (everything but void)
VALUE_TYPE_NAMES: tuple[str, ...] = tuple(n for n in TYPE_MAP if n != "void")

# Regex alternation of value type names, longest first so "vec2" never
# shadows "ivec2" when used without word boundaries.
TYPE_PATTERN = "|".join(sorted(VALUE_TYPE_NAMES, key=len, reverse=True))


def resolve_type(name: str) -> GlslType | None:
    return TYPE_MAP.get(name)


def is_value_type(name: str) -> bool:
    t = TYPE_MAP.get(name)
    return t is not None and not isinstance(t, VoidType)
