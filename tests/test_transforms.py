"""Tests for brace balancing, iteration capping and shadow variables."""

from shaderprobe.analysis.loops import enumerate_loops
from shaderprobe.analysis.scanner import count_braces
from shaderprobe.codegen.transforms import (
    close_open_braces, cap_loop_iterations, insert_shadow_variable,
    close_open_conditionals,
)
from shaderprobe.models import LoopInfo, VarInfo


class TestCloseOpenBraces:
    def test_appends_closers(self):
        lines = [
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  if (uv.x > 0.5) {",
            "    uv.x = 1.0;",
        ]
        result = close_open_braces(lines, 0)
        assert result[:3] == lines
        assert result[3:] == ["}", "}"]

    def test_deeply_nested(self):
        lines = [
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  if (uv.x > 0.5) {",
            "    for (int i = 0; i < 10; i++) {",
            "      if (float(i) > 5.0) {",
            "        float x = 1.0;",
        ]
        assert close_open_braces(lines, 0)[5:] == ["}", "}", "}", "}"]

    def test_ignores_braces_before_start(self):
        lines = [
            "float helper() {",
            "  return 1.0;",
            "}",
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  float x = 1.0;",
        ]
        result = close_open_braces(lines, 3)
        assert len(result) == 6
        assert result[5] == "}"

    def test_balanced_untouched(self):
        lines = ["void f() {", "  if (true) {", "  }", "}"]
        assert close_open_braces(lines, 0) == lines

    def test_does_not_mutate_input(self):
        lines = ["void f() {"]
        close_open_braces(lines, 0)
        assert lines == ["void f() {"]


class TestCapLoopIterations:
    SINGLE = [
        "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
        "  for (int i = 0; i < 10; i++) {",
        "    float x = 1.0;",
        "  }",
        "}",
    ]

    def test_empty_map_is_a_copy(self):
        result = cap_loop_iterations(self.SINGLE, 0, {})
        assert result == self.SINGLE
        assert result is not self.SINGLE

    def test_for_loop(self):
        result = cap_loop_iterations(self.SINGLE, 0, {0: 5})
        assert result == [
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  int _dbgIter0 = 0;",
            "  for (int i = 0; i < 10; i++) {",
            "    if (++_dbgIter0 > 5) break;",
            "    float x = 1.0;",
            "  }",
            "}",
        ]

    def test_while_loop(self):
        lines = [
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  while (x > 0.0) {",
            "    x -= 0.1;",
            "  }",
            "}",
        ]
        result = cap_loop_iterations(lines, 0, {0: 100})
        assert "  int _dbgIter0 = 0;" in result
        assert "    if (++_dbgIter0 > 100) break;" in result

    def test_nested_counters_reset_per_outer_iteration(self):
        lines = [
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  for (int i = 0; i < 10; i++) {",
            "    for (int j = 0; j < 5; j++) {",
            "      float x = 1.0;",
            "    }",
            "  }",
            "}",
        ]
        result = cap_loop_iterations(lines, 0, {0: 10, 1: 5})
        assert "    int _dbgIter1 = 0;" in result
        assert "      if (++_dbgIter1 > 5) break;" in result
        outer_counter = result.index("  int _dbgIter0 = 0;")
        outer_loop = next(i for i, l in enumerate(result) if "for (int i" in l)
        inner_counter = result.index("    int _dbgIter1 = 0;")
        assert outer_counter < outer_loop < inner_counter

    def test_only_listed_loops(self):
        lines = [
            "void fn() {",
            "  for (int i = 0; i < 10; i++) {",
            "    float x = 1.0;",
            "  }",
            "  for (int j = 0; j < 5; j++) {",
            "    float y = 2.0;",
            "  }",
            "}",
        ]
        joined = "\n".join(cap_loop_iterations(lines, 0, {1: 3}))
        assert "_dbgIter0" not in joined
        assert "if (++_dbgIter1 > 3) break;" in joined

    def test_loops_before_start_untouched(self):
        lines = [
            "for (int i = 0; i < 10; i++) {",
            "  float x = 1.0;",
            "}",
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  float y = 2.0;",
            "}",
        ]
        assert "_dbgIter" not in "\n".join(cap_loop_iterations(lines, 3, {0: 5}))

    def test_brace_on_next_line(self):
        lines = [
            "void f() {",
            "  for (int i = 0; i < 10; i++)",
            "  {",
            "    float x = float(i);",
            "  }",
            "}",
        ]
        result = cap_loop_iterations(lines, 0, {0: 2})
        brace = result.index("  {")
        assert result[brace + 1] == "    if (++_dbgIter0 > 2) break;"

    def test_single_line_body(self):
        lines = ["void f() {", "  for (int i = 0; i < 4; i++) { x += 1.0; }", "}"]
        result = cap_loop_iterations(lines, 0, {0: 2})
        assert result[2] == "  for (int i = 0; i < 4; i++) { if (++_dbgIter0 > 2) break; x += 1.0; }"

    def test_braceless_body_gets_braces(self):
        lines = [
            "float f() {",
            "  float s = 0.0;",
            "  for (int i = 0; i < 4; i++)",
            "    s += 1.0;",
            "  return s;",
            "}",
        ]
        result = cap_loop_iterations(lines, 0, {0: 3})
        assert result == [
            "float f() {",
            "  float s = 0.0;",
            "  int _dbgIter0 = 0;",
            "  for (int i = 0; i < 4; i++) {",
            "    if (++_dbgIter0 > 3) break;",
            "    s += 1.0;",
            "  }",
            "  return s;",
            "}",
        ]

    def test_braceless_same_line(self):
        lines = ["float f() {", "  for (int i = 0; i < 4; i++) s += 1.0;", "}"]
        result = cap_loop_iterations(lines, 0, {0: 3})
        assert result[2] == "  for (int i = 0; i < 4; i++) { if (++_dbgIter0 > 3) break; s += 1.0; }"
        assert count_braces(result, 0) == 0

    def test_indices_agree_with_enumeration(self):
        """Every enumerated loop gets exactly the counter named by its index."""
        lines = [
            "void f() {",
            "  for (int a = 0; a < 2; a++) {",
            "    for (int b = 0; b < 2; b++)",
            "      x += 1.0;",
            "  }",
            "  do {",
            "    x -= 1.0;",
            "  } while (x > 0.0);",
            "  while (y > 0.0)",
            "  {",
            "    y -= 1.0;",
            "  }",
            "}",
        ]
        loops = enumerate_loops(lines, 0)
        caps = {loop.loop_index: 7 for loop in loops}
        result = cap_loop_iterations(lines, 0, caps)
        for loop in loops:
            counter = f"int _dbgIter{loop.loop_index} = 0;"
            header_pos = result.index(lines[loop.line_number] + (" {" if "b = 0" in lines[loop.line_number] else ""))
            assert result[header_pos - 1].strip() == counter
        assert count_braces(result, 0) == 0

    def test_header_split_over_lines(self):
        lines = [
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  float d = 0.0;",
            "  for (int i = 0;",
            "       i < 100; i++) {",
            "    d += 0.01;",
            "  }",
            "}",
        ]
        result = cap_loop_iterations(lines, 0, {0: 10})
        assert result == [
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  float d = 0.0;",
            "  int _dbgIter0 = 0;",
            "  for (int i = 0;",
            "       i < 100; i++) {",
            "    if (++_dbgIter0 > 10) break;",
            "    d += 0.01;",
            "  }",
            "}",
        ]

    def test_braceless_header_split_over_lines(self):
        lines = [
            "float f() {",
            "  float s = 0.0;",
            "  for (int i = 0;",
            "       i < 4; i++)",
            "    s += 1.0;",
            "  return s;",
            "}",
        ]
        result = cap_loop_iterations(lines, 0, {0: 3})
        assert result == [
            "float f() {",
            "  float s = 0.0;",
            "  int _dbgIter0 = 0;",
            "  for (int i = 0;",
            "       i < 4; i++) {",
            "    if (++_dbgIter0 > 3) break;",
            "    s += 1.0;",
            "  }",
            "  return s;",
            "}",
        ]

    def test_braceless_loop_around_braceless_if(self):
        lines = [
            "float f() {",
            "  for (int i = 0; i < 4; i++)",
            "    if (s < 2.0)",
            "      s += 1.0;",
            "  return s;",
            "}",
        ]
        result = cap_loop_iterations(lines, 0, {0: 3})
        closer = result.index("  }")
        assert result[closer - 1] == "      s += 1.0;"
        assert count_braces(result, 0) == 0


class TestShadowVariable:
    LINES = [
        "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
        "  vec2 uv = fragCoord / iResolution.xy;",
        "  for (int i = 0; i < 10; i++) {",
        "    float x = float(i) * 0.1;",
        "    uv.x += x;",
        "  }",
        "}",
    ]

    def test_no_loops_unchanged(self):
        result, shadow = insert_shadow_variable(self.LINES, 1, VarInfo("uv", "vec2"), [])
        assert shadow is None
        assert result == self.LINES

    def test_declared_before_loop_assigned_after_line(self):
        loops = [LoopInfo(0, 2, 5)]
        result, shadow = insert_shadow_variable(self.LINES, 3, VarInfo("x", "float"), loops)
        assert shadow == "_dbgShadow"
        assert result[2] == "  float _dbgShadow;"
        assert result[3] == self.LINES[2]
        assert result[4] == self.LINES[3]
        assert result[5] == "    _dbgShadow = x;"

    def test_nested_declared_before_outermost(self):
        lines = [
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  for (int i = 0; i < 5; i++) {",
            "    for (int j = 0; j < 10; j++) {",
            "      float val = compute(i, j);",
            "      accumulate(val);",
            "    }",
            "  }",
            "}",
        ]
        loops = [LoopInfo(0, 1, 6), LoopInfo(1, 2, 5)]
        result, _ = insert_shadow_variable(lines, 3, VarInfo("val", "float"), loops)
        assert result.index("  float _dbgShadow;") < result.index(lines[1])

    def test_assignment_after_multi_line_statement(self):
        lines = [
            "void f() {",
            "  for (int i = 0; i < 3; i++) {",
            "    vec3 c = mix(",
            "      a, b, 0.5);",
            "  }",
            "}",
        ]
        result, _ = insert_shadow_variable(lines, 2, VarInfo("c", "vec3"), [LoopInfo(0, 1, 4)])
        assert result.index("    _dbgShadow = c;") == result.index("      a, b, 0.5);") + 1


class TestCloseOpenConditionals:
    def test_open_ifdef(self):
        assert close_open_conditionals(["#ifdef FOO", "  float x = 1.0;"]) == ["#endif"]

    def test_balanced(self):
        lines = ["#if defined(FOO)", "  float x = 1.0;", "#endif", "#define BAR 2.0"]
        assert close_open_conditionals(lines) == []

    def test_nested(self):
        lines = ["#ifndef A", "  # ifdef B", "#endif", "#elif C", "  float x = 1.0;"]
        assert close_open_conditionals(lines) == ["#endif"]

    def test_stray_endif_ignored(self):
        assert close_open_conditionals(["#endif", "#ifdef FOO"]) == ["#endif"]
