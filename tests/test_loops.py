"""Tests for loop enumeration and containment."""

from shaderprobe.analysis.loops import (
    match_loop_header, scan_loops, enumerate_loops, extract_loops,
)


NESTED = [
    "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",   # 0
    "  vec2 uv = fragCoord / iResolution.xy;",
    "",
    "  for (int i = 0; i < 5; i++) {",                           # 3
    "    uv.x += float(i);",
    "  }",                                                       # 5
    "",
    "  for (int j = 0; j < 10; j++) {",                          # 7
    "    for (int k = 0; k < 3; k++) {",                         # 8
    "      float val = float(j + k);",                           # 9
    "    }",                                                     # 10
    "  }",                                                       # 11
    "",
    "  fragColor = vec4(uv, 0.0, 1.0);",
    "}",
]


class TestHeaders:
    def test_for_and_while(self):
        assert match_loop_header("  for (int i = 0; i < 4; i++) {")[0] == "for (int i = 0; i < 4; i++)"
        assert match_loop_header("  while (t < 10.0)")[0] == "while (t < 10.0)"

    def test_do_while_tail_is_not_a_header(self):
        assert match_loop_header("  } while (t < 10.0);") is None
        assert match_loop_header("  while (t < 10.0);") is None

    def test_unclosed_condition(self):
        text, close = match_loop_header("  for (int i = 0;")
        assert close == -1

    def test_not_loops(self):
        assert match_loop_header("  if (x > 0.0) {") is None
        assert match_loop_header("  float forward = 1.0;") is None


class TestEnumeration:
    def test_source_order_indices(self):
        loops = enumerate_loops(NESTED, 0)
        assert [(l.loop_index, l.line_number, l.end_line) for l in loops] == [
            (0, 3, 5), (1, 7, 11), (2, 8, 10),
        ]

    def test_brace_on_next_line(self):
        lines = [
            "void f() {",
            "  for (int i = 0; i < 10; i++)",
            "  {",
            "    float x = float(i);",
            "  }",
            "}",
        ]
        rec = scan_loops(lines, 0)[0]
        assert rec.open_line == 2
        assert rec.info.end_line == 4
        assert not rec.braceless

    def test_braceless_loop(self):
        lines = [
            "float f() {",
            "  float s = 0.0;",
            "  for (int i = 0; i < 4; i++)",
            "    s += 1.0;",
            "  return s;",
            "}",
        ]
        rec = scan_loops(lines, 0)[0]
        assert rec.braceless
        assert rec.info.end_line == 3

    def test_braceless_same_line(self):
        lines = ["float f() {", "  for (int i = 0; i < 4; i++) s += 1.0;", "}"]
        rec = scan_loops(lines, 0)[0]
        assert rec.braceless
        assert rec.info.end_line == 1

    def test_unterminated_loop(self):
        lines = ["void f() {", "  for (int i = 0; i < 4; i++) {", "    float x = 1.0;"]
        assert enumerate_loops(lines, 0)[0].end_line == -1

    def test_loops_before_start_ignored(self):
        lines = [
            "for (int i = 0; i < 10; i++) {",
            "  float x = 1.0;",
            "}",
            "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",
            "  float y = 2.0;",
            "}",
        ]
        assert enumerate_loops(lines, 3) == []

    def test_do_while_counts_once(self):
        lines = [
            "void f() {",
            "  do {",
            "    x -= 1.0;",
            "  } while (x > 0.0);",
            "  while (y > 0.0) {",
            "    y -= 1.0;",
            "  }",
            "}",
        ]
        loops = enumerate_loops(lines, 0)
        assert [(l.loop_index, l.line_number) for l in loops] == [(0, 4)]


class TestContainment:
    def test_only_containing_loops(self):
        loops = extract_loops(NESTED, 0, 9)
        assert [l.loop_index for l in loops] == [1, 2]
        assert "int j = 0" in loops[0].header
        assert "int k = 0" in loops[1].header
        assert all(l.end_line > l.line_number for l in loops)

    def test_after_loops(self):
        assert extract_loops(NESTED, 0, 13) == []

    def test_header_line_not_contained(self):
        assert [l.loop_index for l in extract_loops(NESTED, 0, 8)] == [1]

    def test_braceless_body_contained(self):
        lines = [
            "float f() {",
            "  float s = 0.0;",
            "  for (int i = 0; i < 4; i++)",
            "    s += 1.0;",
            "  return s;",
            "}",
        ]
        assert [l.loop_index for l in extract_loops(lines, 0, 3)] == [0]
        assert extract_loops(lines, 0, 4) == []

    def test_no_function(self):
        assert extract_loops(NESTED, -1, 9) == []


class TestSplitHeaders:
    BRACED = [
        "void mainImage(out vec4 fragColor, in vec2 fragCoord) {",   # 0
        "  float d = 0.0;",
        "  for (int i = 0;",                                         # 2
        "       i < 100; i++) {",                                    # 3
        "    d += 0.01;",
        "  }",                                                       # 5
        "  fragColor = vec4(vec3(d), 1.0);",
        "}",
    ]

    def test_braced_header_over_two_lines(self):
        rec = scan_loops(self.BRACED, 0)[0]
        assert not rec.braceless
        assert rec.info.line_number == 2
        assert rec.header_line == 3
        assert rec.open_line == 3
        assert rec.info.end_line == 5
        assert rec.info.header == "for (int i = 0; i < 100; i++)"

    def test_body_of_split_header_contained(self):
        assert [l.loop_index for l in extract_loops(self.BRACED, 0, 4)] == [0]
        assert extract_loops(self.BRACED, 0, 3) == []
        assert extract_loops(self.BRACED, 0, 6) == []

    def test_braceless_split_header(self):
        lines = [
            "float f() {",
            "  float s = 0.0;",
            "  for (int i = 0;",
            "       i < 4; i++)",
            "    s += 1.0;",
            "  return s;",
            "}",
        ]
        rec = scan_loops(lines, 0)[0]
        assert rec.braceless
        assert rec.header_line == 3
        assert rec.info.end_line == 4

    def test_braceless_loop_around_braceless_if(self):
        lines = [
            "float f() {",
            "  float s = 0.0;",
            "  for (int i = 0; i < 4; i++)",
            "    if (s < 2.0)",
            "      s += 1.0;",
            "  return s;",
            "}",
        ]
        rec = scan_loops(lines, 0)[0]
        assert rec.braceless
        assert rec.info.end_line == 4
        assert [l.loop_index for l in extract_loops(lines, 0, 4)] == [0]
        assert extract_loops(lines, 0, 5) == []
