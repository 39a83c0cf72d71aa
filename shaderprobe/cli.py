"""Command-line interface for shaderprobe."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from shaderprobe.errors import DebugConfigError
from shaderprobe.models import NORMALIZE_MODES

EXIT_NOTHING_TO_DEBUG = 2


def _parse_pairs(pairs: list[str] | None, what: str, int_values: bool) -> dict:
    """Turn ``INDEX=VALUE`` options into a dict keyed by integer index."""
    result = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not value.strip():
            raise DebugConfigError(f"{what} must look like INDEX=VALUE, got '{pair}'")
        try:
            index = int(key)
        except ValueError:
            raise DebugConfigError(f"{what} index must be an integer, got '{key}'") from None
        if int_values:
            try:
                result[index] = int(value)
            except ValueError:
                raise DebugConfigError(f"{what} value must be an integer, got '{value}'") from None
        else:
            result[index] = value.strip()
    return result


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="shaderprobe",
        description="Rewrite a Shadertoy-style GLSL shader to visualise the value computed on one line",
    )
    parser.add_argument("input", help="Input .glsl file")
    parser.add_argument(
        "-l", "--line", type=int, metavar="N",
        help="1-based line to inspect (required unless --post-process)",
    )
    parser.add_argument(
        "--cap", action="append", metavar="INDEX=MAX",
        help="Stop loop INDEX after MAX iterations (repeatable)",
    )
    parser.add_argument(
        "--param", action="append", metavar="INDEX=EXPR",
        help="Pass EXPR as input parameter INDEX of the inspected helper (repeatable)",
    )
    parser.add_argument(
        "--normalize", choices=NORMALIZE_MODES, default="off",
        help="Squash the inspected value into [0, 1] before display",
    )
    parser.add_argument(
        "--step", type=float, metavar="EDGE", default=None,
        help="Threshold the displayed colour at EDGE",
    )
    parser.add_argument(
        "--context", action="store_true",
        help="Print the enclosing function's parameters and loops as JSON",
    )
    parser.add_argument(
        "--post-process", action="store_true",
        help="Apply --normalize/--step to the whole shader output instead of probing a line",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the result to a file instead of stdout",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log analysis decisions to stderr",
    )
    parser.add_argument(
        "--version", action="version", version="shaderprobe 0.1.0"
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        sys.exit(1)

    source = input_path.read_text(encoding="utf-8")

    from shaderprobe.debugger import (
        apply_full_shader_post_processing, extract_function_context,
        modify_shader_for_debugging,
    )

    # --- Whole-shader post-processing mode ---
    if args.post_process:
        result = apply_full_shader_post_processing(source, args.normalize, args.step)
        if result is None:
            print("Nothing to post-process (no --normalize/--step, or no mainImage)",
                  file=sys.stderr)
            sys.exit(EXIT_NOTHING_TO_DEBUG)
        _emit(result, args.output)
        return

    if args.line is None:
        print("Error: --line is required", file=sys.stderr)
        sys.exit(1)
    if args.line < 1:
        print(f"Error: line numbers start at 1, got {args.line}", file=sys.stderr)
        sys.exit(1)
    debug_line = args.line - 1

    # --- Context mode ---
    if args.context:
        context = extract_function_context(source, debug_line)
        if context is None:
            print(f"Line {args.line} is not inside a function", file=sys.stderr)
            sys.exit(EXIT_NOTHING_TO_DEBUG)
        _emit(json.dumps(asdict(context), indent=2), args.output)
        return

    # --- Probe mode ---
    try:
        caps = _parse_pairs(args.cap, "--cap", int_values=True)
        params = _parse_pairs(args.param, "--param", int_values=False)
        lines = source.split("\n")
        line_content = lines[debug_line] if debug_line < len(lines) else ""
        result = modify_shader_for_debugging(
            source, debug_line, line_content,
            loop_max_iterations=caps,
            custom_parameters=params,
            normalize_mode=args.normalize,
            step_edge=args.step,
        )
    except DebugConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if result is None:
        print(f"Nothing to debug on line {args.line}", file=sys.stderr)
        sys.exit(EXIT_NOTHING_TO_DEBUG)
    _emit(result, args.output)


def _emit(text: str, output: Path | None) -> None:
    if output is None:
        print(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    print(f"Wrote: {output}")
