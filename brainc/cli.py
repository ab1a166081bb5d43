from __future__ import annotations

import argparse
import io
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .cells import TAPE_SIZE
from .codegen import CGenerator, emit_brainfuck
from .config import RunConfiguration
from .errors import ExecutionError, ParseError
from .parser import parse
from .program import Program, format_program


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8", errors="replace")


def _write_output(path: str, data: str) -> None:
    output_path = Path(path)
    output_path.write_text(data, encoding="utf-8")


def _render(program: Program, target: str, config: RunConfiguration) -> str:
    if target == "bf":
        return emit_brainfuck(program) + "\n"
    return CGenerator(eof=config.eof).generate(program)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="brainc", description="Brainfuck interpreter and C compiler")
    parser.add_argument("source", help="Path to Brainfuck source file")
    parser.add_argument(
        "-c",
        "--compile",
        action="store_true",
        help="Generate code instead of running the program",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Destination file for generated code (implies --compile; default: stdout)",
    )
    parser.add_argument(
        "--target",
        choices=("c", "bf"),
        default="c",
        help="Code generation target (default: c)",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the optimized instruction tree and exit",
    )
    parser.add_argument(
        "--input",
        default=None,
        help="Input string supplied to the program (default: read standard input)",
    )
    parser.add_argument(
        "--eof",
        default="error",
        help="Behaviour of ',' at end of input: error, zero or unchanged (default: error)",
    )
    parser.add_argument("--tape-size", type=int, default=TAPE_SIZE, help="Number of tape cells")
    parser.add_argument("--max-steps", type=int, default=None, help="Abort after this many steps")
    args = parser.parse_args(argv)

    try:
        config = RunConfiguration(
            tape_size=args.tape_size,
            eof=args.eof,
            max_steps=args.max_steps,
            input=args.input,
        )
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    try:
        source_text = _read_source(args.source)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    try:
        program = parse(source_text)
    except ParseError as exc:
        print(f"Parse error: {exc}", file=sys.stderr)
        return 1

    if args.dump:
        listing = format_program(program)
        sys.stdout.write(listing + "\n" if listing else "")
        return 0

    if args.compile or args.output:
        if args.target == "c" and config.tape_size != TAPE_SIZE:
            print(f"The C backend only supports a tape of {TAPE_SIZE} cells", file=sys.stderr)
            return 1
        code = _render(program, args.target, config)
        if args.output:
            _write_output(args.output, code)
        else:
            sys.stdout.write(code)
        return 0

    interpreter = config.create_interpreter()
    if config.input is None:
        input_stream = sys.stdin.buffer
    else:
        input_stream = io.BytesIO(config.input_bytes())
    try:
        interpreter.run(
            program,
            input_stream=input_stream,
            output_stream=sys.stdout.buffer,
            max_steps=config.max_steps,
        )
    except ExecutionError as exc:
        print(f"Runtime error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
