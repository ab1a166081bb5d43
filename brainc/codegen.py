from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .cells import CELL_SIZE, TAPE_SIZE
from .interpreter import EofPolicy
from .program import Add, Instruction, Loop, Move, Program, Read, SetConstant, Write, walk

# `ch` holds the raw getchar() result; EOF is not a byte value.
READ_STATEMENTS = {
    EofPolicy.ERROR: "if ((ch = getchar()) == EOF) exit(EXIT_FAILURE); else mem[p] = ch;",
    EofPolicy.ZERO: "mem[p] = (ch = getchar()) == EOF ? 0 : ch;",
    EofPolicy.UNCHANGED: "if ((ch = getchar()) != EOF) mem[p] = ch;",
}

C_PRELUDE = [
    "#include <stdint.h>",
    "#include <stdio.h>",
    "#include <stdlib.h>",
    "",
    f"uint8_t mem[{TAPE_SIZE}];",
    "uint16_t p = 0;",
    "",
]


def _signed_update(target: str, delta: int) -> str:
    if delta < 0:
        return f"{target} -= {-delta};"
    return f"{target} += {delta};"


@dataclass
class CGenerator:
    """Render a program as a self-contained C translation unit.

    The pointer is a 16-bit unsigned integer so compound updates wrap modulo
    the 64 Ki tape exactly like the interpreter's addresses.
    """

    eof: EofPolicy = EofPolicy.ERROR
    indent: str = "    "

    def __post_init__(self) -> None:
        self.eof = EofPolicy(self.eof)

    def generate(self, program: Program) -> str:
        lines: List[str] = list(C_PRELUDE)
        lines.append("int main(void) {")
        if any(isinstance(op, Read) for _, op in walk(program)):
            lines.append(f"{self.indent}int ch;")
        self._emit_block(program, 1, lines)
        lines.append(f"{self.indent}return 0;")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _emit_block(self, program: Program, level: int, lines: List[str]) -> None:
        # Frames are (body, index, level); an exhausted nested body closes its block.
        frames: List[Tuple[Tuple[Instruction, ...], int, int]] = [(program.body, 0, level)]
        while frames:
            body, index, depth = frames.pop()
            if index >= len(body):
                if depth > level:
                    lines.append(f"{self.indent * (depth - 1)}}}")
                continue
            op = body[index]
            frames.append((body, index + 1, depth))
            if isinstance(op, Loop):
                lines.append(f"{self.indent * depth}while (mem[p]) {{")
                frames.append((op.body.body, 0, depth + 1))
            else:
                lines.append(self.indent * depth + self._statement(op))

    def _statement(self, op: Instruction) -> str:
        if isinstance(op, Add):
            return _signed_update("mem[p]", op.delta)
        if isinstance(op, Move):
            return _signed_update("p", op.delta)
        if isinstance(op, SetConstant):
            return f"mem[p] = {op.value};"
        if isinstance(op, Read):
            return READ_STATEMENTS[self.eof]
        if isinstance(op, Write):
            return "putchar(mem[p]);"
        raise TypeError(f"Unsupported instruction: {op!r}")


class BrainfuckEmitter:
    """Render an optimized program back into the eight-symbol language."""

    def emit(self, program: Program) -> str:
        pieces: List[str] = []
        frames: List[Tuple[Tuple[Instruction, ...], int, bool]] = [(program.body, 0, False)]
        while frames:
            body, index, nested = frames.pop()
            if index >= len(body):
                if nested:
                    pieces.append("]")
                continue
            op = body[index]
            frames.append((body, index + 1, nested))
            if isinstance(op, Loop):
                pieces.append("[")
                frames.append((op.body.body, 0, True))
            else:
                pieces.append(self._emit_instruction(op))
        return "".join(pieces)

    def _emit_instruction(self, op: Instruction) -> str:
        if isinstance(op, Add):
            return self._run("+", "-", op.delta)
        if isinstance(op, Move):
            return self._run(">", "<", op.delta)
        if isinstance(op, SetConstant):
            return "[-]" + self._set_value(op.value)
        if isinstance(op, Read):
            return ","
        if isinstance(op, Write):
            return "."
        raise TypeError(f"Unsupported instruction: {op!r}")

    def _set_value(self, value: int) -> str:
        if value <= CELL_SIZE // 2:
            return "+" * value
        return "-" * (CELL_SIZE - value)

    @staticmethod
    def _run(up: str, down: str, delta: int) -> str:
        if delta < 0:
            return down * -delta
        return up * delta


def generate_c(program: Program, eof: EofPolicy = EofPolicy.ERROR) -> str:
    return CGenerator(eof=eof).generate(program)


def emit_brainfuck(program: Program) -> str:
    return BrainfuckEmitter().emit(program)


__all__ = [
    "BrainfuckEmitter",
    "CGenerator",
    "READ_STATEMENTS",
    "emit_brainfuck",
    "generate_c",
]
