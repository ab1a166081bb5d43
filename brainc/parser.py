from __future__ import annotations

from typing import List

from .errors import UnbalancedLeftBrackets, UnbalancedRightBracket
from .program import Add, Instruction, Move, Program, Read, Write, fold_into, freeze, into_loop

SIMPLE_COMMANDS = {
    ",": Read(),
    ".": Write(),
    "+": Add(1),
    "-": Add(-1),
    ">": Move(1),
    "<": Move(-1),
}


class Builder:
    """Accumulates folded instructions while the source is scanned.

    ``loops`` holds one open body per unmatched ``[``; instructions go to the
    innermost open body, or to ``root`` when no bracket is open.
    """

    def __init__(self) -> None:
        self.root: List[Instruction] = []
        self.loops: List[List[Instruction]] = []

    def current(self) -> List[Instruction]:
        if self.loops:
            return self.loops[-1]
        return self.root

    def emit(self, instruction: Instruction) -> None:
        fold_into(self.current(), instruction)

    def begin(self) -> None:
        self.loops.append([])

    def end(self, index: int) -> None:
        if not self.loops:
            raise UnbalancedRightBracket(index)
        body = self.loops.pop()
        self.emit(into_loop(body))

    def finish(self) -> Program:
        if self.loops:
            raise UnbalancedLeftBrackets(len(self.loops))
        return freeze(self.root)


def parse(source: str) -> Program:
    builder = Builder()
    for index, char in enumerate(source):
        if char in SIMPLE_COMMANDS:
            builder.emit(SIMPLE_COMMANDS[char])
        elif char == "[":
            builder.begin()
        elif char == "]":
            builder.end(index)
    return builder.finish()


__all__ = ["Builder", "SIMPLE_COMMANDS", "parse"]
