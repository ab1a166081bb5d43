from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from .cells import wrap_add_cell

# === Instructions ===


class Instruction:
    pass


@dataclass(frozen=True)
class Add(Instruction):
    delta: int

    def __str__(self) -> str:
        return f"Add({self.delta:+d})"


@dataclass(frozen=True)
class Move(Instruction):
    delta: int

    def __str__(self) -> str:
        return f"Move({self.delta:+d})"


@dataclass(frozen=True)
class SetConstant(Instruction):
    value: int

    def __str__(self) -> str:
        return f"SetConstant({self.value})"


@dataclass(frozen=True)
class Loop(Instruction):
    body: "Program"

    def __str__(self) -> str:
        return f"Loop({len(self.body)})"


@dataclass(frozen=True)
class Read(Instruction):
    def __str__(self) -> str:
        return "Read"


@dataclass(frozen=True)
class Write(Instruction):
    def __str__(self) -> str:
        return "Write"


@dataclass(frozen=True)
class Program:
    """Ordered, immutable sequence of instructions.

    A ``Loop`` owns its nested ``Program`` outright, so a program is always a
    strict tree.
    """

    body: Tuple[Instruction, ...] = ()

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.body)

    def __len__(self) -> int:
        return len(self.body)

    def __getitem__(self, index: int) -> Instruction:
        return self.body[index]

    def depth(self) -> int:
        return max((len(path) for path, op in walk(self) if isinstance(op, Loop)), default=0)

    def lookup(self, path: Sequence[int]) -> Instruction:
        """Return the instruction addressed by a path of sibling indices."""
        if not path:
            raise IndexError("Empty instruction path")
        current: Program = self
        for index in path[:-1]:
            op = current.body[index]
            if not isinstance(op, Loop):
                raise IndexError(f"Path {format_path(path)} descends into {op}")
            current = op.body
        return current.body[path[-1]]


Path = Tuple[int, ...]


# === Folding ===


def merge(last: Instruction, new: Instruction) -> Optional[Instruction]:
    """Fuse two adjacent instructions, or return ``None`` if they do not fold."""
    if isinstance(last, Add) and isinstance(new, Add):
        return Add(last.delta + new.delta)
    if isinstance(last, Move) and isinstance(new, Move):
        return Move(last.delta + new.delta)
    if isinstance(last, SetConstant) and isinstance(new, Add):
        return SetConstant(wrap_add_cell(last.value, new.delta))
    if isinstance(last, (Add, SetConstant)) and isinstance(new, SetConstant):
        return new
    if isinstance(last, Move) and last.delta == 0:
        return new
    if isinstance(last, Add) and last.delta == 0:
        return new
    if isinstance(last, (Add, SetConstant)) and isinstance(new, Read):
        return new
    if isinstance(last, Loop) and isinstance(new, Loop):
        return last
    if isinstance(last, Loop) and not last.body:
        return new
    return None


def fold_into(body: List[Instruction], instruction: Instruction) -> None:
    """Append ``instruction`` to ``body``, folding it against the tail.

    A successful merge replaces the tail and the merged result is tried again
    against the new tail, so folds cascade until no further merge applies.
    """
    while body:
        merged = merge(body[-1], instruction)
        if merged is None:
            break
        body.pop()
        instruction = merged
    body.append(instruction)


def is_noop(instruction: Instruction) -> bool:
    return isinstance(instruction, (Add, Move)) and instruction.delta == 0


def freeze(body: List[Instruction]) -> Program:
    # A trailing zero delta has no following instruction to be folded away by.
    if body and is_noop(body[-1]):
        body = body[:-1]
    return Program(tuple(body))


def into_loop(body: List[Instruction]) -> Instruction:
    program = freeze(body)
    if program.body in ((Add(-1),), (Add(1),)):
        return SetConstant(0)
    return Loop(program)


# === Listing ===


def format_path(path: Sequence[int]) -> str:
    return ".".join(str(index) for index in path)


def parse_path(text: str) -> Path:
    parts = text.strip().split(".")
    try:
        path = tuple(int(part) for part in parts)
    except ValueError as exc:
        raise ValueError(f"Invalid instruction path '{text}'") from exc
    if any(index < 0 for index in path):
        raise ValueError(f"Invalid instruction path '{text}'")
    return path


def walk(program: Program, prefix: Path = ()) -> Iterator[Tuple[Path, Instruction]]:
    """Yield ``(path, instruction)`` pairs in pre-order without recursing."""
    frames: List[Tuple[Tuple[Instruction, ...], int, Path]] = [(program.body, 0, prefix)]
    while frames:
        body, index, parent = frames.pop()
        if index >= len(body):
            continue
        op = body[index]
        path = parent + (index,)
        yield path, op
        frames.append((body, index + 1, parent))
        if isinstance(op, Loop):
            frames.append((op.body.body, 0, path))


def format_program(program: Program, indent: str = "  ") -> str:
    """Render a numbered tree listing, one instruction per line."""
    lines: List[str] = []
    for path, op in walk(program):
        label = format_path(path)
        lines.append(f"{indent * (len(path) - 1)}{label:<8} {op}")
    return "\n".join(lines)


__all__ = [
    "Add",
    "Instruction",
    "Loop",
    "Move",
    "Path",
    "Program",
    "Read",
    "SetConstant",
    "Write",
    "fold_into",
    "format_path",
    "format_program",
    "freeze",
    "into_loop",
    "is_noop",
    "merge",
    "parse_path",
    "walk",
]
