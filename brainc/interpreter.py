from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Iterator, List, Optional, Tuple

from .cells import TAPE_SIZE, wrap_add_address, wrap_add_cell
from .errors import EndOfInput, InterpreterIOError, StepLimitExceeded
from .program import Add, Instruction, Loop, Move, Path, Program, Read, SetConstant, Write


class EofPolicy(str, Enum):
    """What ``Read`` does once the input stream is exhausted."""

    ERROR = "error"
    ZERO = "zero"
    UNCHANGED = "unchanged"


@dataclass
class ExecutionState:
    step: int
    path: Path
    instruction: Optional[Instruction]
    pointer: int
    tape_start: int
    tape: List[int]
    output: bytes


@dataclass
class Interpreter:
    tape_size: int = TAPE_SIZE
    eof: EofPolicy = EofPolicy.ERROR

    tape: List[int] = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    steps: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.tape_size < 1:
            raise ValueError("tape_size must be positive")
        self.eof = EofPolicy(self.eof)
        self.reset()

    def reset(self) -> None:
        self.tape = [0] * self.tape_size
        self.pointer = 0
        self.steps = 0
        self._max_steps: Optional[int] = None
        self._input: BinaryIO = io.BytesIO()
        self._output: BinaryIO = io.BytesIO()

    def run(
        self,
        program: Program,
        input_stream: Optional[BinaryIO] = None,
        output_stream: Optional[BinaryIO] = None,
        max_steps: Optional[int] = None,
    ) -> None:
        self._start(input_stream, output_stream, max_steps)
        try:
            self._execute(program)
        finally:
            self._flush()

    def run_bytes(
        self,
        program: Program,
        input_data: bytes = b"",
        max_steps: Optional[int] = None,
    ) -> bytes:
        output = io.BytesIO()
        self.run(program, io.BytesIO(input_data), output, max_steps=max_steps)
        return output.getvalue()

    def step(
        self,
        program: Program,
        input_data: bytes = b"",
        max_steps: Optional[int] = None,
        tape_window: int = 10,
    ) -> Iterator[ExecutionState]:
        """Execute ``program`` lazily, yielding a snapshot after every step.

        A step is either one leaf instruction or one evaluation of a loop
        condition. A last snapshot with ``instruction=None`` marks completion.
        """
        output = io.BytesIO()
        self._start(io.BytesIO(input_data), output, max_steps)
        for path, op in self._walk(program):
            yield self._snapshot(path, op, output, tape_window)
        yield self._snapshot((), None, output, tape_window)

    # --- Execution ---

    def _start(
        self,
        input_stream: Optional[BinaryIO],
        output_stream: Optional[BinaryIO],
        max_steps: Optional[int],
    ) -> None:
        self.reset()
        self._max_steps = max_steps
        if input_stream is not None:
            self._input = input_stream
        if output_stream is not None:
            self._output = output_stream

    def _execute(self, program: Program) -> None:
        # Frames are (body, index); a finished loop body falls back to the
        # frame of its Loop, which re-tests the condition.
        frames: List[Tuple[Tuple[Instruction, ...], int]] = [(program.body, 0)]
        while frames:
            body, index = frames.pop()
            if index >= len(body):
                continue
            op = body[index]
            if isinstance(op, Loop):
                if self._test_loop():
                    frames.append((body, index))
                    frames.append((op.body.body, 0))
                else:
                    frames.append((body, index + 1))
            else:
                self._tick()
                self._execute_instruction(op)
                frames.append((body, index + 1))

    def _walk(self, program: Program) -> Iterator[Tuple[Path, Instruction]]:
        frames: List[Tuple[Tuple[Instruction, ...], int, Path]] = [(program.body, 0, ())]
        while frames:
            body, index, prefix = frames.pop()
            if index >= len(body):
                continue
            op = body[index]
            path = prefix + (index,)
            if isinstance(op, Loop):
                taken = self._test_loop()
                yield path, op
                if taken:
                    frames.append((body, index, prefix))
                    frames.append((op.body.body, 0, path))
                else:
                    frames.append((body, index + 1, prefix))
            else:
                self._tick()
                self._execute_instruction(op)
                yield path, op
                frames.append((body, index + 1, prefix))

    def _tick(self) -> None:
        self.steps += 1
        if self._max_steps is not None and self.steps > self._max_steps:
            raise StepLimitExceeded("Program exceeded allowed step count")

    def _test_loop(self) -> bool:
        self._tick()
        return self.tape[self.pointer] != 0

    def _execute_instruction(self, op: Instruction) -> None:
        if isinstance(op, Add):
            self.tape[self.pointer] = wrap_add_cell(self.tape[self.pointer], op.delta)
        elif isinstance(op, Move):
            self.pointer = wrap_add_address(self.pointer, op.delta, self.tape_size)
        elif isinstance(op, SetConstant):
            self.tape[self.pointer] = op.value
        elif isinstance(op, Read):
            self._read()
        elif isinstance(op, Write):
            self._write()
        else:
            raise TypeError(f"Unsupported instruction: {op!r}")

    def _read(self) -> None:
        self._flush()
        try:
            data = self._input.read(1)
        except OSError as exc:
            raise InterpreterIOError("IO error while reading input", exc) from exc
        if data:
            self.tape[self.pointer] = data[0]
        elif self.eof is EofPolicy.ZERO:
            self.tape[self.pointer] = 0
        elif self.eof is EofPolicy.ERROR:
            raise EndOfInput()

    def _write(self) -> None:
        try:
            self._output.write(bytes((self.tape[self.pointer],)))
        except OSError as exc:
            raise InterpreterIOError("IO error while writing output", exc) from exc

    def _flush(self) -> None:
        try:
            self._output.flush()
        except OSError as exc:
            raise InterpreterIOError("IO error while flushing output", exc) from exc

    def _snapshot(
        self,
        path: Path,
        instruction: Optional[Instruction],
        output: io.BytesIO,
        tape_window: int,
    ) -> ExecutionState:
        start = max(0, self.pointer - tape_window)
        end = min(self.tape_size, self.pointer + tape_window + 1)
        return ExecutionState(
            step=self.steps,
            path=path,
            instruction=instruction,
            pointer=self.pointer,
            tape_start=start,
            tape=self.tape[start:end],
            output=output.getvalue(),
        )


__all__ = [
    "EofPolicy",
    "ExecutionState",
    "Interpreter",
]
