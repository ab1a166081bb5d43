from __future__ import annotations

import argparse
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path as FilePath
from typing import Iterator, List, Optional, Sequence

from pydantic import ValidationError

from .config import RunConfiguration
from .errors import ExecutionError, ParseError, StepLimitExceeded
from .interpreter import EofPolicy, ExecutionState, Interpreter
from .parser import parse
from .program import Path, Program, format_path, format_program, parse_path


@dataclass
class VisualizerSession:
    program: Program
    input_template: bytes = b""
    tape_window: int = 10
    max_steps: Optional[int] = None
    history_limit: int = 200
    source: Optional[str] = None
    eof: EofPolicy = EofPolicy.ERROR

    def __post_init__(self) -> None:
        self.breakpoints: set[Path] = set()
        self.history: List[ExecutionState] = []
        self.hit_breakpoint: Optional[Path] = None
        self._init_interpreter()

    def _init_interpreter(self) -> None:
        self.interpreter = Interpreter(eof=self.eof)
        self.step_iter: Iterator[ExecutionState] = self.interpreter.step(
            self.program,
            input_data=bytes(self.input_template),
            max_steps=self.max_steps,
            tape_window=self.tape_window,
        )
        self.finished = False
        self.last_state: ExecutionState = self._initial_state()
        self._record_state(self.last_state)

    def restart(self) -> None:
        self._init_interpreter()

    def _initial_state(self) -> ExecutionState:
        end = min(self.interpreter.tape_size, self.tape_window + 1)
        return ExecutionState(
            step=0,
            path=(),
            instruction=None,
            pointer=0,
            tape_start=0,
            tape=self.interpreter.tape[0:end],
            output=b"",
        )

    def _record_state(self, state: ExecutionState) -> None:
        self.history.append(state)
        if len(self.history) > self.history_limit:
            self.history.pop(0)
        self.last_state = state

    def step_forward(self, count: int = 1) -> Sequence[ExecutionState]:
        states: List[ExecutionState] = []
        if count <= 0:
            return states
        self.hit_breakpoint = None
        for _ in range(count):
            if self.finished:
                break
            try:
                state = next(self.step_iter)
            except StopIteration:
                self.finished = True
                break
            except ExecutionError:
                self.finished = True
                raise
            self._record_state(state)
            states.append(state)
            if state.instruction is None:
                self.finished = True
                break
            if state.path in self.breakpoints:
                self.hit_breakpoint = state.path
                break
        return states

    def run_until_break(self, limit: Optional[int] = None) -> Sequence[ExecutionState]:
        states: List[ExecutionState] = []
        executed = 0
        while limit is None or executed < limit:
            step_states = self.step_forward(1)
            if not step_states:
                break
            states.extend(step_states)
            executed += 1
            if self.hit_breakpoint is not None:
                break
        return states

    def current_state(self) -> ExecutionState:
        return self.last_state

    def add_breakpoint(self, path: Sequence[int]) -> None:
        key = tuple(path)
        self.program.lookup(key)
        self.breakpoints.add(key)

    def remove_breakpoint(self, path: Sequence[int]) -> bool:
        key = tuple(path)
        if key in self.breakpoints:
            self.breakpoints.remove(key)
            return True
        return False

    def clear_breakpoints(self) -> None:
        self.breakpoints.clear()

    def list_breakpoints(self) -> List[Path]:
        return sorted(self.breakpoints)

    def is_finished(self) -> bool:
        return self.finished


def format_state(state: ExecutionState) -> str:
    lines: List[str] = []
    if state.instruction is None:
        location = "(end)" if state.step else "(init)"
    else:
        location = f"{format_path(state.path)} {state.instruction}"
    lines.append(f"step={state.step} at={location} pointer={state.pointer}")
    if state.output:
        lines.append(f"output={state.output!r}")
    tape_parts: List[str] = []
    for idx, value in enumerate(state.tape):
        absolute = state.tape_start + idx
        cell_repr = f"{absolute}:{value:03}"
        if absolute == state.pointer:
            tape_parts.append(f"[{cell_repr}]")
        else:
            tape_parts.append(f" {cell_repr} ")
    lines.append("tape=" + " ".join(tape_parts))
    return "\n".join(lines)


def run_repl(session: VisualizerSession) -> None:
    print("brainc visualizer (type 'help' for commands)")
    _print_state(session.current_state())
    while True:
        try:
            line = input("(viz) ").strip()
        except EOFError:
            print()
            break
        if not line:
            continue
        parts = shlex.split(line)
        command = parts[0].lower()
        args = parts[1:]
        try:
            if command in {"n", "next"}:
                count = 1
                if args:
                    count = max(1, int(args[0]))
                states = session.step_forward(count)
                if states:
                    _print_state(states[-1])
                elif session.is_finished():
                    print("Program has finished.")
            elif command in {"r", "run"}:
                limit = int(args[0]) if args else None
                states = session.run_until_break(limit)
                if states:
                    _print_state(states[-1])
                    if session.hit_breakpoint is not None:
                        print(f"Stopped at breakpoint {format_path(session.hit_breakpoint)}.")
                        session.hit_breakpoint = None
                elif session.is_finished():
                    print("Program has finished.")
            elif command == "state":
                _print_state(session.current_state())
            elif command == "history":
                count = int(args[0]) if args else 10
                for state in session.history[-count:]:
                    print("-" * 40)
                    print(format_state(state))
            elif command == "list":
                print(format_program(session.program) or "(empty program)")
            elif command == "source":
                print(session.source if session.source is not None else "(no source text)")
            elif command == "break":
                if not args:
                    print("Specify an instruction path, e.g. 'break 2.0'.")
                    continue
                path = parse_path(args[0])
                session.add_breakpoint(path)
                print(f"Breakpoint set at {format_path(path)}.")
            elif command == "breaks":
                points = session.list_breakpoints()
                if not points:
                    print("No breakpoints.")
                else:
                    print("Breakpoints:", ", ".join(format_path(point) for point in points))
            elif command == "clear":
                if not args:
                    session.clear_breakpoints()
                    print("All breakpoints removed.")
                else:
                    path = parse_path(args[0])
                    if session.remove_breakpoint(path):
                        print(f"Breakpoint {format_path(path)} removed.")
                    else:
                        print(f"No breakpoint at {format_path(path)}.")
            elif command == "restart":
                session.restart()
                print("Session restarted.")
                _print_state(session.current_state())
            elif command in {"quit", "exit"}:
                break
            elif command == "help":
                _print_help()
            else:
                print("Unknown command; see 'help'.")
        except (ValueError, IndexError) as exc:
            print(f"Invalid argument: {exc}", file=sys.stderr)
        except StepLimitExceeded:
            print("Step limit reached.", file=sys.stderr)
        except ExecutionError as exc:
            print(f"Runtime error: {exc}", file=sys.stderr)


def _print_state(state: ExecutionState) -> None:
    print("-" * 40)
    print(format_state(state))


def _print_help() -> None:
    print(
        "Commands:\n"
        "  next [N]      : execute N steps (default 1)\n"
        "  run [N]       : run until a breakpoint or N steps\n"
        "  state         : show the current state\n"
        "  history [N]   : show the last N states\n"
        "  list          : show the instruction tree with paths\n"
        "  source        : show the program source text\n"
        "  break PATH    : stop after the instruction at PATH (e.g. 1.0)\n"
        "  breaks        : list breakpoints\n"
        "  clear [PATH]  : remove a breakpoint (all when PATH is omitted)\n"
        "  restart       : restart the session\n"
        "  quit/exit     : leave the visualizer\n"
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="brainc-viz", description="brainc step visualizer")
    parser.add_argument("source", help="Path to Brainfuck source file")
    parser.add_argument("--input", default="", help="Input string supplied to the program")
    parser.add_argument("--eof", default="error", help="Behaviour of ',' at end of input")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=5_000_000,
        help="Step limit (default: 5,000,000)",
    )
    parser.add_argument("--tape-window", type=int, default=10, help="Cells shown around the pointer")
    parser.add_argument("--history-limit", type=int, default=200, help="Number of states kept in history")
    args = parser.parse_args(argv)

    try:
        config = RunConfiguration(
            eof=args.eof,
            max_steps=args.max_steps,
            input=args.input,
            tape_window=args.tape_window,
            history_limit=args.history_limit,
        )
    except ValidationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    try:
        source_text = FilePath(args.source).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        print(f"Cannot open source file: {exc}", file=sys.stderr)
        return 1

    try:
        program = parse(source_text)
    except ParseError as exc:
        print(f"Parse error: {exc}", file=sys.stderr)
        return 1

    session = VisualizerSession(
        program,
        input_template=config.input_bytes(),
        tape_window=config.tape_window,
        max_steps=config.max_steps,
        history_limit=config.history_limit,
        source=source_text,
        eof=config.eof,
    )
    run_repl(session)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
