from .cells import CELL_SIZE, TAPE_SIZE, wrap_add_address, wrap_add_cell
from .codegen import BrainfuckEmitter, CGenerator, emit_brainfuck, generate_c
from .errors import (
    BraincError,
    EndOfInput,
    ExecutionError,
    InterpreterIOError,
    ParseError,
    StepLimitExceeded,
    UnbalancedLeftBrackets,
    UnbalancedRightBracket,
)
from .interpreter import EofPolicy, ExecutionState, Interpreter
from .parser import parse
from .program import Add, Loop, Move, Program, Read, SetConstant, Write
from .visualizer import VisualizerSession

__all__ = [
    "Add",
    "BraincError",
    "BrainfuckEmitter",
    "CELL_SIZE",
    "CGenerator",
    "EndOfInput",
    "EofPolicy",
    "ExecutionError",
    "ExecutionState",
    "Interpreter",
    "InterpreterIOError",
    "Loop",
    "Move",
    "ParseError",
    "Program",
    "Read",
    "SetConstant",
    "StepLimitExceeded",
    "TAPE_SIZE",
    "UnbalancedLeftBrackets",
    "UnbalancedRightBracket",
    "VisualizerSession",
    "Write",
    "emit_brainfuck",
    "generate_c",
    "parse",
    "wrap_add_address",
    "wrap_add_cell",
]
