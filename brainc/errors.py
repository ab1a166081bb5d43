from __future__ import annotations

from typing import Optional


class BraincError(Exception):
    pass


class ParseError(BraincError):
    pass


class UnbalancedLeftBrackets(ParseError):
    def __init__(self, depth: int) -> None:
        super().__init__(f"Found {depth} unclosed left brackets")
        self.depth = depth


class UnbalancedRightBracket(ParseError):
    def __init__(self, index: int) -> None:
        super().__init__(f"Found unbalanced right bracket at {index}")
        self.index = index


class ExecutionError(BraincError):
    pass


class InterpreterIOError(ExecutionError):
    """Raised when reading input or writing output fails mid-run."""

    def __init__(self, message: str, inner: Optional[BaseException] = None) -> None:
        super().__init__(message if inner is None else f"{message}: {inner}")
        self.inner = inner


class EndOfInput(InterpreterIOError):
    def __init__(self) -> None:
        super().__init__("IO error: input stream exhausted")


class StepLimitExceeded(ExecutionError):
    """Raised when execution exceeds the configured step budget."""


__all__ = [
    "BraincError",
    "EndOfInput",
    "ExecutionError",
    "InterpreterIOError",
    "ParseError",
    "StepLimitExceeded",
    "UnbalancedLeftBrackets",
    "UnbalancedRightBracket",
]
