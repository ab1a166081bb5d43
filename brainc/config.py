from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .cells import TAPE_SIZE
from .interpreter import EofPolicy, Interpreter


class RunConfiguration(BaseModel):
    tape_size: int = Field(default=TAPE_SIZE, ge=1)
    eof: EofPolicy = EofPolicy.ERROR
    max_steps: Optional[int] = Field(default=None, ge=1)
    input: Optional[str] = None
    tape_window: int = Field(default=10, ge=0)
    history_limit: int = Field(default=200, ge=1)

    @field_validator("eof", mode="before")
    @classmethod
    def normalize_eof(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.lower()
            if normalized not in {policy.value for policy in EofPolicy}:
                raise ValueError("eof must be one of 'error', 'zero' or 'unchanged'")
            return normalized
        return value

    def input_bytes(self) -> bytes:
        if self.input is None:
            return b""
        return self.input.encode("utf-8")

    def create_interpreter(self) -> Interpreter:
        return Interpreter(tape_size=self.tape_size, eof=self.eof)


__all__ = ["RunConfiguration"]
