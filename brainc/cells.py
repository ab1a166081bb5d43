from __future__ import annotations

CELL_SIZE = 256
TAPE_SIZE = 64 * 1024


def wrap_add(value: int, delta: int, modulus: int) -> int:
    """Add ``delta`` to ``value`` and reduce into ``[0, modulus)``.

    The intermediate remainder is normalized before the final reduction so the
    result does not depend on how the host treats negative remainders.
    """
    total = (value + delta) % modulus
    total += modulus
    return total % modulus


def wrap_add_cell(value: int, delta: int) -> int:
    return wrap_add(value, delta, CELL_SIZE)


def wrap_add_address(address: int, delta: int, tape_size: int = TAPE_SIZE) -> int:
    return wrap_add(address, delta, tape_size)


__all__ = [
    "CELL_SIZE",
    "TAPE_SIZE",
    "wrap_add",
    "wrap_add_address",
    "wrap_add_cell",
]
