"""
32-bit ALU of the single-cycle datapath.
"""

from __future__ import annotations

from typing import Tuple

from .bits import to_signed_32, to_unsigned_32
from .signals import ALUOp


class ALU:
    """
    Pure combinational ALU: ADD, SUB, SLT, SLTU, AND, OR and the lui
    half-word shift. Returns (result, zero_flag).

    SLT compares its operands as signed words, SLTU as unsigned words.
    """

    @staticmethod
    def execute(a: int, b: int, op: ALUOp) -> Tuple[int, bool]:
        a, b = to_unsigned_32(a), to_unsigned_32(b)
        if op == ALUOp.ADD:
            result = a + b
        elif op == ALUOp.SUB:
            result = a - b
        elif op == ALUOp.SLT:
            result = 1 if to_signed_32(a) < to_signed_32(b) else 0
        elif op == ALUOp.SLTU:
            result = 1 if a < b else 0
        elif op == ALUOp.AND:
            result = a & b
        elif op == ALUOp.OR:
            result = a | b
        elif op == ALUOp.SLL16:
            result = b << 16
        else:
            # R_TYPE must be resolved from funct before reaching the ALU
            raise ValueError(f"ALU cannot execute selector {op!r}")
        result = to_unsigned_32(result)
        return result, (result == 0)
