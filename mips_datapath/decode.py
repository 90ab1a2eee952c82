"""
Instruction partitioning and the opcode -> control-vector decoder.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple

from .bits import sign_extend_16, to_signed_32, to_unsigned_32
from .signals import ALUOp, ALUSrc, ControlSignals, Fault, RegDst

# ─────────────────────────────────────────────────────────────────────────────
# Opcodes and function codes
# ─────────────────────────────────────────────────────────────────────────────

OP_RTYPE = 0
OP_J     = 2
OP_BEQ   = 4
OP_ADDI  = 8
OP_SLTI  = 10
OP_SLTIU = 11
OP_LUI   = 15
OP_LW    = 35
OP_SW    = 43

FUNCT_ADD  = 32
FUNCT_SUB  = 34
FUNCT_AND  = 36
FUNCT_OR   = 37
FUNCT_SLT  = 42
FUNCT_SLTU = 43

# register-type funct -> ALU operation
FUNCT_TABLE: Dict[int, ALUOp] = {
    FUNCT_ADD:  ALUOp.ADD,
    FUNCT_SUB:  ALUOp.SUB,
    FUNCT_AND:  ALUOp.AND,
    FUNCT_OR:   ALUOp.OR,
    FUNCT_SLT:  ALUOp.SLT,
    FUNCT_SLTU: ALUOp.SLTU,
}

# ─────────────────────────────────────────────────────────────────────────────
# Partition
# ─────────────────────────────────────────────────────────────────────────────

class InstructionFields:
    """The architecturally defined fields of one instruction word."""

    __slots__ = ("raw", "op", "r1", "r2", "r3", "funct", "offset", "jsec")

    def __init__(self, raw: int):
        self.raw    = to_unsigned_32(raw)
        self.op     = self.raw >> 26
        self.r1     = (self.raw >> 21) & 0x1F
        self.r2     = (self.raw >> 16) & 0x1F
        self.r3     = (self.raw >> 11) & 0x1F
        self.funct  = self.raw & 0x3F
        self.offset = self.raw & 0xFFFF
        self.jsec   = self.raw & 0x03FFFFFF

    @property
    def is_r_type(self) -> bool:
        return self.op == OP_RTYPE

    @property
    def extended_offset(self) -> int:
        return sign_extend_16(self.offset)

    def as_tuple(self) -> Tuple[int, int, int, int, int, int, int]:
        return (self.op, self.r1, self.r2, self.r3,
                self.funct, self.offset, self.jsec)

    def __repr__(self):
        return (f"Instr(op={self.op} r1={self.r1} r2={self.r2} r3={self.r3} "
                f"fn={self.funct} off={to_signed_32(self.extended_offset)} "
                f"jsec={self.jsec:#x})")


def instruction_partition(instruction: int) -> InstructionFields:
    return InstructionFields(instruction)


def encode_fields(op: int = 0, r1: int = 0, r2: int = 0, r3: int = 0,
                  funct: int = 0, offset: int = 0, jsec: int = 0) -> int:
    """
    Pack instruction fields into a word; the inverse of
    instruction_partition. Overlapping fields (offset covers r3 and funct,
    jsec covers r1..offset) are OR-ed together, so callers set only the
    fields their instruction format uses. Negative offsets are accepted
    and stored as 16-bit two's complement.
    """
    if not 0 <= op <= 0x3F:
        raise ValueError(f"opcode out of range: {op}")
    for name, reg in (("r1", r1), ("r2", r2), ("r3", r3)):
        if not 0 <= reg <= 0x1F:
            raise ValueError(f"register {name} out of range: {reg}")
    if not 0 <= funct <= 0x3F:
        raise ValueError(f"funct out of range: {funct}")
    if not -0x8000 <= offset <= 0xFFFF:
        raise ValueError(f"offset does not fit 16 bits: {offset}")
    if not 0 <= jsec <= 0x03FFFFFF:
        raise ValueError(f"jump target does not fit 26 bits: {jsec:#x}")
    word = (op << 26) | (r1 << 21) | (r2 << 16) | (r3 << 11)
    word |= funct
    word |= offset & 0xFFFF
    word |= jsec
    return word

# ─────────────────────────────────────────────────────────────────────────────
# Control decoder
# ─────────────────────────────────────────────────────────────────────────────

CONTROL_TABLE: Dict[int, ControlSignals] = {
    OP_RTYPE: ControlSignals(reg_write=True, reg_dst=RegDst.RD,
                             alu_src=ALUSrc.REGISTER, alu_op=ALUOp.R_TYPE),
    OP_J:     ControlSignals(jump=True,
                             alu_src=ALUSrc.IMMEDIATE, alu_op=ALUOp.ADD),
    OP_BEQ:   ControlSignals(branch=True,
                             alu_src=ALUSrc.REGISTER, alu_op=ALUOp.SUB),
    OP_ADDI:  ControlSignals(reg_write=True, reg_dst=RegDst.RT,
                             alu_src=ALUSrc.IMMEDIATE, alu_op=ALUOp.ADD),
    OP_SLTI:  ControlSignals(reg_write=True, reg_dst=RegDst.RT,
                             alu_src=ALUSrc.IMMEDIATE, alu_op=ALUOp.SLT),
    OP_SLTIU: ControlSignals(reg_write=True, reg_dst=RegDst.RT,
                             alu_src=ALUSrc.IMMEDIATE, alu_op=ALUOp.SLTU),
    OP_LUI:   ControlSignals(reg_write=True, reg_dst=RegDst.RT,
                             alu_src=ALUSrc.IMMEDIATE, alu_op=ALUOp.SLL16),
    OP_LW:    ControlSignals(mem_read=True, reg_write=True, reg_dst=RegDst.RT,
                             mem_to_reg=True,
                             alu_src=ALUSrc.IMMEDIATE, alu_op=ALUOp.ADD),
    OP_SW:    ControlSignals(mem_write=True,
                             alu_src=ALUSrc.IMMEDIATE, alu_op=ALUOp.ADD),
}


def instruction_decode(op: int) -> Tuple[Optional[ControlSignals], Optional[Fault]]:
    """Look up the control vector for *op*; unknown opcodes are illegal."""
    controls = CONTROL_TABLE.get(op)
    if controls is None:
        return None, Fault.ILLEGAL_OPCODE
    return controls, None
