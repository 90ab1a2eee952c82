"""
Control-signal vocabulary of the single-cycle datapath.

Every multi-valued control line is an explicit enum. RegDst in particular
has a distinct NONE member for instructions that write no register, so a
store or branch can never be mistaken for an r2/r3 write.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class ALUOp(IntEnum):
    """ALU operation selector (numbering follows the classic ALUOp codes)."""

    ADD    = 0
    SUB    = 1
    SLT    = 2   # signed
    SLTU   = 3   # unsigned
    AND    = 4
    OR     = 5
    SLL16  = 6   # B << 16, used by lui
    R_TYPE = 7   # real operation comes from the funct field


class RegDst(Enum):
    RT   = "r2"
    RD   = "r3"
    NONE = "n/a"


class ALUSrc(Enum):
    REGISTER  = "register"
    IMMEDIATE = "immediate"


class Fault(Enum):
    """Reasons a single instruction step can fail."""

    MISALIGNED_FETCH            = "misaligned instruction fetch"
    OUT_OF_BOUNDS_FETCH         = "instruction fetch out of bounds"
    ILLEGAL_OPCODE              = "illegal opcode"
    INVALID_ALU_SRC_COMBINATION = "invalid ALUSrc/ALUOp/funct combination"
    MISALIGNED_MEMORY_ACCESS    = "misaligned memory access"
    OUT_OF_BOUNDS_MEMORY_ACCESS = "memory access out of bounds"


class ControlSignals:
    """Control vector produced by the decoder for one opcode."""

    __slots__ = ("mem_read", "mem_write", "reg_write", "reg_dst", "jump",
                 "branch", "mem_to_reg", "alu_src", "alu_op")

    def __init__(self, *, mem_read: bool = False, mem_write: bool = False,
                 reg_write: bool = False, reg_dst: RegDst = RegDst.NONE,
                 jump: bool = False, branch: bool = False,
                 mem_to_reg: bool = False,
                 alu_src: ALUSrc = ALUSrc.IMMEDIATE,
                 alu_op: ALUOp = ALUOp.ADD):
        if reg_write and reg_dst is RegDst.NONE:
            raise ValueError("RegWrite asserted without a destination")
        if mem_read and mem_write:
            raise ValueError("MemRead and MemWrite are mutually exclusive")
        object.__setattr__(self, "mem_read", mem_read)
        object.__setattr__(self, "mem_write", mem_write)
        object.__setattr__(self, "reg_write", reg_write)
        object.__setattr__(self, "reg_dst", reg_dst)
        object.__setattr__(self, "jump", jump)
        object.__setattr__(self, "branch", branch)
        object.__setattr__(self, "mem_to_reg", mem_to_reg)
        object.__setattr__(self, "alu_src", alu_src)
        object.__setattr__(self, "alu_op", alu_op)

    def __setattr__(self, name, value):
        raise AttributeError("ControlSignals is immutable")

    def _key(self):
        return tuple(getattr(self, name) for name in self.__slots__)

    def __eq__(self, other):
        if not isinstance(other, ControlSignals):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        flags = " ".join(
            name for name in ("mem_read", "mem_write", "reg_write", "jump",
                              "branch", "mem_to_reg")
            if getattr(self, name)
        )
        return (f"Ctrl({flags or '-'} dst={self.reg_dst.value} "
                f"src={self.alu_src.value} op={self.alu_op.name})")
