"""
Single-cycle datapath
=====================
One call to step() executes exactly one instruction through the classic
stages, in order:

    fetch -> partition -> decode -> register read -> sign extend
          -> ALU -> memory -> write-back -> PC update

Each stage is a plain function of the values it needs. Runtime faults are
returned as Fault values, never raised; the first fault ends the step
before anything is committed, so registers, memory and the PC are left
exactly as they were.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from .alu import ALU
from .bits import is_word_aligned, sign_extend_16, to_unsigned_32
from .decode import (FUNCT_TABLE, InstructionFields, instruction_decode,
                     instruction_partition)
from .signals import ALUOp, ALUSrc, ControlSignals, Fault, RegDst
from .state import MachineState, Memory, RegisterFile, in_bounds

log = logging.getLogger(__name__)

# ALU operations an immediate-operand instruction may request
IMMEDIATE_OPS = (ALUOp.ADD, ALUOp.SLT, ALUOp.SLTU, ALUOp.SLL16)

# ─────────────────────────────────────────────────────────────────────────────
# Stages
# ─────────────────────────────────────────────────────────────────────────────

def instruction_fetch(pc: int, memory: Memory) -> Tuple[int, Optional[Fault]]:
    """Read the word at *pc*. Memory is not touched when *pc* is invalid."""
    if not is_word_aligned(pc):
        return 0, Fault.MISALIGNED_FETCH
    if not in_bounds(pc):
        return 0, Fault.OUT_OF_BOUNDS_FETCH
    return memory.read_word(pc), None


def read_register(r1: int, r2: int, registers: RegisterFile) -> Tuple[int, int]:
    return registers[r1], registers[r2]


def select_alu_operation(alu_src: ALUSrc, alu_op: ALUOp,
                         funct: int) -> Tuple[Optional[ALUOp], Optional[Fault]]:
    """
    Resolve the concrete ALU operation.

    Register operand: R_TYPE dispatches on funct; SUB is the branch-equal
    comparison and is used as is. Immediate operand: ALUOp names the
    operation directly. Anything else is an invalid combination.
    """
    if alu_src is ALUSrc.REGISTER:
        if alu_op == ALUOp.R_TYPE:
            op = FUNCT_TABLE.get(funct)
            if op is None:
                return None, Fault.INVALID_ALU_SRC_COMBINATION
            return op, None
        if alu_op == ALUOp.SUB:
            return ALUOp.SUB, None
        return None, Fault.INVALID_ALU_SRC_COMBINATION
    if alu_src is ALUSrc.IMMEDIATE and alu_op in IMMEDIATE_OPS:
        return alu_op, None
    return None, Fault.INVALID_ALU_SRC_COMBINATION


def alu_operations(data1: int, data2: int, extended_value: int, funct: int,
                   alu_op: ALUOp, alu_src: ALUSrc
                   ) -> Tuple[int, bool, Optional[Fault]]:
    """Pick the ALU's second operand and operation, then run the ALU.
    Returns (result, zero, fault)."""
    op, fault = select_alu_operation(alu_src, alu_op, funct)
    if fault is not None:
        return 0, False, fault
    b = data2 if alu_src is ALUSrc.REGISTER else extended_value
    result, zero = ALU.execute(data1, b, op)
    return result, zero, None


def rw_memory(alu_result: int, write_data: int, mem_write: bool,
              mem_read: bool, memory: Memory) -> Tuple[int, Optional[Fault]]:
    """
    Data memory stage. The ALU result is the byte address; it is only
    validated when a read or write is asserted. Returns (memdata, fault).
    """
    if not (mem_write or mem_read):
        return 0, None
    if not is_word_aligned(alu_result):
        return 0, Fault.MISALIGNED_MEMORY_ACCESS
    if not in_bounds(alu_result):
        return 0, Fault.OUT_OF_BOUNDS_MEMORY_ACCESS
    if mem_write:
        memory.write_word(alu_result, write_data)
    if mem_read:
        return memory.read_word(alu_result), None
    return 0, None


def write_register(r2: int, r3: int, memdata: int, alu_result: int,
                   controls: ControlSignals, registers: RegisterFile):
    if not controls.reg_write:
        return
    value = memdata if controls.mem_to_reg else alu_result
    if controls.reg_dst is RegDst.RT:
        registers[r2] = value
    elif controls.reg_dst is RegDst.RD:
        registers[r3] = value


def pc_update(pc: int, jsec: int, extended_value: int, branch: bool,
              jump: bool, zero: bool) -> int:
    """
    Next PC. A jump keeps the top four bits of the current PC; a taken
    branch is relative to PC+4. The result is not validated here, the next
    fetch does that.
    """
    if jump:
        return (pc & 0xF0000000) | ((jsec << 2) & 0x0FFFFFFF)
    if branch and zero:
        return to_unsigned_32(pc + 4 + (extended_value << 2))
    return to_unsigned_32(pc + 4)

# ─────────────────────────────────────────────────────────────────────────────
# One full instruction
# ─────────────────────────────────────────────────────────────────────────────

class StepResult:
    """What one step did. fault is None when the instruction completed."""

    __slots__ = ("pc", "next_pc", "instruction", "fields", "controls",
                 "alu_result", "zero", "memdata", "fault")

    def __init__(self, pc: int):
        self.pc = pc
        self.next_pc = pc
        self.instruction: Optional[int] = None
        self.fields: Optional[InstructionFields] = None
        self.controls: Optional[ControlSignals] = None
        self.alu_result = 0
        self.zero = False
        self.memdata = 0
        self.fault: Optional[Fault] = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    def __repr__(self):
        status = self.fault.name if self.fault else "ok"
        word = "--------" if self.instruction is None else f"{self.instruction:08x}"
        return f"Step(pc={self.pc:#010x} word={word} {status})"


def _failed(result: StepResult, fault: Fault) -> StepResult:
    result.fault = fault
    log.debug("pc=%#010x fault: %s", result.pc, fault.value)
    return result


def step(state: MachineState) -> StepResult:
    """Execute the instruction at state.pc, mutating *state* in place."""
    result = StepResult(state.pc)

    instruction, fault = instruction_fetch(state.pc, state.memory)
    if fault is not None:
        return _failed(result, fault)
    result.instruction = instruction

    fields = instruction_partition(instruction)
    result.fields = fields

    controls, fault = instruction_decode(fields.op)
    if fault is not None:
        return _failed(result, fault)
    result.controls = controls

    data1, data2 = read_register(fields.r1, fields.r2, state.registers)
    extended_value = sign_extend_16(fields.offset)

    alu_result, zero, fault = alu_operations(
        data1, data2, extended_value, fields.funct,
        controls.alu_op, controls.alu_src)
    if fault is not None:
        return _failed(result, fault)
    result.alu_result, result.zero = alu_result, zero

    memdata, fault = rw_memory(alu_result, data2, controls.mem_write,
                               controls.mem_read, state.memory)
    if fault is not None:
        return _failed(result, fault)
    result.memdata = memdata

    write_register(fields.r2, fields.r3, memdata, alu_result, controls,
                   state.registers)

    state.pc = pc_update(state.pc, fields.jsec, extended_value,
                         controls.branch, controls.jump, zero)
    result.next_pc = state.pc

    log.debug("pc=%#010x %08x %r alu=%#010x -> pc=%#010x",
              result.pc, instruction, controls, alu_result, state.pc)
    return result
