"""
MIPS single-cycle datapath simulator
====================================
A pure-Python model of a non-pipelined MIPS-like processor. Each call to
``step`` fetches, decodes and executes exactly one 32-bit instruction
against an explicitly owned MachineState.

Supported instructions: add sub and or slt sltu (R-type), j, beq, addi,
slti, sltiu, lui, lw, sw.
"""

from .alu import ALU
from .assembler import AssemblerError, assemble, format_hex
from .datapath import StepResult, step
from .decode import CONTROL_TABLE, encode_fields, instruction_decode, instruction_partition
from .signals import ALUOp, ALUSrc, ControlSignals, Fault, RegDst
from .simulator import Simulator, parse_hex
from .state import MachineState, Memory, RegisterFile

__all__ = [
    "ALU", "ALUOp", "ALUSrc", "AssemblerError", "CONTROL_TABLE",
    "ControlSignals", "Fault", "MachineState", "Memory", "RegDst",
    "RegisterFile", "Simulator", "StepResult", "assemble", "encode_fields",
    "format_hex", "instruction_decode", "instruction_partition",
    "parse_hex", "step",
]
