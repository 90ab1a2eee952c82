"""
Two-pass assembler for the instruction subset the datapath executes.

    pass 1  split the source into an indexed list of SourceInstruction
            records and map every label to its byte address
    pass 2  encode each record, resolving label operands by lookup

Forward references work because every label is known before any
instruction is encoded.

Syntax
------
    loop:   addi $t0, $t0, -1     # comment
            beq  $t0, $zero, done
            j    loop
    done:   sw   $t0, 4($sp)
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence

from . import decode as d
from .state import REGISTER_NAMES, TEXT_BASE

log = logging.getLogger(__name__)

_MEM_OPERAND = re.compile(r"^(?P<off>[^()]*)\((?P<reg>[^()]+)\)$")
_LABEL = re.compile(r"^[A-Za-z_.][\w.]*$")
_PAREN_SPACE = re.compile(r"\s*\(\s*|\s*\)")

R_TYPE_FUNCTS = {
    "add":  d.FUNCT_ADD,
    "sub":  d.FUNCT_SUB,
    "and":  d.FUNCT_AND,
    "or":   d.FUNCT_OR,
    "slt":  d.FUNCT_SLT,
    "sltu": d.FUNCT_SLTU,
}

OPCODES = {
    "j":     d.OP_J,
    "beq":   d.OP_BEQ,
    "addi":  d.OP_ADDI,
    "slti":  d.OP_SLTI,
    "sltiu": d.OP_SLTIU,
    "lui":   d.OP_LUI,
    "lw":    d.OP_LW,
    "sw":    d.OP_SW,
}

OPERAND_COUNTS = {
    **{m: 3 for m in R_TYPE_FUNCTS},
    "j": 1, "beq": 3, "addi": 3, "slti": 3, "sltiu": 3,
    "lui": 2, "lw": 2, "sw": 2,
}


class AssemblerError(ValueError):
    """A source line could not be assembled."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class SourceInstruction:
    """One instruction as it appeared in the source."""

    __slots__ = ("mnemonic", "operands", "address", "line")

    def __init__(self, mnemonic: str, operands: List[str], address: int,
                 line: int):
        self.mnemonic = mnemonic
        self.operands = operands
        self.address = address
        self.line = line

    def __repr__(self):
        return (f"SourceInstruction({self.address:#06x}: {self.mnemonic} "
                f"{', '.join(self.operands)})")

# ─────────────────────────────────────────────────────────────────────────────
# Operand parsing
# ─────────────────────────────────────────────────────────────────────────────

def parse_register(token: str) -> int:
    """'$8', '$t0' or '$zero' -> register index."""
    if not token.startswith("$"):
        raise ValueError(f"expected a register, got {token!r}")
    name = token[1:]
    if name.isdigit():
        idx = int(name)
        if idx < len(REGISTER_NAMES):
            return idx
    elif name in REGISTER_NAMES:
        return REGISTER_NAMES.index(name)
    raise ValueError(f"unknown register {token!r}")


def parse_immediate(token: str) -> int:
    try:
        return int(token, 0)
    except ValueError:
        raise ValueError(f"expected an integer, got {token!r}") from None


def _check_signed16(value: int, what: str) -> int:
    if not -0x8000 <= value <= 0x7FFF:
        raise ValueError(f"{what} {value} does not fit in 16 signed bits")
    return value


def _check_imm16(value: int) -> int:
    # both signed (-5) and raw half-word (0xFFFF) spellings are accepted
    if not -0x8000 <= value <= 0xFFFF:
        raise ValueError(f"immediate {value} does not fit in 16 bits")
    return value

# ─────────────────────────────────────────────────────────────────────────────
# Pass 1
# ─────────────────────────────────────────────────────────────────────────────

def _split_line(text: str) -> List[str]:
    text = text.split("#", 1)[0]
    # "4 ( $sp )" -> "4($sp)"
    text = _PAREN_SPACE.sub(lambda m: m.group(0).strip(), text)
    return text.replace(",", " ").split()


def collect(lines: Sequence[str], base: int = TEXT_BASE):
    """
    Pass 1. Returns (instructions, labels): the instruction records in
    program order and a mapping of label name -> byte address.
    """
    instructions: List[SourceInstruction] = []
    labels: Dict[str, int] = {}
    for lineno, text in enumerate(lines, start=1):
        tokens = _split_line(text)
        while tokens and tokens[0].endswith(":"):
            name = tokens.pop(0)[:-1]
            if not _LABEL.match(name):
                raise AssemblerError(f"invalid label {name!r}", lineno)
            if name in labels:
                raise AssemblerError(f"duplicate label {name!r}", lineno)
            labels[name] = base + 4 * len(instructions)
        if not tokens:
            continue
        mnemonic = tokens[0].lower()
        if mnemonic not in OPERAND_COUNTS:
            raise AssemblerError(f"unknown instruction {tokens[0]!r}", lineno)
        operands = tokens[1:]
        if len(operands) != OPERAND_COUNTS[mnemonic]:
            raise AssemblerError(
                f"{mnemonic} takes {OPERAND_COUNTS[mnemonic]} operands, "
                f"got {len(operands)}", lineno)
        instructions.append(SourceInstruction(
            mnemonic, operands, base + 4 * len(instructions), lineno))
    log.debug("labels: %s", {k: hex(v) for k, v in labels.items()})
    return instructions, labels

# ─────────────────────────────────────────────────────────────────────────────
# Pass 2
# ─────────────────────────────────────────────────────────────────────────────

def _target(token: str, labels: Dict[str, int]) -> Optional[int]:
    """Label address, or None when the operand is a numeric literal."""
    if token in labels:
        return labels[token]
    if _LABEL.match(token):
        raise ValueError(f"undefined label {token!r}")
    return None


def encode(inst: SourceInstruction, labels: Dict[str, int]) -> int:
    m, ops = inst.mnemonic, inst.operands
    if m in R_TYPE_FUNCTS:
        rd, rs, rt = (parse_register(t) for t in ops)
        return d.encode_fields(d.OP_RTYPE, r1=rs, r2=rt, r3=rd,
                               funct=R_TYPE_FUNCTS[m])
    op = OPCODES[m]
    if m in ("addi", "slti", "sltiu"):
        rt, rs = parse_register(ops[0]), parse_register(ops[1])
        return d.encode_fields(op, r1=rs, r2=rt,
                               offset=_check_imm16(parse_immediate(ops[2])))
    if m == "lui":
        rt = parse_register(ops[0])
        return d.encode_fields(op, r2=rt,
                               offset=_check_imm16(parse_immediate(ops[1])))
    if m in ("lw", "sw"):
        rt = parse_register(ops[0])
        match = _MEM_OPERAND.match(ops[1])
        if match is None:
            raise ValueError(f"expected offset(base), got {ops[1]!r}")
        offset = parse_immediate(match.group("off")) if match.group("off") else 0
        rs = parse_register(match.group("reg"))
        return d.encode_fields(op, r1=rs, r2=rt,
                               offset=_check_signed16(offset, "offset"))
    if m == "beq":
        rs, rt = parse_register(ops[0]), parse_register(ops[1])
        target = _target(ops[2], labels)
        if target is None:
            offset = parse_immediate(ops[2])
        else:
            offset = (target - (inst.address + 4)) // 4
        return d.encode_fields(op, r1=rs, r2=rt,
                               offset=_check_signed16(offset, "branch offset"))
    # j
    target = _target(ops[0], labels)
    if target is None:
        target = parse_immediate(ops[0])
    if target % 4 != 0 or not 0 <= target <= 0xFFFFFFFF:
        raise ValueError(f"jump target {target:#x} is not a word address")
    # j keeps the top four bits of the PC
    if target & 0xF0000000 != (inst.address + 4) & 0xF0000000:
        raise ValueError(f"jump target {target:#x} is outside the 256MB "
                         f"region of {inst.address:#x}")
    return d.encode_fields(op, jsec=(target >> 2) & 0x03FFFFFF)


def assemble(source: str, base: int = TEXT_BASE) -> List[int]:
    """Assemble *source* text into instruction words."""
    instructions, labels = collect(source.splitlines(), base)
    words = []
    for inst in instructions:
        try:
            words.append(encode(inst, labels))
        except ValueError as e:
            raise AssemblerError(str(e), inst.line) from None
    return words


def format_hex(words: Sequence[int]) -> str:
    """One 8-digit lowercase hex word per line."""
    return "".join(f"{w:08x}\n" for w in words)
