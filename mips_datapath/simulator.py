"""
Driver loop around the single-cycle datapath.

The Simulator owns one MachineState and calls datapath.step() once per
instruction until a fault halts the machine or a step budget runs out.
A program stops by running into a word the datapath cannot execute; an
all-zero word (funct 0) is such a word, so falling off the end of a
loaded program halts it.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from . import datapath
from .assembler import assemble
from .bits import to_signed_32
from .datapath import StepResult
from .signals import Fault
from .state import MEMORY_BYTES, REGISTER_NAMES, TEXT_BASE, MachineState

log = logging.getLogger(__name__)


def parse_hex(lines: Iterable[str]) -> List[int]:
    """One hex word per line; blank lines and '#' comments are skipped."""
    words = []
    for lineno, line in enumerate(lines, start=1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        try:
            word = int(line, 16)
        except ValueError:
            raise ValueError(f"line {lineno}: not a hex word: {line!r}") from None
        if not 0 <= word <= 0xFFFFFFFF:
            raise ValueError(f"line {lineno}: word out of range: {line!r}")
        words.append(word)
    return words


class Simulator:
    """Single-cycle MIPS machine: state plus the run loop."""

    def __init__(self, entry: int = TEXT_BASE, hardwire_zero: bool = False):
        self.state = MachineState(pc=entry, hardwire_zero=hardwire_zero)
        self.steps = 0
        self.halted = False
        self.halt_fault: Optional[Fault] = None
        self.last: Optional[StepResult] = None
        self.program_words = 0

    # ── Convenience accessors ───────────────────────────────────────────

    @property
    def pc(self) -> int:
        return self.state.pc

    @property
    def registers(self):
        return self.state.registers

    @property
    def memory(self):
        return self.state.memory

    # ── Loading ─────────────────────────────────────────────────────────

    def load_program(self, words: Iterable[int], base: int = TEXT_BASE):
        """Copy instruction words into memory starting at byte address *base*.
        Nothing is written if the program does not fit."""
        words = list(words)
        if base % 4 != 0 or not 0 <= base < MEMORY_BYTES:
            raise ValueError(f"load address {base:#x} is not a valid word address")
        end = base + 4 * len(words)
        if end > MEMORY_BYTES:
            raise ValueError(f"{len(words)} words at {base:#x} end at {end:#x}, "
                             f"past the end of memory ({MEMORY_BYTES:#x})")
        self.program_words = self.state.memory.load(words, base)
        log.info("loaded %d words at %#06x", self.program_words, base)

    def load_hex(self, path: str, base: int = TEXT_BASE):
        with open(path, "r") as f:
            self.load_program(parse_hex(f), base)

    def load_source(self, source: str, base: int = TEXT_BASE):
        self.load_program(assemble(source, base), base)

    # ── Execution ───────────────────────────────────────────────────────

    def step(self) -> StepResult:
        """Execute one instruction. Does nothing once halted."""
        if self.halted:
            return self.last
        result = datapath.step(self.state)
        self.last = result
        if result.fault is not None:
            self.halted = True
            self.halt_fault = result.fault
            log.info("halted at pc=%#010x: %s", result.pc, result.fault.value)
        else:
            self.steps += 1
        return result

    def run(self, max_steps: int = 10000) -> bool:
        """Run until halted or *max_steps* instructions have executed.
        Returns True if the machine halted."""
        for _ in range(max_steps):
            self.step()
            if self.halted:
                return True
        log.warning("step limit of %d reached without halting", max_steps)
        return False

    # ── Debug / display ─────────────────────────────────────────────────

    def dump_registers(self) -> str:
        lines = ["═══ Register File ═══"]
        regs = self.state.registers.snapshot()
        for i in range(0, 32, 4):
            lines.append("  " + "  ".join(
                f"${REGISTER_NAMES[i + j]:<4s}={regs[i + j]:#010x}"
                for j in range(4)
            ))
        lines.append(f"  PC={self.state.pc:#010x}")
        return "\n".join(lines)

    def dump_memory(self, limit: int = 32) -> str:
        lines = ["═══ Memory (non-zero) ═══"]
        count = 0
        for addr, word in self.state.memory.nonzero():
            if count >= limit:
                lines.append("  ... (truncated)")
                break
            lines.append(f"  [{addr:#06x}] = {word:#010x}  ({to_signed_32(word)})")
            count += 1
        if count == 0:
            lines.append("  (empty)")
        return "\n".join(lines)

    def dump_stats(self) -> str:
        if self.halted:
            status = f"halted ({self.halt_fault.value})"
        else:
            status = "running"
        return "\n".join([
            "═══ Simulation Statistics ═══",
            f"  Program words:        {self.program_words}",
            f"  Instructions:         {self.steps}",
            f"  Status:               {status}",
            f"  Final PC:             {self.state.pc:#010x}",
        ])
