"""
Architectural state: register file, word-addressable memory and PC.

Every simulation owns its own MachineState; stages receive it (or its
parts) explicitly, so independent machines never share storage.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Tuple

from .bits import to_unsigned_32

NUM_REGISTERS = 32
MEMORY_BYTES  = 0x10000            # valid byte addresses: [0, 65536)
MEMORY_WORDS  = MEMORY_BYTES // 4
TEXT_BASE     = 0x4000             # where programs are loaded and start

REGISTER_NAMES = (
    "zero", "at", "v0", "v1", "a0", "a1", "a2", "a3",
    "t0", "t1", "t2", "t3", "t4", "t5", "t6", "t7",
    "s0", "s1", "s2", "s3", "s4", "s5", "s6", "s7",
    "t8", "t9", "k0", "k1", "gp", "sp", "fp", "ra",
)


def in_bounds(addr: int) -> bool:
    return 0 <= addr < MEMORY_BYTES


class RegisterFile:
    """
    32 general-purpose 32-bit registers.

    With hardwire_zero=False (the default) register 0 is an ordinary
    register. With hardwire_zero=True every write to index 0 is dropped,
    so $zero always reads 0.
    """

    def __init__(self, hardwire_zero: bool = False):
        self.hardwire_zero = hardwire_zero
        self._regs: List[int] = [0] * NUM_REGISTERS

    def __getitem__(self, idx: int) -> int:
        self._check(idx)
        return self._regs[idx]

    def __setitem__(self, idx: int, value: int):
        self._check(idx)
        if idx == 0 and self.hardwire_zero:
            return
        self._regs[idx] = to_unsigned_32(value)

    def __len__(self) -> int:
        return NUM_REGISTERS

    def __iter__(self) -> Iterator[int]:
        return iter(self._regs)

    def snapshot(self) -> Tuple[int, ...]:
        return tuple(self._regs)

    @staticmethod
    def _check(idx: int):
        if not 0 <= idx < NUM_REGISTERS:
            raise IndexError(f"register index out of range: {idx}")


class Memory:
    """16384 words of memory addressed by byte; accessed a word at a time."""

    def __init__(self):
        self.words: List[int] = [0] * MEMORY_WORDS

    def read_word(self, byte_addr: int) -> int:
        return self.words[self._index(byte_addr)]

    def write_word(self, byte_addr: int, value: int):
        self.words[self._index(byte_addr)] = to_unsigned_32(value)

    def load(self, words: Iterable[int], base: int = TEXT_BASE) -> int:
        """Copy consecutive words in starting at byte address *base*.
        Returns the number of words written."""
        count = 0
        for i, word in enumerate(words):
            self.write_word(base + i * 4, word)
            count += 1
        return count

    def nonzero(self) -> Iterator[Tuple[int, int]]:
        """Yield (byte_addr, word) for every non-zero word."""
        for i, word in enumerate(self.words):
            if word:
                yield i * 4, word

    @staticmethod
    def _index(byte_addr: int) -> int:
        if byte_addr % 4 != 0 or not in_bounds(byte_addr):
            raise IndexError(f"invalid word address {byte_addr:#x}")
        return byte_addr >> 2


class MachineState:
    """The three pieces of state one instruction step reads and mutates."""

    def __init__(self, pc: int = TEXT_BASE, hardwire_zero: bool = False):
        self.registers = RegisterFile(hardwire_zero=hardwire_zero)
        self.memory = Memory()
        self.pc = to_unsigned_32(pc)

    def __repr__(self):
        return f"MachineState(pc={self.pc:#010x})"
