"""
Built-in demo program and the register/memory values it must leave behind.
"""

from __future__ import annotations

from typing import List, Tuple

from .bits import to_unsigned_32
from .simulator import Simulator

DEMO_SOURCE = """\
        addi  $t0, $zero, 5       # $t0 = 5
        addi  $t1, $zero, 10      # $t1 = 10
        add   $t2, $t0, $t1       # $t2 = 15
        sub   $t3, $t1, $t0       # $t3 = 5
        and   $t4, $t2, $t3       # $t4 = 5
        or    $t5, $t0, $t1       # $t5 = 15
        slt   $t6, $t0, $t1       # $t6 = 1  (5 < 10)
        lui   $t8, 0x1234         # $t8 = 0x12340000
        sw    $t2, 256($zero)     # mem[0x100] = 15
        lw    $t7, 256($zero)     # $t7 = 15
loop:   addi  $t0, $t0, -1        # count $t0 down to 0
        beq   $t0, $zero, done
        j     loop
done:   sltiu $s0, $t0, 1         # $s0 = 1  (0 < 1)
        slti  $s1, $t1, -1        # $s1 = 0  (10 < -1 signed)
        sltiu $s2, $t1, -1        # $s2 = 1  (10 < 0xffffffff unsigned)
"""

# (register index, expected value, description)
DEMO_CHECKS: List[Tuple[int, int, str]] = [
    (8,  0,          "$t0 = 0  (loop ran to completion)"),
    (10, 15,         "$t2 = 15 (5 + 10)"),
    (11, 5,          "$t3 = 5  (10 - 5)"),
    (12, 5,          "$t4 = 5  (15 & 5)"),
    (13, 15,         "$t5 = 15 (5 | 10)"),
    (14, 1,          "$t6 = 1  (5 < 10)"),
    (15, 15,         "$t7 = 15 (loaded from mem[0x100])"),
    (24, 0x12340000, "$t8 = 0x12340000 (lui)"),
    (16, 1,          "$s0 = 1  (sltiu)"),
    (17, 0,          "$s1 = 0  (slti, signed)"),
    (18, 1,          "$s2 = 1  (sltiu, unsigned)"),
]
DEMO_MEMORY = [(0x100, 15, "mem[0x100] = 15")]


def run_demo(max_steps: int = 1000) -> Simulator:
    sim = Simulator()
    sim.load_source(DEMO_SOURCE)
    sim.run(max_steps=max_steps)
    return sim


def check_demo(sim: Simulator) -> List[Tuple[bool, str, int, int]]:
    """Returns (passed, description, actual, expected) per check."""
    results = []
    for reg, expected, desc in DEMO_CHECKS:
        actual = sim.registers[reg]
        results.append((actual == to_unsigned_32(expected), desc, actual, expected))
    for addr, expected, desc in DEMO_MEMORY:
        actual = sim.memory.read_word(addr)
        results.append((actual == expected, desc, actual, expected))
    return results
