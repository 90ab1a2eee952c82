"""
Command line front end.

    mips-datapath asm program.asm -o program.hex
    mips-datapath run program.hex --steps 500
    mips-datapath run program.asm -v
    mips-datapath run                  # built-in demo program
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .assembler import AssemblerError, assemble, format_hex
from .demo import DEMO_SOURCE, check_demo
from .simulator import Simulator
from .state import TEXT_BASE

ASM_SUFFIXES = (".asm", ".s")


def _int(text: str) -> int:
    return int(text, 0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mips-datapath",
        description="Single-cycle MIPS datapath simulator"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    asm = sub.add_parser("asm", help="Assemble a source file to hex words")
    asm.add_argument("source", help="Assembly source file")
    asm.add_argument("--output", "-o", default=None,
                     help="Write hex here instead of stdout")
    asm.add_argument("--base", type=_int, default=TEXT_BASE,
                     help="Address of the first instruction (default 0x4000)")

    run = sub.add_parser("run", help="Execute a hex or assembly program")
    run.add_argument("program", nargs="?", default=None,
                     help="Hex file (one word per line) or .asm/.s source; "
                          "runs the built-in demo when omitted")
    run.add_argument("--steps", "-n", type=int, default=10000,
                     help="Maximum instructions to execute (default 10000)")
    run.add_argument("--entry", type=_int, default=TEXT_BASE,
                     help="Load address and initial PC (default 0x4000)")
    run.add_argument("--hardwire-zero", action="store_true",
                     help="Drop writes to register $0")
    run.add_argument("--verbose", "-v", action="store_true",
                     help="Log every executed instruction")
    return parser


def _cmd_asm(args) -> int:
    with open(args.source, "r") as f:
        words = assemble(f.read(), args.base)
    text = format_hex(words)
    if args.output:
        with open(args.output, "w") as f:
            f.write(text)
    else:
        sys.stdout.write(text)
    return 0


def _cmd_run(args) -> int:
    sim = Simulator(entry=args.entry, hardwire_zero=args.hardwire_zero)
    if args.program is None:
        sim.load_source(DEMO_SOURCE, args.entry)
        print(f"Running built-in demo program ({sim.program_words} instructions)\n")
    elif args.program.endswith(ASM_SUFFIXES):
        with open(args.program, "r") as f:
            sim.load_source(f.read(), args.entry)
        print(f"Loaded {sim.program_words} instructions from {args.program}\n")
    else:
        sim.load_hex(args.program, args.entry)
        print(f"Loaded {sim.program_words} words from {args.program}\n")

    halted = sim.run(max_steps=args.steps)

    print(sim.dump_registers())
    print()
    print(sim.dump_memory())
    print()
    print(sim.dump_stats())

    if args.program is None:
        print("\n═══ Demo Assertions ═══")
        all_pass = True
        for passed, desc, actual, expected in check_demo(sim):
            all_pass = all_pass and passed
            print(f"  {'✓' if passed else '✗'}  {desc}  "
                  f"(got {actual:#010x}, expected {expected:#010x})")
        print("\n  All checks passed" if all_pass else "\n  Some checks failed")
    return 0 if halted else 2


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "asm":
            return _cmd_asm(args)
        return _cmd_run(args)
    except (AssemblerError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
