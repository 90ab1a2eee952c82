import contextlib
import io
import os
import tempfile
import unittest

from mips_datapath.cli import main

PROGRAM = """\
        addi $t0, $zero, 3
loop:   addi $t0, $t0, -1
        beq  $t0, $zero, done
        j    loop
done:   sw   $t0, 0($zero)
"""


class TestCLI(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def path(self, name, content=None):
        p = os.path.join(self.tmp.name, name)
        if content is not None:
            with open(p, "w") as f:
                f.write(content)
        return p

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_asm_to_stdout(self):
        src = self.path("p.asm", "addi $t0, $zero, 5\n")
        code, out, _ = self.run_cli("asm", src)
        self.assertEqual(code, 0)
        self.assertEqual(out, "20080005\n")

    def test_asm_then_run_hex(self):
        src = self.path("p.asm", PROGRAM)
        hexfile = self.path("p.hex")
        self.assertEqual(self.run_cli("asm", src, "-o", hexfile)[0], 0)
        with open(hexfile) as f:
            self.assertEqual(len(f.read().split()), 5)

        code, out, _ = self.run_cli("run", hexfile)
        self.assertEqual(code, 0)
        self.assertIn("Loaded 5 words", out)
        self.assertIn("Instructions:         10", out)
        self.assertIn("halted", out)

    def test_run_assembly_directly(self):
        src = self.path("p.s", PROGRAM)
        code, out, _ = self.run_cli("run", src)
        self.assertEqual(code, 0)
        self.assertIn("Loaded 5 instructions", out)

    def test_step_limit_exit_code(self):
        src = self.path("spin.asm", "x: j x\n")
        code, _, _ = self.run_cli("run", src, "--steps", "10")
        self.assertEqual(code, 2)

    def test_demo(self):
        code, out, _ = self.run_cli("run")
        self.assertEqual(code, 0)
        self.assertIn("All checks passed", out)

    def test_errors(self):
        bad = self.path("bad.asm", "frob $t0\n")
        code, _, err = self.run_cli("asm", bad)
        self.assertEqual(code, 1)
        self.assertIn("line 1", err)

        code, _, err = self.run_cli("run", self.path("missing.hex"))
        self.assertEqual(code, 1)
        self.assertTrue(err.startswith("error:"))

        code, _, err = self.run_cli("run", self.path("bad.hex", "zzzz\n"))
        self.assertEqual(code, 1)

    def test_bad_entry_address(self):
        hexfile = self.path("one.hex", "20080005\n")
        for entry in ("0x4002", "0x10000"):
            code, _, err = self.run_cli("run", hexfile, "--entry", entry)
            self.assertEqual(code, 1)
            self.assertTrue(err.startswith("error:"))

        src = self.path("one.asm", "addi $t0, $zero, 5\n")
        code, _, err = self.run_cli("run", src, "--entry", "0x4002")
        self.assertEqual(code, 1)
        self.assertTrue(err.startswith("error:"))

    def test_program_too_large(self):
        hexfile = self.path("big.hex", "20080005\n" * 20000)
        code, _, err = self.run_cli("run", hexfile)
        self.assertEqual(code, 1)
        self.assertIn("past the end of memory", err)


if __name__ == "__main__":
    unittest.main()
