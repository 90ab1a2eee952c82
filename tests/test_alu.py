import random
import unittest

from mips_datapath.alu import ALU
from mips_datapath.bits import sign_extend_16, to_signed_32
from mips_datapath.signals import ALUOp

SAMPLES = [0, 1, 2, 0x7FFFFFFF, 0x80000000, 0xFFFFFFFF, 0x12345678, 0xDEADBEEF]

_rng = random.Random(2400)
RANDOM_PAIRS = [(_rng.getrandbits(32), _rng.getrandbits(32)) for _ in range(2000)]
RANDOM_PAIRS += [(a, a) for a, _ in RANDOM_PAIRS[:100]]


class TestALU(unittest.TestCase):
    def test_add_wraps(self):
        for a in SAMPLES:
            for b in SAMPLES:
                result, zero = ALU.execute(a, b, ALUOp.ADD)
                self.assertEqual(result, (a + b) % 2**32)
                self.assertEqual(zero, result == 0)

    def test_sub_wraps(self):
        for a in SAMPLES:
            for b in SAMPLES:
                result, zero = ALU.execute(a, b, ALUOp.SUB)
                self.assertEqual(result, (a - b) % 2**32)
                self.assertEqual(zero, a == b)

    def test_and_or_bitwise_and_commutative(self):
        for a in SAMPLES:
            for b in SAMPLES:
                self.assertEqual(ALU.execute(a, b, ALUOp.AND)[0], a & b)
                self.assertEqual(ALU.execute(a, b, ALUOp.AND),
                                 ALU.execute(b, a, ALUOp.AND))
                self.assertEqual(ALU.execute(a, b, ALUOp.OR)[0], a | b)
                self.assertEqual(ALU.execute(a, b, ALUOp.OR),
                                 ALU.execute(b, a, ALUOp.OR))

    def test_slt_is_signed(self):
        # -1 < 1 signed
        self.assertEqual(ALU.execute(0xFFFFFFFF, 1, ALUOp.SLT), (1, False))
        self.assertEqual(ALU.execute(1, 0xFFFFFFFF, ALUOp.SLT), (0, True))
        self.assertEqual(ALU.execute(0x80000000, 0x7FFFFFFF, ALUOp.SLT)[0], 1)

    def test_sltu_is_unsigned(self):
        self.assertEqual(ALU.execute(0xFFFFFFFF, 1, ALUOp.SLTU), (0, True))
        self.assertEqual(ALU.execute(1, 0xFFFFFFFF, ALUOp.SLTU), (1, False))
        self.assertEqual(ALU.execute(0x80000000, 0x7FFFFFFF, ALUOp.SLTU)[0], 0)

    def test_slt_equal_operands(self):
        for op in (ALUOp.SLT, ALUOp.SLTU):
            self.assertEqual(ALU.execute(7, 7, op), (0, True))

    def test_sll16_places_immediate_in_upper_half(self):
        self.assertEqual(ALU.execute(0xABCD, 0x1234, ALUOp.SLL16),
                         (0x12340000, False))
        # sign-extended immediate loses its upper bits
        self.assertEqual(ALU.execute(0, sign_extend_16(0x8001), ALUOp.SLL16)[0],
                         0x80010000)
        self.assertEqual(ALU.execute(0, 0x00010000, ALUOp.SLL16), (0, True))

    def test_operands_are_masked(self):
        self.assertEqual(ALU.execute(-1, 1, ALUOp.ADD), (0, True))

    def test_r_type_selector_is_a_caller_error(self):
        with self.assertRaises(ValueError):
            ALU.execute(1, 2, ALUOp.R_TYPE)


class TestALULaws(unittest.TestCase):
    """Arithmetic laws over a seeded sweep of random 32-bit operands."""

    def test_add_sub_modular(self):
        for a, b in RANDOM_PAIRS:
            with self.subTest(a=hex(a), b=hex(b)):
                result, zero = ALU.execute(a, b, ALUOp.ADD)
                self.assertEqual(result, (a + b) % 2**32)
                self.assertEqual(zero, result == 0)
                result, zero = ALU.execute(a, b, ALUOp.SUB)
                self.assertEqual(result, (a - b) % 2**32)
                self.assertEqual(zero, a == b)

    def test_and_or_commute(self):
        for a, b in RANDOM_PAIRS:
            with self.subTest(a=hex(a), b=hex(b)):
                for op, expected in ((ALUOp.AND, a & b), (ALUOp.OR, a | b)):
                    result, zero = ALU.execute(a, b, op)
                    self.assertEqual(result, expected)
                    self.assertEqual(zero, expected == 0)
                    self.assertEqual(ALU.execute(b, a, op), (result, zero))

    def test_slt_sltu_against_python_comparison(self):
        for a, b in RANDOM_PAIRS:
            with self.subTest(a=hex(a), b=hex(b)):
                self.assertEqual(ALU.execute(a, b, ALUOp.SLT)[0],
                                 int(to_signed_32(a) < to_signed_32(b)))
                self.assertEqual(ALU.execute(a, b, ALUOp.SLTU)[0], int(a < b))


class TestBits(unittest.TestCase):
    def test_sign_extend(self):
        self.assertEqual(sign_extend_16(0x0001), 0x00000001)
        self.assertEqual(sign_extend_16(0xFFFF), 0xFFFFFFFF)
        self.assertEqual(sign_extend_16(0x7FFF), 0x00007FFF)
        self.assertEqual(sign_extend_16(0x8000), 0xFFFF8000)

    def test_to_signed(self):
        self.assertEqual(to_signed_32(0xFFFFFFFF), -1)
        self.assertEqual(to_signed_32(0x7FFFFFFF), 0x7FFFFFFF)


if __name__ == "__main__":
    unittest.main()
