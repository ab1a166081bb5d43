import io
import unittest

from brainc import (
    EndOfInput,
    EofPolicy,
    Interpreter,
    InterpreterIOError,
    StepLimitExceeded,
    TAPE_SIZE,
    parse,
)
from brainc.program import Loop, Program

HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


class FailingOutput(io.RawIOBase):
    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        raise OSError("disk full")


class FailingInput(io.RawIOBase):
    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        raise OSError("device unplugged")


class InterpreterTests(unittest.TestCase):
    def test_empty_program_has_no_side_effects(self) -> None:
        interpreter = Interpreter()
        self.assertEqual(interpreter.run_bytes(Program()), b"")
        self.assertEqual(interpreter.pointer, 0)
        self.assertEqual(interpreter.steps, 0)

    def test_two_increments_write_byte_two(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse("++.")), b"\x02")

    def test_simple_output(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse("+" * 65 + ".")), b"A")

    def test_hello_world(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse(HELLO_WORLD)), b"Hello World!\n")

    def test_cell_wraps_below_zero(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse("-.")), b"\xff")

    def test_cell_wraps_above_maximum(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse("-[>+<-]>+.")), b"\x00")
        self.assertEqual(Interpreter().run_bytes(parse("[-]-+++.")), b"\x02")

    def test_deeply_nested_loops_run(self) -> None:
        program = parse("+" + "[" * 1200 + "-" + "]" * 1200 + ".")
        self.assertEqual(program.depth(), 1199)
        interpreter = Interpreter()
        self.assertEqual(interpreter.run_bytes(program), b"\x00")
        self.assertEqual(interpreter.steps, 1 + 2 * 1199 + 1 + 1)

    def test_pointer_wraps_left_of_origin(self) -> None:
        interpreter = Interpreter()
        interpreter.run_bytes(parse("<+"))
        self.assertEqual(interpreter.pointer, TAPE_SIZE - 1)
        self.assertEqual(interpreter.tape[TAPE_SIZE - 1], 1)

    def test_pointer_wraps_past_maximum(self) -> None:
        interpreter = Interpreter(tape_size=4)
        output = interpreter.run_bytes(parse("+>>>>."))
        self.assertEqual(output, b"\x01")
        self.assertEqual(interpreter.pointer, 0)

    def test_nested_loops_multiply(self) -> None:
        program = parse("+++++[>+++++++++<-]>.")
        self.assertEqual(Interpreter().run_bytes(program), b"-")

    def test_set_constant_overwrites_cell(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse("+++++[-]++.")), b"\x02")

    def test_read_copies_input_bytes(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse(",+.,."), b"AZ"), b"BZ")

    def test_read_accepts_binary_input(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse(",."), b"\xfe"), b"\xfe")

    def test_zero_iteration_loop(self) -> None:
        self.assertEqual(Interpreter().run_bytes(parse("[.]+.")), b"\x01")

    def test_tape_is_reset_between_runs(self) -> None:
        interpreter = Interpreter()
        program = parse("+.")
        self.assertEqual(interpreter.run_bytes(program), b"\x01")
        self.assertEqual(interpreter.run_bytes(program), b"\x01")

    def test_invalid_tape_size(self) -> None:
        with self.assertRaises(ValueError):
            Interpreter(tape_size=0)


class EndOfInputTests(unittest.TestCase):
    def test_default_policy_is_fatal(self) -> None:
        interpreter = Interpreter()
        self.assertIs(interpreter.eof, EofPolicy.ERROR)
        with self.assertRaises(EndOfInput):
            interpreter.run_bytes(parse(",."))

    def test_end_of_input_halts_before_later_writes(self) -> None:
        output = io.BytesIO()
        with self.assertRaises(EndOfInput):
            Interpreter().run(parse("+.,."), io.BytesIO(b""), output)
        self.assertEqual(output.getvalue(), b"\x01")

    def test_zero_policy(self) -> None:
        interpreter = Interpreter(eof=EofPolicy.ZERO)
        self.assertEqual(interpreter.run_bytes(parse("+++.,.")), b"\x03\x00")

    def test_unchanged_policy(self) -> None:
        interpreter = Interpreter(eof="unchanged")
        self.assertEqual(interpreter.run_bytes(parse("+++.,.")), b"\x03\x03")

    def test_echo_until_end_with_zero_policy(self) -> None:
        interpreter = Interpreter(eof=EofPolicy.ZERO)
        self.assertEqual(interpreter.run_bytes(parse(",[.,]"), b"abc"), b"abc")


class InterpreterIOFailureTests(unittest.TestCase):
    def test_write_failure_is_reported(self) -> None:
        with self.assertRaises(InterpreterIOError) as ctx:
            Interpreter().run(parse("+."), io.BytesIO(), FailingOutput())
        self.assertIsInstance(ctx.exception.inner, OSError)
        self.assertIn("disk full", str(ctx.exception))

    def test_read_failure_is_reported(self) -> None:
        with self.assertRaises(InterpreterIOError) as ctx:
            Interpreter().run(parse(",."), FailingInput(), io.BytesIO())
        self.assertIsInstance(ctx.exception.__cause__, OSError)


class StepLimitTests(unittest.TestCase):
    def test_step_limit_exceeded(self) -> None:
        with self.assertRaises(StepLimitExceeded):
            Interpreter().run_bytes(parse("+[]"), max_steps=10)

    def test_budget_counts_instructions_and_loop_tests(self) -> None:
        program = parse("++[>+<-]")
        interpreter = Interpreter()
        interpreter.run_bytes(program, max_steps=12)
        self.assertEqual(interpreter.steps, 12)
        with self.assertRaises(StepLimitExceeded):
            Interpreter().run_bytes(program, max_steps=11)


class SteppingTests(unittest.TestCase):
    def test_step_sequence_follows_tree_paths(self) -> None:
        program = parse("++[>+<-]")
        states = list(Interpreter().step(program, tape_window=2))
        paths = [state.path for state in states]
        self.assertEqual(
            paths[:7],
            [(0,), (1,), (1, 0), (1, 1), (1, 2), (1, 3), (1,)],
        )
        self.assertEqual(len(states), 13)
        self.assertIsInstance(states[1].instruction, Loop)
        final = states[-1]
        self.assertIsNone(final.instruction)
        self.assertEqual(final.step, 12)
        self.assertEqual(final.tape[:2], [0, 2])

    def test_step_snapshots_accumulate_output(self) -> None:
        states = list(Interpreter().step(parse("+.+."), tape_window=1))
        self.assertEqual(states[1].output, b"\x01")
        self.assertEqual(states[-1].output, b"\x01\x02")

    def test_stepping_through_deep_nesting(self) -> None:
        program = parse("+" + "[" * 1200 + "-" + "]" * 1200)
        states = list(Interpreter().step(program, tape_window=1))
        self.assertIsNone(states[-1].instruction)
        self.assertEqual(states[-1].step, 2 + 2 * 1199)
        self.assertEqual(max(len(state.path) for state in states), 1200)

    def test_step_window_is_clipped_to_tape(self) -> None:
        states = list(Interpreter().step(parse(">"), tape_window=3))
        self.assertEqual(states[0].tape_start, 0)
        self.assertEqual(len(states[0].tape), 5)

    def test_step_limit_while_stepping(self) -> None:
        stepper = Interpreter().step(parse("+[]"), max_steps=4)
        with self.assertRaises(StepLimitExceeded):
            while True:
                next(stepper)


if __name__ == "__main__":
    unittest.main()
