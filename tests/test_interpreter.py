"""
Interpreter tests for naz.

Tests cover:
  - Arithmetic opcodes and the [-127, 127] register bound
  - Division / modulo by zero
  - Output mapping and repetition
  - Mode switching and function declaration / invocation
  - Halt (top level and inside a function)
  - Stepping order and the injectable wait hook
  - Diagnostics and error positions
  - Bundled example programs
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from naz_interpreter import run_source
from naz_interpreter.diagnostics import Diagnostics, ErrorKind, NazError, Severity
from naz_interpreter.dispatch import MAX_CALL_DEPTH
from naz_interpreter.interpreter import Interpreter, StopReason
from naz_interpreter.state import Mode


def _run(source: str, **kwargs):
    return Interpreter(source, **kwargs).run()


def _error(source: str, filename: str = "<source>") -> NazError:
    with pytest.raises(NazError) as exc:
        _run(source, filename=filename)
    return exc.value


# ─── Arithmetic ────────────────────────────

class TestArithmetic:
    def test_add(self):
        assert _run("5a").register == 5

    def test_subtract(self):
        assert _run("5a2s").register == 3

    def test_subtract_below_zero(self):
        assert _run("3s").register == -3

    def test_multiply(self):
        assert _run("3a4m").register == 12

    def test_divide_floors(self):
        assert _run("9a9a2d").register == 9
        assert _run("7s2d").register == -4

    def test_modulo(self):
        assert _run("9a9a5p").register == 3

    def test_modulo_keeps_register_sign(self):
        assert _run("7s3p").register == -1

    def test_upper_bound_reached(self):
        assert _run("9a" * 14 + "1a").register == 127

    def test_lower_bound_reached(self):
        assert _run("9s" * 14 + "1s").register == -127

    def test_add_out_of_bounds(self):
        err = _error("9a" * 14 + "1a" + "1a")
        assert err.kind is ErrorKind.OUT_OF_BOUNDS
        # 16th token starts at column 31; the error points at its opcode
        assert (err.location.line, err.location.column) == (1, 32)

    def test_subtract_out_of_bounds(self):
        assert _error("9s" * 14 + "2s").kind is ErrorKind.OUT_OF_BOUNDS

    def test_multiply_out_of_bounds(self):
        assert _error("9a" * 8 + "2m").kind is ErrorKind.OUT_OF_BOUNDS

    def test_bound_violation_stops_before_next_instruction(self):
        interp = Interpreter("9a" * 14 + "2a" + "1o")
        with pytest.raises(NazError):
            interp.run()
        assert interp.state.register == 128
        assert interp.state.output == []
        assert interp.state.halted


class TestDivisionByZero:
    @pytest.mark.parametrize("source", ["0d", "5a0d", "5s0d", "0p", "9a0p"])
    def test_zero_operand(self, source):
        assert _error(source).kind is ErrorKind.DIVISION_BY_ZERO


# ─── Output ────────────────────────────────

class TestOutput:
    def test_repeat_count_from_operand(self):
        assert _run("1a1a1a1o5o").output == "333333"

    def test_zero_register_prints_zero(self):
        assert _run("9o").output == "000000000"

    def test_zero_repetitions(self):
        assert _run("5a0o").output == ""

    def test_line_break(self):
        assert _run("5a2m1o").output == "\n"

    def test_printable(self):
        assert _run("9a" * 7 + "5a1o").output == "D"

    @pytest.mark.parametrize("source", ["9a2a1o", "1s1o", "9a2a0o"])
    def test_invalid_output_value(self, source):
        assert _error(source).kind is ErrorKind.INVALID_OUTPUT_VALUE


# ─── Mode switching ────────────────────────

class TestMode:
    def test_declaring_mode(self):
        interp = Interpreter("1x")
        interp.run()
        assert interp.state.mode is Mode.DECLARING

    def test_back_to_normal(self):
        interp = Interpreter("1x0x")
        interp.run()
        assert interp.state.mode is Mode.NORMAL

    def test_operand_above_one(self):
        assert _error("2x").kind is ErrorKind.INVALID_OPCODE

    def test_line_break_resets_mode(self):
        # without the reset, 3f would pick slot 3 instead of calling it
        assert _error("1x\n3f").kind is ErrorKind.UNDECLARED_FUNCTION

    def test_declaring_mode_without_target_still_executes(self):
        assert _run("1x5a").register == 5


# ─── Functions ─────────────────────────────

class TestFunctions:
    def test_declaration_records_without_running(self):
        interp = Interpreter("1x3f9a9a1o\n")
        result = interp.run()
        assert result.register == 0
        assert result.output == ""
        assert interp.state.functions.body(3) == ["9a", "9a", "1o"]
        assert interp.state.functions.declared() == [3]

    def test_invoke(self):
        result = _run("1x3f1a1o\n3f")
        assert result.output == "1"
        assert result.register == 1

    def test_mode_switch_then_invoke_on_same_line(self):
        assert _run("1x3f1a1o\n0x3f").output == "1"

    def test_each_invocation_replays_the_body(self):
        assert _run("1x1f1a1o\n1f1f1f").output == "123"

    def test_undeclared_function(self):
        err = _error("3f")
        assert err.kind is ErrorKind.UNDECLARED_FUNCTION
        assert (err.location.line, err.location.column) == (1, 2)

    def test_empty_declaration_stays_undeclared(self):
        assert _error("1x3f\n3f").kind is ErrorKind.UNDECLARED_FUNCTION

    def test_nested_invocation(self):
        assert _run("1x1f2a\n1x2f1f1f1o\n2f").output == "4"

    def test_redeclaring_appends(self):
        interp = Interpreter("1x1f1a\n1x1f2a\n1f")
        result = interp.run()
        assert interp.state.functions.body(1) == ["1a", "2a"]
        assert result.register == 3

    def test_rearm_mid_line(self):
        interp = Interpreter("5a1x4f1o")
        result = interp.run()
        assert result.register == 5
        assert result.output == ""
        assert interp.state.functions.body(4) == ["1o"]

    def test_recorded_tokens_are_validated(self):
        err = _error("1x3f1a1q")
        assert err.kind is ErrorKind.INVALID_INSTRUCTION
        assert (err.location.line, err.location.column) == (1, 7)

    def test_invocation_matches_inline_body(self):
        body = "9a9a2m3s1o4d2p1o"
        inline = _run("2a" + body)
        called = _run(f"1x5f{body}\n2a5f")
        assert called.output == inline.output
        assert called.register == inline.register

    def test_repeat_invocation_is_deterministic(self):
        once = _run("1x2f3m1o\n1a2f")
        # 3d puts the register back to 1 before the second call
        twice = _run("1x2f3m1o\n1a2f\n3d2f")
        assert once.register == 3
        assert twice.register == once.register
        assert twice.output == once.output * 2

    def test_unbounded_recursion(self):
        err = _error("1x1f1f\n1f")
        assert err.kind is ErrorKind.CALL_DEPTH_EXCEEDED
        assert MAX_CALL_DEPTH > 1

    def test_call_depth_released_after_invoke(self):
        interp = Interpreter("1x1f1a\n1f1f")
        interp.run()
        assert interp.state.call_depth == 0


# ─── Halt ──────────────────────────────────

class TestHalt:
    def test_halt_stops_processing(self):
        result = _run("1a1h1a")
        assert result.register == 1
        assert result.reason is StopReason.HALT
        assert result.halted

    def test_halt_warning_with_trace(self):
        diags = Diagnostics("prog.naz")
        _run("1a1h", diagnostics=diags, filename="prog.naz")
        (warning,) = diags.records
        assert warning.severity is Severity.WARNING
        assert warning.message == "program halted."
        assert warning.trace == "  at prog.naz:1:4"
        assert not diags.failed

    def test_tokens_after_halt_are_not_validated(self):
        assert _run("1h zz12").halted

    def test_output_survives_halt(self):
        assert _run("1a1o1h9o").output == "1"

    def test_halt_inside_function_stops_everything(self):
        result = _run("1x1f1h1a\n1f2a")
        assert result.register == 0
        assert result.halted

    def test_recorded_mode_switch_and_halt(self):
        result = _run("1x3f0x1h\n3f1o")
        assert result.halted
        assert result.output == ""

    def test_normal_completion(self):
        result = _run("1a\n1a\n")
        assert result.reason is StopReason.DONE
        assert not result.halted


# ─── Stepping ──────────────────────────────

class TestStepping:
    def test_trace_is_left_to_right(self):
        result = _run("1a2a3s\n4a", trace=True)
        assert result.trace == [
            "L1:1 1a reg=1",
            "L1:3 2a reg=3",
            "L1:5 3s reg=0",
            "L2:1 4a reg=4",
        ]

    def test_wait_between_steps(self):
        waits = []
        _run("1a1a1o", delay=5, wait=waits.append)
        assert waits == [0.005, 0.005, 0.005]

    def test_line_break_is_a_step(self):
        waits = []
        result = _run("1a\n1a", delay=2, wait=waits.append)
        assert len(waits) == 3
        assert result.steps == 3

    def test_no_wait_after_halt(self):
        waits = []
        _run("1a1h1a", delay=5, wait=waits.append)
        assert waits == [0.005]

    def test_zero_delay_never_waits(self):
        waits = []
        _run("1a1a", delay=0, wait=waits.append)
        assert waits == []

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            Interpreter("1a", delay=-1)

    def test_manual_step(self):
        interp = Interpreter("1a\n2a")
        assert interp.step() is None
        assert interp.state.position == 1
        assert interp.step() is None
        assert interp.state.line == 2
        assert interp.step() is None
        assert interp.state.register == 3
        assert interp.step() is StopReason.DONE

    def test_column_advances_by_two(self):
        interp = Interpreter("1a2a3a")
        interp.step()
        interp.step()
        assert interp.state.column == 5

    def test_fresh_state_per_run(self):
        first = Interpreter("5a")
        first.run()
        second = Interpreter("")
        second.run()
        assert second.state.register == 0
        assert first.state is not second.state


# ─── Diagnostics ───────────────────────────

class TestDiagnostics:
    def test_error_carries_position(self):
        err = _error("0d", filename="prog.naz")
        assert str(err) == "division by zero at prog.naz:1:2"

    def test_format_error_points_at_token(self):
        err = _error("1a\n1aa1", filename="p.naz")
        assert err.kind is ErrorKind.INVALID_INSTRUCTION
        assert str(err.location) == "p.naz:2:3"

    def test_fatal_record_and_sink(self):
        seen = []
        diags = Diagnostics("prog.naz", sink=seen.append)
        with pytest.raises(NazError):
            _run("1a1q", diagnostics=diags, filename="prog.naz")
        assert diags.failed
        assert seen == diags.records
        assert diags.records[-1].render() == "error: invalid instruction\n  at prog.naz:1:3"

    def test_fatal_requires_location(self):
        with pytest.raises(ValueError):
            Diagnostics().fatal(NazError(ErrorKind.DIVISION_BY_ZERO))

    def test_info(self):
        diags = Diagnostics("x.naz")
        diag = diags.info("hello", diags.at(3, 7))
        assert diag.severity is Severity.INFO
        assert diag.render() == "hello\n  at x.naz:3:7"


# ─── Examples ──────────────────────────────

EXAMPLES_DIR = os.path.join(os.path.dirname(__file__), "..", "examples")

EXPECTED_OUTPUT = {
    "hello.naz": "hi\n",
    "count.naz": "123",
    "halt.naz": "H$",
}


class TestExamples:
    @pytest.mark.parametrize("name", sorted(EXPECTED_OUTPUT))
    def test_example_output(self, name):
        with open(os.path.join(EXAMPLES_DIR, name), encoding="utf-8") as f:
            source = f.read()
        assert run_source(source, filename=name).output == EXPECTED_OUTPUT[name]

    def test_all_examples_run(self):
        """Every bundled example should run without a fatal error."""
        for fname in os.listdir(EXAMPLES_DIR):
            if fname.endswith(".naz"):
                with open(os.path.join(EXAMPLES_DIR, fname), encoding="utf-8") as f:
                    run_source(f.read(), filename=fname)
