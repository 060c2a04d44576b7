"""
Verification of synthesized reversible circuits.

Simulates the emitted gates on classical bit assignments and checks them
against the classical value of the DAG for every input row.
"""

from itertools import product
from typing import Iterable, Optional

from .dag import ExpressionDag
from .gates import Gate, Register
from .pebbling import Action
from .synthesis import SynthesisResult


def simulate(gates: Iterable[Gate], state: Optional[dict[Register, int]] = None) -> dict[Register, int]:
    """Apply gates to a bit assignment (registers not listed start at 0)."""
    state = dict(state) if state else {}
    for gate in gates:
        gate.apply(state)
    return state


def _initial_state(result: SynthesisResult, row) -> dict[Register, int]:
    state = {r: int(b) for r, b in zip(result.input_registers, row)}
    state[result.output_register] = 0
    return state


def verify_result(result: SynthesisResult, dag: ExpressionDag) -> tuple[bool, list[str]]:
    """
    Verify a synthesis result on every input assignment.

    For each row checks that:
    - each Uncompute returns its register to 0
    - the output register holds the classical value of the output node
    - the input registers are unchanged
    - every scratch register ends at 0

    Returns:
        Tuple of (all_correct, list of error messages)
    """
    errors = []
    fixed = set(result.input_registers) | {result.output_register}

    for row in product([0, 1], repeat=dag.num_inputs):
        expected = dag.evaluate([bool(b) for b in row])[result.output]
        state = _initial_state(result, row)

        for step, entry in enumerate(result.trace):
            for gate in entry.gates:
                gate.apply(state)
            if entry.action is Action.UNCOMPUTE and state.get(entry.register, 0):
                errors.append(
                    f"Row {row}, step {step}: uncompute of node {entry.index} "
                    f"left {entry.register} = 1"
                )

        actual = state.get(result.output_register, 0)
        if actual != int(expected):
            errors.append(f"Row {row}: expected {int(expected)}, got {actual}")

        for register, bit in zip(result.input_registers, row):
            if state.get(register, 0) != bit:
                errors.append(f"Row {row}: input register {register} changed")

        dirty = sorted(str(r) for r, v in state.items() if v and r not in fixed)
        if dirty:
            errors.append(f"Row {row}: scratch registers not clean: {', '.join(dirty)}")

    return len(errors) == 0, errors


def print_truth_table_comparison(result: SynthesisResult, dag: ExpressionDag):
    """Print a truth table comparing the DAG value with the circuit output."""
    print("Truth Table Verification")
    print("=" * 50)
    names = " ".join(str(r) for r in result.input_registers)
    print(f"{names} | Expected | Actual | Match")
    print("-" * 50)

    all_match = True
    for row in product([0, 1], repeat=dag.num_inputs):
        expected = int(dag.evaluate([bool(b) for b in row])[result.output])
        state = simulate(result.gates, _initial_state(result, row))
        actual = state.get(result.output_register, 0)
        match = expected == actual
        all_match = all_match and match

        bits = " ".join(f"{b:>{len(str(r))}}" for r, b in zip(result.input_registers, row))
        print(f"{bits} | {expected:>8} | {actual:>6} | {'.' if match else 'X'}")

    print("-" * 50)
    print(f"All correct: {all_match}")
    return all_match
