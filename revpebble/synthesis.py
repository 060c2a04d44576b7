"""
Reversible circuit synthesis for a single-output Boolean DAG.

Pipeline: a pebbling strategy turns the DAG topology into compute/uncompute
events, then the register allocator executes the events, emitting each
node's gates against the registers currently bound to its operands.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .allocator import RegisterAllocator, RegisterPool
from .dag import ExpressionDag
from .gates import Gate, Register
from .pebbling import (
    Action,
    BennettStrategy,
    PebbleSolution,
    PebblingStrategy,
    solve_with_fallback,
)


@dataclass
class TraceEntry:
    """Gates emitted for one schedule event."""

    index: int
    action: Action
    register: Register
    gates: list[Gate]


@dataclass
class SynthesisResult:
    """Result of reversible circuit synthesis."""

    gates: list[Gate]
    gate_count: int          # Elementary gates (negated controls expanded)
    required_ancillae: int   # Peak scratch registers held at once
    method: str
    output: int
    input_registers: tuple
    output_register: Register
    solution: Optional[PebbleSolution] = None
    trace: list[TraceEntry] = field(default_factory=list)

    def elementary_gates(self) -> list[Gate]:
        """Gate list with negated controls expanded into NOT pairs."""
        return [g for gate in self.gates for g in gate.decompose()]

    @property
    def scratch_registers(self) -> list[Register]:
        """Scratch registers used, in order of first use."""
        fixed = set(self.input_registers) | {self.output_register}
        seen = {}
        for entry in self.trace:
            if entry.register not in fixed:
                seen.setdefault(entry.register, None)
        return list(seen)


def synthesize(
    dag: ExpressionDag,
    output: Optional[int] = None,
    strategy: Optional[PebblingStrategy] = None,
    input_registers: Optional[Sequence[Register]] = None,
    output_register: Register = "out",
    pool: Optional[RegisterPool] = None,
    fallback: bool = False,
    verbose: bool = False,
) -> SynthesisResult:
    """
    Compile a DAG into reversible gates computing the output into a register.

    Args:
        dag: The expression DAG
        output: Output node (default: the marked output, else the last node)
        strategy: Pebbling strategy (default: Bennett)
        input_registers: Registers holding the primary inputs
            (default: "x0", "x1", ...)
        output_register: Register receiving the output value (must start at 0)
        pool: Scratch register substrate (default: unbounded ScratchPool)
        fallback: Retry with Bennett when the strategy finds no schedule
        verbose: Print progress

    Returns:
        SynthesisResult with the gate list, gate count and required ancillae

    Raises:
        PebblingInfeasibleError: the strategy found no schedule and fallback
            is off
        ResourceExhaustedError: the pool ran out of registers
    """
    strategy = strategy if strategy is not None else BennettStrategy()
    if input_registers is None:
        input_registers = [f"x{i}" for i in range(dag.num_inputs)]
    output = dag.output if output is None else output

    if verbose:
        print(f"Scheduling {len(dag.scheduled_nodes(output))} nodes with {strategy!r}...", flush=True)

    if fallback:
        solution = solve_with_fallback(dag, output, strategy, verbose=verbose)
    else:
        solution = strategy.solve(dag, output)

    if verbose:
        print(f"  {solution.num_steps} events ({solution.method})", flush=True)

    allocator = RegisterAllocator(dag, input_registers, output_register, pool=pool, output=output)

    gates: list[Gate] = []
    trace: list[TraceEntry] = []

    if dag.is_input(output):
        # Nothing to schedule: copy the input onto the output register
        copy = allocator.record([Gate.cx(allocator.lookup(output), output_register)])
        gates.extend(copy)
        trace.append(TraceEntry(output, Action.COMPUTE, output_register, copy))

    for index, action in solution.operations():
        register, emitted = allocator.execute(index, action)
        gates.extend(emitted)
        trace.append(TraceEntry(index, action, register, emitted))

    if verbose:
        print(f"  {allocator.gate_count} gates, {allocator.required_ancillae} ancillae", flush=True)

    return SynthesisResult(
        gates=gates,
        gate_count=allocator.gate_count,
        required_ancillae=allocator.required_ancillae,
        method=solution.method,
        output=output,
        input_registers=tuple(input_registers),
        output_register=output_register,
        solution=solution,
        trace=trace,
    )


def print_result(result: SynthesisResult):
    """Pretty-print a synthesis result."""
    print(f"\n{'=' * 60}")
    print(f"Synthesis Result: {result.method}")
    print(f"{'=' * 60}")
    print(f"Gate count:         {result.gate_count} elementary gates")
    print(f"Gate records:       {len(result.gates)}")
    print(f"Required ancillae:  {result.required_ancillae}")
    if result.solution is not None:
        print(f"Schedule length:    {result.solution.num_steps} events")

    print("\nSchedule:")
    for entry in result.trace:
        gates = "; ".join(str(g) for g in entry.gates) or "(no gates)"
        print(f"  {entry.action.value:9} n{entry.index:<3} [{entry.register}]  {gates}")
