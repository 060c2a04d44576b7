"""Reversible circuit synthesis for Boolean formulas via pebbling schedules."""

from .dag import ExpressionDag, Node, Operator
from .errors import (
    SynthesisError,
    InvalidOperandError,
    UnknownNodeError,
    UnboundNodeError,
    PebblingInfeasibleError,
    ResourceExhaustedError,
    DoubleReleaseError,
    InvalidScheduleError,
)
from .gates import Gate, GateKind, emit_gates, node_cost
from .pebbling import (
    Action,
    Event,
    PebbleSolution,
    PebblingStrategy,
    BennettStrategy,
    SearchStrategy,
    solve_with_fallback,
    minimize_ancillae,
    ancilla_lower_bound,
)
from .bmc import SATPebblingStrategy
from .allocator import RegisterPool, ScratchPool, RegisterAllocator
from .synthesis import SynthesisResult, TraceEntry, synthesize
from .expr import Expr, Var, TRUE, FALSE, Not, And, Or, Xor, Iff, Implies, to_dag
from .verify import simulate, verify_result
from .export import to_qasm, to_listing, to_dot

__all__ = [
    "ExpressionDag",
    "Node",
    "Operator",
    "SynthesisError",
    "InvalidOperandError",
    "UnknownNodeError",
    "UnboundNodeError",
    "PebblingInfeasibleError",
    "ResourceExhaustedError",
    "DoubleReleaseError",
    "InvalidScheduleError",
    "Gate",
    "GateKind",
    "emit_gates",
    "node_cost",
    "Action",
    "Event",
    "PebbleSolution",
    "PebblingStrategy",
    "BennettStrategy",
    "SearchStrategy",
    "SATPebblingStrategy",
    "solve_with_fallback",
    "minimize_ancillae",
    "ancilla_lower_bound",
    "RegisterPool",
    "ScratchPool",
    "RegisterAllocator",
    "SynthesisResult",
    "TraceEntry",
    "synthesize",
    "Expr",
    "Var",
    "TRUE",
    "FALSE",
    "Not",
    "And",
    "Or",
    "Xor",
    "Iff",
    "Implies",
    "to_dag",
    "simulate",
    "verify_result",
    "to_qasm",
    "to_listing",
    "to_dot",
]
__version__ = "0.1.0"
