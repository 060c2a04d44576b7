from itertools import product

import pytest

from revpebble.dag import Node, Operator, evaluate_operator
from revpebble.gates import Gate, GateKind, emit_gates, node_cost

OPERATORS = [
    (Operator.FALSE, 0),
    (Operator.TRUE, 0),
    (Operator.NOT, 1),
    (Operator.AND, 1),
    (Operator.AND, 3),
    (Operator.OR, 1),
    (Operator.OR, 3),
    (Operator.XOR, 3),
    (Operator.IFF, 2),
    (Operator.IMPLIES, 2),
]


@pytest.mark.parametrize("op, arity", OPERATORS)
def test_gates_compute_and_uncompute(op, arity):
    """One pass computes the operator, a second pass restores the target."""
    controls = [f"a{i}" for i in range(arity)]
    gates = emit_gates(op, controls, "t")

    for bits in product([0, 1], repeat=arity):
        state = dict(zip(controls, bits))
        state["t"] = 0
        for gate in gates:
            gate.apply(state)

        assert state["t"] == int(evaluate_operator(op, [bool(b) for b in bits]))
        assert [state[c] for c in controls] == list(bits)

        for gate in gates:
            gate.apply(state)
        assert state["t"] == 0


@pytest.mark.parametrize("op, arity", OPERATORS)
def test_decomposed_gates_match(op, arity):
    controls = [f"a{i}" for i in range(arity)]
    gates = emit_gates(op, controls, "t")
    elementary = [g for gate in gates for g in gate.decompose()]

    assert all(not g.negated_controls for g in elementary)
    assert len(elementary) == sum(g.cost for g in gates)

    for bits in product([0, 1], repeat=arity):
        a = dict(zip(controls, bits))
        b = dict(a)
        for gate in gates:
            gate.apply(a)
        for gate in elementary:
            gate.apply(b)
        assert a == b


def test_and_is_one_toffoli():
    gates = emit_gates(Operator.AND, ["x0", "x1"], "out")

    assert gates == [Gate(GateKind.GENERALIZED_TOFFOLI, "out", ("x0", "x1"))]


def test_or_uses_negated_controls():
    gates = emit_gates(Operator.OR, ["a", "b", "c"], "t")

    assert gates[0].controls == ()
    assert gates[0].negated_controls == ("a", "b", "c")
    assert gates[1] == Gate.x("t")
    # NOT on each control, Toffoli, NOT on each control, NOT on target
    assert sum(g.cost for g in gates) == 8


def test_implies_negates_second_operand():
    gates = emit_gates(Operator.IMPLIES, ["a", "b"], "t")

    assert gates[0].controls == ("a",)
    assert gates[0].negated_controls == ("b",)
    assert gates[0].kind is GateKind.GENERALIZED_TOFFOLI
    assert sum(g.cost for g in gates) == 4


def test_repeated_operands():
    state = {"a": 1, "t": 0}
    for gate in emit_gates(Operator.OR, ["a", "a"], "t"):
        gate.apply(state)
    assert state["t"] == 1

    for a in (0, 1):
        state = {"a": a, "t": 0}
        for gate in emit_gates(Operator.IMPLIES, ["a", "a"], "t"):
            gate.apply(state)
        assert state["t"] == 1

        state = {"a": a, "t": 0}
        for gate in emit_gates(Operator.XOR, ["a", "a"], "t"):
            gate.apply(state)
        assert state["t"] == 0


def test_gate_kind_follows_control_count():
    assert Gate.mcx((), "t").kind is GateKind.NOT
    assert Gate.mcx(("a",), "t").kind is GateKind.CONTROLLED_NOT
    assert Gate.mcx((), "t", negated_controls=("a",)).kind is GateKind.CONTROLLED_NOT
    assert Gate.mcx(("a", "b"), "t").kind is GateKind.GENERALIZED_TOFFOLI


@pytest.mark.parametrize(
    "op, operands, cost",
    [
        (Operator.FALSE, (), 0),
        (Operator.TRUE, (), 1),
        (Operator.NOT, (0,), 2),
        (Operator.AND, (0, 1), 1),
        (Operator.OR, (0, 1, 2), 8),
        (Operator.XOR, (0, 1), 2),
        (Operator.IFF, (0, 1), 3),
        (Operator.IMPLIES, (0, 1), 4),
    ],
)
def test_node_cost(op, operands, cost):
    assert node_cost(Node(5, op, operands)) == cost


def test_input_nodes_cost_nothing():
    assert node_cost(Node(0, Operator.INPUT)) == 0
