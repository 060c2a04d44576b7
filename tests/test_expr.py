import pytest

from revpebble.dag import Operator
from revpebble.errors import InvalidOperandError
from revpebble.expr import (
    FALSE,
    TRUE,
    And,
    Iff,
    Implies,
    Not,
    Or,
    Var,
    Xor,
    evaluate,
    to_dag,
    to_string,
    variables,
)
from revpebble.formulas import maj_eq_xor, print_truth_table


def test_operator_overloads():
    x, y = Var("x"), Var("y")

    assert to_string(~x & y | (x ^ y)) == "((~x & y) | (x ^ y))"
    assert to_string(Iff(x, Implies(y, TRUE))) == "(x <-> (y -> 1))"


def test_variables_in_first_appearance_order():
    a, b, c = Var("a"), Var("b"), Var("c")

    assert variables(Or(And(b, a), Not(c), a)) == ["b", "a", "c"]


def test_to_dag_shares_equal_subformulas():
    x, y = Var("x"), Var("y")

    dag, index = to_dag(Or(And(x, y), And(x, y)))

    assert index == {"x": 0, "y": 1}
    assert dag.size == 4
    assert dag[2].op is Operator.AND
    assert dag[3].operands == (2, 2)
    assert dag.output == 3


def test_to_dag_respects_input_order():
    x, y = Var("x"), Var("y")

    dag, index = to_dag(And(x, y), inputs=["y", "x"])

    assert index == {"y": 0, "x": 1}
    assert dag[2].operands == (1, 0)


def test_unused_inputs_are_kept():
    dag, _ = to_dag(Not(Var("x")), inputs=["x", "unused"])

    assert dag.num_inputs == 2


def test_to_dag_rejects_bad_inputs():
    x, y = Var("x"), Var("y")

    with pytest.raises(InvalidOperandError):
        to_dag(And(x, y), inputs=["x"])
    with pytest.raises(InvalidOperandError):
        to_dag(And(x, y), inputs=["x", "y", "x"])


def test_malformed_formula():
    with pytest.raises(InvalidOperandError):
        to_dag(Or(Var("x"), And()))


def test_deep_formula():
    formula = Var("x")
    for _ in range(5000):
        formula = Not(formula)

    dag, _ = to_dag(formula)

    assert dag.size == 5001
    assert evaluate(formula, {"x": True}) is True


@pytest.mark.parametrize("row, expected", [
    ((False, False, False), True),
    ((False, False, True), False),
    ((False, True, True), False),
    ((True, True, False), False),
    ((True, True, True), True),
])
def test_maj_eq_xor_truth_table(row, expected):
    inputs, formula = maj_eq_xor()

    assert evaluate(formula, dict(zip([v.name for v in inputs], row))) is expected


def test_maj_eq_xor_dag_shape():
    inputs, formula = maj_eq_xor()

    dag, _ = to_dag(formula, inputs)

    assert dag.num_inputs == 3
    assert [node.op for node in dag][3:] == [
        Operator.AND, Operator.AND, Operator.AND, Operator.OR,
        Operator.XOR, Operator.XOR, Operator.IFF,
    ]


def test_xor_of_many():
    xs = [Var(f"x{i}") for i in range(4)]
    formula = Xor(*xs)

    for bits in [(0, 0, 0, 0), (1, 0, 0, 0), (1, 1, 0, 1), (1, 1, 1, 1)]:
        assignment = {v.name: bool(b) for v, b in zip(xs, bits)}
        assert evaluate(formula, assignment) is bool(sum(bits) % 2)


def test_print_truth_table(capsys):
    print_truth_table("and2")
    out = capsys.readouterr().out

    assert "Truth table: (x0 & x1)" in out
    assert out.count("|  1") == 1


def test_constants():
    x = Var("x")

    assert evaluate(Or(FALSE, x), {"x": False}) is False
    assert evaluate(And(TRUE, x), {"x": True}) is True
    assert evaluate(Implies(x, FALSE), {"x": True}) is False
