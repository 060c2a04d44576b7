import pytest

from revpebble.dag import ExpressionDag, Operator
from revpebble.errors import InvalidOperandError, UnknownNodeError


def _ite_dag():
    dag = ExpressionDag(3)
    then_case = dag.add_and([0, 1])
    cond_neg = dag.add_not(0)
    else_case = dag.add_and([cond_neg, 2])
    dag.mark_output(dag.add_or([then_case, else_case]))
    return dag


def test_inputs_occupy_lowest_indices():
    dag = ExpressionDag(3)

    assert dag.size == 3
    assert all(dag[i].op is Operator.INPUT for i in range(3))
    assert dag.is_input(2)
    assert not dag.is_input(3)


def test_add_node_returns_dense_indices():
    dag = _ite_dag()

    assert [node.index for node in dag] == list(range(7))
    assert dag[3].operands == (0, 1)
    assert dag[6].op is Operator.OR
    assert dag.output == 6


def test_forward_reference_is_rejected_and_nothing_added():
    """An operand id at or above the new node's id fails without mutating."""
    dag = ExpressionDag(2)

    with pytest.raises(InvalidOperandError):
        dag.add_and([0, 2])
    with pytest.raises(InvalidOperandError):
        dag.add_and([0, 5])
    with pytest.raises(InvalidOperandError):
        dag.add_not(-1)

    assert dag.size == 2


@pytest.mark.parametrize(
    "op, operands",
    [
        (Operator.NOT, ()),
        (Operator.NOT, (0, 1)),
        (Operator.AND, ()),
        (Operator.IFF, (0,)),
        (Operator.IMPLIES, (0, 1, 1)),
        (Operator.TRUE, (0,)),
        (Operator.INPUT, ()),
    ],
)
def test_arity_mismatch_is_rejected(op, operands):
    dag = ExpressionDag(2)

    with pytest.raises(InvalidOperandError):
        dag.add_node(op, operands)
    assert dag.size == 2


def test_mark_output_out_of_range():
    dag = ExpressionDag(2)
    dag.add_and([0, 1])

    with pytest.raises(UnknownNodeError):
        dag.mark_output(3)
    with pytest.raises(UnknownNodeError):
        dag[7]


def test_output_defaults_to_last_node():
    dag = ExpressionDag(2)
    first = dag.add_and([0, 1])
    last = dag.add_not(first)

    assert dag.output == last
    dag.mark_output(first)
    assert dag.output == first
    assert dag.scheduled_nodes() == [first]


def test_empty_dag_has_no_output():
    with pytest.raises(UnknownNodeError):
        ExpressionDag(0).output


def test_readers_and_cone():
    dag = ExpressionDag(2)
    a = dag.add_and([0, 1])
    dag.add_not(0)          # not read by the output
    b = dag.add_xor([a, a, 1])
    dag.mark_output(b)

    assert dag.readers(a) == [b]
    assert dag.readers(0) == [a, 3]
    assert dag.cone() == {a, b}
    assert dag.live_operands(b) == (a,)


def test_evaluate_ite():
    dag = _ite_dag()

    for c in (False, True):
        for t in (False, True):
            for e in (False, True):
                assert dag.evaluate([c, t, e])[dag.output] == (t if c else e)


def test_evaluate_wrong_input_count():
    with pytest.raises(InvalidOperandError):
        _ite_dag().evaluate([True])


def test_frozen_dag_is_read_only():
    dag = _ite_dag()
    dag.freeze()

    with pytest.raises(RuntimeError):
        dag.add_true()
    with pytest.raises(RuntimeError):
        dag.mark_output(3)


def test_signature_is_structural():
    assert _ite_dag().signature() == _ite_dag().signature()

    other = ExpressionDag(3)
    other.add_and([0, 2])
    assert other.signature() != _ite_dag().signature()
