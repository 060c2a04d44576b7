"""
Boolean formula trees and their translation into an ExpressionDag.

Formulas are immutable trees built with Var, TRUE, FALSE, Not, And, Or, Xor,
Iff and Implies (or the ~ & | ^ operators). Translation walks the tree with
an explicit stack, so deep formulas do not hit the recursion limit, and
hash-conses nodes by (operator, operand ids) so that structurally equal
sub-formulas share one DAG node.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .dag import ExpressionDag, Operator
from .errors import InvalidOperandError


@dataclass(frozen=True, eq=False)
class Expr:
    """A formula node. Leaves are variables (op INPUT) or constants."""

    op: Operator
    args: tuple = ()
    name: Optional[str] = None

    def __invert__(self):
        return Not(self)

    def __and__(self, other):
        return And(self, other)

    def __or__(self, other):
        return Or(self, other)

    def __xor__(self, other):
        return Xor(self, other)

    def __repr__(self):
        return to_string(self)


def Var(name: str) -> Expr:
    return Expr(Operator.INPUT, name=name)


TRUE = Expr(Operator.TRUE)
FALSE = Expr(Operator.FALSE)


def Not(arg: Expr) -> Expr:
    return Expr(Operator.NOT, (arg,))


def And(*args: Expr) -> Expr:
    return Expr(Operator.AND, args)


def Or(*args: Expr) -> Expr:
    return Expr(Operator.OR, args)


def Xor(*args: Expr) -> Expr:
    return Expr(Operator.XOR, args)


def Iff(lhs: Expr, rhs: Expr) -> Expr:
    return Expr(Operator.IFF, (lhs, rhs))


def Implies(lhs: Expr, rhs: Expr) -> Expr:
    return Expr(Operator.IMPLIES, (lhs, rhs))


_SYMBOLS = {
    Operator.AND: " & ",
    Operator.OR: " | ",
    Operator.XOR: " ^ ",
    Operator.IFF: " <-> ",
    Operator.IMPLIES: " -> ",
}


def _post_order(formula: Expr) -> list[Expr]:
    """Distinct sub-formulas, children before parents."""
    order = []
    done = set()
    stack = [(formula, False)]
    while stack:
        e, expanded = stack.pop()
        if id(e) in done:
            continue
        if expanded:
            done.add(id(e))
            order.append(e)
            continue
        stack.append((e, True))
        for arg in reversed(e.args):
            if id(arg) not in done:
                stack.append((arg, False))
    return order


def to_string(formula: Expr) -> str:
    """Infix rendering of a formula."""
    text = {}
    for e in _post_order(formula):
        if e.op is Operator.INPUT:
            text[id(e)] = e.name
        elif e.op is Operator.TRUE:
            text[id(e)] = "1"
        elif e.op is Operator.FALSE:
            text[id(e)] = "0"
        elif e.op is Operator.NOT:
            text[id(e)] = f"~{text[id(e.args[0])]}"
        else:
            text[id(e)] = "(" + _SYMBOLS[e.op].join(text[id(a)] for a in e.args) + ")"
    return text[id(formula)]


def variables(formula: Expr) -> list[str]:
    """Variable names in order of first appearance (left to right)."""
    names = []
    for e in _post_order(formula):
        if e.op is Operator.INPUT and e.name not in names:
            names.append(e.name)
    return names


def to_dag(
    formula: Expr,
    inputs: Optional[Sequence[Union[str, Expr]]] = None,
) -> tuple[ExpressionDag, dict[str, int]]:
    """
    Translate a formula into an ExpressionDag with its root marked as output.

    Args:
        formula: The formula
        inputs: Variables in input order (default: order of first appearance)

    Returns:
        (dag, mapping from variable name to input index)

    Raises:
        InvalidOperandError: unknown variable, duplicate input, or malformed node
    """
    if inputs is None:
        names = variables(formula)
    else:
        names = [v.name if isinstance(v, Expr) else v for v in inputs]
    if len(set(names)) != len(names):
        raise InvalidOperandError(f"Duplicate input variables: {names}")

    dag = ExpressionDag(len(names))
    index = {name: i for i, name in enumerate(names)}

    node_of = {}   # id(expr) -> node index
    memo = {}      # (operator, operand ids) -> node index

    for e in _post_order(formula):
        if e.op is Operator.INPUT:
            if e.name not in index:
                raise InvalidOperandError(f"Variable {e.name!r} is not an input")
            node_of[id(e)] = index[e.name]
            continue

        key = (e.op, tuple(node_of[id(a)] for a in e.args))
        if key not in memo:
            memo[key] = dag.add_node(*key)
        node_of[id(e)] = memo[key]

    dag.mark_output(node_of[id(formula)])
    return dag, index


def evaluate(formula: Expr, assignment: dict[str, bool]) -> bool:
    """Classical value of a formula under a variable assignment."""
    dag, index = to_dag(formula, inputs=list(assignment))
    values = dag.evaluate([assignment[name] for name in index])
    return values[dag.output]
