"""
Expression DAG for combinational Boolean formulas.

Nodes are numbered densely in creation order. Every operand must already
exist when a node is added, so creation order is a topological order and the
graph cannot contain cycles. Primary inputs occupy indices 0..num_inputs-1.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

from .errors import InvalidOperandError, UnknownNodeError


class Operator(Enum):
    """Operator tag of a DAG node."""

    INPUT = "input"
    FALSE = "false"
    TRUE = "true"
    NOT = "not"
    AND = "and"
    OR = "or"
    XOR = "xor"
    IFF = "iff"
    IMPLIES = "implies"


# (min operands, max operands); None = unbounded
ARITY = {
    Operator.INPUT: (0, 0),
    Operator.FALSE: (0, 0),
    Operator.TRUE: (0, 0),
    Operator.NOT: (1, 1),
    Operator.AND: (1, None),
    Operator.OR: (1, None),
    Operator.XOR: (1, None),
    Operator.IFF: (2, 2),
    Operator.IMPLIES: (2, 2),
}


@dataclass(frozen=True)
class Node:
    """A single computation step."""

    index: int
    op: Operator
    operands: tuple[int, ...] = ()

    @property
    def is_input(self) -> bool:
        return self.op is Operator.INPUT


def evaluate_operator(op: Operator, values: Sequence[bool]) -> bool:
    """Classical value of an operator applied to operand values."""
    if op is Operator.FALSE:
        return False
    elif op is Operator.TRUE:
        return True
    elif op is Operator.NOT:
        return not values[0]
    elif op is Operator.AND:
        return all(values)
    elif op is Operator.OR:
        return any(values)
    elif op is Operator.XOR:
        return sum(1 for v in values if v) % 2 == 1
    elif op is Operator.IFF:
        return bool(values[0]) == bool(values[1])
    elif op is Operator.IMPLIES:
        return (not values[0]) or bool(values[1])
    raise ValueError(f"Operator {op} has no classical value")


class ExpressionDag:
    """
    Append-only DAG of Boolean computation steps.

    Example (if-then-else with condition 0, then-case 1, else-case 2):

        dag = ExpressionDag(3)
        then_case = dag.add_and([0, 1])
        cond_neg = dag.add_not(0)
        else_case = dag.add_and([cond_neg, 2])
        dag.mark_output(dag.add_or([then_case, else_case]))

    The DAG becomes read-only once a scheduler starts working on it.
    """

    def __init__(self, num_inputs: int = 0):
        if num_inputs < 0:
            raise InvalidOperandError(f"Negative input count: {num_inputs}")
        self._nodes: list[Node] = [Node(i, Operator.INPUT) for i in range(num_inputs)]
        self._num_inputs = num_inputs
        self._output: Optional[int] = None
        self._readers: Optional[list[list[int]]] = None
        self._frozen = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(self, op: Operator, operands: Iterable[int] = ()) -> int:
        """
        Append a node and return its index.

        Raises:
            InvalidOperandError: on arity mismatch, on an INPUT operator, or
                when an operand does not refer to an existing node. The DAG
                is left unchanged.
        """
        self._check_mutable()
        if not isinstance(op, Operator):
            raise InvalidOperandError(f"Unsupported operator: {op!r}")
        if op is Operator.INPUT:
            raise InvalidOperandError("Primary inputs are created with the DAG")

        operands = tuple(operands)
        index = len(self._nodes)

        lo, hi = ARITY[op]
        if len(operands) < lo or (hi is not None and len(operands) > hi):
            expected = str(lo) if lo == hi else f"at least {lo}"
            raise InvalidOperandError(
                f"{op.name} takes {expected} operand(s), got {len(operands)}"
            )

        for operand in operands:
            if isinstance(operand, bool) or not isinstance(operand, int):
                raise InvalidOperandError(f"Operand {operand!r} is not a node index")
            if operand < 0 or operand >= index:
                raise InvalidOperandError(
                    f"Node {index} cannot read node {operand} (operands must precede the node)"
                )

        self._nodes.append(Node(index, op, operands))
        self._readers = None
        return index

    def add_false(self) -> int:
        return self.add_node(Operator.FALSE)

    def add_true(self) -> int:
        return self.add_node(Operator.TRUE)

    def add_not(self, operand: int) -> int:
        return self.add_node(Operator.NOT, (operand,))

    def add_and(self, operands: Iterable[int]) -> int:
        return self.add_node(Operator.AND, operands)

    def add_or(self, operands: Iterable[int]) -> int:
        return self.add_node(Operator.OR, operands)

    def add_xor(self, operands: Iterable[int]) -> int:
        return self.add_node(Operator.XOR, operands)

    def add_iff(self, lhs: int, rhs: int) -> int:
        return self.add_node(Operator.IFF, (lhs, rhs))

    def add_implies(self, lhs: int, rhs: int) -> int:
        return self.add_node(Operator.IMPLIES, (lhs, rhs))

    def mark_output(self, index: int) -> None:
        """Designate the node whose value the circuit computes."""
        self._check_mutable()
        self._check_index(index)
        self._output = index

    def freeze(self) -> None:
        """Make the DAG read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self):
        if self._frozen:
            raise RuntimeError("DAG is read-only once scheduling has begun")

    def _check_index(self, index: int):
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(self._nodes):
            raise UnknownNodeError(f"No node with index {index!r} (DAG has {len(self._nodes)} nodes)")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def num_inputs(self) -> int:
        return self._num_inputs

    @property
    def size(self) -> int:
        return len(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index: int) -> Node:
        self._check_index(index)
        return self._nodes[index]

    def __iter__(self):
        return iter(self._nodes)

    @property
    def output(self) -> int:
        """Marked output, or the last node when none was marked."""
        if self._output is not None:
            return self._output
        if not self._nodes:
            raise UnknownNodeError("Empty DAG has no output node")
        return len(self._nodes) - 1

    def is_input(self, index: int) -> bool:
        return 0 <= index < self._num_inputs

    def is_output(self, index: int) -> bool:
        return index == self.output

    def readers(self, index: int) -> list[int]:
        """Nodes that read the given node as an operand, in ascending order."""
        self._check_index(index)
        if self._readers is None:
            readers = [[] for _ in self._nodes]
            for node in self._nodes:
                for operand in dict.fromkeys(node.operands):
                    readers[operand].append(node.index)
            self._readers = readers
        return list(self._readers[index])

    def cone(self, output: Optional[int] = None) -> set[int]:
        """Non-input nodes the output transitively depends on (output included)."""
        output = self.output if output is None else output
        self._check_index(output)
        seen = set()
        stack = [output]
        while stack:
            index = stack.pop()
            if index in seen or self.is_input(index):
                continue
            seen.add(index)
            stack.extend(self._nodes[index].operands)
        return seen

    def scheduled_nodes(self, output: Optional[int] = None) -> list[int]:
        """Non-input nodes a scheduler must handle for the given output."""
        output = self.output if output is None else output
        self._check_index(output)
        return [i for i in range(self._num_inputs, output + 1)]

    def live_operands(self, index: int) -> tuple[int, ...]:
        """Distinct non-input operands of a node."""
        return tuple(o for o in dict.fromkeys(self[index].operands) if not self.is_input(o))

    def evaluate(self, inputs: Sequence[bool]) -> list[bool]:
        """Classical value of every node for an input assignment."""
        if len(inputs) != self._num_inputs:
            raise InvalidOperandError(
                f"Expected {self._num_inputs} input values, got {len(inputs)}"
            )
        values: list[bool] = [bool(v) for v in inputs]
        for node in self._nodes[self._num_inputs:]:
            values.append(evaluate_operator(node.op, [values[o] for o in node.operands]))
        return values

    def signature(self) -> tuple:
        """Structural identity of the DAG (operators, operands, output)."""
        body = tuple((node.op.value, node.operands) for node in self._nodes)
        output = self.output if self._nodes else None
        return (self._num_inputs, body, output)

    def __repr__(self):
        return f"ExpressionDag(inputs={self._num_inputs}, nodes={len(self._nodes)})"
