"""
Reversible gate emission for single DAG nodes.

Each operator maps to a short list of multiple-controlled NOT gates acting on
already-bound registers. Every emitted list XORs a function of the operand
registers into the target, so applying the same list twice restores the
target. Compute and Uncompute therefore share one gate list.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Hashable, MutableMapping, Sequence

from .dag import Node, Operator

Register = Hashable


class GateKind(Enum):
    NOT = "not"
    CONTROLLED_NOT = "cnot"
    GENERALIZED_TOFFOLI = "toffoli"


@dataclass(frozen=True)
class Gate:
    """
    A NOT on the target, conditioned on all controls being 1 and all negated
    controls being 0.
    """

    kind: GateKind
    target: Register
    controls: tuple = ()
    negated_controls: tuple = ()

    @classmethod
    def x(cls, target: Register) -> "Gate":
        return cls(GateKind.NOT, target)

    @classmethod
    def cx(cls, control: Register, target: Register) -> "Gate":
        return cls(GateKind.CONTROLLED_NOT, target, (control,))

    @classmethod
    def mcx(cls, controls: Sequence[Register], target: Register,
            negated_controls: Sequence[Register] = ()) -> "Gate":
        controls = tuple(controls)
        negated_controls = tuple(negated_controls)
        n = len(controls) + len(negated_controls)
        if n == 0:
            kind = GateKind.NOT
        elif n == 1:
            kind = GateKind.CONTROLLED_NOT
        else:
            kind = GateKind.GENERALIZED_TOFFOLI
        return cls(kind, target, controls, negated_controls)

    @property
    def num_controls(self) -> int:
        return len(self.controls) + len(self.negated_controls)

    @property
    def cost(self) -> int:
        """Elementary gates after expanding negated controls into NOT pairs."""
        return 1 + 2 * len(self.negated_controls)

    def decompose(self) -> list["Gate"]:
        """Expand negated controls into NOT gates around a positive-control gate."""
        if not self.negated_controls:
            return [self]
        flips = [Gate.x(r) for r in self.negated_controls]
        core = Gate.mcx(self.controls + self.negated_controls, self.target)
        return flips + [core] + flips

    def apply(self, state: MutableMapping[Register, int]) -> None:
        """Apply the gate to a classical bit assignment (missing registers read 0)."""
        if all(state.get(r, 0) for r in self.controls) and \
                not any(state.get(r, 0) for r in self.negated_controls):
            state[self.target] = state.get(self.target, 0) ^ 1

    def __str__(self):
        parts = [str(r) for r in self.controls] + [f"!{r}" for r in self.negated_controls]
        if not parts:
            return f"X {self.target}"
        return f"{self.kind.name}({', '.join(parts)} -> {self.target})"


def emit_gates(op: Operator, controls: Sequence[Register], target: Register) -> list[Gate]:
    """
    Gate list computing `op(controls)` into a target that starts at zero.

    Args:
        op: Operator of the node
        controls: Registers holding the operand values, in operand order
        target: Register receiving the node value

    Returns:
        Gates to apply in order. Applying them again uncomputes the target.
    """
    controls = tuple(controls)

    if op is Operator.FALSE:
        return []

    elif op is Operator.TRUE:
        return [Gate.x(target)]

    elif op is Operator.NOT:
        return [Gate.cx(controls[0], target), Gate.x(target)]

    elif op is Operator.AND:
        # Repeated controls are idempotent
        return [Gate.mcx(tuple(dict.fromkeys(controls)), target)]

    elif op is Operator.OR:
        # De Morgan: target = NOT AND(NOT a_i)
        return [
            Gate.mcx((), target, negated_controls=tuple(dict.fromkeys(controls))),
            Gate.x(target),
        ]

    elif op is Operator.XOR:
        return [Gate.cx(c, target) for c in controls]

    elif op is Operator.IFF:
        return [Gate.cx(controls[0], target), Gate.cx(controls[1], target), Gate.x(target)]

    elif op is Operator.IMPLIES:
        lhs, rhs = controls
        if lhs == rhs:
            return [Gate.x(target)]
        # a -> b == NOT (a AND NOT b)
        return [Gate.mcx((lhs,), target, negated_controls=(rhs,)), Gate.x(target)]

    raise ValueError(f"Operator {op} cannot be emitted as gates")


def node_cost(node: Node) -> int:
    """Elementary gate count of one compute (or uncompute) of a node."""
    if node.is_input:
        return 0
    # Operand indices stand in for their registers; -1 is never an index
    return sum(g.cost for g in emit_gates(node.op, node.operands, -1))
