"""
Register allocation and node binding.

The allocator owns the node -> register map during one synthesis run. Input
registers and the output register are supplied by the caller; scratch
registers come from a RegisterPool, which stands for the execution substrate.
"""

import heapq
from typing import Optional, Sequence

from .dag import ExpressionDag
from .errors import (
    DoubleReleaseError,
    InvalidScheduleError,
    ResourceExhaustedError,
    UnboundNodeError,
)
from .gates import Gate, Register, emit_gates
from .pebbling import Action


class RegisterPool:
    """Source of clean scratch registers."""

    def acquire(self) -> Register:
        raise NotImplementedError

    def release(self, register: Register) -> None:
        raise NotImplementedError

    def reserve(self, registers) -> None:
        """Names owned by the caller that must never be handed out."""


class ScratchPool(RegisterPool):
    """
    Hands out named scratch registers ("anc0", "anc1", ...).

    Released names are reused, lowest first. Reserved names are skipped.
    With a capacity set, acquiring beyond it raises ResourceExhaustedError.
    """

    def __init__(self, prefix: str = "anc", capacity: Optional[int] = None, reserved=()):
        self.prefix = prefix
        self.capacity = capacity
        self._free: list[int] = []
        self._next = 0
        self._issued = 0
        self._held: set[int] = set()
        self._reserved: set = set()
        self.reserve(reserved)

    def reserve(self, registers) -> None:
        registers = set(registers)
        clash = sorted(self._name(k) for k in self._held if self._name(k) in registers)
        if clash:
            raise ValueError(f"Reserved registers already handed out: {', '.join(clash)}")
        self._reserved |= registers
        self._free = [k for k in self._free if self._name(k) not in self._reserved]
        heapq.heapify(self._free)

    def _name(self, k: int) -> str:
        return f"{self.prefix}{k}"

    def acquire(self) -> Register:
        if self._free:
            k = heapq.heappop(self._free)
        else:
            if self.capacity is not None and self._issued >= self.capacity:
                raise ResourceExhaustedError(
                    f"All {self.capacity} scratch registers are in use"
                )
            k = self._next
            while self._name(k) in self._reserved:
                k += 1
            self._next = k + 1
            self._issued += 1
        self._held.add(k)
        return self._name(k)

    def release(self, register: Register) -> None:
        k = self._parse(register)
        if k not in self._held:
            raise DoubleReleaseError(f"Register {register} is not held")
        self._held.remove(k)
        heapq.heappush(self._free, k)

    def _parse(self, register):
        name = str(register)
        if not name.startswith(self.prefix) or not name[len(self.prefix):].isdigit():
            raise DoubleReleaseError(f"Register {register} does not belong to this pool")
        return int(name[len(self.prefix):])

    @property
    def allocated(self) -> int:
        """Distinct registers ever handed out."""
        return self._issued


class RegisterAllocator:
    """
    Binds DAG nodes to registers while executing a schedule.

    Tracks the number of scratch registers held at once (required ancillae)
    and the number of elementary gates emitted (gate count).
    """

    def __init__(
        self,
        dag: ExpressionDag,
        input_registers: Sequence[Register],
        output_register: Register,
        pool: Optional[RegisterPool] = None,
        output: Optional[int] = None,
    ):
        if len(input_registers) != dag.num_inputs:
            raise ValueError(
                f"Expected {dag.num_inputs} input registers, got {len(input_registers)}"
            )
        if output_register in input_registers:
            raise ValueError(f"Output register {output_register} is also an input register")

        self.dag = dag
        self.output = dag.output if output is None else output
        self.input_registers = tuple(input_registers)
        self.output_register = output_register
        self.pool = pool if pool is not None else ScratchPool()
        self._fixed = set(self.input_registers) | {output_register}
        self.pool.reserve(self._fixed)

        self._bindings: dict[int, Register] = {}
        self._held: set = set()
        self.current_ancillae = 0
        self.required_ancillae = 0
        self.gate_count = 0

        for i, register in enumerate(self.input_registers):
            self._bindings[i] = register

    # ------------------------------------------------------------------
    # Scratch registers
    # ------------------------------------------------------------------

    def acquire(self) -> Register:
        register = self.pool.acquire()
        if register in self._fixed or register in self._held:
            raise ResourceExhaustedError(f"Pool handed out register {register}, which is already in use")
        self._held.add(register)
        self.current_ancillae += 1
        self.required_ancillae = max(self.required_ancillae, self.current_ancillae)
        return register

    def release(self, register: Register) -> None:
        if register not in self._held:
            raise DoubleReleaseError(f"Register {register} is not held")
        self._held.remove(register)
        self.pool.release(register)
        self.current_ancillae -= 1

    @property
    def held(self) -> frozenset:
        return frozenset(self._held)

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------

    def bind(self, index: int, register: Register) -> None:
        self._bindings[index] = register

    def unbind(self, index: int) -> Register:
        register = self.lookup(index)
        del self._bindings[index]
        return register

    def lookup(self, index: int) -> Register:
        try:
            return self._bindings[index]
        except KeyError:
            raise UnboundNodeError(f"Node {index} is not bound to a register") from None

    def is_bound(self, index: int) -> bool:
        return index in self._bindings

    def record(self, gates: list[Gate]) -> list[Gate]:
        self.gate_count += sum(g.cost for g in gates)
        return gates

    # ------------------------------------------------------------------
    # Event execution
    # ------------------------------------------------------------------

    def execute(self, index: int, action: Action) -> tuple[Register, list[Gate]]:
        """
        Apply one schedule event.

        Compute binds a fresh scratch register (the output register for the
        output node) and emits the node's gates into it. Uncompute emits the
        same gates again, unbinds the node and releases its register.

        Returns:
            (register of the node, emitted gates)
        """
        node = self.dag[index]
        if node.is_input:
            raise InvalidScheduleError(f"Primary input {index} cannot be scheduled")
        is_output = index == self.output

        if action is Action.COMPUTE:
            if self.is_bound(index):
                raise InvalidScheduleError(f"Node {index} is already computed")
            controls = [self.lookup(o) for o in node.operands]
            target = self.output_register if is_output else self.acquire()
            self.bind(index, target)
            return target, self.record(emit_gates(node.op, controls, target))

        if is_output:
            raise InvalidScheduleError("The output node is never uncomputed")
        target = self.lookup(index)
        controls = [self.lookup(o) for o in node.operands]
        gates = self.record(emit_gates(node.op, controls, target))
        self.unbind(index)
        self.release(target)
        return target, gates
