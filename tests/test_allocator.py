import pytest

from revpebble.allocator import RegisterAllocator, RegisterPool, ScratchPool
from revpebble.dag import ExpressionDag
from revpebble.errors import (
    DoubleReleaseError,
    InvalidScheduleError,
    ResourceExhaustedError,
    UnboundNodeError,
)
from revpebble.gates import Gate
from revpebble.pebbling import Action


def _dag():
    dag = ExpressionDag(2)
    a = dag.add_not(0)
    dag.mark_output(dag.add_and([a, 1]))
    return dag


def test_scratch_pool_reuses_lowest_name():
    pool = ScratchPool()
    a0 = pool.acquire()
    a1 = pool.acquire()
    pool.release(a0)

    assert (a0, a1) == ("anc0", "anc1")
    assert pool.acquire() == "anc0"
    assert pool.acquire() == "anc2"
    assert pool.allocated == 3


def test_scratch_pool_capacity():
    pool = ScratchPool(capacity=1)
    pool.acquire()

    with pytest.raises(ResourceExhaustedError):
        pool.acquire()


def test_scratch_pool_rejects_foreign_register():
    with pytest.raises(DoubleReleaseError):
        ScratchPool().release("x0")


def test_release_twice_fails():
    alloc = RegisterAllocator(_dag(), ["x0", "x1"], "out")
    register = alloc.acquire()
    alloc.release(register)

    with pytest.raises(DoubleReleaseError):
        alloc.release(register)


def test_peak_is_tracked():
    alloc = RegisterAllocator(_dag(), ["x0", "x1"], "out")
    r0 = alloc.acquire()
    r1 = alloc.acquire()
    alloc.release(r0)
    alloc.acquire()
    alloc.release(r1)

    assert alloc.current_ancillae == 1
    assert alloc.required_ancillae == 2


def test_lookup_unbound_node():
    alloc = RegisterAllocator(_dag(), ["x0", "x1"], "out")

    assert alloc.lookup(1) == "x1"
    with pytest.raises(UnboundNodeError):
        alloc.lookup(2)


def test_execute_schedule():
    alloc = RegisterAllocator(_dag(), ["x0", "x1"], "out")

    register, gates = alloc.execute(2, Action.COMPUTE)
    assert register == "anc0"
    assert gates == [Gate.cx("x0", "anc0"), Gate.x("anc0")]

    register, gates = alloc.execute(3, Action.COMPUTE)
    assert register == "out"
    assert gates == [Gate.mcx(("anc0", "x1"), "out")]

    register, gates = alloc.execute(2, Action.UNCOMPUTE)
    assert register == "anc0"
    assert gates == [Gate.cx("x0", "anc0"), Gate.x("anc0")]

    assert not alloc.is_bound(2)
    assert alloc.held == frozenset()
    assert alloc.gate_count == 5
    assert alloc.required_ancillae == 1


def test_execute_rejects_bad_events():
    alloc = RegisterAllocator(_dag(), ["x0", "x1"], "out")

    with pytest.raises(UnboundNodeError):
        alloc.execute(3, Action.COMPUTE)
    with pytest.raises(InvalidScheduleError):
        alloc.execute(0, Action.COMPUTE)

    alloc.execute(2, Action.COMPUTE)
    alloc.execute(3, Action.COMPUTE)
    with pytest.raises(InvalidScheduleError):
        alloc.execute(3, Action.UNCOMPUTE)
    with pytest.raises(InvalidScheduleError):
        alloc.execute(2, Action.COMPUTE)


def test_pool_exhaustion_propagates():
    alloc = RegisterAllocator(_dag(), ["x0", "x1"], "out", pool=ScratchPool(capacity=0))

    with pytest.raises(ResourceExhaustedError):
        alloc.execute(2, Action.COMPUTE)


def test_register_validation():
    with pytest.raises(ValueError):
        RegisterAllocator(_dag(), ["x0"], "out")
    with pytest.raises(ValueError):
        RegisterAllocator(_dag(), ["x0", "x1"], "x1")


def test_scratch_pool_skips_reserved_names():
    pool = ScratchPool(capacity=2, reserved=["anc0", "anc2"])

    assert pool.acquire() == "anc1"
    assert pool.acquire() == "anc3"
    assert pool.allocated == 2
    with pytest.raises(ResourceExhaustedError):
        pool.acquire()


def test_reserving_a_held_name_fails():
    pool = ScratchPool()
    pool.acquire()

    with pytest.raises(ValueError):
        pool.reserve(["anc0"])


def test_allocator_reserves_caller_registers():
    alloc = RegisterAllocator(_dag(), ["anc0", "anc1"], "anc2")

    register, _ = alloc.execute(2, Action.COMPUTE)

    assert register == "anc3"


class _NaivePool(RegisterPool):
    def acquire(self):
        return "x0"

    def release(self, register):
        pass


def test_allocator_rejects_register_in_use():
    alloc = RegisterAllocator(_dag(), ["x0", "x1"], "out", pool=_NaivePool())

    with pytest.raises(ResourceExhaustedError):
        alloc.acquire()
