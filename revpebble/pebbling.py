"""
Pebbling schedulers for reversible computation.

A schedule is an ordered list of (node, Compute/Uncompute) events. Placing a
pebble on a node computes it into a fresh scratch register; removing the
pebble uncomputes it and frees the register. Both moves read the node's
operands, so every non-input operand must be pebbled while the move happens.
The output is computed exactly once and never uncomputed.

Strategies:
1. Bennett: compute everything, compute the output, uncompute everything in
   reverse. No search, most ancillae.
2. Search: A* over pebble configurations under an ancilla budget, allowing
   recomputation to keep fewer registers live.
3. SAT bounded model checking (see bmc.py).
"""

import heapq
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, NamedTuple, Optional

from .dag import ExpressionDag
from .errors import InvalidScheduleError, PebblingInfeasibleError
from .gates import node_cost

# 20 steps, 5 pebbles (4 scratch registers plus the output)
DEFAULT_MAX_ANCILLAE = 4
DEFAULT_MAX_STEPS = 20
DEFAULT_MAX_STATES = 200_000


class Action(Enum):
    COMPUTE = "compute"
    UNCOMPUTE = "uncompute"


class Event(NamedTuple):
    index: int
    action: Action


@dataclass
class PebbleSolution:
    """Ordered compute/uncompute events for one output node."""

    events: list[Event]
    output: int
    method: str
    stats: dict = field(default_factory=dict)

    def operations(self) -> Iterator[Event]:
        return iter(self.events)

    def __iter__(self):
        return iter(self.events)

    def __len__(self):
        return len(self.events)

    @property
    def num_steps(self) -> int:
        return len(self.events)

    def peak_ancillae(self) -> int:
        """Maximum number of non-output nodes pebbled at once."""
        live = 0
        peak = 0
        for index, action in self.events:
            if index == self.output:
                continue
            live += 1 if action is Action.COMPUTE else -1
            peak = max(peak, live)
        return peak

    def gate_cost(self, dag: ExpressionDag) -> int:
        """Elementary gates needed to execute the events."""
        return sum(node_cost(dag[index]) for index, _ in self.events)

    def signature(self) -> tuple:
        return tuple((index, action.value) for index, action in self.events)

    def validate(self, dag: ExpressionDag) -> None:
        """
        Check the event sequence against the reversible pebbling rules.

        Raises:
            InvalidScheduleError: describing the first violation found
        """
        scheduled = set(dag.scheduled_nodes(self.output))
        live = set()
        computed = set()

        for step, (index, action) in enumerate(self.events):
            if index not in scheduled:
                raise InvalidScheduleError(f"Step {step}: node {index} is not schedulable")
            missing = [o for o in dag.live_operands(index) if o not in live]
            if missing:
                raise InvalidScheduleError(
                    f"Step {step}: {action.value} of node {index} needs operands {missing} live"
                )
            if action is Action.COMPUTE:
                if index in live:
                    raise InvalidScheduleError(f"Step {step}: node {index} is already computed")
                if index == self.output and index in computed:
                    raise InvalidScheduleError(f"Step {step}: output computed twice")
                live.add(index)
                computed.add(index)
            else:
                if index == self.output:
                    raise InvalidScheduleError(f"Step {step}: output must not be uncomputed")
                if index not in live:
                    raise InvalidScheduleError(f"Step {step}: node {index} is not computed")
                live.remove(index)

        expected_live = set() if dag.is_input(self.output) else {self.output}
        if live != expected_live:
            raise InvalidScheduleError(f"Nodes left live at the end: {sorted(live - expected_live)}")
        never = scheduled - computed
        if never:
            raise InvalidScheduleError(f"Nodes never computed: {sorted(never)}")


def ancilla_lower_bound(dag: ExpressionDag, output: Optional[int] = None) -> int:
    """No schedule for the output uses fewer scratch registers than this."""
    output = dag.output if output is None else output
    bound = 0
    for index in dag.scheduled_nodes(output):
        operands = len(dag.live_operands(index))
        bound = max(bound, operands if index == output else operands + 1)
    return bound


class PebblingStrategy:
    """Interface of all scheduling strategies."""

    name = "abstract"

    def solve(self, dag: ExpressionDag, output: Optional[int] = None) -> PebbleSolution:
        raise NotImplementedError

    def _prepare(self, dag: ExpressionDag, output: Optional[int]) -> int:
        output = dag.output if output is None else output
        dag[output]  # raises UnknownNodeError
        dag.freeze()
        return output

    def __repr__(self):
        return f"{type(self).__name__}()"


class BennettStrategy(PebblingStrategy):
    """Compute every node in order, then uncompute all but the output in reverse."""

    name = "bennett"

    def solve(self, dag: ExpressionDag, output: Optional[int] = None) -> PebbleSolution:
        output = self._prepare(dag, output)
        if dag.is_input(output):
            return PebbleSolution([], output, self.name)

        body = [i for i in dag.scheduled_nodes(output) if i != output]
        events = [Event(i, Action.COMPUTE) for i in body]
        events.append(Event(output, Action.COMPUTE))
        events.extend(Event(i, Action.UNCOMPUTE) for i in reversed(body))
        return PebbleSolution(events, output, self.name)


class SearchStrategy(PebblingStrategy):
    """
    Budgeted A* search over pebble configurations.

    A state is (pebbled non-output nodes, output computed?, nodes outside the
    output's cone not yet computed), each a bitmask. Moves are tried in
    ascending node order and ties in the priority queue are broken by
    insertion order, so the result is reproducible.

    Args:
        max_ancillae: Maximum scratch registers live at once
        max_steps: Maximum number of compute/uncompute events
        weighting: "steps" minimizes event count, "gates" minimizes the
            elementary gate count of the events
        max_states: Expansion limit before giving up
        verbose: Print search progress
    """

    name = "search"

    def __init__(
        self,
        max_ancillae: int = DEFAULT_MAX_ANCILLAE,
        max_steps: int = DEFAULT_MAX_STEPS,
        weighting: str = "steps",
        max_states: int = DEFAULT_MAX_STATES,
        verbose: bool = False,
    ):
        if weighting not in ("steps", "gates"):
            raise ValueError(f"Unknown weighting: {weighting!r}")
        self.max_ancillae = max_ancillae
        self.max_steps = max_steps
        self.weighting = weighting
        self.max_states = max_states
        self.verbose = verbose

    def __repr__(self):
        return (f"SearchStrategy(max_ancillae={self.max_ancillae}, "
                f"max_steps={self.max_steps}, weighting={self.weighting!r})")

    def solve(self, dag: ExpressionDag, output: Optional[int] = None) -> PebbleSolution:
        output = self._prepare(dag, output)
        method = f"search(ancillae<={self.max_ancillae})"
        if dag.is_input(output):
            return PebbleSolution([], output, method)

        bound = ancilla_lower_bound(dag, output)
        if bound > self.max_ancillae:
            raise PebblingInfeasibleError(
                f"Node fan-in needs at least {bound} ancillae, budget is {self.max_ancillae}"
            )

        order = dag.scheduled_nodes(output)
        nodes = [i for i in order if i != output]
        bit = {n: 1 << k for k, n in enumerate(nodes)}

        # deps[n] = bitmask of non-input operands that must be live to move n
        deps = {}
        for n in order:
            mask = 0
            for o in dag.live_operands(n):
                mask |= bit[o]
            deps[n] = mask

        if self.weighting == "gates":
            weight = {n: node_cost(dag[n]) for n in order}
        else:
            weight = {n: 1 for n in order}

        cone = dag.cone(output)
        off_cone = 0
        for n in nodes:
            if n not in cone:
                off_cone |= bit[n]

        def bits(mask):
            return [n for n in nodes if mask & bit[n]]

        def steps_left(state):
            pebbled, done, pending = state
            return bin(pebbled).count('1') + (0 if done else 1) + 2 * bin(pending).count('1')

        def cost_left(state):
            if self.weighting == "steps":
                return steps_left(state)
            pebbled, done, pending = state
            h = sum(weight[n] for n in bits(pebbled))
            h += 2 * sum(weight[n] for n in bits(pending))
            return h + (0 if done else weight[output])

        def moves(state):
            pebbled, done, pending = state
            live = bin(pebbled).count('1')
            for n in order:
                if deps[n] & ~pebbled:
                    continue
                if n == output:
                    if not done:
                        yield Event(n, Action.COMPUTE), (pebbled, True, pending)
                    continue
                b = bit[n]
                if pebbled & b:
                    yield Event(n, Action.UNCOMPUTE), (pebbled & ~b, done, pending)
                elif live < self.max_ancillae:
                    yield Event(n, Action.COMPUTE), (pebbled | b, done, pending & ~b)

        # A label is (state, cost, steps). Each state keeps the labels no other
        # label beats on both cost and steps.
        start = (0, False, off_cone)
        front = {start: [(0, 0)]}
        parent = {(start, 0, 0): None}
        counter = 0
        heap = [(cost_left(start), 0, counter, start, 0)]
        expanded = 0

        while heap:
            _, neg_g, _, state, steps = heapq.heappop(heap)
            g = -neg_g
            if (g, steps) not in front[state]:
                continue  # dominated since it was queued

            pebbled, done, pending = state
            if done and not pebbled and not pending:
                events = []
                label = (state, g, steps)
                while parent[label] is not None:
                    label, event = parent[label]
                    events.append(event)
                events.reverse()
                if self.verbose:
                    print(f"    Found schedule with {len(events)} steps "
                          f"after {expanded} expansions", flush=True)
                return PebbleSolution(
                    events, output, method,
                    stats={"expanded": expanded, "cost": g},
                )

            expanded += 1
            if expanded > self.max_states:
                raise PebblingInfeasibleError(
                    f"Search gave up after {self.max_states} states "
                    f"(ancillae <= {self.max_ancillae}, steps <= {self.max_steps})"
                )
            if self.verbose and expanded % 10000 == 0:
                print(f"    Expanded {expanded} states, queue {len(heap)}...", flush=True)

            for event, nxt in moves(state):
                nsteps = steps + 1
                if nsteps + steps_left(nxt) > self.max_steps:
                    continue
                ng = g + weight[event.index]
                labels = front.setdefault(nxt, [])
                if any(pg <= ng and ps <= nsteps for pg, ps in labels):
                    continue
                labels[:] = [(pg, ps) for pg, ps in labels if pg < ng or ps < nsteps]
                labels.append((ng, nsteps))
                parent[(nxt, ng, nsteps)] = ((state, g, steps), event)
                counter += 1
                heapq.heappush(heap, (ng + cost_left(nxt), -ng, counter, nxt, nsteps))

        raise PebblingInfeasibleError(
            f"No schedule with at most {self.max_ancillae} ancillae "
            f"within {self.max_steps} steps"
        )


def solve_with_fallback(
    dag: ExpressionDag,
    output: Optional[int] = None,
    strategy: Optional[PebblingStrategy] = None,
    verbose: bool = False,
) -> PebbleSolution:
    """Run a strategy, falling back to Bennett when it finds no schedule."""
    if strategy is None:
        return BennettStrategy().solve(dag, output)
    try:
        return strategy.solve(dag, output)
    except PebblingInfeasibleError as e:
        if verbose:
            print(f"  {strategy!r} failed: {e}", flush=True)
            print("  Falling back to Bennett strategy", flush=True)
        solution = BennettStrategy().solve(dag, output)
        solution.method = "bennett (fallback)"
        return solution


def minimize_ancillae(
    dag: ExpressionDag,
    output: Optional[int] = None,
    strategy_factory: Optional[Callable[[int], PebblingStrategy]] = None,
    max_steps: int = DEFAULT_MAX_STEPS,
    verbose: bool = False,
) -> PebbleSolution:
    """
    Find the smallest ancilla budget a strategy can meet.

    Sweeps the budget upward from ancilla_lower_bound. Once the budget reaches
    the Bennett peak the Bennett schedule is returned.

    Args:
        strategy_factory: Builds a strategy for a given budget (default:
            SearchStrategy with max_steps)
    """
    if strategy_factory is None:
        def strategy_factory(k):
            return SearchStrategy(max_ancillae=k, max_steps=max_steps, verbose=verbose)

    bennett = BennettStrategy().solve(dag, output)
    output = bennett.output
    upper = bennett.peak_ancillae()

    for budget in range(ancilla_lower_bound(dag, output), upper):
        if verbose:
            print(f"  Trying {budget} ancillae...", flush=True)
        try:
            return strategy_factory(budget).solve(dag, output)
        except PebblingInfeasibleError as e:
            if verbose:
                print(f"    {e}", flush=True)

    if verbose:
        print(f"  Using Bennett schedule with {upper} ancillae", flush=True)
    return bennett
