"""
SAT-based bounded model checking for the reversible pebble game.

Encodes "is there a schedule of exactly T moves within the ancilla budget" as
CNF and iterates T upward until the solver finds a model, which is then
decoded into compute/uncompute events.
"""

from typing import Optional
from pysat.card import CardEnc, EncType
from pysat.formula import CNF, IDPool
from pysat.solvers import Solver

from .dag import ExpressionDag
from .errors import PebblingInfeasibleError
from .pebbling import (
    DEFAULT_MAX_ANCILLAE,
    DEFAULT_MAX_STEPS,
    Action,
    Event,
    PebbleSolution,
    PebblingStrategy,
    ancilla_lower_bound,
)


class SATPebblingStrategy(PebblingStrategy):
    """
    Bounded model checking over the pebble game.

    Args:
        max_ancillae: Maximum scratch registers live at once
        max_steps: Largest number of moves to try
        min_steps: First number of moves to try (default: the smallest
            possible, one compute per node plus one uncompute per non-output)
        solver_name: pysat solver backend
        verbose: Print each bound as it is tried
    """

    name = "bmc"

    def __init__(
        self,
        max_ancillae: int = DEFAULT_MAX_ANCILLAE,
        max_steps: int = DEFAULT_MAX_STEPS,
        min_steps: Optional[int] = None,
        solver_name: str = "m22",
        verbose: bool = False,
    ):
        self.max_ancillae = max_ancillae
        self.max_steps = max_steps
        self.min_steps = min_steps
        self.solver_name = solver_name
        self.verbose = verbose

    def __repr__(self):
        return (f"SATPebblingStrategy(max_ancillae={self.max_ancillae}, "
                f"max_steps={self.max_steps})")

    def solve(self, dag: ExpressionDag, output: Optional[int] = None) -> PebbleSolution:
        output = self._prepare(dag, output)
        method = f"bmc(ancillae<={self.max_ancillae})"
        if dag.is_input(output):
            return PebbleSolution([], output, method)

        bound = ancilla_lower_bound(dag, output)
        if bound > self.max_ancillae:
            raise PebblingInfeasibleError(
                f"Node fan-in needs at least {bound} ancillae, budget is {self.max_ancillae}"
            )

        n_nodes = len(dag.scheduled_nodes(output))
        first = 2 * n_nodes - 1
        if self.min_steps is not None:
            first = max(first, self.min_steps)

        for num_steps in range(first, self.max_steps + 1):
            if self.verbose:
                print(f"    Trying {num_steps} steps...", flush=True)
            events = self._try_steps(dag, output, num_steps)
            if events is not None:
                return PebbleSolution(events, output, method, stats={"bound": num_steps})

        raise PebblingInfeasibleError(
            f"No schedule with at most {self.max_ancillae} ancillae "
            f"within {self.max_steps} steps"
        )

    def _encode(self, dag: ExpressionDag, output: int, num_steps: int):
        """
        Build the CNF for a schedule of num_steps moves.

        Variables:
        - p(v, t): node v is pebbled after t moves
        - c(v, t): node v changes between t and t+1
        """
        order = dag.scheduled_nodes(output)
        cone = dag.cone(output)
        T = num_steps

        pool = IDPool()

        def p(v, t):
            return pool.id(("p", v, t))

        def c(v, t):
            return pool.id(("c", v, t))

        # Allocate the pebble variables first so they are easy to read back
        for t in range(T + 1):
            for v in order:
                p(v, t)

        cnf = CNF()

        # Constraint 1: nothing pebbled at the start, only the output at the end
        for v in order:
            cnf.append([-p(v, 0)])
            cnf.append([p(v, T)] if v == output else [-p(v, T)])

        for t in range(T):
            changes = []
            for v in order:
                cv = c(v, t)
                changes.append(cv)
                # Constraint 2: c(v, t) <-> p(v, t) xor p(v, t+1)
                cnf.append([-p(v, t), p(v, t + 1), cv])
                cnf.append([p(v, t), -p(v, t + 1), cv])
                cnf.append([-cv, p(v, t), p(v, t + 1)])
                cnf.append([-cv, -p(v, t), -p(v, t + 1)])

                # Constraint 3: moving v needs its operands pebbled
                for u in dag.live_operands(v):
                    cnf.append([-cv, p(u, t)])

            # Constraint 4: at most one move per step
            for i, c1 in enumerate(changes):
                for c2 in changes[i + 1:]:
                    cnf.append([-c1, -c2])

            # Constraint 5: the output is never uncomputed
            cnf.append([-p(output, t), p(output, t + 1)])

        # Constraint 6: ancilla budget in every frame
        scratch = [v for v in order if v != output]
        for t in range(1, T):
            lits = [p(v, t) for v in scratch]
            if len(lits) <= self.max_ancillae:
                continue
            if self.max_ancillae == 0:
                for lit in lits:
                    cnf.append([-lit])
                continue
            card = CardEnc.atmost(
                lits=lits, bound=self.max_ancillae, vpool=pool, encoding=EncType.seqcounter
            )
            cnf.extend(card.clauses)

        # Constraint 7: nodes outside the output's cone are computed at least once
        for v in scratch:
            if v not in cone:
                cnf.append([p(v, t) for t in range(1, T)])

        return cnf, p

    def _try_steps(self, dag: ExpressionDag, output: int, num_steps: int) -> Optional[list[Event]]:
        """Solve for exactly num_steps moves; None when unsatisfiable."""
        cnf, p = self._encode(dag, output, num_steps)
        order = dag.scheduled_nodes(output)

        with Solver(name=self.solver_name, bootstrap_with=cnf) as solver:
            if not solver.solve():
                return None
            model = set(solver.get_model())

        def is_true(var):
            return var in model

        events = []
        for t in range(num_steps):
            for v in order:
                before = is_true(p(v, t))
                after = is_true(p(v, t + 1))
                if before != after:
                    events.append(Event(v, Action.COMPUTE if after else Action.UNCOMPUTE))
        return events
