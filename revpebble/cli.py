"""Command-line interface for reversible circuit synthesis."""

import argparse
import sys

from .bmc import SATPebblingStrategy
from .errors import SynthesisError
from .export import to_dot, to_listing, to_qasm
from .expr import to_dag
from .formulas import SAMPLE_FORMULAS, print_truth_table
from .pebbling import (
    DEFAULT_MAX_ANCILLAE,
    DEFAULT_MAX_STEPS,
    BennettStrategy,
    PebblingStrategy,
    SearchStrategy,
    minimize_ancillae,
)
from .synthesis import print_result, synthesize
from .verify import print_truth_table_comparison, verify_result


class _FixedSolution(PebblingStrategy):
    """Strategy returning a schedule that was already computed."""

    def __init__(self, solution):
        self.solution = solution

    def solve(self, dag, output=None):
        return self.solution

    def __repr__(self):
        return f"<{self.solution.method}>"


def build_strategy(args):
    if args.strategy == "bennett":
        return BennettStrategy()
    if args.strategy == "search":
        return SearchStrategy(
            max_ancillae=args.ancillae,
            max_steps=args.steps,
            weighting=args.weighting,
            verbose=args.verbose,
        )
    if args.strategy == "bmc":
        return SATPebblingStrategy(
            max_ancillae=args.ancillae,
            max_steps=args.steps,
            verbose=args.verbose,
        )
    raise ValueError(f"Unknown strategy: {args.strategy}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Compile a Boolean formula into a reversible circuit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  revpebble                          Bennett schedule for MAJ <-> XOR
  revpebble --strategy search        A* schedule with at most 4 ancillae
  revpebble --strategy bmc -k 5      SAT schedule with at most 5 ancillae
  revpebble --strategy min           Smallest ancilla budget found by search
  revpebble --truth-table            Show the formula's truth table
  revpebble --format qasm            Output as OpenQASM 3
        """,
    )

    parser.add_argument(
        "--formula",
        choices=sorted(SAMPLE_FORMULAS),
        default="maj-eq-xor",
        help="Sample formula to compile (default: maj-eq-xor)",
    )
    parser.add_argument(
        "--strategy", "-s",
        choices=["bennett", "search", "bmc", "min"],
        default="bennett",
        help="Pebbling strategy (default: bennett)",
    )
    parser.add_argument(
        "--ancillae", "-k",
        type=int,
        default=DEFAULT_MAX_ANCILLAE,
        help=f"Ancilla budget for search/bmc (default: {DEFAULT_MAX_ANCILLAE})",
    )
    parser.add_argument(
        "--steps", "-n",
        type=int,
        default=DEFAULT_MAX_STEPS,
        help=f"Step budget for search/bmc/min (default: {DEFAULT_MAX_STEPS})",
    )
    parser.add_argument(
        "--weighting",
        choices=["steps", "gates"],
        default="steps",
        help="What the search minimizes (default: steps)",
    )
    parser.add_argument(
        "--fallback",
        action="store_true",
        help="Fall back to Bennett when no schedule fits the budget",
    )
    parser.add_argument(
        "--truth-table",
        action="store_true",
        help="Print the formula's truth table and exit",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Simulate the circuit on every input row",
    )
    parser.add_argument(
        "--format", "-f",
        choices=["text", "listing", "qasm", "dot"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args(argv)

    if args.truth_table:
        print_truth_table(args.formula)
        return 0

    inputs, formula = SAMPLE_FORMULAS[args.formula]()
    dag, _ = to_dag(formula, inputs)
    input_registers = [v.name for v in inputs]

    try:
        if args.strategy == "min":
            solution = minimize_ancillae(dag, max_steps=args.steps, verbose=args.verbose)
            strategy = _FixedSolution(solution)
        else:
            strategy = build_strategy(args)

        result = synthesize(
            dag,
            strategy=strategy,
            input_registers=input_registers,
            fallback=args.fallback,
            verbose=args.verbose,
        )
    except SynthesisError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1

    if args.format == "qasm":
        print(to_qasm(result))
    elif args.format == "dot":
        print(to_dot(dag, result, title=args.formula))
    elif args.format == "listing":
        print(to_listing(result))
    else:
        print_result(result)

    if args.verify:
        correct, errors = verify_result(result, dag)
        if args.format == "text":
            print()
            print_truth_table_comparison(result, dag)
        if not correct:
            for err in errors:
                print(f"  {err}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
