#!/usr/bin/env python3
"""
Sweep ancilla budgets for a sample formula.
Runs the A* and SAT pebblers for every budget in parallel and reports the
schedule length and gate count each budget costs.
"""

import multiprocessing as mp
from concurrent.futures import ProcessPoolExecutor, as_completed
import sys
import time

from revpebble.bmc import SATPebblingStrategy
from revpebble.errors import PebblingInfeasibleError
from revpebble.expr import to_dag
from revpebble.formulas import SAMPLE_FORMULAS
from revpebble.pebbling import BennettStrategy, SearchStrategy, ancilla_lower_bound
from revpebble.synthesis import synthesize
from revpebble.verify import verify_result


def try_budget(args):
    """Synthesize with one (engine, budget) pair. Run in separate process."""
    formula_name, engine, budget, max_steps = args
    inputs, formula = SAMPLE_FORMULAS[formula_name]()
    dag, _ = to_dag(formula, inputs)

    if engine == "search":
        strategy = SearchStrategy(max_ancillae=budget, max_steps=max_steps)
    else:
        strategy = SATPebblingStrategy(max_ancillae=budget, max_steps=max_steps)

    try:
        result = synthesize(dag, strategy=strategy, input_registers=[v.name for v in inputs])
    except PebblingInfeasibleError:
        return None, "INFEASIBLE"

    valid, errors = verify_result(result, dag)
    if not valid:
        return None, f"INVALID - {errors[0]}"
    return (result.solution.num_steps, result.gate_count, result.required_ancillae), "SUCCESS"


def main():
    formula_name = sys.argv[1] if len(sys.argv) > 1 else "maj-eq-xor"
    max_steps = int(sys.argv[2]) if len(sys.argv) > 2 else 30

    inputs, formula = SAMPLE_FORMULAS[formula_name]()
    dag, _ = to_dag(formula, inputs)
    bennett = synthesize(dag, strategy=BennettStrategy())
    lower = ancilla_lower_bound(dag)
    upper = bennett.required_ancillae

    print("=" * 60)
    print(f"Ancilla budget sweep: {formula_name}")
    print("=" * 60)
    print()
    print(f"Bennett: {bennett.solution.num_steps} steps, {bennett.gate_count} gates, "
          f"{upper} ancillae")
    print(f"Lower bound: {lower} ancillae, step limit: {max_steps}")
    print(f"Using {mp.cpu_count()} CPU cores")
    print()

    configs = [
        (formula_name, engine, budget, max_steps)
        for budget in range(lower, upper + 1)
        for engine in ("search", "bmc")
    ]

    rows = {}
    start_time = time.time()

    with ProcessPoolExecutor(max_workers=mp.cpu_count()) as executor:
        futures = {executor.submit(try_budget, cfg): cfg for cfg in configs}

        for future in as_completed(futures):
            _, engine, budget, _ = futures[future]
            try:
                stats, status = future.result(timeout=300)
            except Exception as e:
                stats, status = None, f"Error - {e}"
            rows[(budget, engine)] = (stats, status)
            print(f"  {engine:6} k={budget}: {status}", flush=True)

    elapsed = time.time() - start_time

    print()
    print("=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"Search time: {elapsed:.1f} seconds")
    print()
    print(f"{'k':>3} | {'engine':6} | {'steps':>5} | {'gates':>5} | {'peak':>4}")
    print("-" * 40)
    for budget in range(lower, upper + 1):
        for engine in ("search", "bmc"):
            stats, status = rows[(budget, engine)]
            if stats is None:
                print(f"{budget:>3} | {engine:6} | {status}")
            else:
                steps, gates, peak = stats
                print(f"{budget:>3} | {engine:6} | {steps:>5} | {gates:>5} | {peak:>4}")


if __name__ == "__main__":
    main()
