"""
Sample formulas for reversible synthesis.

- maj_eq_xor: MAJ(x1, x2, x3) <-> XOR(x1, x2, x3), satisfied exactly by the
  two rows where all inputs are equal
- if_then_else: (c & t) | (~c & e)
- and2: x0 & x1

Truth table of maj_eq_xor over (x1, x2, x3):

    x1 x2 x3 | MAJ XOR | MAJ<->XOR
     0  0  0 |  0   0  |  1
     0  0  1 |  0   1  |  0
     0  1  0 |  0   1  |  0
     0  1  1 |  1   0  |  0
     1  0  0 |  0   1  |  0
     1  0  1 |  1   0  |  0
     1  1  0 |  1   0  |  0
     1  1  1 |  1   1  |  1
"""

from itertools import product

from .expr import And, Expr, Iff, Not, Or, Var, Xor, evaluate, to_string


def maj_eq_xor() -> tuple[list[Expr], Expr]:
    """Compare the majority of three variables with their parity."""
    xs = [Var(f"x{i}") for i in range(1, 4)]
    maj3 = Or(And(xs[0], xs[1]), And(xs[0], xs[2]), And(xs[1], xs[2]))
    xor3 = Xor(xs[0], Xor(xs[1], xs[2]))
    return xs, Iff(maj3, xor3)


def if_then_else() -> tuple[list[Expr], Expr]:
    """Select t when c holds, else e."""
    c, t, e = Var("c"), Var("t"), Var("e")
    return [c, t, e], Or(And(c, t), And(Not(c), e))


def and2() -> tuple[list[Expr], Expr]:
    """Conjunction of two variables."""
    xs = [Var("x0"), Var("x1")]
    return xs, And(xs[0], xs[1])


SAMPLE_FORMULAS = {
    "maj-eq-xor": maj_eq_xor,
    "if-then-else": if_then_else,
    "and2": and2,
}


def print_truth_table(name: str):
    """Print the truth table of a sample formula."""
    inputs, formula = SAMPLE_FORMULAS[name]()
    names = [v.name for v in inputs]

    print(f"Truth table: {to_string(formula)}")
    print("=" * 50)
    print(" ".join(f"{n:>3}" for n in names) + " | out")
    print("-" * 50)
    for row in product([False, True], repeat=len(names)):
        value = evaluate(formula, dict(zip(names, row)))
        bits = " ".join(f"{int(b):>3}" for b in row)
        print(f"{bits} |  {int(value)}")
