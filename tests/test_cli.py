import pytest

from revpebble.cli import main


def test_default_run(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out

    assert "Synthesis Result: bennett" in out
    assert "Gate count:         33 elementary gates" in out
    assert "Required ancillae:  6" in out


def test_and2(capsys):
    assert main(["--formula", "and2"]) == 0

    assert "Required ancillae:  0" in capsys.readouterr().out


def test_budget_too_small(capsys):
    assert main(["--strategy", "search", "-k", "3"]) == 1

    assert "Error:" in capsys.readouterr().err


def test_budget_too_small_with_fallback(capsys):
    assert main(["--strategy", "search", "-k", "3", "--fallback"]) == 0

    assert "bennett (fallback)" in capsys.readouterr().out


@pytest.mark.parametrize("strategy", ["search", "bmc", "min"])
def test_strategies_verify(strategy, capsys):
    assert main(["--strategy", strategy, "--verify"]) == 0
    out = capsys.readouterr().out

    assert "Required ancillae:  4" in out
    assert "All correct: True" in out


def test_qasm_output(capsys):
    assert main(["--formula", "if-then-else", "--format", "qasm", "--verify"]) == 0
    out = capsys.readouterr().out

    assert out.startswith("OPENQASM 3.0;")
    assert "Truth Table Verification" not in out


@pytest.mark.parametrize("fmt, marker", [
    ("listing", "Reversible circuit"),
    ("dot", "digraph DAG {"),
])
def test_other_formats(fmt, marker, capsys):
    assert main(["--format", fmt]) == 0

    assert marker in capsys.readouterr().out


def test_truth_table(capsys):
    assert main(["--truth-table"]) == 0

    assert "Truth table:" in capsys.readouterr().out


def test_unknown_formula():
    with pytest.raises(SystemExit):
        main(["--formula", "nope"])
