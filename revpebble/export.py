"""
Export synthesized circuits to various formats (OpenQASM 3, text, DOT).
"""

from typing import Optional

from .dag import ExpressionDag, Operator
from .gates import Gate
from .pebbling import Action
from .synthesis import SynthesisResult


def _qubit_map(result: SynthesisResult) -> dict:
    registers = list(result.input_registers) + [result.output_register] + result.scratch_registers
    return {r: i for i, r in enumerate(registers)}


def gate_to_qasm(gate: Gate, qubits: dict, reg: str = "q") -> str:
    """Convert one gate to an OpenQASM 3 statement."""
    pos = [f"{reg}[{qubits[r]}]" for r in gate.controls]
    neg = [f"{reg}[{qubits[r]}]" for r in gate.negated_controls]
    target = f"{reg}[{qubits[gate.target]}]"

    if not neg:
        if len(pos) == 0:
            return f"x {target};"
        if len(pos) == 1:
            return f"cx {pos[0]}, {target};"
        if len(pos) == 2:
            return f"ccx {pos[0]}, {pos[1]}, {target};"

    modifiers = []
    if neg:
        modifiers.append("negctrl" if len(neg) == 1 else f"negctrl({len(neg)})")
    if pos:
        modifiers.append("ctrl" if len(pos) == 1 else f"ctrl({len(pos)})")
    operands = ", ".join(neg + pos + [target])
    return f"{' @ '.join(modifiers)} @ x {operands};"


def to_qasm(result: SynthesisResult, reg: str = "q") -> str:
    """
    Export synthesis result to OpenQASM 3.

    Qubits are laid out as inputs, then the output, then scratch registers.

    Args:
        result: The synthesis result
        reg: Name of the qubit register

    Returns:
        OpenQASM 3 source as string
    """
    qubits = _qubit_map(result)

    lines = []
    lines.append("OPENQASM 3.0;")
    lines.append('include "stdgates.inc";')
    lines.append("")
    lines.append(f"// Synthesized with {result.method}")
    lines.append(f"// {result.gate_count} elementary gates, {result.required_ancillae} ancillae")
    for r, i in qubits.items():
        if r in result.input_registers:
            role = "input"
        elif r == result.output_register:
            role = "output"
        else:
            role = "ancilla"
        lines.append(f"// {reg}[{i}] = {r} ({role})")
    lines.append(f"qubit[{len(qubits)}] {reg};")
    lines.append("")

    for gate in result.gates:
        lines.append(gate_to_qasm(gate, qubits, reg))

    return "\n".join(lines)


def to_listing(result: SynthesisResult) -> str:
    """
    Export synthesis result as a plain gate listing grouped by schedule event.

    Returns:
        Human-readable listing
    """
    lines = []
    lines.append("Reversible circuit")
    lines.append(f"Method: {result.method}")
    lines.append(f"Gate count: {result.gate_count}")
    lines.append(f"Required ancillae: {result.required_ancillae}")
    lines.append(f"Inputs: {', '.join(str(r) for r in result.input_registers)}")
    lines.append(f"Output: {result.output_register}")
    lines.append("")

    for entry in result.trace:
        lines.append(f"{entry.action.value} n{entry.index} -> {entry.register}")
        for gate in entry.gates:
            lines.append(f"    {gate}")

    return "\n".join(lines)


def to_dot(dag: ExpressionDag, result: Optional[SynthesisResult] = None,
           title: str = "Expression DAG") -> str:
    """
    Export the DAG as Graphviz DOT format.

    Render with: dot -Tpng dag.dot -o dag.png

    Args:
        dag: The expression DAG
        result: Optional synthesis result; node labels then show how many
            times each node was computed
        title: Title for the diagram

    Returns:
        DOT source code as string
    """
    computes = {}
    if result is not None:
        for entry in result.trace:
            if entry.action is Action.COMPUTE:
                computes[entry.index] = computes.get(entry.index, 0) + 1

    subtitle = f"{dag.size} nodes"
    if result is not None:
        subtitle += f", {result.gate_count} gates, {result.required_ancillae} ancillae"

    lines = []
    lines.append("digraph DAG {")
    lines.append(f'    label="{title}\\n{subtitle}";')
    lines.append('    labelloc="t";')
    lines.append('    fontsize=16;')
    lines.append('    rankdir=LR;')
    lines.append('    nodesep=0.3;')
    lines.append('    ranksep=0.8;')
    lines.append("")

    op_colors = {
        Operator.AND: 'lightgreen',
        Operator.OR: 'lightsalmon',
        Operator.XOR: 'lightyellow',
        Operator.IFF: 'lightyellow',
        Operator.NOT: 'lightgray',
        Operator.IMPLIES: 'peachpuff',
    }

    lines.append('    // Inputs')
    lines.append('    subgraph cluster_inputs {')
    lines.append('        label="Inputs";')
    lines.append('        style=dashed;')
    lines.append('        color=gray;')
    for node in dag:
        if node.is_input:
            name = result.input_registers[node.index] if result is not None else f"x{node.index}"
            lines.append(f'        n{node.index} [shape=circle, style=filled, fillcolor=lightblue, label="{name}"];')
    lines.append('    }')
    lines.append("")

    output = dag.output
    lines.append('    // Steps')
    for node in dag:
        if node.is_input:
            continue
        label = node.op.name
        if node.index in computes:
            label += f"\\nx{computes[node.index]}"
        shape = "doublecircle" if node.index == output else "box"
        color = 'lightpink' if node.index == output else op_colors.get(node.op, 'white')
        lines.append(f'    n{node.index} [shape={shape}, style=filled, fillcolor={color}, label="{label}"];')
    lines.append("")

    lines.append('    // Operand edges')
    for node in dag:
        for operand in node.operands:
            lines.append(f'    n{operand} -> n{node.index};')

    lines.append("}")

    return "\n".join(lines)
