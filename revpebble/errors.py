"""
Error taxonomy for reversible circuit synthesis.

Every error raised by the package derives from SynthesisError and from the
builtin exception closest to its meaning.
"""


class SynthesisError(Exception):
    """Base class for all synthesis errors."""


class InvalidOperandError(SynthesisError, ValueError):
    """A node was built with the wrong number of operands or a forward reference."""


class UnknownNodeError(SynthesisError, LookupError):
    """A node index is outside the DAG."""


class UnboundNodeError(SynthesisError, LookupError):
    """A node has no register bound to it."""


class PebblingInfeasibleError(SynthesisError, RuntimeError):
    """No schedule fits the configured ancilla and step budgets."""


class ResourceExhaustedError(SynthesisError, RuntimeError):
    """The register substrate cannot supply another scratch register."""


class DoubleReleaseError(SynthesisError, AssertionError):
    """A register was released while not held."""


class InvalidScheduleError(SynthesisError, AssertionError):
    """An event sequence violates the compute/uncompute ordering rules."""
