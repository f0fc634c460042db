"""Exceptions raised by the solver."""


class SolverError(Exception):
    """Base class for solver errors."""


class ContractViolationError(SolverError, RuntimeError):
    """
    The solver was driven into a state its own bookkeeping forbids.

    Raised for misuse that cannot be recovered from, such as marking a known
    mine as dead or handing the decision-tree analysis a malformed row.
    """
