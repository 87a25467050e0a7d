"""
===========================================================
exceptions.py
Author: Veronica Scerra
Last Updated: 2026-10-12
===========================================================
Error types for the pulse-treatment SEIR model.

    DomainError    - invalid parameters or initial conditions,
                     raised before any integration starts
    NumericalError - the integrated state left its physical
                     bounds (negative compartment, population
                     drift, non-finite values, solver failure)

Both subclass the builtin errors the other models raise
(ValueError / RuntimeError) so existing handlers still work.
-----------------------------------------------------------
License: MIT
===========================================================
"""


class DomainError(ValueError):
    """Invalid parameter set or initial condition."""


class NumericalError(RuntimeError):
    """Integration produced a physically invalid state."""
