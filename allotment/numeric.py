# allotment/numeric.py
"""
Arithmetic capability set used by the progress nodes.

Nodes are generic over whatever numeric types the caller picks for the
absolute range and for a task's internal units (``int``, ``float``,
``Fraction``, ``Decimal``, numpy fixed-width scalars …). The only operations
needed are addition, multiplication, division with remainder and an additive
identity; this module spells those out once so every node agrees on them.

Overflow, wrapping and trapping behaviour belongs to the numeric type and is
never caught here.
"""
from __future__ import annotations

import numbers
from typing import Any, Tuple, TypeVar

N = TypeVar("N")

__all__ = ["identity", "is_integral", "split", "share"]


def identity(value: N) -> N:
    """Additive identity of ``value``'s type (``int() == 0``, ``Decimal() == 0`` …)."""
    return type(value)()


def is_integral(*values: Any) -> bool:
    """True when every value is an integral number (numpy integers included)."""
    return all(isinstance(v, numbers.Integral) for v in values)


def split(scaled: Any, divisor: Any) -> Tuple[Any, Any]:
    """
    Divide ``scaled`` by ``divisor`` and return ``(quotient, remainder)``.

    Integral operands truncate and hand back what the truncation dropped.
    Anything else divides exactly as far as the type allows, so there is
    nothing left to carry and the remainder is the identity.
    """
    if is_integral(scaled, divisor):
        return divmod(scaled, divisor)
    return scaled / divisor, identity(scaled)


def share(allocation: Any, divisor: Any) -> Any:
    """Even share of ``allocation``: floor division for integers, true division otherwise."""
    if is_integral(allocation, divisor):
        return allocation // divisor
    return allocation / divisor
