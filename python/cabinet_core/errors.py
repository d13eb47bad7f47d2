"""Typed failures raised by the configurator core."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """A configuration field lies outside its documented domain."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NumericDomainError(ArithmeticError):
    """An internal computation would leave the finite real domain.

    Raised by the numeric helpers and caught where the quantity is computed,
    so a documented fallback can be substituted instead of NaN/Infinity.
    """

    def __init__(self, quantity: str, message: str) -> None:
        super().__init__(f"{quantity}: {message}")
        self.quantity = quantity
        self.message = message


__all__ = ["ConfigurationError", "NumericDomainError"]
