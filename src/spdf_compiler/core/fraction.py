from typing import Optional

from spdf_compiler.core.errors import ArithmeticInconsistencyError
from spdf_compiler.core.expression import Expression, divide, gcd, multiply


class Fraction:
    """
    Ratio of two monomials, reduced at construction: numerator and denominator
    are always coprime.
    """

    __slots__ = ("numerator", "denominator")

    def __init__(self, numerator: Expression, denominator: Optional[Expression] = None):
        if denominator is None:
            denominator = Expression.one()
        common = gcd(numerator, denominator)
        self.numerator = divide(numerator, common)
        self.denominator = divide(denominator, common)

    @classmethod
    def parse(cls, text: str) -> "Fraction":
        return cls(Expression.parse(text))

    @classmethod
    def one(cls) -> "Fraction":
        return cls(Expression.one())

    @property
    def is_one(self) -> bool:
        return self.numerator.is_one and self.denominator.is_one

    def collapse(self) -> Expression:
        """Convert to a plain expression; the denominator must be 1."""
        if not self.denominator.is_one:
            raise ArithmeticInconsistencyError(f"Invalid conversion of {self} to an integer monomial")
        return self.numerator

    def __mul__(self, other: "Fraction") -> "Fraction":
        return Fraction(
            multiply(self.numerator, other.numerator),
            multiply(self.denominator, other.denominator),
        )

    def __truediv__(self, other: "Fraction") -> "Fraction":
        return Fraction(
            multiply(self.numerator, other.denominator),
            multiply(self.denominator, other.numerator),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fraction):
            return NotImplemented
        return self.numerator == other.numerator and self.denominator == other.denominator

    def __hash__(self) -> int:
        return hash((self.numerator, self.denominator))

    def __str__(self) -> str:
        return f"({self.numerator}/{self.denominator})"

    def __repr__(self) -> str:
        return f"Fraction{self}"
