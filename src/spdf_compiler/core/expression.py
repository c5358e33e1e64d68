"""
Monomial rate expressions such as ``4*x*x*y``.

An expression is a single term of a multi-variable polynomial: a positive
integer coefficient times symbolic parameters, each to a positive power. The
only representation is the divisor multiset (numeric factors are kept as their
prime factorization), so gcd, multiply and exact divide are all multiset
operations. Text is produced and consumed by pure conversion functions.
"""
from typing import FrozenSet, Set, Tuple

from sympy import factorint

from spdf_compiler.core.divisors import DivisorSet, is_numeric
from spdf_compiler.core.errors import ArithmeticInconsistencyError, ExpressionSyntaxError


def prime_divisors(num: int) -> DivisorSet:
    """Prime factorization of a positive integer, e.g. 440 -> {2: 3, 5: 1, 11: 1}."""
    if num < 1:
        raise ValueError(f"Invalid number {num}: only positive integers can be factored")
    divisors = DivisorSet()
    for prime, power in factorint(num).items():
        divisors.increment_power(str(prime), int(power))
    return divisors


class Expression:
    __slots__ = ("_divisors", "_key")

    def __init__(self, divisors: DivisorSet):
        # private copy: an Expression never changes once built
        self._divisors = divisors.copy()
        self._key: FrozenSet[Tuple[str, int]] = self._divisors.frozen()

    @classmethod
    def parse(cls, text: str) -> "Expression":
        divisors = DivisorSet()
        for raw in text.split("*"):
            token = raw.strip()
            if not token:
                continue
            if token.isdecimal():
                num = int(token)
                if num == 0:
                    raise ExpressionSyntaxError(text, token, "is zero; rates must be positive")
                divisors.union_with(prime_divisors(num))
            elif token.isidentifier():
                divisors.increment_power(token, 1)
            else:
                raise ExpressionSyntaxError(text, token, "is neither a positive integer nor an identifier")
        return cls(divisors)

    @classmethod
    def one(cls) -> "Expression":
        return cls(DivisorSet())

    @classmethod
    def of(cls, num: int) -> "Expression":
        return cls(prime_divisors(num))

    @property
    def divisors(self) -> DivisorSet:
        return self._divisors.copy()

    # -- conversions -------------------------------------------------

    def coefficient(self) -> int:
        value = 1
        for key, power in self._divisors.items():
            if is_numeric(key):
                value *= int(key) ** power
        return value

    def parameter_set(self) -> Set[str]:
        return {key for key in self._divisors.keys() if not is_numeric(key)}

    @property
    def is_integer(self) -> bool:
        return not self.parameter_set()

    @property
    def is_one(self) -> bool:
        return len(self._divisors) == 0

    def as_integer(self) -> int:
        params = self.parameter_set()
        if params:
            raise ValueError(f"Expression {self} still depends on parameters {sorted(params)}")
        return self.coefficient()

    def __str__(self) -> str:
        symbols = []
        for key in sorted(self.parameter_set()):
            symbols.extend([key] * self._divisors.power(key))
        coeff = self.coefficient()
        if not symbols:
            return str(coeff)
        symbolic = "*".join(symbols)
        if coeff == 1:
            return symbolic
        return f"{coeff}*{symbolic}"

    def __repr__(self) -> str:
        return f"Expression('{self}')"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expression):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    # -- arithmetic --------------------------------------------------

    def __mul__(self, other: "Expression") -> "Expression":
        return multiply(self, other)

    def __truediv__(self, other: "Expression") -> "Expression":
        return divide(self, other)


def multiply(arg1: Expression, arg2: Expression) -> Expression:
    divisors = arg1.divisors
    divisors.union_with(arg2._divisors)
    return Expression(divisors)


def divide(arg1: Expression, arg2: Expression) -> Expression:
    """Exact division; raises ArithmeticInconsistencyError if arg2 does not divide arg1."""
    divisors = arg1.divisors
    try:
        divisors.union_with_negated(arg2._divisors)
    except ArithmeticInconsistencyError as exc:
        raise ArithmeticInconsistencyError(f"{arg1} is not divisible by {arg2}: {exc}") from exc
    return Expression(divisors)


def gcd(arg1: Expression, arg2: Expression) -> Expression:
    divisors = arg1.divisors
    divisors.intersect_with(arg2._divisors)
    return Expression(divisors)


def lcm(arg1: Expression, arg2: Expression) -> Expression:
    return multiply(divide(arg1, gcd(arg1, arg2)), arg2)


def divides(arg1: Expression, arg2: Expression) -> bool:
    """True if arg1 divides arg2 exactly."""
    return gcd(arg1, arg2) == arg1


def add(arg1: Expression, arg2: Expression) -> Expression:
    # sums of monomials are not monomials; only pure integers can be added
    if not (arg1.is_integer and arg2.is_integer):
        raise ValueError(f"Cannot add non-integer expressions {arg1} and {arg2}")
    return Expression.of(arg1.as_integer() + arg2.as_integer())
