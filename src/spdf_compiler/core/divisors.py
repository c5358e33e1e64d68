from typing import Dict, FrozenSet, ItemsView, Iterator, KeysView, Optional, Tuple

from spdf_compiler.core.errors import ArithmeticInconsistencyError


def is_numeric(key: str) -> bool:
    """A divisor key is numeric (a prime) iff it parses as a decimal integer."""
    return key.isdecimal()


class DivisorSet:
    """
    Multiset of divisors: key -> power, read as c1^w1 * c2^w2 * ... * p1^u1 * ...

    Keys are either decimal strings of primes or symbolic parameter names.
    A key with power 0 is never stored. With prime/parameter atoms as keys,
    `intersect_with` computes the greatest common divisor.
    """

    def __init__(self, powers: Optional[Dict[str, int]] = None):
        self._powers: Dict[str, int] = {}
        if powers:
            for key, power in powers.items():
                self.set_power(key, power)

    def power(self, key: str) -> int:
        return self._powers.get(key, 0)

    def set_power(self, key: str, power: int) -> None:
        if power < 0:
            raise ArithmeticInconsistencyError(f"Negative power {power} for divisor '{key}'")
        if power == 0:
            self._powers.pop(key, None)
        else:
            self._powers[key] = power

    def increment_power(self, key: str, delta: int) -> None:
        self.set_power(key, self.power(key) + delta)

    def union_with(self, other: "DivisorSet") -> None:
        for key, power in other.items():
            self.increment_power(key, power)

    def union_with_negated(self, other: "DivisorSet") -> None:
        # validate first so a failed division leaves this set untouched
        for key, power in other.items():
            if self.power(key) < power:
                raise ArithmeticInconsistencyError(
                    f"Divisor '{key}' has power {self.power(key)}, cannot remove power {power}"
                )
        for key, power in other.items():
            self.increment_power(key, -power)

    def intersect_with(self, other: "DivisorSet") -> None:
        for key in list(self._powers):
            self.set_power(key, min(self._powers[key], other.power(key)))

    def copy(self) -> "DivisorSet":
        clone = DivisorSet()
        clone._powers = dict(self._powers)
        return clone

    def frozen(self) -> FrozenSet[Tuple[str, int]]:
        return frozenset(self._powers.items())

    def items(self) -> ItemsView[str, int]:
        return self._powers.items()

    def keys(self) -> KeysView[str]:
        return self._powers.keys()

    def __iter__(self) -> Iterator[str]:
        return iter(self._powers)

    def __len__(self) -> int:
        return len(self._powers)

    def __contains__(self, key: object) -> bool:
        return key in self._powers

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DivisorSet):
            return NotImplemented
        return self._powers == other._powers

    def __hash__(self) -> int:
        return hash(self.frozen())

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}^{p}" for k, p in sorted(self._powers.items()))
        return f"DivisorSet({inner})"
