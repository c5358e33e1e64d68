from dataclasses import dataclass
from typing import Generic, Optional, Protocol, TypeVar


class Violation(Protocol):
    def diagnostics(self) -> str:
        ...

    def to_error(self) -> Exception:
        ...


T = TypeVar("T")
V = TypeVar("V", bound=Violation)


@dataclass(frozen=True)
class Result(Generic[T, V]):
    """
    Outcome of an analysis step that can legitimately fail on a bad input graph.

    Exactly one of `value` / `violation` is meaningful. Callers that treat the
    violation as fatal call `unwrap()`; interactive callers inspect `violation`.
    """

    value: Optional[T] = None
    violation: Optional[V] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T, V]":
        return cls(value=value)

    @classmethod
    def failure(cls, violation: V) -> "Result[T, V]":
        return cls(violation=violation)

    @property
    def ok(self) -> bool:
        return self.violation is None

    def unwrap(self) -> Optional[T]:
        if self.violation is not None:
            raise self.violation.to_error()
        return self.value
