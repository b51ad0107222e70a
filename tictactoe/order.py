"""
Extended ordering domain: a total order over values plus -inf and +inf.

Search bounds and fold seeds use this type so that "no children yet" and
"unbounded" are representable without sentinel integers.
"""
from __future__ import annotations

import enum
import math
from typing import Any, Callable, Generic, Optional, TypeVar, Union

T = TypeVar('T')
U = TypeVar('U')


class Bound(enum.IntEnum):
    """Variant tag. The integer value is the rank used for ordering."""
    NEGATIVE_INFINITY = 0
    VALUE = 1
    POSITIVE_INFINITY = 2


class Ordering(enum.IntEnum):
    LT = -1
    EQ = 0
    GT = 1


class Extended(Generic[T]):
    """One of NegativeInfinity, PositiveInfinity or Value(x).

    The set of variants is closed: the class refuses subclasses. Instances
    are immutable and hashable.
    """

    __slots__ = ("kind", "value")

    kind: Bound
    value: Optional[T]

    def __init__(self, kind: Bound, value: Optional[T] = None) -> None:
        if kind is Bound.VALUE and value is None:
            raise ValueError("Value variant requires a payload")
        if kind is not Bound.VALUE and value is not None:
            raise ValueError("infinite variants carry no payload")
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", value)

    def __init_subclass__(cls, **kwargs: Any) -> None:
        raise TypeError("Extended is a closed type and cannot be subclassed")

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Extended values are immutable")

    # Variant predicates
    @property
    def is_finite(self) -> bool:
        return self.kind is Bound.VALUE

    @property
    def is_negative_infinity(self) -> bool:
        return self.kind is Bound.NEGATIVE_INFINITY

    @property
    def is_positive_infinity(self) -> bool:
        return self.kind is Bound.POSITIVE_INFINITY

    def unwrap(self, default: Optional[T] = None) -> Optional[T]:
        """Return the finite payload, or `default` for an infinity."""
        return self.value if self.kind is Bound.VALUE else default

    # Python protocol
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Extended):
            return NotImplemented
        return compare(self, other) is Ordering.EQ

    def __hash__(self) -> int:
        return hash((self.kind, self.value))

    def __lt__(self, other: Any) -> bool:
        return compare(self, lift(other)) is Ordering.LT

    def __le__(self, other: Any) -> bool:
        return compare(self, lift(other)) is not Ordering.GT

    def __gt__(self, other: Any) -> bool:
        return compare(self, lift(other)) is Ordering.GT

    def __ge__(self, other: Any) -> bool:
        return compare(self, lift(other)) is not Ordering.LT

    def __neg__(self) -> "Extended[T]":
        return negate(self)

    def __reduce__(self) -> Any:
        return (Extended, (self.kind, self.value))

    def __repr__(self) -> str:
        if self.kind is Bound.NEGATIVE_INFINITY:
            return "NegativeInfinity"
        if self.kind is Bound.POSITIVE_INFINITY:
            return "PositiveInfinity"
        return f"Value({self.value!r})"


NEGATIVE_INFINITY: Extended[Any] = Extended(Bound.NEGATIVE_INFINITY)
POSITIVE_INFINITY: Extended[Any] = Extended(Bound.POSITIVE_INFINITY)


def value(x: T) -> Extended[T]:
    """Wrap a finite value."""
    return Extended(Bound.VALUE, x)


def lift(x: Union[Extended[T], T]) -> Extended[T]:
    """Coerce a bare value into the domain; float infinities map to the bounds."""
    if isinstance(x, Extended):
        return x
    if isinstance(x, float) and math.isinf(x):
        return POSITIVE_INFINITY if x > 0 else NEGATIVE_INFINITY
    return value(x)


def compare(a: Extended[T], b: Extended[T]) -> Ordering:
    if a.kind is not b.kind:
        return Ordering.LT if a.kind < b.kind else Ordering.GT
    if a.kind is not Bound.VALUE:
        return Ordering.EQ
    if a.value < b.value:  # type: ignore[operator]
        return Ordering.LT
    if a.value == b.value:
        return Ordering.EQ
    return Ordering.GT


def eq(a: Extended[T], b: Extended[T]) -> bool:
    return compare(a, b) is Ordering.EQ


def gt(a: Extended[T], b: Extended[T]) -> bool:
    return compare(a, b) is Ordering.GT


def ge(a: Extended[T], b: Extended[T]) -> bool:
    return gt(a, b) or eq(a, b)


def lt(a: Extended[T], b: Extended[T]) -> bool:
    return gt(b, a)


def le(a: Extended[T], b: Extended[T]) -> bool:
    return ge(b, a)


def maximum(a: Extended[T], b: Extended[T]) -> Extended[T]:
    """Larger of two values; the first argument wins ties."""
    return b if gt(b, a) else a


def minimum(a: Extended[T], b: Extended[T]) -> Extended[T]:
    """Smaller of two values; the first argument wins ties."""
    return b if lt(b, a) else a


def negate(x: Extended[T]) -> Extended[T]:
    if x.kind is Bound.NEGATIVE_INFINITY:
        return POSITIVE_INFINITY
    if x.kind is Bound.POSITIVE_INFINITY:
        return NEGATIVE_INFINITY
    return value(-x.value)  # type: ignore[operator]


def fmap(f: Callable[[T], U], x: Extended[T]) -> Extended[U]:
    """Apply `f` to a finite payload; infinities are left unchanged."""
    if x.kind is Bound.VALUE:
        return value(f(x.value))  # type: ignore[arg-type]
    return x  # type: ignore[return-value]


def is_positive(x: Extended[Any]) -> bool:
    if x.kind is Bound.VALUE:
        return x.value > 0  # type: ignore[operator]
    return x.kind is Bound.POSITIVE_INFINITY


def is_negative(x: Extended[Any]) -> bool:
    if x.kind is Bound.VALUE:
        return x.value < 0  # type: ignore[operator]
    return x.kind is Bound.NEGATIVE_INFINITY


def is_zero(x: Extended[Any]) -> bool:
    """Only a finite zero is zero."""
    return x.kind is Bound.VALUE and x.value == 0


__all__ = [
    "Bound",
    "Ordering",
    "Extended",
    "NEGATIVE_INFINITY",
    "POSITIVE_INFINITY",
    "value",
    "lift",
    "compare",
    "eq",
    "gt",
    "ge",
    "lt",
    "le",
    "maximum",
    "minimum",
    "negate",
    "fmap",
    "is_positive",
    "is_negative",
    "is_zero",
]
