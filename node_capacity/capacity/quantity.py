"""Unit-tagged resource quantities.

Values are kept as ``Decimal`` so sums of many small container requests never
drift. Parsing of Kubernetes quantity strings is delegated to the kubernetes
client's ``parse_quantity``.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from enum import Enum
from typing import Iterable, Optional, Union
from kubernetes.utils import parse_quantity

MEBIBYTE = 1024 * 1024


class UnitFamily(Enum):
    CPU = 'cpu'
    BYTES = 'bytes'
    COUNT = 'count'


class UnitMismatchError(ValueError):
    def __init__(self, left: UnitFamily, right: UnitFamily):
        super().__init__(f'cannot combine {left.value} quantity with {right.value} quantity')
        self.left = left
        self.right = right


def _ceil(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_CEILING))


@dataclass(frozen=True)
class Quantity:
    value: Decimal
    unit: UnitFamily

    @classmethod
    def zero(cls, unit: UnitFamily) -> 'Quantity':
        return cls(Decimal(0), unit)

    @classmethod
    def parse(cls, raw: Union[str, int, float, None], unit: UnitFamily) -> 'Quantity':
        """Parse a quantity string such as ``250m``, ``1Gi`` or ``2``.

        ``None`` and empty strings parse to zero.
        """
        if raw is None or raw == '':
            return cls.zero(unit)
        return cls(Decimal(parse_quantity(raw)), unit)

    def __add__(self, other: 'Quantity') -> 'Quantity':
        if not isinstance(other, Quantity):
            return NotImplemented
        if other.unit is not self.unit:
            raise UnitMismatchError(self.unit, other.unit)
        return Quantity(self.value + other.value, self.unit)

    def is_zero(self) -> bool:
        return self.value == 0

    def ratio(self, other: 'Quantity') -> Decimal:
        """Return self / other, or zero when other is zero."""
        if other.unit is not self.unit:
            raise UnitMismatchError(self.unit, other.unit)
        if other.value == 0:
            return Decimal(0)
        return self.value / other.value

    # Display conversions round up, so a partial unit never shows as less
    # than its true size.
    def milli_value(self) -> int:
        return _ceil(self.value * 1000)

    def mebibytes(self) -> int:
        return _ceil(self.value / MEBIBYTE)

    def count(self) -> int:
        return _ceil(self.value)


def sum_quantities(items: Iterable[Quantity], unit: UnitFamily) -> Quantity:
    total = Quantity.zero(unit)
    for q in items:
        total = total + q
    return total


def add_optional(left: Optional[Quantity], right: Optional[Quantity]) -> Optional[Quantity]:
    """Add two possibly-absent quantities; absent only if both are absent."""
    if left is None:
        return right
    if right is None:
        return left
    return left + right
