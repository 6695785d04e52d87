"""Money arithmetic used by revenue attribution and aggregation.

Two modes are supported:

* ``decimal`` (default): amounts are ``Decimal``. A monthly fee share is
  divided at 28 significant digits; every addition and multiplication runs
  in a 100-digit context, so totals are exact and do not depend on the
  order in which visits are summed.
* ``float``: amounts are binary floats combined with plain ``+`` and ``/``,
  matching the numbers the web calendar shows.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal
from functools import reduce
from typing import Any, Iterable, Literal, Optional, Union

from ...config import settings

Amount = Union[Decimal, float]
MoneyMode = Literal["decimal", "float"]

_DIVISION_CONTEXT = Context(prec=28)
_EXACT_CONTEXT = Context(prec=100)


@dataclass(frozen=True, slots=True)
class MoneyArithmetic:
    mode: MoneyMode = "decimal"

    @property
    def is_decimal(self) -> bool:
        return self.mode == "decimal"

    def zero(self) -> Amount:
        return Decimal(0) if self.is_decimal else 0.0

    def coerce(self, value: Any) -> Amount:
        """Convert a stored numeric value; ``None`` counts as zero."""
        if value is None:
            return self.zero()
        if not self.is_decimal:
            return float(value)
        if isinstance(value, Decimal):
            return value
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)

    def add(self, left: Amount, right: Amount) -> Amount:
        if self.is_decimal:
            return _EXACT_CONTEXT.add(left, right)
        return left + right

    def multiply(self, left: Amount, right: Amount) -> Amount:
        if self.is_decimal:
            return _EXACT_CONTEXT.multiply(left, right)
        return left * right

    def divide(self, total: Amount, count: int) -> Amount:
        if count <= 0:
            return self.zero()
        if self.is_decimal:
            return _DIVISION_CONTEXT.divide(total, Decimal(count))
        return total / count

    def total(self, values: Iterable[Amount]) -> Amount:
        return reduce(self.add, values, self.zero())


DECIMAL_MONEY = MoneyArithmetic("decimal")
FLOAT_MONEY = MoneyArithmetic("float")


def get_money(mode: Optional[MoneyMode] = None) -> MoneyArithmetic:
    """Return the arithmetic for ``mode``, defaulting to the configured money mode."""
    selected = mode or settings.money_mode
    if selected == "decimal":
        return DECIMAL_MONEY
    if selected == "float":
        return FLOAT_MONEY
    raise ValueError(f"Unknown money mode '{selected}'")
