# Copyright 2025 Spencer Williams
#
# Use of this source code is governed by an MIT license:
# https://github.com/sw23/life-model/blob/main/LICENSE

"""
Fixed-point currency amounts.

All money in the model flows through :class:`Money`, a decimal amount tagged
with a currency code. Arithmetic runs in a dedicated ``decimal.Context``
(28 significant digits, round-half-to-even) so results never depend on the
caller's global decimal context. Amounts keep full precision internally;
:meth:`Money.rounded` applies the final 2-place display rounding.
"""

from dataclasses import dataclass
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    ROUND_HALF_EVEN,
)
from typing import Iterable, Union

from .config import config
from .errors import AmountOverflow, CurrencyMismatch

MONEY_CONTEXT = Context(
    prec=config.financial.get('money.precision', 28),
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)
DISPLAY_QUANTUM = Decimal(1).scaleb(-config.financial.get('money.display_places', 2))
AMOUNT_CEILING = Decimal(config.financial.get('money.amount_ceiling', '1e15'))

ZERO = Decimal(0)
ONE = Decimal(1)

Scalar = Union[Decimal, int]


def as_rate(value: Union[Decimal, int, str]) -> Decimal:
    """Convert an external numeric value into a Decimal rate or amount.

    Floats are rejected: callers holding a float must convert it explicitly
    with ``str()`` first so the conversion is visible at the call site.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Expected Decimal, int or str, got {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = MONEY_CONTEXT.create_decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"Not a decimal number: {value!r}") from e
    else:
        raise TypeError(f"Expected Decimal, int or str, got {type(value).__name__}")
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def _scalar(value: Scalar) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
        raise TypeError(f"Money can only be scaled by Decimal or int, got {type(value).__name__}")
    return Decimal(value) if isinstance(value, int) else value


def _checked(amount: Decimal) -> Decimal:
    if abs(amount) > AMOUNT_CEILING:
        raise AmountOverflow(amount, AMOUNT_CEILING)
    return amount


def compound_factor(rate: Decimal, years: int) -> Decimal:
    """(1 + rate) ** years for a whole number of years."""
    if years < 0:
        raise ValueError(f"years must not be negative: {years}")
    return MONEY_CONTEXT.power(MONEY_CONTEXT.add(ONE, rate), years)


@dataclass(frozen=True)
class Money:
    """A decimal amount in a single currency.

    Example:
        >>> Money('10.005', 'AUD').rounded()
        Money(amount=Decimal('10.00'), currency='AUD')
    """
    amount: Decimal
    currency: str

    def __post_init__(self):
        object.__setattr__(self, 'amount', _checked(as_rate(self.amount)))
        if not isinstance(self.currency, str) or len(self.currency.strip()) != 3:
            raise ValueError(f"Currency must be a 3-letter code, got {self.currency!r}")
        object.__setattr__(self, 'currency', self.currency.strip().upper())

    @classmethod
    def zero(cls, currency: str) -> 'Money':
        return cls(ZERO, currency)

    def _same_currency(self, other: 'Money'):
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise CurrencyMismatch(self.currency, other.currency)

    def _new(self, amount: Decimal) -> 'Money':
        return Money(amount, self.currency)

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other)
        return self._new(MONEY_CONTEXT.add(self.amount, other.amount))

    def __sub__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other)
        return self._new(MONEY_CONTEXT.subtract(self.amount, other.amount))

    def __neg__(self) -> 'Money':
        return self._new(MONEY_CONTEXT.minus(self.amount))

    def __abs__(self) -> 'Money':
        return self._new(MONEY_CONTEXT.abs(self.amount))

    def __mul__(self, rate: Scalar) -> 'Money':
        if isinstance(rate, Money):
            return NotImplemented
        return self._new(MONEY_CONTEXT.multiply(self.amount, _scalar(rate)))

    __rmul__ = __mul__

    def __truediv__(self, other: Union['Money', Scalar]):
        """Divide by a scalar (returns Money) or by Money (returns a Decimal ratio)."""
        if isinstance(other, Money):
            self._same_currency(other)
            return MONEY_CONTEXT.divide(self.amount, other.amount)
        return self._new(MONEY_CONTEXT.divide(self.amount, _scalar(other)))

    def __lt__(self, other: 'Money') -> bool:
        self._same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: 'Money') -> bool:
        self._same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: 'Money') -> bool:
        self._same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: 'Money') -> bool:
        self._same_currency(other)
        return self.amount >= other.amount

    def is_zero(self) -> bool:
        return self.amount.is_zero()

    def is_negative(self) -> bool:
        return self.amount < ZERO

    def is_positive(self) -> bool:
        return self.amount > ZERO

    def floor_zero(self) -> 'Money':
        """Return this amount, or zero if it is negative."""
        return self if self.amount >= ZERO else Money.zero(self.currency)

    def rounded(self) -> 'Money':
        """Quantize to display precision with banker's rounding."""
        return self._new(self.amount.quantize(DISPLAY_QUANTUM, context=MONEY_CONTEXT))

    def __str__(self) -> str:
        return f"{self.currency} {self.rounded().amount:,.2f}"


def sum_money(values: Iterable[Money], currency: str) -> Money:
    """Sum an iterable of Money, starting from zero in ``currency``."""
    total = Money.zero(currency)
    for value in values:
        total = total + value
    return total


def max_money(left: Money, right: Money) -> Money:
    return left if left >= right else right


def min_money(left: Money, right: Money) -> Money:
    return left if left <= right else right
