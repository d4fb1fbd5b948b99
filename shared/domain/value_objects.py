"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents monetary amounts with currency
- DateRange: Represents a half-open range of dates (start inclusive, end exclusive)
"""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from shared.domain.errors import ValidationError

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """
    Money value object

    Amounts are kept as Decimal quantized to cents. Currencies use the lower
    case ISO code expected by the payment processor ("usd").
    """
    amount: Decimal
    currency: str = 'usd'

    def __post_init__(self):
        amount = Decimal(str(self.amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
        if amount < 0:
            raise ValidationError("Amount cannot be negative")
        if not self.currency or len(self.currency) != 3 or not self.currency.isalpha():
            raise ValidationError(f"Unsupported currency: {self.currency!r}")
        object.__setattr__(self, 'amount', amount)
        object.__setattr__(self, 'currency', self.currency.lower())

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> 'Money':
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by an integer or Decimal")
        return Money(self.amount * factor, self.currency)

    def minor_units(self) -> int:
        """Amount in the smallest currency unit (cents), as sent to the processor."""
        return int((self.amount * 100).to_integral_value(rounding=ROUND_HALF_UP))

    @classmethod
    def from_minor_units(cls, value: int, currency: str = 'usd') -> 'Money':
        return cls(Decimal(value) / 100, currency)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency.upper()}"


@dataclass(frozen=True)
class DateRange:
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for booking periods and availability checks.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if not isinstance(self.start_date, date) or not isinstance(self.end_date, date):
            raise ValidationError("Start and end dates are required")
        if self.start_date >= self.end_date:
            raise ValidationError("End date must be after start date")

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Adjacent ranges don't overlap:
            - DateRange(25, 28) overlaps with DateRange(27, 30) -> True
            - DateRange(25, 28) overlaps with DateRange(28, 31) -> False
        """
        return (self.start_date < other.end_date and
                self.end_date > other.start_date)

    def __len__(self) -> int:
        """Number of nights (or rental days) in the range."""
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"
