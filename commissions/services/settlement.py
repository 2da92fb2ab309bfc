"""Order revenue split arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from commissions.core.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Settlement:
    commission_amount: Decimal
    net_amount: Decimal


def to_decimal(value, field_name: str = "value") -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number.")
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field_name} must be a number.") from exc
    if not number.is_finite():
        raise ValidationError(f"{field_name} must be a finite number.")
    return number


def round2(value: Decimal) -> Decimal:
    """Round half away from zero to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_settlement(order_total, percentage) -> Settlement:
    """Split ``order_total`` into platform commission and provider net.

    Commission and net are each rounded to cents; percentages above 100 are
    rejected upstream.
    """
    total = to_decimal(order_total, "order_total")
    rate = to_decimal(percentage, "percentage")
    if rate <= ZERO:
        return Settlement(commission_amount=round2(ZERO), net_amount=round2(total))

    commission = round2(total * rate / HUNDRED)
    net = round2(total - commission)
    return Settlement(commission_amount=commission, net_amount=net)
