"""Calcul des montants de réservation (prix + commission plateforme)."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
DEFAULT_FEE_RATE = Decimal("0.10")
MINUTES_PER_HOUR = 60


def to_money(value: Decimal | float | int | str) -> Decimal:
    """Arrondit un montant à l'unité monétaire la plus petite (demi supérieur)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def platform_fee(price: Decimal, rate: Decimal = DEFAULT_FEE_RATE) -> Decimal:
    return to_money(Decimal(price) * rate)


def booking_total(price: Decimal, rate: Decimal = DEFAULT_FEE_RATE) -> Decimal:
    """Total d'une réservation: prix de la séance + commission (ex: 20.00 → 22.00)."""
    price = to_money(price)
    return to_money(price + platform_fee(price, rate))


def trainer_booking_total(
    hourly_rate: Decimal, duration_minutes: int, rate: Decimal = DEFAULT_FEE_RATE
) -> Decimal:
    """Total d'une séance de coaching: tarif horaire au prorata de la durée + commission."""
    base = to_money(Decimal(hourly_rate) * Decimal(duration_minutes) / MINUTES_PER_HOUR)
    return booking_total(base, rate)


def to_minor_units(amount: Decimal) -> int:
    """Convertit un montant en centimes (plus petite unité de la devise)."""
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))
