"""
Integer-cent money helpers.

All amounts are stored and computed as integer cents. Rates are basis
points (1 bps = 0.01%).
"""

from shared.config.constants import Limits


def apply_bps(amount_cents: int, rate_bps: int) -> int:
    """
    Apply a basis-point rate to an amount, rounding half up.

    >>> apply_bps(1000, 825)
    83
    >>> apply_bps(1, 5000)
    1
    """
    if amount_cents <= 0 or rate_bps <= 0:
        return 0
    return (amount_cents * rate_bps + Limits.BPS_DENOMINATOR // 2) // Limits.BPS_DENOMINATOR


def format_cents(amount_cents: int | None) -> str:
    """Render cents as a dollar string: 2500 -> "$25.00"."""
    if amount_cents is None:
        return "-"
    sign = "-" if amount_cents < 0 else ""
    dollars, cents = divmod(abs(amount_cents), 100)
    return f"{sign}${dollars:,}.{cents:02d}"
