"""
Check aggregate calculation.

Totals are always re-derived from the live set of non-void ordered items
on the check, never adjusted incrementally, so concurrent edits and voids
cannot make them drift.
"""

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import Check, Discount, OrderedItem
from shared.config.settings import settings
from shared.utils.money import apply_bps


@dataclass(frozen=True)
class CheckTotals:
    subtotal_cents: int
    discount_total_cents: int
    local_tax_cents: int
    state_tax_cents: int
    federal_tax_cents: int

    @property
    def total_cents(self) -> int:
        return (
            self.subtotal_cents
            - self.discount_total_cents
            + self.local_tax_cents
            + self.state_tax_cents
            + self.federal_tax_cents
        )


def discount_amount(discount: Discount | None, base_cents: int) -> int:
    """What a discount takes off `base_cents`; never more than the base."""
    if discount is None or base_cents <= 0:
        return 0
    if discount.percent_bps is not None:
        return min(apply_bps(base_cents, discount.percent_bps), base_cents)
    return min(discount.amount_cents or 0, base_cents)


def compute_totals(
    items: Iterable[tuple[int, Discount | None]],
    check_discount: Discount | None = None,
    local_tax_bps: int = 0,
    state_tax_bps: int = 0,
    federal_tax_bps: int = 0,
) -> CheckTotals:
    """
    Pure totals calculation.

    Args:
        items: (price_cents, item discount) for each NON-void ordered item.
        check_discount: check-level discount, applied after item discounts.
    """
    subtotal = 0
    item_discounts = 0
    for price_cents, item_discount in items:
        subtotal += price_cents
        item_discounts += discount_amount(item_discount, price_cents)

    check_level = discount_amount(check_discount, subtotal - item_discounts)
    discount_total = min(item_discounts + check_level, subtotal)

    taxable = subtotal - discount_total
    return CheckTotals(
        subtotal_cents=subtotal,
        discount_total_cents=discount_total,
        local_tax_cents=apply_bps(taxable, local_tax_bps),
        state_tax_cents=apply_bps(taxable, state_tax_bps),
        federal_tax_cents=apply_bps(taxable, federal_tax_bps),
    )


def recalculate(db: Session, check: Check) -> CheckTotals:
    """
    Recompute and store a check's aggregates in the current transaction.

    Pending ordered-item changes are flushed first so the query sees them.
    The caller is expected to hold the check row lock.
    """
    db.flush()
    live_items = db.execute(
        select(OrderedItem).where(
            OrderedItem.check_id == check.id,
            OrderedItem.is_void.is_(False),
        )
    ).scalars().all()

    def _discount(discount_id: int | None) -> Discount | None:
        return db.get(Discount, discount_id) if discount_id else None

    totals = compute_totals(
        ((oi.price_cents, _discount(oi.item_discount_id)) for oi in live_items),
        check_discount=_discount(check.discount_id),
        local_tax_bps=settings.local_tax_bps,
        state_tax_bps=settings.state_tax_bps,
        federal_tax_bps=settings.federal_tax_bps,
    )

    check.subtotal_cents = totals.subtotal_cents
    check.discount_total_cents = totals.discount_total_cents
    check.local_tax_cents = totals.local_tax_cents
    check.state_tax_cents = totals.state_tax_cents
    check.federal_tax_cents = totals.federal_tax_cents
    return totals
