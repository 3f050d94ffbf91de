"""
Billing Models: Check, Payment.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import CheckStatus, TenderType
from .base import Base, IdType, TimestampMixin, enum_type

if TYPE_CHECKING:
    from .catalog import Discount
    from .order import OrderedItem
    from .user import User


class Check(TimestampMixin, Base):
    """
    A guest's running bill for a table or a bar tab.

    Aggregate columns are recomputed from live non-void ordered items by
    services.domain.check_totals; nothing else writes them.

    Table is "app_check" because CHECK is a reserved SQL keyword.
    """

    __tablename__ = "app_check"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("app_user.id"), nullable=False, index=True
    )
    table_num: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    customer: Mapped[Optional[str]] = mapped_column(Text)
    num_guests: Mapped[int] = mapped_column(Integer, nullable=False)
    printed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)
    discount_id: Mapped[Optional[int]] = mapped_column(IdType, ForeignKey("discount.id"))

    subtotal_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount_total_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    local_tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    state_tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    federal_tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_void: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="checks")
    discount: Mapped[Optional["Discount"]] = relationship()
    ordered_items: Mapped[list["OrderedItem"]] = relationship(
        back_populates="check", order_by="OrderedItem.id"
    )
    payments: Mapped[list["Payment"]] = relationship(
        back_populates="check", order_by="Payment.id"
    )

    __table_args__ = (
        CheckConstraint("num_guests > 0", name="chk_check_guests_positive"),
        CheckConstraint(
            "table_num IS NOT NULL OR customer IS NOT NULL",
            name="chk_check_table_or_customer",
        ),
        CheckConstraint("subtotal_cents >= 0", name="chk_check_subtotal_non_negative"),
        CheckConstraint(
            "discount_total_cents >= 0 AND discount_total_cents <= subtotal_cents",
            name="chk_check_discount_within_subtotal",
        ),
        Index("ix_check_open", "closed_at", "is_void"),
    )

    @property
    def status(self) -> str:
        if self.is_void:
            return CheckStatus.VOID
        if self.closed_at is not None:
            return CheckStatus.CLOSED
        if self.printed_at is not None:
            return CheckStatus.PRINTED
        return CheckStatus.OPEN

    @property
    def tax_cents(self) -> int:
        return self.local_tax_cents + self.state_tax_cents + self.federal_tax_cents

    @property
    def total_cents(self) -> int:
        """Amount payments must cover: subtotal - discounts + taxes."""
        return self.subtotal_cents - self.discount_total_cents + self.tax_cents

    def __repr__(self) -> str:
        return (
            f"<Check(id={self.id}, table={self.table_num}, customer={self.customer!r}, "
            f"total={self.total_cents}, status={self.status})>"
        )


class Payment(TimestampMixin, Base):
    """
    One tender applied to a check. Split payments are several rows.

    tip_cents stays NULL until the tip is declared. Payments are voided,
    never deleted.
    """

    __tablename__ = "payment"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    check_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("app_check.id"), nullable=False, index=True
    )
    type: Mapped[TenderType] = mapped_column(enum_type(TenderType, "tender_type"), nullable=False)
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    tip_cents: Mapped[Optional[int]] = mapped_column(Integer)
    is_void: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    check: Mapped["Check"] = relationship(back_populates="payments")

    __table_args__ = (
        CheckConstraint("subtotal_cents > 0", name="chk_payment_subtotal_positive"),
        CheckConstraint("tip_cents IS NULL OR tip_cents >= 0", name="chk_payment_tip_non_negative"),
        Index("ix_payment_check_void", "check_id", "is_void"),
    )

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, check={self.check_id}, type={self.type.value}, "
            f"subtotal={self.subtotal_cents}, tip={self.tip_cents}, void={self.is_void})>"
        )
