"""
Pydantic schemas for request bodies and responses.

Patch schemas forbid unknown keys; services apply only the fields the
client actually sent (`model_fields_set`), so an explicit null differs
from an omitted key.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared.config.constants import EntityKind, Limits, LogEvent, Role, TenderType


class _Patch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def provided(self) -> dict:
        """Only the fields present in the request body."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Authentication Schemas
# =============================================================================


class LoginRequest(BaseModel):
    """Login request body."""

    username: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    password: str = Field(min_length=1)


class UserInfo(_Out):
    """Basic user information included in auth responses."""

    id: int
    username: str
    first_name: str
    last_name: str
    display_name: str | None = None
    role: Role


class LoginResponse(BaseModel):
    """Login response with JWT token."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int  # seconds
    user: UserInfo


# =============================================================================
# Staff Schemas
# =============================================================================


class StaffCreate(BaseModel):
    """New staff account. The role defaults to the lowest level."""

    username: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    password: str = Field(min_length=Limits.MIN_PASSWORD_LENGTH)
    first_name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    last_name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    display_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    role: Role = Role.TRAINEE


class StaffPatch(_Patch):
    password: str | None = Field(default=None, min_length=Limits.MIN_PASSWORD_LENGTH)
    first_name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    last_name: str | None = Field(default=None, min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    display_name: str | None = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)
    role: Role | None = None
    is_active: bool | None = None


class StaffOut(UserInfo):
    is_active: bool
    created_at: datetime | None = None


# =============================================================================
# Check Schemas
# =============================================================================


class CheckCreate(BaseModel):
    """Open a check for a table, a bar tab, or both."""

    table_num: int | None = Field(default=None, ge=0)
    customer: str | None = Field(default=None, max_length=Limits.MAX_CUSTOMER_LENGTH)
    num_guests: int = Field(gt=0, le=Limits.MAX_GUESTS)


class CheckPatch(_Patch):
    table_num: int | None = Field(default=None, ge=0)
    customer: str | None = Field(default=None, max_length=Limits.MAX_CUSTOMER_LENGTH)
    num_guests: int | None = Field(default=None, gt=0, le=Limits.MAX_GUESTS)
    discount_id: int | None = None
    printed_at: datetime | None = None
    closed_at: datetime | None = None
    is_void: bool | None = None


class CheckOut(_Out):
    id: int
    user_id: int
    table_num: int | None
    customer: str | None
    num_guests: int
    created_at: datetime
    printed_at: datetime | None
    closed_at: datetime | None
    discount_id: int | None
    subtotal_cents: int
    discount_total_cents: int
    local_tax_cents: int
    state_tax_cents: int
    federal_tax_cents: int
    total_cents: int
    is_void: bool
    status: str


class CheckCloseRequest(BaseModel):
    closed_at: datetime | None = None


# =============================================================================
# Order Schemas
# =============================================================================


class OrderLine(BaseModel):
    """One item in a send-order request."""

    item_id: int
    seat_num: int | None = Field(default=None, ge=0, le=Limits.MAX_SEAT_NUM)
    course_num: int | None = Field(default=None, ge=1, le=Limits.MAX_COURSE_NUM)
    item_note: str | None = Field(default=None, max_length=Limits.MAX_NOTE_LENGTH)


class OrderCreate(BaseModel):
    """
    Create a ticket. With check_id and items the ticket and its items are
    written in one transaction; with neither an empty shell is created.
    """

    check_id: int | None = None
    items: list[OrderLine] = Field(default_factory=list, max_length=Limits.MAX_ITEMS_PER_ORDER)

    @model_validator(mode="after")
    def _items_need_check(self):
        if self.items and self.check_id is None:
            raise ValueError("check_id is required when items are sent")
        return self


class FireCourseRequest(BaseModel):
    course: int
    fired_at: datetime | None = None


class OrderOut(_Out):
    id: int
    user_id: int
    sent_at: datetime
    completed_at: datetime | None
    fire_course_2: datetime | None
    fire_course_3: datetime | None


class OrderedItemCreate(BaseModel):
    item_id: int
    order_id: int
    check_id: int
    seat_num: int | None = Field(default=None, ge=0, le=Limits.MAX_SEAT_NUM)
    course_num: int | None = Field(default=None, ge=1, le=Limits.MAX_COURSE_NUM)
    item_note: str | None = Field(default=None, max_length=Limits.MAX_NOTE_LENGTH)


class OrderedItemPatch(_Patch):
    seat_num: int | None = Field(default=None, ge=0, le=Limits.MAX_SEAT_NUM)
    course_num: int | None = Field(default=None, ge=1, le=Limits.MAX_COURSE_NUM)
    item_note: str | None = Field(default=None, max_length=Limits.MAX_NOTE_LENGTH)
    item_discount_id: int | None = None
    is_void: bool | None = None


class OrderedItemOut(_Out):
    id: int
    item_id: int
    order_id: int
    check_id: int
    price_cents: int
    seat_num: int | None
    course_num: int | None
    completed_at: datetime | None
    completed_by: int | None
    delivered_at: datetime | None
    item_note: str | None
    item_discount_id: int | None
    is_void: bool
    created_at: datetime


class OrderedItemView(OrderedItemOut):
    """Ordered item joined with catalog and check details."""

    name: str
    category_id: int
    destination: str
    sent_at: datetime
    table_num: int | None
    customer: str | None
    num_guests: int


class OrderWithItemsOut(OrderOut):
    items: list[OrderedItemView]


# =============================================================================
# Modifier Attachment Schemas
# =============================================================================


class ItemModGroupLink(BaseModel):
    item_id: int
    mod_group_id: int


class ModModGroupLink(BaseModel):
    mod_id: int
    mod_group_id: int


class OrderedItemModLink(BaseModel):
    ordered_item_id: int
    mod_id: int


class ItemModGroupOut(ItemModGroupLink):
    item_name: str
    mod_group_name: str


class ModModGroupOut(ModModGroupLink):
    mod_name: str
    mod_group_name: str


class OrderedItemModOut(OrderedItemModLink):
    mod_name: str
    mod_price_cents: int | None
    item_name: str


# =============================================================================
# Payment Schemas
# =============================================================================


class PaymentCreate(BaseModel):
    check_id: int
    type: TenderType
    subtotal_cents: int = Field(gt=0)
    tip_cents: int | None = Field(default=None, ge=0)


class PaymentPatch(_Patch):
    tip_cents: int | None = Field(default=None, ge=0)
    is_void: bool | None = None


class PaymentOut(_Out):
    id: int
    check_id: int
    type: TenderType
    subtotal_cents: int
    tip_cents: int | None
    is_void: bool
    created_at: datetime


class PaymentTotalOut(BaseModel):
    payment_type: TenderType
    is_void: bool
    tip_sum_cents: int
    subtotal_sum_cents: int
    count: int


# =============================================================================
# Activity Log Schemas
# =============================================================================


class ActivityLogCreate(BaseModel):
    event: LogEvent
    entity_id: int | None = None
    declared_tips_cents: int | None = Field(default=None, ge=0)


class ActivityLogOut(_Out):
    id: int
    user_id: int
    event: LogEvent
    entity_kind: EntityKind
    entity_id: int | None
    declared_tips_cents: int | None
    created_at: datetime


# =============================================================================
# Common
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error body."""

    detail: str
